"""
Job Poller - Client side of the live-search polling protocol.

Polls the job status endpoint at a fixed interval until the job reaches a
terminal status. New log entries are found by id, not by position.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Sequence, Set

import httpx

from sourcing_agent.utils.constants import DEFAULT_SOURCES, POLL_INTERVAL_SECONDS

TERMINAL_STATUSES = ("completed", "error")


class JobPoller:
    def __init__(self, client: httpx.AsyncClient, interval: float = POLL_INTERVAL_SECONDS):
        self.client = client
        self.interval = interval
        self.seen_log_ids: Set[str] = set()

    async def start(
        self,
        session_id: str,
        search_query: Optional[str] = None,
        sources: Sequence[str] = DEFAULT_SOURCES,
        **extra: Any,
    ) -> Dict[str, Any]:
        """POST a live search; returns {jobId, message, query, sources}."""
        payload: Dict[str, Any] = {"sessionId": session_id, "sources": list(sources), **extra}
        if search_query:
            payload["searchQuery"] = search_query
        response = await self.client.post("/api/scrape/live", json=payload)
        response.raise_for_status()
        return response.json()

    async def fetch_status(self, job_id: str) -> Dict[str, Any]:
        response = await self.client.get(f"/api/scrape/status/{job_id}")
        response.raise_for_status()
        return response.json()

    def new_logs(self, logs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Entries not seen before, in server order."""
        fresh = [entry for entry in logs if entry.get("id") not in self.seen_log_ids]
        self.seen_log_ids.update(entry.get("id") for entry in fresh)
        return fresh

    async def follow(
        self,
        job_id: str,
        on_log: Optional[Callable[[Dict[str, Any]], None]] = None,
        max_polls: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Poll until the job completes or errors.

        Args:
            job_id: Job to follow
            on_log: Called once per new log entry
            max_polls: Give up after this many polls (None = no limit)

        Returns:
            The final status snapshot

        Raises:
            TimeoutError: If max_polls is reached first
        """
        polls = 0
        while True:
            snapshot = await self.fetch_status(job_id)
            polls += 1
            for entry in self.new_logs(snapshot.get("logs", [])):
                if on_log:
                    on_log(entry)

            if snapshot.get("status") in TERMINAL_STATUSES:
                return snapshot
            if max_polls is not None and polls >= max_polls:
                raise TimeoutError(f"Job {job_id} still running after {polls} polls")
            await asyncio.sleep(self.interval)
