"""
Job Store - Owned registry of scrape jobs.

Constructed once per process (the API keeps it on app.state) and handed to
whoever needs it. All mutations go through a lock so the synchronous log
callback is safe with many scrapers writing to one job.
"""

import threading
import time
from typing import Callable, Dict, List, Optional

from sourcing_agent.core.schemas import AgentLogEntry, ScrapedRecord, ScrapeJob
from sourcing_agent.utils.constants import JOB_TTL_SECONDS


class JobNotFoundError(KeyError):
    pass


class JobStore:
    def __init__(self, ttl_seconds: float = JOB_TTL_SECONDS, clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._jobs: Dict[str, ScrapeJob] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, job_id: str) -> bool:
        return job_id in self._jobs

    def create(self, query: str = "", sources: Optional[List[str]] = None) -> ScrapeJob:
        """Register a new running job; finished jobs past their TTL are swept first."""
        self.sweep_expired()
        job = ScrapeJob(query=query, sources=list(sources or []), created_at=self._clock())
        with self._lock:
            self._jobs[job.id] = job
        return job

    def get(self, job_id: str) -> Optional[ScrapeJob]:
        return self._jobs.get(job_id)

    def _require(self, job_id: str) -> ScrapeJob:
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def append_log(self, job_id: str, entry: AgentLogEntry) -> None:
        with self._lock:
            self._require(job_id).logs.append(entry)

    def log_callback(self, job_id: str) -> Callable[[AgentLogEntry], None]:
        """Callback that appends entries to one job's log."""
        def _append(entry: AgentLogEntry) -> None:
            self.append_log(job_id, entry)
        return _append

    def complete(
        self,
        job_id: str,
        results: List[ScrapedRecord],
        final_entry: Optional[AgentLogEntry] = None,
    ) -> bool:
        """
        running -> completed, storing results and the summary entry together.

        Returns:
            False if the job had already reached a terminal state
        """
        with self._lock:
            job = self._require(job_id)
            if job.is_terminal:
                print(f"⚠️ Job {job_id} already {job.status}; ignoring completion")
                return False
            job.results = list(results)
            if final_entry:
                job.logs.append(final_entry)
            job.status = "completed"
            job.finished_at = self._clock()
            return True

    def fail(self, job_id: str, entry: Optional[AgentLogEntry] = None) -> bool:
        """running -> error. Returns False if the job had already finished."""
        with self._lock:
            job = self._require(job_id)
            if job.is_terminal:
                print(f"⚠️ Job {job_id} already {job.status}; ignoring failure")
                return False
            if entry:
                job.logs.append(entry)
            job.status = "error"
            job.finished_at = self._clock()
            return True

    def snapshot(self, job_id: str) -> dict:
        """Point-in-time copy of {status, logs, results}."""
        with self._lock:
            return self._require(job_id).snapshot()

    def logs_snapshot(self, job_id: str) -> List[dict]:
        return self.snapshot(job_id)["logs"]

    def sweep_expired(self) -> int:
        """Drop finished jobs older than the TTL. Running jobs are kept."""
        if self.ttl_seconds is None or self.ttl_seconds <= 0:
            return 0

        cutoff = self._clock() - self.ttl_seconds
        with self._lock:
            expired = [
                job_id for job_id, job in self._jobs.items()
                if job.finished_at is not None and job.finished_at < cutoff
            ]
            for job_id in expired:
                del self._jobs[job_id]

        if expired:
            print(f"🧹 Evicted {len(expired)} finished job(s)")
        return len(expired)
