"""
Scrape Job Orchestrator - Runs source scrapers concurrently for one job.

Lifecycle per job:
    running -> completed   (all scrapers joined, results merged)
    running -> error       (something escaped the per-scraper guards)

start_job() returns as soon as the job is registered; the work runs in a
spawned asyncio task that writes its outcome back into the JobStore.
"""

import asyncio
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Type

from sourcing_agent.core.schemas import AgentLogEntry, LogCallback, ScrapedRecord, ScrapeJob
from sourcing_agent.jobs.store import JobStore
from sourcing_agent.scrapers import SCRAPERS, SourceScraper
from sourcing_agent.utils.constants import (
    DEFAULT_MAX_RESULTS,
    QUERY_SPEC_LIMIT,
    SOURCE_ALIBABA,
    SOURCE_THOMASNET,
    SYSTEM_AGENT_NAME,
)


def build_search_query(
    search_query: Optional[str] = None,
    product_name: Optional[str] = None,
    specifications: Optional[Sequence[str]] = None,
) -> str:
    """
    Explicit query (or the product name) followed by the first few specification values.

    >>> build_search_query(None, "hex bolt", ["M8", "stainless", "DIN 933", "A2"])
    'hex bolt M8 stainless DIN 933'
    """
    base = (search_query or product_name or "").strip()
    specs = [str(s).strip() for s in (specifications or [])[:QUERY_SPEC_LIMIT] if str(s).strip()]
    return " ".join([base, *specs]).strip()


def _system_entry(action: str, status: str, details: Optional[str] = None) -> AgentLogEntry:
    return AgentLogEntry(agent_name=SYSTEM_AGENT_NAME, action=action, status=status, details=details)


class ScrapeJobOrchestrator:
    def __init__(
        self,
        store: JobStore,
        scrapers: Mapping[str, Type[SourceScraper]] = SCRAPERS,
        max_results: int = DEFAULT_MAX_RESULTS,
        scraper_options: Optional[Dict[str, Any]] = None,
    ):
        self.store = store
        self.scrapers = scrapers
        self.max_results = max_results
        self.scraper_options = scraper_options or {}
        self._tasks: Set[asyncio.Task] = set()

    def start_job(self, query: str, sources: Sequence[str]) -> ScrapeJob:
        """
        Register a job and launch it in the background.

        Must be called from a running event loop. Never waits for scrapers.
        """
        job = self.store.create(query=query, sources=list(sources))
        task = asyncio.create_task(self._run_guarded(job.id, query, list(sources)))
        # Keep a reference until done so the task is not garbage collected
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        print(f"🚀 Started scrape job {job.id} for '{query}' on {', '.join(sources)}")
        return job

    async def wait_all(self) -> None:
        """Wait for every job task started so far."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run_guarded(self, job_id: str, query: str, sources: List[str]) -> None:
        try:
            await self.run_job(job_id, query, sources)
        except Exception as e:
            print(f"❌ Scrape job {job_id} error: {e}")
            self.store.fail(job_id, _system_entry("Error", "error", str(e) or type(e).__name__))

    async def run_job(self, job_id: str, query: str, sources: List[str]) -> List[ScrapedRecord]:
        """Run all requested scrapers concurrently and complete the job."""
        log_callback = self.store.log_callback(job_id)
        log_callback(_system_entry(
            "Starting live supplier search",
            "searching",
            f'Query: "{query}" on sources: {", ".join(sources)} (running in parallel)',
        ))

        scrapers = [self.scrapers[source](log_callback=log_callback, **self.scraper_options) for source in sources]
        results_per_source = await asyncio.gather(
            *(self._run_scraper(scraper, query, log_callback) for scraper in scrapers)
        )

        all_results = [record for records in results_per_source for record in records]
        self.store.complete(
            job_id,
            all_results,
            _system_entry("Search completed", "completed", f"Total results: {len(all_results)}"),
        )
        return all_results

    async def _run_scraper(
        self,
        scraper: SourceScraper,
        query: str,
        log_callback: LogCallback,
    ) -> List[ScrapedRecord]:
        def log(action: str, status: str, details: str) -> None:
            log_callback(AgentLogEntry(agent_name=scraper.agent_name, action=action, status=status, details=details))

        try:
            log("Initializing", "searching", f"Starting {scraper.agent_name.replace(' Scraper', '')} search...")
            results = await scraper.search(query, self.max_results)
            log("Completed", "completed", f"Found {len(results)} {scraper.listing_noun}")
            return results
        except Exception as e:
            log("Error", "error", str(e))
            return []


async def run_supplier_search(
    product_name: str,
    specifications: Sequence[str],
    log_callback: Optional[LogCallback] = None,
    max_results: int = DEFAULT_MAX_RESULTS,
) -> Dict[str, List[Any]]:
    """
    One-off search on both marketplaces without a job store.

    Returns:
        {"alibaba": [...], "thomasnet": [...], "logs": [...]}
    """
    query = build_search_query(None, product_name, specifications)
    all_logs: List[AgentLogEntry] = []

    def wrapped_callback(entry: AgentLogEntry) -> None:
        all_logs.append(entry)
        if log_callback:
            log_callback(entry)

    alibaba = SCRAPERS[SOURCE_ALIBABA](log_callback=wrapped_callback)
    thomasnet = SCRAPERS[SOURCE_THOMASNET](log_callback=wrapped_callback)
    alibaba_results, thomasnet_results = await asyncio.gather(
        alibaba.search(query, max_results),
        thomasnet.search(query, max_results),
    )
    return {
        SOURCE_ALIBABA: alibaba_results,
        SOURCE_THOMASNET: thomasnet_results,
        "logs": all_logs,
    }
