"""Job orchestration: store, orchestrator and polling client."""

from sourcing_agent.jobs.store import JobNotFoundError, JobStore
from sourcing_agent.jobs.orchestrator import ScrapeJobOrchestrator, build_search_query, run_supplier_search
from sourcing_agent.jobs.client import JobPoller

__all__ = [
    "JobStore",
    "JobNotFoundError",
    "ScrapeJobOrchestrator",
    "build_search_query",
    "run_supplier_search",
    "JobPoller",
]
