# Live Sourcing Agent Backend
import os
import sys
from typing import List, Literal, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

# Load environment variables from .env
load_dotenv(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), ".env"))
# Add root directory to path so we can import sourcing_agent
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sourcing_agent.jobs.orchestrator import ScrapeJobOrchestrator, build_search_query
from sourcing_agent.jobs.store import JobStore
from sourcing_agent.utils.constants import DEFAULT_SOURCES

SourceName = Literal["alibaba", "thomasnet"]


class LiveSearchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId")
    search_query: Optional[str] = Field(default=None, alias="searchQuery")
    sources: List[SourceName] = Field(default_factory=lambda: list(DEFAULT_SOURCES), min_length=1)
    # Product context normally resolved from the caller's session
    product_name: Optional[str] = Field(default=None, alias="productName")
    specifications: List[str] = Field(default_factory=list)


def create_app(store: Optional[JobStore] = None, orchestrator: Optional[ScrapeJobOrchestrator] = None) -> FastAPI:
    """
    Build the API around one job store.

    The store lives on app.state for the lifetime of the app; both the
    create and poll endpoints read it from there.
    """
    store = store or (orchestrator.store if orchestrator else JobStore())
    orchestrator = orchestrator or ScrapeJobOrchestrator(store)

    app = FastAPI(title="Live Sourcing Agent API")
    app.state.job_store = store
    app.state.orchestrator = orchestrator

    # Enable CORS for React frontend (Vite defaults to 5173)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def get_store(request: Request) -> JobStore:
        return request.app.state.job_store

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.post("/api/scrape/live", status_code=202)
    async def start_live_search(body: LiveSearchRequest, request: Request):
        query = build_search_query(body.search_query, body.product_name, body.specifications)
        if not query:
            raise HTTPException(
                status_code=400,
                detail="Provide searchQuery or productName so a search query can be built",
            )

        # Preserve request order, drop duplicates
        sources = list(dict.fromkeys(body.sources))
        job = request.app.state.orchestrator.start_job(query, sources)
        return {
            "jobId": job.id,
            "message": "Live scraping job started",
            "query": query,
            "sources": sources,
        }

    @app.get("/api/scrape/status/{job_id}")
    async def job_status(job_id: str, request: Request):
        store = get_store(request)
        if job_id not in store:
            raise HTTPException(status_code=404, detail="Job not found")
        return store.snapshot(job_id)

    @app.get("/api/scrape/logs/{job_id}")
    async def job_logs(job_id: str, request: Request):
        store = get_store(request)
        if job_id not in store:
            raise HTTPException(status_code=404, detail="Job not found")
        return {"logs": store.logs_snapshot(job_id)}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8006)
