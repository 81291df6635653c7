"""
Live Sourcing Agent - Autonomous supplier search powered by Playwright + Gemini computer use

Core workflow: goal + start URL → turn loop (decide / act / observe) → one-shot extraction
Jobs run several marketplace scrapers concurrently and are polled over HTTP.
"""

from sourcing_agent.agents.computer_use import ComputerUseAgent
from sourcing_agent.jobs.orchestrator import ScrapeJobOrchestrator
from sourcing_agent.jobs.store import JobStore


__version__ = "1.0.0"
__all__ = ["ComputerUseAgent", "ScrapeJobOrchestrator", "JobStore"]
