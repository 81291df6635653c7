"""Core components: schemas, coordinates, browser session and action executor."""

from sourcing_agent.core.schemas import (
    Action,
    ActionResult,
    AgentLogEntry,
    Decision,
    ExtractionError,
    ExtractionOk,
    SafetyDecision,
    ScrapedRecord,
    ScrapeJob,
    TaskResult,
)
from sourcing_agent.core.coordinates import denormalize_x, denormalize_y, to_pixels
from sourcing_agent.core.browser import BrowserSession
from sourcing_agent.core.executor import ActionExecutor

__all__ = [
    "Action",
    "ActionResult",
    "AgentLogEntry",
    "Decision",
    "ExtractionError",
    "ExtractionOk",
    "SafetyDecision",
    "ScrapedRecord",
    "ScrapeJob",
    "TaskResult",
    "denormalize_x",
    "denormalize_y",
    "to_pixels",
    "BrowserSession",
    "ActionExecutor",
]
