import math
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from sourcing_agent.utils.constants import DEFAULT_CURRENCY

LogStatus = Literal["idle", "searching", "analyzing", "completed", "error"]
JobStatus = Literal["running", "completed", "error"]
TaskOutcome = Literal["completed", "inconclusive", "failed"]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class AgentLogEntry(BaseModel):
    """One immutable progress record emitted by an agent run."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: str = Field(default_factory=_now_iso)
    agent_name: str = Field(alias="agentName")
    action: str
    status: LogStatus
    details: Optional[str] = None
    screenshot: Optional[str] = None


LogCallback = Callable[[AgentLogEntry], None]

REQUIRE_CONFIRMATION = "require_confirmation"


class SafetyDecision(BaseModel):
    """Safety verdict the decision model attaches to a proposed action."""
    decision: str = ""
    explanation: Optional[str] = None

    @property
    def requires_confirmation(self) -> bool:
        return self.decision == REQUIRE_CONFIRMATION


class Action(BaseModel):
    """A single proposed UI operation: function name plus its arguments."""
    name: str
    args: Dict[str, Any] = Field(default_factory=dict)

    @property
    def safety_decision(self) -> Optional[SafetyDecision]:
        raw = self.args.get("safety_decision")
        if isinstance(raw, SafetyDecision):
            return raw
        if raw is None:
            return None
        try:
            return SafetyDecision.model_validate(raw)
        except ValidationError:
            # Unreadable verdicts are treated as needing confirmation
            return SafetyDecision(decision=REQUIRE_CONFIRMATION, explanation=f"Unreadable safety decision: {raw!r}")

    @property
    def is_blocked(self) -> bool:
        decision = self.safety_decision
        return decision is not None and decision.requires_confirmation


class ActionResult(BaseModel):
    success: bool
    error: Optional[str] = None


class Decision(BaseModel):
    """Parsed output of one decision-step round trip."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    actions: List[Action] = Field(default_factory=list)
    texts: List[str] = Field(default_factory=list)
    content: Any = None

    @property
    def text(self) -> str:
        return " ".join(self.texts)


class TaskResult(BaseModel):
    success: bool
    outcome: TaskOutcome
    result: Optional[str] = None
    turns: int = 0
    logs: List[AgentLogEntry] = Field(default_factory=list)


# ============================================================================
# SCRAPED RECORDS
# ============================================================================

_NUMBER_PATTERN = re.compile(r"-?\d+(?:\.\d+)?")


def _parse_number(value: Any) -> Optional[float]:
    """Pull the first number out of values like '$1,200.50 - $2.00' or '500 pieces'."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError as e:
            raise ValueError(f"Number out of range: {value!r}") from e
    else:
        match = _NUMBER_PATTERN.search(str(value).replace(",", ""))
        if not match:
            return None
        number = float(match.group(0))
    if not math.isfinite(number):
        raise ValueError(f"Number out of range: {value!r}")
    return number


class ScrapedRecord(BaseModel):
    """A supplier/product listing extracted from a marketplace results page."""
    model_config = ConfigDict(populate_by_name=True)

    supplier_name: str = Field(alias="supplierName", min_length=1)
    product_name: str = Field(alias="productName", min_length=1)
    product_url: Optional[str] = Field(default=None, alias="productUrl")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    price: Optional[float] = None
    currency: str = DEFAULT_CURRENCY
    moq: Optional[int] = None
    lead_time_days: Optional[int] = Field(default=None, alias="leadTimeDays")
    certifications: Optional[List[str]] = None
    location: Optional[str] = None
    description: Optional[str] = None
    specifications: Optional[Dict[str, str]] = None

    @field_validator("price", mode="before")
    @classmethod
    def _coerce_price(cls, value: Any) -> Optional[float]:
        return _parse_number(value)

    @field_validator("moq", "lead_time_days", mode="before")
    @classmethod
    def _coerce_int(cls, value: Any) -> Optional[int]:
        number = _parse_number(value)
        return int(number) if number is not None else None

    @field_validator("currency", mode="before")
    @classmethod
    def _default_currency(cls, value: Any) -> str:
        return str(value).strip().upper() if value else DEFAULT_CURRENCY

    @field_validator("certifications", mode="before")
    @classmethod
    def _listify(cls, value: Any) -> Optional[List[str]]:
        if value is None:
            return None
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        if not isinstance(value, (list, tuple)):
            raise ValueError(f"Expected a list of certifications, got {type(value).__name__}")
        return [str(item) for item in value]

    @field_validator("specifications", mode="before")
    @classmethod
    def _stringify_specs(cls, value: Any) -> Optional[Dict[str, str]]:
        if not isinstance(value, dict):
            return None
        return {str(k): str(v) for k, v in value.items()}


# ============================================================================
# EXTRACTION RESULT (tagged union)
# ============================================================================

class ExtractionOk(BaseModel):
    kind: Literal["ok"] = "ok"
    data: Any = None


class ExtractionError(BaseModel):
    kind: Literal["parse_error"] = "parse_error"
    error: str
    raw_text: str = ""


ExtractionResult = Union[ExtractionOk, ExtractionError]


# ============================================================================
# JOBS
# ============================================================================

class ScrapeJob(BaseModel):
    """One orchestrated multi-source scraping job."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    status: JobStatus = "running"
    query: str = ""
    sources: List[str] = Field(default_factory=list)
    logs: List[AgentLogEntry] = Field(default_factory=list)
    results: List[ScrapedRecord] = Field(default_factory=list)
    created_at: float = 0.0
    finished_at: Optional[float] = None

    @property
    def is_terminal(self) -> bool:
        return self.status != "running"

    def snapshot(self) -> Dict[str, Any]:
        """Polling view: {status, logs, results} with camelCase keys."""
        return {
            "status": self.status,
            "logs": [entry.model_dump(by_alias=True, exclude_none=True) for entry in self.logs],
            "results": [record.model_dump(by_alias=True, exclude_none=True) for record in self.results],
        }
