"""
Constants module - All configuration constants for the Live Sourcing Agent.

Centralizes:
- Virtual screen geometry
- Default timeouts
- Turn loop settings
- Gemini model names
- Source marketplace configuration
"""

import os
from typing import Dict, List, Tuple

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# ============================================================================
# VIRTUAL SCREEN
# ============================================================================

SCREEN_WIDTH = 1440
SCREEN_HEIGHT = 900
NORMALIZED_RANGE = 1000

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

BROWSER_ARGS: List[str] = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
]

HEADLESS = _env_bool("HEADLESS", True)

# ============================================================================
# TIMEOUTS (in milliseconds)
# ============================================================================

DEFAULT_NAVIGATION_TIMEOUT = 30000
SETTLE_NETWORK_IDLE_TIMEOUT = 5000
SETTLE_PAUSE_MS = 1000
POST_NAVIGATE_PAUSE_MS = 1000
POST_ACTION_SCREENSHOT_PAUSE_MS = 500
WAIT_ACTION_MS = 5000
TYPING_DELAY_MS = 50

# ============================================================================
# ACTION SETTINGS
# ============================================================================

SCROLL_DOCUMENT_PIXELS = 500
DEFAULT_SCROLL_MAGNITUDE = 800
SEARCH_HOME_URL = "https://www.google.com"

# ============================================================================
# TURN LOOP SETTINGS
# ============================================================================

DEFAULT_MAX_TURNS = _env_int("MAX_TURNS", 15)
THINKING_LOG_LIMIT = 200
RESULT_LOG_LIMIT = 500

# Case-sensitive substrings that end a scraper's turn loop early
SENTINEL_PHRASES: Tuple[str, ...] = ("DONE", "visible", "results")

# ============================================================================
# LLM SETTINGS
# ============================================================================

COMPUTER_USE_MODEL = os.getenv("GEMINI_COMPUTER_USE_MODEL", "gemini-2.5-computer-use-preview-10-2025")
EXTRACTION_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
MARKUP_TEXT_LIMIT = 20000

# ============================================================================
# SOURCES
# ============================================================================

SOURCE_ALIBABA = "alibaba"
SOURCE_THOMASNET = "thomasnet"
DEFAULT_SOURCES: List[str] = [SOURCE_ALIBABA, SOURCE_THOMASNET]

SOURCE_START_URLS: Dict[str, str] = {
    SOURCE_ALIBABA: "https://www.alibaba.com",
    SOURCE_THOMASNET: "https://www.thomasnet.com",
}

DEFAULT_MAX_RESULTS = 5
DEFAULT_CURRENCY = "USD"
QUERY_SPEC_LIMIT = 3

# ============================================================================
# JOBS
# ============================================================================

JOB_TTL_SECONDS = _env_int("JOB_TTL_SECONDS", 3600)
POLL_INTERVAL_SECONDS = 2.0
SYSTEM_AGENT_NAME = "System"


def get_google_api_key() -> str:
    """
    Read the Gemini API key from the environment.

    Raises:
        ValueError: If GOOGLE_API_KEY is not set
    """
    api_key = os.getenv("GOOGLE_API_KEY")
    if not api_key or not api_key.strip():
        raise ValueError("GOOGLE_API_KEY environment variable is required")
    return api_key.strip()
