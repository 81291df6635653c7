"""
Helpers module - Reusable utilities for the Live Sourcing Agent.

Contains:
- LLM text extraction
- Markdown code fence stripping for JSON answers
- Page markup cleaning for LLM context
- Keyboard shortcut normalization
- Agent progress logging
"""

import datetime
import re
from typing import Any, List, Optional

import html2text
from bs4 import BeautifulSoup

from sourcing_agent.core.schemas import AgentLogEntry, LogCallback, LogStatus


# ============================================================================
# TEXT EXTRACTION UTILITIES
# ============================================================================

def extract_llm_text(content: Any) -> str:
    """
    Safely extract text from LLM content.

    Handles both string and list/multimodal formats from LLM responses.
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            item.get("text", "") if isinstance(item, dict) else str(item)
            for item in content
        )
    return str(content)


_FENCE_PATTERN = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


def strip_code_fence(text: str) -> str:
    """
    Return the body of the first fenced code block, or the trimmed text.

    Args:
        text: Raw LLM answer that may wrap JSON in ```json ... ``` fences

    Returns:
        Text ready for json.loads
    """
    cleaned = (text or "").strip()
    match = _FENCE_PATTERN.search(cleaned)
    if match:
        cleaned = match.group(1).strip()
    return cleaned


# ============================================================================
# MARKUP CLEANING FOR LLM
# ============================================================================

def markup_to_text(html: str, max_length: int = 20000) -> str:
    """
    Convert raw page markup to compact Markdown for LLM context.

    Drops scripts, styles, SVG and page chrome, keeps link targets
    (product URLs) and image sources.
    """
    if not html:
        return ""

    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "svg", "noscript", "iframe", "footer"]):
        tag.decompose()

    converter = html2text.HTML2Text()
    converter.ignore_links = False
    converter.ignore_images = False
    converter.body_width = 0
    markdown = converter.handle(str(soup))
    markdown = re.sub(r"\n{3,}", "\n\n", markdown).strip()

    if len(markdown) > max_length:
        markdown = markdown[:max_length] + "\n... [TRUNCATED]"
    return markdown


# ============================================================================
# KEYBOARD
# ============================================================================

_KEY_ALIASES = {
    "control": "Control",
    "ctrl": "Control",
    "alt": "Alt",
    "option": "Alt",
    "shift": "Shift",
    "meta": "Meta",
    "cmd": "Meta",
    "command": "Meta",
    "enter": "Enter",
    "return": "Enter",
    "esc": "Escape",
    "escape": "Escape",
    "tab": "Tab",
    "backspace": "Backspace",
    "delete": "Delete",
    "space": "Space",
    "up": "ArrowUp",
    "down": "ArrowDown",
    "left": "ArrowLeft",
    "right": "ArrowRight",
    "pageup": "PageUp",
    "pagedown": "PageDown",
    "home": "Home",
    "end": "End",
}


def normalize_key_combination(keys: str) -> str:
    """'control+a' -> 'Control+a' style combos Playwright's keyboard.press accepts."""
    parts = [part.strip() for part in str(keys).split("+") if part.strip()]
    normalized = []
    for part in parts:
        alias = _KEY_ALIASES.get(part.lower())
        if alias:
            normalized.append(alias)
        elif re.fullmatch(r"f\d{1,2}", part.lower()):
            normalized.append(part.upper())
        else:
            normalized.append(part)
    return "+".join(normalized)


# ============================================================================
# AGENT LOGGING
# ============================================================================

class AgentLogger:
    """
    Progress logger for one agent.

    Builds AgentLogEntry records, prints them to the console for real-time
    visibility, keeps them in emission order and forwards each one to the
    optional callback (the job store's log channel).
    """

    _ICONS = {
        "idle": "💤",
        "searching": "🔎",
        "analyzing": "🤖",
        "completed": "✅",
        "error": "❌",
    }

    def __init__(self, agent_name: str, callback: Optional[LogCallback] = None):
        self.agent_name = agent_name
        self.callback = callback
        self.logs: List[AgentLogEntry] = []

    def _format(self, entry: AgentLogEntry) -> str:
        timestamp = datetime.datetime.now().strftime("%H:%M:%S")
        suffix = f": {entry.details}" if entry.details else ""
        return f"{self._ICONS.get(entry.status, '')} [{timestamp}] [{self.agent_name}] {entry.action}{suffix}"

    def log(
        self,
        action: str,
        status: LogStatus,
        details: Optional[str] = None,
        screenshot: Optional[str] = None,
    ) -> AgentLogEntry:
        entry = AgentLogEntry(
            agent_name=self.agent_name,
            action=action,
            status=status,
            details=details,
            screenshot=screenshot,
        )
        self.logs.append(entry)
        print(self._format(entry))
        if self.callback:
            self.callback(entry)
        return entry

    def get_logs(self) -> List[AgentLogEntry]:
        """Copy of the captured entries."""
        return list(self.logs)

    def reset(self) -> None:
        self.logs = []
