import os
from typing import Callable, List, Optional, Sequence, Union
from unittest.mock import AsyncMock

import pytest

# Dummy credentials so nothing tries to read a real key
os.environ.setdefault("GOOGLE_API_KEY", "dummy_key")

from sourcing_agent.core.schemas import Action, Decision, ScrapedRecord

FAKE_PNG = b"\x89PNG\r\n\x1a\nfake-screenshot"


def make_fake_page(url: str = "https://www.alibaba.com/") -> AsyncMock:
    """AsyncMock standing in for a Playwright Page; every primitive is awaitable."""
    page = AsyncMock()
    page.url = url
    page.screenshot.return_value = FAKE_PNG
    page.content.return_value = "<html><body><h1>Search results</h1><a href='/p/1'>Hex bolt</a></body></html>"
    return page


class FakeBrowser:
    """BrowserSession double that counts lifecycle calls."""

    def __init__(self, page=None):
        self.page = page or make_fake_page()
        self.screen_width = 1440
        self.screen_height = 900
        self.start_calls = 0
        self.close_calls = 0
        self.navigated: List[str] = []
        self._open = False

    async def start(self):
        self.start_calls += 1
        self._open = True
        return self.page

    async def navigate(self, url: str) -> None:
        self.navigated.append(url)
        self.page.url = url

    async def pause(self, milliseconds: int) -> None:
        return None

    async def screenshot(self) -> bytes:
        return await self.page.screenshot(type="png")

    async def content(self) -> str:
        return await self.page.content()

    @property
    def current_url(self) -> str:
        return self.page.url

    async def close(self) -> bool:
        self.close_calls += 1
        was_open, self._open = self._open, False
        return was_open


DecisionLike = Union[Decision, None, Exception, Callable[[list], Decision]]


class StubDecider:
    """
    Scripted decision step.

    Each call pops the next scripted response; once the script runs out the
    last response repeats. Exceptions in the script are raised.
    """

    def __init__(self, responses: Sequence[DecisionLike]):
        self.responses = list(responses)
        self.calls: List[list] = []

    async def decide(self, contents: list) -> Optional[Decision]:
        self.calls.append(list(contents))
        index = min(len(self.calls) - 1, len(self.responses) - 1)
        response = self.responses[index]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(contents)
        return response


def click(x: int = 500, y: int = 500, **extra) -> Action:
    return Action(name="click_at", args={"x": x, "y": y, **extra})


def record(supplier: str, product: str = "M8 hex bolt", **extra) -> ScrapedRecord:
    return ScrapedRecord(supplier_name=supplier, product_name=product, **extra)


@pytest.fixture
def fake_page():
    return make_fake_page()


@pytest.fixture
def fake_browser():
    return FakeBrowser()
