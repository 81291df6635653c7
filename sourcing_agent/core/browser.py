"""
Browser Session - One isolated Playwright browser per agent run.

Each agent owns its own session: browser, context and page are never
shared across scrapers or across jobs.
"""

from typing import Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from sourcing_agent.utils.constants import (
    BROWSER_ARGS,
    DEFAULT_NAVIGATION_TIMEOUT,
    HEADLESS,
    POST_NAVIGATE_PAUSE_MS,
    SCREEN_HEIGHT,
    SCREEN_WIDTH,
    USER_AGENT,
)


class BrowserSession:
    """
    Thin wrapper around a Chromium page with a fixed viewport.

    The viewport matches the virtual screen used by the coordinate
    translator, so normalized model coordinates land on real pixels.
    """

    def __init__(
        self,
        headless: bool = HEADLESS,
        screen_width: int = SCREEN_WIDTH,
        screen_height: int = SCREEN_HEIGHT,
    ):
        self.headless = headless
        self.screen_width = screen_width
        self.screen_height = screen_height
        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None

    @property
    def is_open(self) -> bool:
        return self.page is not None

    async def start(self) -> Page:
        """Launch Chromium and open a fresh page."""
        if self.page:
            return self.page

        self.playwright = await async_playwright().start()
        self.browser = await self.playwright.chromium.launch(headless=self.headless, args=BROWSER_ARGS)
        self.context = await self.browser.new_context(
            viewport={"width": self.screen_width, "height": self.screen_height},
            user_agent=USER_AGENT,
        )
        self.page = await self.context.new_page()
        return self.page

    def _require_page(self) -> Page:
        if not self.page:
            raise RuntimeError("Browser not initialized")
        return self.page

    async def navigate(self, url: str) -> None:
        page = self._require_page()
        await page.goto(url, wait_until="networkidle", timeout=DEFAULT_NAVIGATION_TIMEOUT)
        await page.wait_for_timeout(POST_NAVIGATE_PAUSE_MS)

    async def pause(self, milliseconds: int) -> None:
        await self._require_page().wait_for_timeout(milliseconds)

    async def screenshot(self) -> bytes:
        """Viewport PNG screenshot."""
        return await self._require_page().screenshot(type="png")

    async def content(self) -> str:
        return await self._require_page().content()

    @property
    def current_url(self) -> str:
        return self.page.url if self.page else ""

    async def close(self) -> bool:
        """
        Close the browser and stop Playwright.

        Returns:
            True if a live browser was torn down, False if already closed
        """
        if not self.browser and not self.playwright:
            return False

        browser, playwright = self.browser, self.playwright
        self.playwright = None
        self.browser = None
        self.context = None
        self.page = None

        try:
            if browser:
                await browser.close()
        finally:
            if playwright:
                await playwright.stop()
        return True
