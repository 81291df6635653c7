"""
Action Executor - Applies one decided action to a live Playwright page.

Contract:
- Runs the primitive browser operation for the action
- Always settles the page afterwards (network idle, then a short pause)
- Returns ActionResult; primitive failures never escape this boundary
"""

from typing import Any, Awaitable, Callable, Dict, Optional

from playwright.async_api import Page

from sourcing_agent.core.coordinates import denormalize_x, denormalize_y
from sourcing_agent.core.schemas import Action, ActionResult
from sourcing_agent.utils.constants import (
    DEFAULT_NAVIGATION_TIMEOUT,
    DEFAULT_SCROLL_MAGNITUDE,
    NORMALIZED_RANGE,
    SCREEN_HEIGHT,
    SCREEN_WIDTH,
    SCROLL_DOCUMENT_PIXELS,
    SEARCH_HOME_URL,
    SETTLE_NETWORK_IDLE_TIMEOUT,
    SETTLE_PAUSE_MS,
    TYPING_DELAY_MS,
    WAIT_ACTION_MS,
)
from sourcing_agent.utils.helpers import AgentLogger, normalize_key_combination

Handler = Callable[[Dict[str, Any]], Awaitable[None]]


class UnknownActionError(ValueError):
    pass


class ActionExecutor:
    """
    Maps action names to page primitives.

    Action names follow the Gemini computer-use tool; a few shorter
    aliases are accepted for the same handlers.
    """

    def __init__(
        self,
        page: Page,
        logger: Optional[AgentLogger] = None,
        screen_width: int = SCREEN_WIDTH,
        screen_height: int = SCREEN_HEIGHT,
        settle_timeout_ms: int = SETTLE_NETWORK_IDLE_TIMEOUT,
        settle_pause_ms: int = SETTLE_PAUSE_MS,
    ):
        self.page = page
        self.logger = logger
        self.screen_width = screen_width
        self.screen_height = screen_height
        self.settle_timeout_ms = settle_timeout_ms
        self.settle_pause_ms = settle_pause_ms

        self._handlers: Dict[str, Handler] = {
            "open_web_browser": self._noop,
            "open_browser": self._noop,
            "navigate": self._navigate,
            "search": self._search,
            "click_at": self._click_at,
            "type_text_at": self._type_text_at,
            "hover_at": self._hover_at,
            "scroll_document": self._scroll_document,
            "scroll_at": self._scroll_at,
            "key_combination": self._key_combination,
            "go_back": self._go_back,
            "go_forward": self._go_forward,
            "wait_5_seconds": self._wait,
            "wait_fixed": self._wait,
            "drag_and_drop": self._drag_and_drop,
        }

    @property
    def supported_actions(self):
        return sorted(self._handlers)

    def _log(self, action: str, status: str, details: Optional[str] = None) -> None:
        if self.logger:
            self.logger.log(action, status, details)

    def _point(self, args: Dict[str, Any], x_key: str = "x", y_key: str = "y"):
        return (
            denormalize_x(args[x_key], self.screen_width),
            denormalize_y(args[y_key], self.screen_height),
        )

    async def execute(self, action: Action) -> ActionResult:
        """
        Perform one action and settle the page.

        Args:
            action: The decided action (name + arguments)

        Returns:
            ActionResult with success flag and error message on failure
        """
        self._log(f"Executing action: {action.name}", "analyzing", _describe_args(action.args))

        result = ActionResult(success=True)
        try:
            handler = self._handlers.get(action.name)
            if handler is None:
                raise UnknownActionError(f"Unknown action: {action.name}")
            await handler(action.args)
        except UnknownActionError as e:
            self._log(str(e), "error", "Action not implemented")
            result = ActionResult(success=False, error=str(e))
        except Exception as e:
            self._log(f"Action error: {action.name}", "error", str(e))
            result = ActionResult(success=False, error=str(e))

        await self.settle()
        return result

    async def settle(self) -> None:
        """Wait for network idle (bounded) and a fixed pause; never raises."""
        try:
            await self.page.wait_for_load_state("networkidle", timeout=self.settle_timeout_ms)
        except Exception:
            pass  # Long-polling pages never go idle
        try:
            await self.page.wait_for_timeout(self.settle_pause_ms)
        except Exception as e:
            print(f"⚠️ Settle pause interrupted: {e}")

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _noop(self, args: Dict[str, Any]) -> None:
        return None

    async def _navigate(self, args: Dict[str, Any]) -> None:
        await self.page.goto(args["url"], wait_until="networkidle", timeout=DEFAULT_NAVIGATION_TIMEOUT)

    async def _search(self, args: Dict[str, Any]) -> None:
        await self.page.goto(SEARCH_HOME_URL, wait_until="networkidle", timeout=DEFAULT_NAVIGATION_TIMEOUT)

    async def _click_at(self, args: Dict[str, Any]) -> None:
        x, y = self._point(args)
        await self.page.mouse.click(x, y)

    async def _type_text_at(self, args: Dict[str, Any]) -> None:
        x, y = self._point(args)
        text = str(args.get("text", ""))
        press_enter = args.get("press_enter", True) is not False
        clear_first = args.get("clear_before_typing", True) is not False

        # Focus, clear, type, submit: order matters for controlled inputs
        await self.page.mouse.click(x, y)
        if clear_first:
            await self.page.keyboard.press("Control+A")
            await self.page.keyboard.press("Backspace")
        await self.page.keyboard.type(text, delay=TYPING_DELAY_MS)
        if press_enter:
            await self.page.keyboard.press("Enter")

    async def _hover_at(self, args: Dict[str, Any]) -> None:
        x, y = self._point(args)
        await self.page.mouse.move(x, y)

    async def _scroll_document(self, args: Dict[str, Any]) -> None:
        dx, dy = _direction_vector(args.get("direction"), SCROLL_DOCUMENT_PIXELS, SCROLL_DOCUMENT_PIXELS)
        await self.page.evaluate("([dx, dy]) => window.scrollBy(dx, dy)", [dx, dy])

    async def _scroll_at(self, args: Dict[str, Any]) -> None:
        x, y = self._point(args)
        magnitude = float(args.get("magnitude") or DEFAULT_SCROLL_MAGNITUDE)
        dx, dy = _direction_vector(
            args.get("direction"),
            magnitude / NORMALIZED_RANGE * self.screen_width,
            magnitude / NORMALIZED_RANGE * self.screen_height,
        )
        await self.page.mouse.move(x, y)
        await self.page.mouse.wheel(dx, dy)

    async def _key_combination(self, args: Dict[str, Any]) -> None:
        await self.page.keyboard.press(normalize_key_combination(args["keys"]))

    async def _go_back(self, args: Dict[str, Any]) -> None:
        await self.page.go_back()

    async def _go_forward(self, args: Dict[str, Any]) -> None:
        await self.page.go_forward()

    async def _wait(self, args: Dict[str, Any]) -> None:
        await self.page.wait_for_timeout(WAIT_ACTION_MS)

    async def _drag_and_drop(self, args: Dict[str, Any]) -> None:
        start_x, start_y = self._point(args)
        end_x, end_y = self._point(args, "destination_x", "destination_y")
        await self.page.mouse.move(start_x, start_y)
        await self.page.mouse.down()
        await self.page.mouse.move(end_x, end_y)
        await self.page.mouse.up()


def _direction_vector(direction: Any, horizontal: float, vertical: float):
    direction = str(direction or "").lower()
    if direction == "down":
        return 0, vertical
    if direction == "up":
        return 0, -vertical
    if direction == "right":
        return horizontal, 0
    if direction == "left":
        return -horizontal, 0
    raise ValueError(f"Unsupported scroll direction: {direction!r}")


def _describe_args(args: Dict[str, Any]) -> str:
    # Safety payloads are logged by the turn loop, not here
    visible = {k: v for k, v in args.items() if k != "safety_decision"}
    return ", ".join(f"{k}={v!r}" for k, v in visible.items()) or "(no args)"
