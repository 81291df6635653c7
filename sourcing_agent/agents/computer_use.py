"""
Computer Use Agent - Drives one browser session toward a natural-language goal.

Turn loop (LangGraph):
    decide -> act -> decide -> ... -> END

- decide: one decision round trip; stops on zero actions, on the completion
  policy, or when the model returns nothing
- act: safety gate, execute each action, screenshot, append function results
- the loop also stops once max_turns decisions have been made
"""

from typing import Any, Callable, Dict, Optional, Tuple

from langgraph.graph import END, StateGraph

from sourcing_agent.agents.decision import (
    BLOCKED_BY_SAFETY_ERROR,
    DecisionStep,
    GeminiComputerUseDecider,
    build_function_response,
    build_function_responses_message,
    build_initial_message,
)
from sourcing_agent.agents.extractor import PageDataExtractor
from sourcing_agent.agents.policies import CompletionPolicy, NoActionsPolicy
from sourcing_agent.core.browser import BrowserSession
from sourcing_agent.core.executor import ActionExecutor
from sourcing_agent.core.schemas import Action, ExtractionResult, LogCallback, LogStatus, TaskResult
from sourcing_agent.core.state import TurnState
from sourcing_agent.utils.constants import (
    DEFAULT_MAX_TURNS,
    POST_ACTION_SCREENSHOT_PAUSE_MS,
    RESULT_LOG_LIMIT,
    THINKING_LOG_LIMIT,
)
from sourcing_agent.utils.helpers import AgentLogger


class ComputerUseAgent:
    """
    Bounded request/act/observe loop over a private browser session.

    One instance runs one task at a time; the browser is torn down when
    the run ends, however it ends.
    """

    def __init__(
        self,
        agent_name: str,
        decision_step: Optional[DecisionStep] = None,
        max_turns: int = DEFAULT_MAX_TURNS,
        log_callback: Optional[LogCallback] = None,
        completion_policy: Optional[CompletionPolicy] = None,
        browser_factory: Callable[[], BrowserSession] = BrowserSession,
        extractor: Optional[PageDataExtractor] = None,
    ):
        if max_turns < 1:
            raise ValueError("max_turns must be at least 1")

        self.agent_name = agent_name
        self.max_turns = max_turns
        self.logger = AgentLogger(agent_name, log_callback)
        self.completion_policy = completion_policy or NoActionsPolicy()
        self.browser_factory = browser_factory

        self._decision_step = decision_step
        self._extractor = extractor
        self.browser: Optional[BrowserSession] = None
        self.executor: Optional[ActionExecutor] = None
        self.is_running = False
        self.turns_taken = 0

        self._graph = self._build_graph()

    @property
    def decision_step(self) -> DecisionStep:
        if self._decision_step is None:
            self._decision_step = GeminiComputerUseDecider()
        return self._decision_step

    @property
    def extractor(self) -> PageDataExtractor:
        if self._extractor is None:
            self._extractor = PageDataExtractor()
        return self._extractor

    def log(self, action: str, status: LogStatus, details: Optional[str] = None) -> None:
        self.logger.log(action, status, details)

    def get_logs(self):
        return self.logger.get_logs()

    # ========================================================================
    # BROWSER LIFECYCLE
    # ========================================================================

    async def initialize(self) -> None:
        self.log("Initializing browser", "searching", "Starting Chromium browser...")
        self.browser = self.browser_factory()
        page = await self.browser.start()
        self.executor = ActionExecutor(
            page,
            self.logger,
            screen_width=self.browser.screen_width,
            screen_height=self.browser.screen_height,
        )
        self.log("Browser initialized", "idle", "Ready to navigate")

    async def close(self) -> None:
        browser, self.browser, self.executor = self.browser, None, None
        if browser and await browser.close():
            self.log("Browser closed", "completed")

    async def navigate(self, url: str) -> None:
        self.log("Navigating", "searching", url)
        await self.browser.navigate(url)

    def _claim(self) -> None:
        if self.is_running:
            raise RuntimeError("Agent is already running a task")
        self.is_running = True
        self.turns_taken = 0
        self.logger.reset()

    async def _release(self) -> None:
        try:
            await self.close()
        finally:
            self.is_running = False

    # ========================================================================
    # PUBLIC ENTRY POINTS
    # ========================================================================

    async def run_task(self, goal: str, initial_url: Optional[str] = None) -> TaskResult:
        """
        Run the turn loop until completion, turn limit, or model silence.

        Unexpected errors are reported as a failed TaskResult, not raised.

        Raises:
            RuntimeError: If this agent is already running a task
        """
        self._claim()
        try:
            await self.initialize()
            return await self._drive(goal, initial_url)
        except Exception as e:
            self.log("Task failed", "error", str(e))
            return TaskResult(success=False, outcome="failed", turns=self.turns_taken, logs=self.get_logs())
        finally:
            await self._release()

    async def run_task_and_extract(
        self,
        goal: str,
        initial_url: str,
        extraction_prompt: str,
    ) -> Tuple[TaskResult, ExtractionResult]:
        """
        Run the turn loop, then extract structured data from the final page.

        Extraction happens once, inside the same browser session. Errors
        propagate to the caller.
        """
        self._claim()
        try:
            await self.initialize()
            task = await self._drive(goal, initial_url)
            self.log("Extracting data", "analyzing", "Using AI to extract listing information...")
            extraction = await self.extractor.extract(self.browser.page, extraction_prompt, self.logger)
            return task, extraction
        finally:
            await self._release()

    async def _drive(self, goal: str, initial_url: Optional[str]) -> TaskResult:
        if initial_url:
            await self.navigate(initial_url)

        self.log("Starting task", "searching", goal)
        screenshot = await self.browser.screenshot()

        initial_state: TurnState = {
            "contents": [build_initial_message(goal, screenshot)],
            "turn": 0,
            "max_turns": self.max_turns,
            "pending_actions": [],
            "outcome": None,
            "result": None,
        }
        # Two graph steps per turn, plus headroom for the entry step
        final_state = await self._graph.ainvoke(
            initial_state,
            config={"recursion_limit": 2 * self.max_turns + 5},
        )

        outcome = final_state.get("outcome")
        if outcome is None:
            outcome = "inconclusive"
            self.log("Turn limit reached", "idle", f"Stopped after {self.max_turns} turns")

        return TaskResult(
            success=True,
            outcome=outcome,
            result=final_state.get("result"),
            turns=final_state["turn"],
            logs=self.get_logs(),
        )

    # ========================================================================
    # GRAPH
    # ========================================================================

    def _build_graph(self):
        workflow = StateGraph(TurnState)

        workflow.add_node("decide", self._node_decide)
        workflow.add_node("act", self._node_act)

        workflow.set_entry_point("decide")
        workflow.add_conditional_edges(
            "decide",
            self._route_after_decide,
            {"act": "act", "end": END},
        )
        workflow.add_conditional_edges(
            "act",
            self._route_after_act,
            {"decide": "decide", "end": END},
        )
        return workflow.compile()

    @staticmethod
    def _route_after_decide(state: TurnState) -> str:
        return "end" if state.get("outcome") else "act"

    @staticmethod
    def _route_after_act(state: TurnState) -> str:
        return "end" if state["turn"] >= state["max_turns"] else "decide"

    async def _node_decide(self, state: TurnState) -> Dict[str, Any]:
        turn = state["turn"] + 1
        self.turns_taken = turn
        self.log(f"Turn {turn}/{state['max_turns']}", "analyzing", "Sending to Gemini Computer Use model...")

        decision = await self.decision_step.decide(state["contents"])
        if decision is None:
            self.log("No response from model", "error")
            return {"turn": turn, "outcome": "inconclusive"}

        contents = list(state["contents"])
        if decision.content is not None:
            contents.append(decision.content)

        text = decision.text
        if decision.texts:
            self.log("Model thinking", "analyzing", text[:THINKING_LOG_LIMIT])

        if not decision.actions:
            self.log("Task completed", "completed", text[:RESULT_LOG_LIMIT] or None)
            return {"contents": contents, "turn": turn, "outcome": "completed", "result": text}

        if self.completion_policy.is_complete(decision.texts):
            self.log("Results visible", "completed", text[:RESULT_LOG_LIMIT])
            return {"contents": contents, "turn": turn, "outcome": "completed", "result": text}

        return {"contents": contents, "turn": turn, "pending_actions": decision.actions}

    async def _node_act(self, state: TurnState) -> Dict[str, Any]:
        parts = []
        for action in state["pending_actions"]:
            parts.append(await self._apply_action(action))

        contents = list(state["contents"])
        contents.append(build_function_responses_message(parts))
        return {"contents": contents, "pending_actions": []}

    async def _apply_action(self, action: Action):
        """Safety gate, then execute and observe one action."""
        if action.is_blocked:
            self.log(
                "Safety confirmation required",
                "error",
                action.safety_decision.explanation or "Unknown reason",
            )
            return build_function_response(action, self.browser.current_url, error=BLOCKED_BY_SAFETY_ERROR)

        result = await self.executor.execute(action)
        await self.browser.pause(POST_ACTION_SCREENSHOT_PAUSE_MS)
        screenshot = await self.browser.screenshot()
        return build_function_response(action, self.browser.current_url, error=result.error, screenshot=screenshot)
