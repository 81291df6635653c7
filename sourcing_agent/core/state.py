from typing import Any, List, Optional, TypedDict

from sourcing_agent.core.schemas import Action


class TurnState(TypedDict):
    """
    State threaded through the agent turn loop graph.

    Attributes:
        contents: TurnContext - ordered model conversation (genai Content list).
        turn: Decision round trips made so far.
        max_turns: Upper bound on decision round trips.
        pending_actions: Actions from the latest decision, executed by the act node.
        outcome: None while running; "completed" or "inconclusive" once stopped.
        result: Free-text summary from the final decision.
    """
    contents: List[Any]
    turn: int
    max_turns: int
    pending_actions: List[Action]
    outcome: Optional[str]
    result: Optional[str]
