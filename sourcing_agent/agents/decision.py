"""
Decision step - Gemini computer-use model behind a small async interface.

The turn loop only needs `decide(contents) -> Optional[Decision]`; anything
with that coroutine (a stub in tests, another model) can stand in.
The message builders below shape the TurnContext the model expects.
"""

from typing import Any, Dict, List, Optional, Protocol

from google import genai
from google.genai import types

from sourcing_agent.core.schemas import Action, Decision
from sourcing_agent.utils.constants import COMPUTER_USE_MODEL, get_google_api_key

PNG_MIME_TYPE = "image/png"
BLOCKED_BY_SAFETY_ERROR = "Action blocked - requires human confirmation"


class DecisionStep(Protocol):
    async def decide(self, contents: List[types.Content]) -> Optional[Decision]:
        ...


# ============================================================================
# TURN CONTEXT BUILDERS
# ============================================================================

def build_initial_message(goal: str, screenshot: bytes) -> types.Content:
    """Seed turn: the natural-language goal plus the starting screenshot."""
    return types.Content(
        role="user",
        parts=[
            types.Part(text=goal),
            types.Part.from_bytes(data=screenshot, mime_type=PNG_MIME_TYPE),
        ],
    )


def build_function_response(
    action: Action,
    url: str,
    error: Optional[str] = None,
    screenshot: Optional[bytes] = None,
) -> types.Part:
    """
    Structured result of one executed (or refused) action.

    Args:
        action: The action the model proposed
        url: Page URL after the action
        error: Failure or refusal reason, omitted on success
        screenshot: Fresh PNG of the page, if one was captured
    """
    response: Dict[str, Any] = {"url": url}
    if error:
        response["error"] = error

    parts = None
    if screenshot is not None:
        parts = [
            types.FunctionResponsePart(
                inline_data=types.FunctionResponseBlob(mime_type=PNG_MIME_TYPE, data=screenshot)
            )
        ]

    return types.Part(
        function_response=types.FunctionResponse(name=action.name, response=response, parts=parts)
    )


def build_function_responses_message(parts: List[types.Part]) -> types.Content:
    return types.Content(role="user", parts=parts)


def parse_candidate_content(content: Optional[types.Content]) -> Decision:
    """Split a model turn into proposed actions and free text."""
    actions: List[Action] = []
    texts: List[str] = []
    for part in (content.parts if content and content.parts else []):
        if part.function_call:
            actions.append(Action(name=part.function_call.name, args=dict(part.function_call.args or {})))
        elif part.text:
            texts.append(part.text)
    return Decision(actions=actions, texts=texts, content=content)


# ============================================================================
# GEMINI COMPUTER USE
# ============================================================================

class GeminiComputerUseDecider:
    """Asks the Gemini computer-use model for the next browser actions."""

    def __init__(self, client: Optional[genai.Client] = None, model: str = COMPUTER_USE_MODEL):
        self.client = client or genai.Client(api_key=get_google_api_key())
        self.model = model
        self.config = types.GenerateContentConfig(
            tools=[
                types.Tool(
                    computer_use=types.ComputerUse(environment=types.Environment.ENVIRONMENT_BROWSER)
                )
            ]
        )

    async def decide(self, contents: List[types.Content]) -> Optional[Decision]:
        """
        One decision round trip.

        Returns:
            Decision, or None when the model returned no candidates
        """
        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=contents,
            config=self.config,
        )
        if not response.candidates:
            return None
        return parse_candidate_content(response.candidates[0].content)
