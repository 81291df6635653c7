"""
Completion policies - When a turn loop may stop before the model goes quiet.

The shared loop always stops on a response with zero actions. A policy
adds extra, source-specific stop signals on top of that.
"""

from typing import Iterable, Sequence

from sourcing_agent.utils.constants import SENTINEL_PHRASES


class CompletionPolicy:
    """Base policy: only a response without actions ends the task."""

    def is_complete(self, texts: Sequence[str]) -> bool:
        return False


class NoActionsPolicy(CompletionPolicy):
    pass


class SentinelPhrasePolicy(CompletionPolicy):
    """
    Best-effort early exit on phrases like "DONE - search results are visible".

    Matching is a plain case-sensitive substring test over each text part,
    so unrelated mentions of a phrase also end the loop. Swap in a policy
    reading a structured completion signal when the model offers one.
    """

    def __init__(self, phrases: Iterable[str] = SENTINEL_PHRASES):
        self.phrases = tuple(phrases)

    def is_complete(self, texts: Sequence[str]) -> bool:
        return any(phrase in text for text in texts for phrase in self.phrases)
