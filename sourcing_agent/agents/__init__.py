"""Agent implementations."""

from sourcing_agent.agents.computer_use import ComputerUseAgent
from sourcing_agent.agents.decision import GeminiComputerUseDecider
from sourcing_agent.agents.extractor import PageDataExtractor
from sourcing_agent.agents.policies import CompletionPolicy, NoActionsPolicy, SentinelPhrasePolicy

__all__ = [
    "ComputerUseAgent",
    "GeminiComputerUseDecider",
    "PageDataExtractor",
    "CompletionPolicy",
    "NoActionsPolicy",
    "SentinelPhrasePolicy",
]
