"""Base class for model providers.

A provider turns a prompt into reply text for a named model and keeps
cumulative token counters. One instance is shared across a whole run.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from honeycomb_evals.models import TokenUsage

EVALUATION_SYSTEM_PROMPT = (
    "You are an evaluation assistant that reviews tool responses and determines "
    "if they meet criteria. When asked to grade, format your response as "
    "SCORE: [0-1 number], PASSED: [true/false], REASONING: [your detailed explanation]. "
    "When asked to perform a task with tools, reply with the requested JSON block."
)


def error_verdict(provider: str, error: Exception) -> str:
    """Reply text standing in for a failed model call."""
    return (
        f"SCORE: 0\nPASSED: false\n"
        f"REASONING: Error calling {provider} API: {error}"
    )


class ModelProvider(ABC):
    """Abstract base class for model providers.

    Subclasses implement the API call; token accounting is shared.
    """

    name: str = ""
    models: list[str] = []

    def __init__(self) -> None:
        self._prompt_tokens = 0
        self._completion_tokens = 0

    @abstractmethod
    async def run_prompt(self, prompt: str, model: str) -> str:
        """Send a single prompt and return the reply text.

        Args:
            prompt: Full prompt text.
            model: Model name to use.

        Returns:
            Reply text. API failures are returned as a failing verdict
            rather than raised.
        """

    def token_usage(self) -> TokenUsage:
        """Cumulative token usage across every call made so far."""
        return TokenUsage(
            prompt=self._prompt_tokens,
            completion=self._completion_tokens,
            total=self._prompt_tokens + self._completion_tokens,
        )

    def _record_usage(self, prompt_tokens: int | None, completion_tokens: int | None) -> None:
        self._prompt_tokens += prompt_tokens or 0
        self._completion_tokens += completion_tokens or 0
