"""Exceptions raised by the evaluation harness."""

from __future__ import annotations


class EvalError(Exception):
    """Base class for evaluation harness errors."""


class PromptConfigurationError(EvalError):
    """A prompt selects no execution mode.

    Fatal to that prompt's result only, never to the run.
    """

    def __init__(self, prompt_id: str) -> None:
        self.prompt_id = prompt_id
        super().__init__(
            f"Invalid prompt configuration for '{prompt_id}': must specify either "
            "tool and parameters, steps, or enable conversationMode"
        )


class ToolInvocationError(EvalError):
    """A tool call failed or the tool reported an error result."""

    def __init__(self, tool: str, message: str) -> None:
        self.tool = tool
        self.message = message
        super().__init__(f"Tool '{tool}' failed: {message}")


class HarnessError(EvalError):
    """The tool server could not be started or is not connected."""
