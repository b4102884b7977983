"""Shared pytest fixtures for the evaluation harness tests."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

import pytest

from honeycomb_evals.config import EvalConfig
from honeycomb_evals.models import Prompt
from honeycomb_evals.providers.base import ModelProvider
from honeycomb_evals.session import EvalSession

PASSING_VERDICT = "SCORE: 0.9\nPASSED: true\nREASONING: Looks right."


class FakeTools:
    """In-memory tool client.

    ``responses`` maps tool names to a value, an exception instance, or a
    callable taking the arguments.
    """

    def __init__(
        self,
        responses: dict[str, Any] | None = None,
        tools: list[dict[str, Any]] | None = None,
        delay: float = 0.0,
    ) -> None:
        self.responses = responses or {}
        self.tools = tools or []
        self.delay = delay
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def list_tools(self) -> list[dict[str, Any]]:
        return list(self.tools)

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> Any:
        self.calls.append((name, arguments))
        if self.delay:
            await asyncio.sleep(self.delay)
        response = self.responses.get(name, {"ok": True})
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(arguments)
        return response


class ScriptedProvider(ModelProvider):
    """Provider replying from a script, then with a fixed verdict.

    Prompts that look like grading prompts always get ``verdict``.
    """

    name = "scripted"
    models = ["scripted-1"]

    def __init__(self, replies: list[str] | None = None, verdict: str = PASSING_VERDICT) -> None:
        super().__init__()
        self.replies = list(replies or [])
        self.verdict = verdict
        self.prompts: list[str] = []

    async def run_prompt(self, prompt: str, model: str) -> str:
        self.prompts.append(prompt)
        self._record_usage(10, 5)
        if "Validation instructions:" in prompt or not self.replies:
            return self.verdict
        return self.replies.pop(0)


@pytest.fixture
def eval_config(tmp_path: Any) -> EvalConfig:
    """Configuration isolated from the environment."""
    return EvalConfig(
        _env_file=None,
        results_dir=tmp_path / "results",
        prompts_dir=tmp_path / "prompts",
        concurrency=2,
        environment="ms-demo",
        tool_retry_base_delay=0.0,
        models={},
    )


@pytest.fixture
def fake_tools() -> FakeTools:
    return FakeTools(
        tools=[
            {
                "name": "list_columns",
                "description": "List the columns of a dataset",
                "parameters": {
                    "type": "object",
                    "properties": {
                        "environment": {"type": "string"},
                        "dataset": {"type": "string"},
                    },
                    "required": ["environment", "dataset"],
                },
            },
            {
                "name": "run_query",
                "description": "Run a query",
                "parameters": {
                    "type": "object",
                    "properties": {
                        "environment": {"type": "string"},
                        "dataset": {"type": "string"},
                        "calculations": {"type": "array"},
                        "breakdowns": {"type": "array"},
                    },
                    "required": ["environment", "dataset"],
                },
            },
        ]
    )


@pytest.fixture
def session(fake_tools: FakeTools, eval_config: EvalConfig) -> EvalSession:
    return EvalSession(tools=fake_tools, config=eval_config, run_id="test-run")


@pytest.fixture
def session_factory(
    fake_tools: FakeTools,
) -> Callable[[EvalConfig], Any]:
    """Session factory that records open/close instead of spawning a server."""

    events: list[str] = []

    @asynccontextmanager
    async def _factory(config: EvalConfig) -> AsyncIterator[EvalSession]:
        events.append("open")
        try:
            yield EvalSession(tools=fake_tools, config=config, run_id="test-run")
        finally:
            events.append("close")

    _factory.events = events  # type: ignore[attr-defined]
    return _factory


@pytest.fixture
def make_prompt() -> Callable[..., Prompt]:
    """Build prompts with a default rubric."""

    def _make(prompt_id: str = "p1", **fields: Any) -> Prompt:
        data: dict[str, Any] = {
            "id": prompt_id,
            "prompt": "List the datasets",
            "validation": {"prompt": "The datasets must be listed"},
        }
        data.update(fields)
        return Prompt.model_validate(data)

    return _make


@pytest.fixture
def make_provider() -> Callable[..., ScriptedProvider]:
    """Build scripted providers."""
    return ScriptedProvider
