"""Run-scoped session state shared by strategies and the runner."""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from honeycomb_evals.config import EvalConfig
from honeycomb_evals.harness import MCPHarness, ToolClient


@dataclass(frozen=True)
class EvalSession:
    """Everything one evaluation needs from the surrounding run.

    The tool client is opened once per run and shared by every
    provider/model/prompt combination.
    """

    tools: ToolClient
    config: EvalConfig
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])


@asynccontextmanager
async def open_session(config: EvalConfig) -> AsyncIterator[EvalSession]:
    """Start the MCP server and yield a session; always tears it down."""
    async with MCPHarness.running(config) as harness:
        yield EvalSession(tools=harness, config=config)
