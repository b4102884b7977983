"""MCP server lifecycle management for evaluations.

Launches the MCP server under test as a stdio subprocess, keeps a single
client session open for the whole run, and exposes tool listing and tool
calling to the execution strategies.
"""

from __future__ import annotations

import asyncio
import json
import logging
import shlex
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Protocol

import anyio
from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client
from mcp.shared.exceptions import McpError

from honeycomb_evals.config import EvalConfig
from honeycomb_evals.exceptions import HarnessError, ToolInvocationError

logger = logging.getLogger(__name__)

# Failures worth retrying: the transport or the server hiccupped.
RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (
    McpError,
    OSError,
    TimeoutError,
    anyio.BrokenResourceError,
    anyio.ClosedResourceError,
)


class ToolClient(Protocol):
    """What the execution strategies need from the tool server."""

    def list_tools(self) -> list[dict[str, Any]]: ...

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> Any: ...


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Exponential backoff delay before retry number ``attempt`` (1-based)."""
    return min(base_delay * (2 ** (attempt - 1)), max_delay)


def _decode_text(text: str) -> Any:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return text


def decode_tool_result(result: Any) -> Any:
    """Convert a CallToolResult into a plain JSON value.

    Structured content wins when the server provides it. Otherwise text
    parts are JSON-decoded where possible; a single part is returned as-is
    rather than wrapped in a list.
    """
    structured = getattr(result, "structuredContent", None)
    if structured is not None:
        return structured

    values: list[Any] = []
    for part in getattr(result, "content", None) or []:
        if getattr(part, "type", None) == "text":
            values.append(_decode_text(part.text))
        elif hasattr(part, "model_dump"):
            values.append(part.model_dump(mode="json", exclude_none=True))
        else:
            values.append(part)

    if not values:
        return None
    if len(values) == 1:
        return values[0]
    return values


def _error_text(result: Any) -> str:
    texts = [
        part.text
        for part in getattr(result, "content", None) or []
        if getattr(part, "type", None) == "text"
    ]
    return "\n".join(texts) or "Tool reported an error"


class MCPHarness:
    """Wraps an MCP client session for evaluation use.

    Provides tool listing, tool calling with bounded retries, and lifecycle
    management through :meth:`running`.
    """

    def __init__(self, session: ClientSession, eval_config: EvalConfig) -> None:
        self._session = session
        self._eval_config = eval_config
        self._tools: list[dict[str, Any]] = []

    @property
    def session(self) -> ClientSession:
        """Get the underlying MCP client session."""
        return self._session

    @staticmethod
    def server_parameters(eval_config: EvalConfig) -> StdioServerParameters:
        """Build stdio launch parameters from the configured command line."""
        args = shlex.split(eval_config.server_command)
        if not args:
            raise HarnessError("server_command must name the MCP server to launch")
        command, *rest = args
        return StdioServerParameters(command=command, args=rest)

    @staticmethod
    @asynccontextmanager
    async def running(eval_config: EvalConfig) -> AsyncIterator[MCPHarness]:
        """Start the MCP server and yield a connected harness.

        The subprocess and session are torn down on exit regardless of how
        many evaluations failed in between.
        """
        params = MCPHarness.server_parameters(eval_config)
        logger.info(f"Starting MCP server with command: {eval_config.server_command}")

        async with stdio_client(params) as (read_stream, write_stream):
            async with ClientSession(read_stream, write_stream) as session:
                await session.initialize()
                harness = MCPHarness(session, eval_config)
                await harness.refresh_tools()
                logger.info(
                    f"Available tools ({len(harness.list_tools())}): "
                    f"{', '.join(t['name'] for t in harness.list_tools())}"
                )
                yield harness
        logger.info("MCP client closed")

    async def refresh_tools(self) -> list[dict[str, Any]]:
        """Fetch the tool catalogue from the server."""
        listed = await self._session.list_tools()
        self._tools = [
            {
                "name": tool.name,
                "description": tool.description or "",
                "parameters": tool.inputSchema or {},
            }
            for tool in listed.tools
        ]
        return self._tools

    def list_tools(self) -> list[dict[str, Any]]:
        """List registered MCP tools.

        Returns a list of dicts with 'name', 'description', and 'parameters'.
        """
        return list(self._tools)

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> Any:
        """Call an MCP tool and return its decoded result.

        Transport failures are retried with exponential backoff up to the
        configured attempt count. A result the tool itself flags as an
        error is not retried.

        Raises:
            ToolInvocationError: If the tool reports an error or every
                attempt failed.
        """
        config = self._eval_config
        attempts = config.tool_retry_attempts
        last_error: BaseException | None = None

        for attempt in range(1, attempts + 1):
            try:
                result = await self._session.call_tool(name, arguments)
            except RETRYABLE_ERRORS as e:
                last_error = e
                if attempt == attempts:
                    break
                delay = backoff_delay(
                    attempt, config.tool_retry_base_delay, config.tool_retry_max_delay
                )
                logger.warning(
                    f"Tool {name} failed (attempt {attempt}/{attempts}): {e}; "
                    f"retrying in {delay:.2f}s"
                )
                await asyncio.sleep(delay)
                continue

            if getattr(result, "isError", False):
                raise ToolInvocationError(name, _error_text(result))
            return decode_tool_result(result)

        raise ToolInvocationError(name, str(last_error))
