"""Execution strategies that turn one prompt into tool call records.

Each prompt selects exactly one strategy:

* SingleCall: one literal tool invocation.
* MultiStep: a predefined sequence where later steps may reference
  earlier results through ``${{step:N.path}}`` expressions.
* Conversation: a model picks tools turn by turn until it reports done or
  the step limit is reached.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any

from honeycomb_evals.exceptions import PromptConfigurationError
from honeycomb_evals.harness import ToolClient
from honeycomb_evals.models import Prompt, Step, ToolCallRecord, utc_now_iso
from honeycomb_evals.parsing import ParseFailure, Parsed, extract_json_block
from honeycomb_evals.providers.base import ModelProvider
from honeycomb_evals.query_compat import normalize_tool_parameters
from honeycomb_evals.references import resolve_references
from honeycomb_evals.session import EvalSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SingleCall:
    """Invoke one tool with literal parameters."""

    tool: str
    parameters: dict[str, Any]


@dataclass(frozen=True)
class MultiStep:
    """Invoke a predefined sequence of tools."""

    steps: tuple[Step, ...]


@dataclass(frozen=True)
class Conversation:
    """Let a model drive tool selection."""

    task: str
    max_steps: int
    environment: str


Strategy = SingleCall | MultiStep | Conversation


@dataclass
class Execution:
    """Output of a strategy: records in invocation order."""

    tool_calls: list[ToolCallRecord] = field(default_factory=list)
    single_response: Any = None


def select_strategy(prompt: Prompt, default_max_steps: int, default_environment: str) -> Strategy:
    """Pick the strategy for a prompt.

    Raises:
        PromptConfigurationError: If the prompt selects no mode.
    """
    mode = prompt.mode
    if mode == "single":
        return SingleCall(tool=prompt.tool or "", parameters=dict(prompt.parameters or {}))
    if mode == "multi_step":
        return MultiStep(steps=tuple(prompt.steps or ()))
    if mode == "conversation":
        return Conversation(
            task=prompt.prompt,
            max_steps=prompt.max_steps or default_max_steps,
            environment=prompt.environment or default_environment,
        )
    raise PromptConfigurationError(prompt.id)


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


async def invoke_tool(
    tools: ToolClient,
    tool: str,
    parameters: dict[str, Any],
    reasoning: str | None = None,
) -> ToolCallRecord:
    """Call a tool and record the outcome, success or error."""
    timestamp = utc_now_iso()
    started = time.monotonic()
    try:
        response = await tools.call_tool(tool, parameters)
    except Exception as e:
        logger.warning(f"Tool {tool} failed: {e}")
        return ToolCallRecord(
            tool=tool,
            parameters=parameters,
            response={"error": str(e)},
            error=str(e),
            reasoning=reasoning,
            timestamp=timestamp,
            latency_ms=_elapsed_ms(started),
        )
    return ToolCallRecord(
        tool=tool,
        parameters=parameters,
        response=response,
        reasoning=reasoning,
        timestamp=timestamp,
        latency_ms=_elapsed_ms(started),
    )


async def run_single_call(strategy: SingleCall, session: EvalSession) -> Execution:
    """Invoke the prompt's tool once. Errors propagate to the caller."""
    logger.info(f"Calling tool {strategy.tool} with params {strategy.parameters}")
    timestamp = utc_now_iso()
    started = time.monotonic()
    response = await session.tools.call_tool(strategy.tool, strategy.parameters)
    record = ToolCallRecord(
        tool=strategy.tool,
        parameters=strategy.parameters,
        response=response,
        timestamp=timestamp,
        latency_ms=_elapsed_ms(started),
    )
    return Execution(tool_calls=[record], single_response=response)


async def run_multi_step(strategy: MultiStep, session: EvalSession) -> Execution:
    """Run every step once, in order, never aborting on a failed step.

    Only successful steps enter the result table, so references to a failed
    step fall back gracefully.
    """
    step_results: dict[int, Any] = {}
    records: list[ToolCallRecord] = []

    for index, step in enumerate(strategy.steps):
        resolution = resolve_references(step.parameters, step_results)
        for warning in resolution.warnings:
            logger.warning(f"Step {index} ({step.tool}): {warning}")

        logger.info(f"Calling tool {step.tool} with params {resolution.value}")
        record = await invoke_tool(session.tools, step.tool, resolution.value)
        if record.succeeded:
            step_results[index] = record.response
        records.append(record)

    return Execution(tool_calls=records)


def _parameter_names(schema: dict[str, Any]) -> tuple[list[str], list[str]]:
    properties = schema.get("properties") or {}
    required = [name for name in schema.get("required") or [] if isinstance(name, str)]
    optional = [name for name in properties if name not in required]
    return required, optional


def describe_tools(tools: list[dict[str, Any]]) -> str:
    """Render the tool catalogue for the conversation prompt."""
    lines = []
    for tool in tools:
        description = tool.get("description") or "No description available"
        lines.append(f"- {tool['name']}: {description}")
        required, optional = _parameter_names(tool.get("parameters") or {})
        if required:
            lines.append(f"  Required parameters: {', '.join(required)}")
        if optional:
            lines.append(f"  Optional parameters: {', '.join(optional)}")
    return "\n".join(lines)


def _environment_instruction(environment: str) -> str:
    return (
        f'Always include "environment": "{environment}" in the parameters of every tool call.'
    )


def build_conversation_prompt(
    task: str, tools: list[dict[str, Any]], environment: str
) -> str:
    """Build the opening prompt for a conversation-mode evaluation."""
    return f"""
You are performing a task for evaluation. Your goal is to use the available tools to accomplish the task.

Task: {task}

Target environment: {environment}
{_environment_instruction(environment)}

Available tools:
{describe_tools(tools)}

When you want to use a tool, respond in the following format:
```json
{{
  "tool": "tool_name",
  "parameters": {{
    "environment": "{environment}",
    "param1": "value1"
  }},
  "reasoning": "Why this tool call moves the task forward"
}}
```

After you receive the tool response, you can either:
1. Use another tool by responding in the same JSON format
2. Indicate you're done by responding with:
```json
{{ "done": true, "explanation": "Your explanation of how you accomplished the task" }}
```
"""


def _next_action_instructions(environment: str) -> str:
    return (
        "\n\nWhat would you like to do next? Reply with a single JSON code block: "
        "either another tool call or "
        '{ "done": true, "explanation": "..." } when the task is complete. '
        f"{_environment_instruction(environment)}"
    )


def summarize_turn(record: ToolCallRecord, environment: str) -> str:
    """Transcript entry appended after each conversation turn."""
    if record.kind != "tool":
        summary = f"\n\nError: {record.error}\nPlease try again or try a different tool."
    elif record.error is not None:
        summary = (
            f"\n\nYou called tool: {record.tool}\n"
            f"Parameters: {json.dumps(record.parameters, default=str)}\n"
            f"Error: {record.error}\n"
            "Please try again or try a different tool."
        )
    else:
        summary = (
            f"\n\nYou called tool: {record.tool}\n"
            f"Parameters: {json.dumps(record.parameters, default=str)}\n"
            f"Tool response: {json.dumps(record.response, default=str)}"
        )
    return summary + _next_action_instructions(environment)


def prepare_parameters(tool: str, parameters: Any, environment: str) -> dict[str, Any]:
    """Inject the target environment and normalize legacy argument shapes."""
    params = dict(parameters) if isinstance(parameters, dict) else {}
    params.setdefault("environment", environment)
    return normalize_tool_parameters(tool, params)


async def run_conversation(
    strategy: Conversation,
    session: EvalSession,
    provider: ModelProvider,
    model: str,
) -> Execution:
    """Let the model pick tools until it reports done or runs out of steps.

    Turns are strictly sequential: each prompt is built from the
    accumulated transcript. A reply without parseable JSON ends the
    conversation immediately.
    """
    records: list[ToolCallRecord] = []
    context = build_conversation_prompt(
        strategy.task, session.tools.list_tools(), strategy.environment
    )

    for turn in range(1, strategy.max_steps + 1):
        reply = await provider.run_prompt(context, model)

        match extract_json_block(reply):
            case ParseFailure(reason=reason):
                records.append(ToolCallRecord(kind="error", error=reason, response=reply))
                return Execution(tool_calls=records)
            case Parsed(value=dict() as action):
                pass
            case _:
                records.append(
                    ToolCallRecord(
                        kind="error",
                        error="LLM response JSON was not an object",
                        response=reply,
                    )
                )
                return Execution(tool_calls=records)

        if action.get("done"):
            records.append(
                ToolCallRecord(
                    kind="done",
                    explanation=str(action.get("explanation") or "Task completed"),
                )
            )
            return Execution(tool_calls=records)

        tool = action.get("tool")
        if not isinstance(tool, str) or not tool:
            record = ToolCallRecord(
                kind="error",
                error=f"Error in conversation step {turn}: response did not name a tool",
                response=action,
            )
        else:
            reasoning = action.get("reasoning")
            reasoning = str(reasoning) if reasoning else None
            try:
                parameters = prepare_parameters(tool, action.get("parameters"), strategy.environment)
            except (TypeError, ValueError, KeyError, AttributeError) as e:
                logger.warning(f"[Step {turn}] Could not prepare parameters for {tool}: {e}")
                raw = action.get("parameters")
                record = ToolCallRecord(
                    tool=tool,
                    parameters=raw if isinstance(raw, dict) else {},
                    response={"error": str(e)},
                    error=f"Error in conversation step {turn}: {e}",
                    reasoning=reasoning,
                )
            else:
                logger.info(f"[Step {turn}] Calling tool {tool} with params {parameters}")
                record = await invoke_tool(session.tools, tool, parameters, reasoning=reasoning)

        records.append(record)
        context += summarize_turn(record, strategy.environment)

    records.append(
        ToolCallRecord(
            kind="limit",
            error=f"Reached maximum conversation steps ({strategy.max_steps})",
        )
    )
    return Execution(tool_calls=records)


async def execute(
    strategy: Strategy,
    session: EvalSession,
    provider: ModelProvider,
    model: str,
) -> Execution:
    """Run a strategy."""
    match strategy:
        case SingleCall():
            return await run_single_call(strategy, session)
        case MultiStep():
            return await run_multi_step(strategy, session)
        case Conversation():
            return await run_conversation(strategy, session, provider, model)
    raise TypeError(f"Unknown strategy: {strategy!r}")
