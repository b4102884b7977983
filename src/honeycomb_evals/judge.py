"""Grading of completed evaluations by a judge model.

The judge receives every recorded tool call plus the prompt's rubric and
must answer in three lines::

    SCORE: <0-1>
    PASSED: <true|false>
    REASONING: <text>

Parsing is deliberately loose: a malformed reply degrades to a failing,
zero-score verdict and never raises.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from honeycomb_evals.models import Prompt, ToolCallRecord, Verdict
from honeycomb_evals.providers.base import ModelProvider

logger = logging.getLogger(__name__)

_SCORE = re.compile(r"SCORE:\s*([\d.]+)")
_PASSED = re.compile(r"PASSED:\s*(true|false)", re.IGNORECASE)
_REASONING = re.compile(r"REASONING:\s*([\s\S]+)")

OUTPUT_INSTRUCTIONS = """
Score this response (0-1) and explain your reasoning. Format your response as:
SCORE: [0-1 number]
PASSED: [true/false]
REASONING: [your detailed explanation]
"""


def _dumps(value: Any) -> str:
    return json.dumps(value, default=str)


def _render_call(index: int, call: ToolCallRecord) -> str:
    lines = [f"--- Tool Call {index} ---"]
    if call.kind == "tool":
        lines.append(f"Tool: {call.tool}")
        lines.append(f"Parameters: {_dumps(call.parameters)}")
        if call.reasoning:
            lines.append(f"Reasoning: {call.reasoning}")
        if call.error is not None:
            lines.append(f"Response: {_dumps({'error': call.error})}")
        else:
            lines.append(f"Response: {_dumps(call.response)}")
    elif call.kind == "done":
        lines.append(f"Done: {call.explanation}")
    else:
        lines.append(f"Error: {call.error}")
        if call.response is not None:
            lines.append(f"Response: {_dumps(call.response)}")
    return "\n".join(lines)


def build_validation_prompt(
    prompt: Prompt,
    tool_calls: list[ToolCallRecord],
    single_response: Any = None,
) -> str:
    """Build the grading transcript for a completed evaluation.

    Single-call prompts keep the compact Tool/Parameters/Response layout;
    everything else lists each record in order.
    """
    if single_response is not None and prompt.tool and prompt.parameters is not None:
        body = (
            f"\nTool: {prompt.tool}\n"
            f"Parameters: {_dumps(prompt.parameters)}\n"
            f"Response: {_dumps(single_response)}\n"
        )
    else:
        count = len(tool_calls)
        calls = "\n\n".join(
            _render_call(i, call) for i, call in enumerate(tool_calls, 1)
        )
        body = (
            f"\nEvaluation of {count} tool call{'' if count == 1 else 's'}:\n\n"
            f"{calls}\n"
        )

    rubric = f"\nValidation instructions: {prompt.validation.prompt}\n"
    outcome = prompt.validation.expected_outcome
    if outcome and outcome.criteria:
        criteria = "\n".join(f"- {c}" for c in outcome.criteria)
        rubric += f"\nCriteria:\n{criteria}\n"

    return body + rubric + OUTPUT_INSTRUCTIONS


def parse_verdict(text: str) -> Verdict:
    """Parse the judge reply. Each line is matched independently."""
    score_match = _SCORE.search(text)
    passed_match = _PASSED.search(text)
    reasoning_match = _REASONING.search(text)

    score = 0.0
    if score_match:
        try:
            score = float(score_match.group(1))
        except ValueError:
            score = 0.0
    score = min(max(score, 0.0), 1.0)

    passed = bool(passed_match) and passed_match.group(1).lower() == "true"
    reasoning = reasoning_match.group(1).strip() if reasoning_match else text

    return Verdict(passed=passed, score=score, reasoning=reasoning)


class Judge:
    """Grades evaluations with a model provider."""

    def __init__(self, provider: ModelProvider, model: str) -> None:
        self._provider = provider
        self._model = model

    async def grade(
        self,
        prompt: Prompt,
        tool_calls: list[ToolCallRecord],
        single_response: Any = None,
    ) -> Verdict:
        """Ask the judge model for a verdict on one evaluation."""
        validation_prompt = build_validation_prompt(prompt, tool_calls, single_response)
        reply = await self._provider.run_prompt(validation_prompt, self._model)
        verdict = parse_verdict(reply)
        logger.debug(
            f"Judge verdict for {prompt.id} ({self._provider.name}/{self._model}): "
            f"score={verdict.score} passed={verdict.passed}"
        )
        return verdict
