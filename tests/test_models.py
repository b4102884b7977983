"""Tests for prompt and result models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from honeycomb_evals.models import (
    EvalMetrics,
    EvalResult,
    EvalSummary,
    Prompt,
    ToolCallRecord,
    Verdict,
)


def _result(prompt: Prompt, provider: str, model: str, passed: bool, score: float, calls: int) -> EvalResult:
    return EvalResult(
        id=prompt.id,
        prompt=prompt,
        validation=Verdict(passed=passed, score=score, reasoning="r"),
        metrics=EvalMetrics(start_time=0, end_time=100, latency_ms=100, tool_call_count=calls),
        provider=provider,
        model=model,
    )


class TestPrompt:
    """Tests for Prompt loading and mode selection."""

    def test_camel_case_fields(self) -> None:
        """Prompt files use camelCase keys."""
        prompt = Prompt.model_validate(
            {
                "id": "latency",
                "prompt": "Find slow routes",
                "conversationMode": True,
                "maxSteps": 3,
                "validation": {"prompt": "Must use P99", "expectedOutcome": {"criteria": ["P99"]}},
            }
        )

        assert prompt.conversation_mode is True
        assert prompt.max_steps == 3
        assert prompt.validation.expected_outcome.criteria == ["P99"]
        assert prompt.mode == "conversation"

    def test_prompt_text_alias(self) -> None:
        """promptText is accepted as the task text."""
        prompt = Prompt.model_validate(
            {"id": "x", "promptText": "Do it", "validation": {"prompt": "ok"}}
        )
        assert prompt.prompt == "Do it"

    def test_mode_precedence(self) -> None:
        """tool+parameters beats steps, which beats conversation."""
        base = {"id": "x", "validation": {"prompt": "ok"}}
        assert Prompt.model_validate(
            {**base, "tool": "t", "parameters": {}, "steps": [{"tool": "s"}], "conversationMode": True}
        ).mode == "single"
        assert Prompt.model_validate(
            {**base, "steps": [{"tool": "s"}], "conversationMode": True}
        ).mode == "multi_step"
        assert Prompt.model_validate({**base, "tool": "t"}).mode is None

    def test_validation_required(self) -> None:
        """A prompt without a rubric is rejected."""
        with pytest.raises(ValidationError):
            Prompt.model_validate({"id": "x", "prompt": "p"})

    def test_max_steps_zero_means_default(self) -> None:
        """maxSteps 0 falls back to the configured turn limit."""
        prompt = Prompt.model_validate(
            {"id": "x", "conversationMode": True, "maxSteps": 0, "validation": {"prompt": "ok"}}
        )
        assert prompt.max_steps is None
        assert prompt.mode == "conversation"

    def test_max_steps_negative_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Prompt.model_validate({"id": "x", "maxSteps": -1, "validation": {"prompt": "ok"}})


class TestToolCallRecord:
    """Tests for ToolCallRecord."""

    def test_succeeded(self) -> None:
        assert ToolCallRecord(tool="t").succeeded
        assert not ToolCallRecord(tool="t", error="boom").succeeded
        assert not ToolCallRecord(kind="done").succeeded

    def test_dumps_camel_case(self) -> None:
        data = ToolCallRecord(tool="t", latency_ms=5).model_dump(by_alias=True)
        assert data["latencyMs"] == 5


class TestEvalSummary:
    """Tests for EvalSummary.from_results."""

    def test_rollup(self) -> None:
        """Totals and per provider/model groups are computed."""
        prompt = Prompt.model_validate({"id": "p", "validation": {"prompt": "ok"}})
        results = [
            _result(prompt, "openai", "gpt-4o", True, 1.0, 2),
            _result(prompt, "openai", "gpt-4o", False, 0.0, 0),
            _result(prompt, "anthropic", "claude", True, 0.5, 4),
        ]

        summary = EvalSummary.from_results(results, run_id="r1")

        assert summary.total_tests == 3
        assert summary.passed == 2
        assert summary.failed == 1
        assert summary.success_rate == pytest.approx(2 / 3)
        assert summary.average_latency == pytest.approx(100)
        assert summary.average_tool_calls == pytest.approx(2)
        openai = next(g for g in summary.groups if g.provider == "openai")
        assert openai.total_tests == 2
        assert openai.success_rate == pytest.approx(0.5)
        assert openai.average_score == pytest.approx(0.5)

    def test_empty(self) -> None:
        """No results means zeros, not a division error."""
        summary = EvalSummary.from_results([], run_id="r1")
        assert summary.total_tests == 0
        assert summary.success_rate == 0.0
        assert summary.groups == []

    def test_json_round_trip_keys(self) -> None:
        """Serialized summaries use camelCase keys."""
        data = EvalSummary.from_results([], run_id="r1").model_dump(by_alias=True)
        assert "successRate" in data
        assert "averageToolCalls" in data
