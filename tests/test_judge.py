"""Tests for the judge prompt builder and verdict parser."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from honeycomb_evals.judge import Judge, build_validation_prompt, parse_verdict
from honeycomb_evals.models import ToolCallRecord


class TestParseVerdict:
    """Tests for parse_verdict."""

    def test_well_formed(self):
        verdict = parse_verdict("SCORE: 0.8\nPASSED: true\nREASONING: ok")
        assert verdict.score == pytest.approx(0.8)
        assert verdict.passed is True
        assert verdict.reasoning == "ok"

    def test_no_markers(self):
        text = "I think it went well."
        verdict = parse_verdict(text)
        assert verdict.score == 0.0
        assert verdict.passed is False
        assert verdict.reasoning == text

    def test_passed_case_insensitive(self):
        assert parse_verdict("PASSED: TRUE").passed is True

    def test_score_clamped(self):
        assert parse_verdict("SCORE: 7\nPASSED: true").score == 1.0

    def test_unparseable_score(self):
        assert parse_verdict("SCORE: 1.2.3\nPASSED: false").score == 0.0

    def test_multiline_reasoning(self):
        verdict = parse_verdict("SCORE: 1\nPASSED: true\nREASONING: line one\nline two\n")
        assert verdict.reasoning == "line one\nline two"


class TestBuildValidationPrompt:
    """Tests for build_validation_prompt."""

    def test_single_call_layout(self, make_prompt):
        prompt = make_prompt(
            tool="list_datasets", parameters={"environment": "prod"}
        )
        text = build_validation_prompt(prompt, [], single_response={"datasets": ["api"]})

        assert "Tool: list_datasets" in text
        assert 'Parameters: {"environment": "prod"}' in text
        assert 'Response: {"datasets": ["api"]}' in text
        assert "Validation instructions: The datasets must be listed" in text
        assert "SCORE: [0-1 number]" in text

    def test_tool_call_listing(self, make_prompt):
        prompt = make_prompt(conversationMode=True)
        calls = [
            ToolCallRecord(tool="list_columns", parameters={"dataset": "api"}, response=["a"]),
            ToolCallRecord(tool="run_query", parameters={}, error="boom"),
            ToolCallRecord(kind="done", explanation="finished"),
        ]
        text = build_validation_prompt(prompt, calls)

        assert "Evaluation of 3 tool calls" in text
        assert "--- Tool Call 1 ---\nTool: list_columns" in text
        assert 'Response: {"error": "boom"}' in text
        assert "--- Tool Call 3 ---\nDone: finished" in text

    def test_criteria_listed(self, make_prompt):
        prompt = make_prompt(
            conversationMode=True,
            validation={
                "prompt": "Check it",
                "expectedOutcome": {"success": True, "criteria": ["uses P99", "groups by route"]},
            },
        )
        text = build_validation_prompt(prompt, [])
        assert "Criteria:\n- uses P99\n- groups by route" in text


class TestJudge:
    """Tests for the Judge."""

    async def test_grade_uses_provider(self, make_prompt):
        provider = MagicMock()
        provider.name = "mock"
        provider.run_prompt = AsyncMock(return_value="SCORE: 0.5\nPASSED: false\nREASONING: meh")

        verdict = await Judge(provider, "m1").grade(make_prompt(conversationMode=True), [])

        assert verdict.score == pytest.approx(0.5)
        assert verdict.passed is False
        provider.run_prompt.assert_awaited_once()
        assert provider.run_prompt.await_args.args[1] == "m1"
