"""Tests for EvalConfig."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from honeycomb_evals.config import EvalConfig, LLMProvider, LogLevel


class TestEvalConfig:
    """Tests for environment-driven configuration."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Defaults apply when nothing is configured."""
        monkeypatch.delenv("HONEYCOMB_EVAL_CONCURRENCY", raising=False)
        config = EvalConfig(_env_file=None)

        assert config.concurrency == 2
        assert config.max_steps == 5
        assert config.log_level == LogLevel.INFO
        assert config.history_path == Path("eval/results/eval_history.jsonl")

    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Settings are read from HONEYCOMB_EVAL_ variables."""
        monkeypatch.setenv("HONEYCOMB_EVAL_CONCURRENCY", "4")
        monkeypatch.setenv("HONEYCOMB_EVAL_ENVIRONMENT", "staging")

        config = EvalConfig(_env_file=None)

        assert config.concurrency == 4
        assert config.environment == "staging"

    def test_models_from_json(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """The models mapping accepts JSON with single names or lists."""
        monkeypatch.setenv(
            "HONEYCOMB_EVAL_MODELS", '{"openai": "gpt-4o", "anthropic": ["a", "b"]}'
        )

        config = EvalConfig(_env_file=None)

        assert config.models == {"openai": ["gpt-4o"], "anthropic": ["a", "b"]}

    def test_models_string_value(self) -> None:
        """A JSON string passed directly is decoded too."""
        config = EvalConfig(_env_file=None, models='{"demo": "demo-model"}')
        assert config.models == {"demo": ["demo-model"]}

    def test_concurrency_bounds(self) -> None:
        """Concurrency must be at least one."""
        with pytest.raises(ValidationError):
            EvalConfig(_env_file=None, concurrency=0)

    def test_llm_providers_comma_separated(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Provider selection accepts comma-separated names from the environment."""
        monkeypatch.setenv("HONEYCOMB_EVAL_LLM_PROVIDERS", "anthropic-vertex, google-vertex")

        config = EvalConfig(_env_file=None)

        assert config.llm_providers == [LLMProvider.ANTHROPIC_VERTEX, LLMProvider.GOOGLE_VERTEX]

    def test_llm_providers_json(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HONEYCOMB_EVAL_LLM_PROVIDERS", '["demo"]')
        assert EvalConfig(_env_file=None).llm_providers == [LLMProvider.DEMO]

    def test_llm_providers_default_empty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("HONEYCOMB_EVAL_LLM_PROVIDERS", raising=False)
        assert EvalConfig(_env_file=None).llm_providers == []

    def test_unknown_provider_rejected(self) -> None:
        with pytest.raises(ValidationError):
            EvalConfig(_env_file=None, llm_providers="bogus")

    def test_models_for(self) -> None:
        """Configured models win; otherwise the first available one."""
        config = EvalConfig(_env_file=None, models={"openai": ["gpt-4o-mini"]})

        assert config.models_for("openai", ["gpt-4o"]) == ["gpt-4o-mini"]
        assert config.models_for("google-genai", ["gemini-2.5-flash", "gemini-2.5-pro"]) == [
            "gemini-2.5-flash"
        ]
        assert config.models_for("demo", []) == []

    def test_history_file_override(self, tmp_path: Path) -> None:
        config = EvalConfig(_env_file=None, history_file=tmp_path / "h.jsonl")
        assert config.history_path == tmp_path / "h.jsonl"
