"""Configuration for the Honeycomb MCP evaluation harness."""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class LLMProvider(str, Enum):
    """Model provider used to drive conversations and judge results."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    ANTHROPIC_VERTEX = "anthropic-vertex"
    GOOGLE_GENAI = "google-genai"
    GOOGLE_VERTEX = "google-vertex"
    DEMO = "demo"


class LogLevel(str, Enum):
    """Log level for the harness CLI."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


DEFAULT_MODELS: dict[str, list[str]] = {
    LLMProvider.OPENAI.value: ["gpt-4o"],
    LLMProvider.ANTHROPIC.value: ["claude-3-5-haiku-latest", "claude-3-7-sonnet-latest"],
    LLMProvider.GOOGLE_GENAI.value: ["gemini-2.5-flash"],
}


class EvalConfig(BaseSettings):
    """Configuration for evaluation runs.

    Loaded from environment variables with HONEYCOMB_EVAL_ prefix
    or from a .env.eval file.
    """

    model_config = SettingsConfigDict(
        env_prefix="HONEYCOMB_EVAL_",
        env_file=".env.eval",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Provider credentials
    openai_api_key: str = Field(
        default="",
        description="API key for OpenAI",
    )
    openai_base_url: str | None = Field(
        default=None,
        description="Base URL for an OpenAI-compatible endpoint (vLLM, Azure)",
    )
    anthropic_api_key: str = Field(
        default="",
        description="API key for Anthropic",
    )
    google_api_key: str = Field(
        default="",
        description="API key for Google Gemini",
    )

    # Vertex AI settings (for anthropic-vertex and google-vertex providers)
    vertex_project_id: str | None = Field(
        default=None,
        description="Google Cloud project ID for Vertex AI",
    )
    vertex_location: str = Field(
        default="us-central1",
        description="Google Cloud region for Vertex AI",
    )

    # Provider selection. Empty means one provider per configured API key.
    llm_providers: Annotated[list[LLMProvider], NoDecode] = Field(
        default_factory=list,
        description="Providers to evaluate (JSON list or comma-separated names)",
    )

    # Models selected per provider name. A provider missing from the
    # mapping runs with its first known model.
    models: dict[str, list[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_MODELS.items()},
        description="Provider name -> model names to evaluate",
    )

    # Scheduling
    concurrency: int = Field(
        default=2,
        ge=1,
        le=32,
        description="Maximum evaluations in flight per provider/model",
    )
    max_steps: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Default turn limit for conversation-mode prompts",
    )

    # Tool server
    environment: str = Field(
        default="production",
        description="Honeycomb environment that conversation-mode tool calls target",
    )
    server_command: str = Field(
        default="node build/index.mjs",
        description="Command line that starts the MCP server over stdio",
    )
    tool_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum attempts per tool call on transport failures",
    )
    tool_retry_base_delay: float = Field(
        default=0.5,
        ge=0.0,
        description="Initial backoff delay in seconds",
    )
    tool_retry_max_delay: float = Field(
        default=8.0,
        ge=0.0,
        description="Upper bound for a single backoff delay in seconds",
    )

    # Judge settings
    judge_temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for model calls",
    )
    judge_max_tokens: int = Field(
        default=1000,
        ge=1,
        description="Maximum completion tokens for model calls",
    )

    # Paths
    prompts_dir: Path = Field(
        default=Path("eval/prompts"),
        description="Directory holding prompt files",
    )
    results_dir: Path = Field(
        default=Path("eval/results"),
        description="Directory receiving result and summary files",
    )
    history_file: Path | None = Field(
        default=None,
        description="JSONL run history (default: <results_dir>/eval_history.jsonl)",
    )

    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level",
    )

    @field_validator("models", mode="before")
    @classmethod
    def _normalize_models(cls, value: Any) -> Any:
        """Accept a JSON string and wrap single model names in a list."""
        if isinstance(value, str):
            value = json.loads(value)
        if isinstance(value, dict):
            return {
                provider: [models] if isinstance(models, str) else list(models)
                for provider, models in value.items()
            }
        return value

    @field_validator("llm_providers", mode="before")
    @classmethod
    def _split_providers(cls, value: Any) -> Any:
        """Accept a comma-separated string of provider names."""
        if isinstance(value, str):
            value = value.strip()
            if value.startswith("["):
                return json.loads(value)
            return [name.strip() for name in value.split(",") if name.strip()]
        return value

    @property
    def history_path(self) -> Path:
        """Path of the JSONL run history."""
        return self.history_file or self.results_dir / "eval_history.jsonl"

    def models_for(self, provider: str, available: list[str]) -> list[str]:
        """Models to evaluate for a provider, defaulting to its first model."""
        selected = self.models.get(provider)
        if selected:
            return selected
        return available[:1]
