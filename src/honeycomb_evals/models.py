"""Pydantic models for prompts, tool call records and evaluation results.

Field names are snake_case; every model reads and writes the camelCase
names used by prompt files and persisted results.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

PromptMode = Literal["single", "multi_step", "conversation"]
RecordKind = Literal["tool", "done", "error", "limit"]


def utc_now_iso() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


def epoch_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class Step(_CamelModel):
    """One predefined tool invocation in a multi-step prompt."""

    tool: str = Field(..., description="Tool name")
    parameters: dict[str, Any] = Field(
        default_factory=dict,
        description="Tool arguments, possibly holding ${{step:N.path}} references",
    )
    description: str | None = Field(None, description="What this step is for")


class ExpectedOutcome(_CamelModel):
    """Optional expected outcome hints for the judge."""

    success: bool = True
    criteria: list[str] | None = None


class Validation(_CamelModel):
    """Grading rubric attached to a prompt."""

    prompt: str = Field(..., description="Rubric text handed to the judge")
    expected_outcome: ExpectedOutcome | None = None


class PromptOptions(_CamelModel):
    """Per-prompt options."""

    timeout: float | None = None


class Prompt(_CamelModel):
    """One test case: a task, an execution-mode selector and a rubric."""

    id: str
    name: str | None = None
    description: str | None = None
    prompt: str = Field(
        "",
        validation_alias=AliasChoices("prompt", "promptText", "prompt_text"),
        description="Task text",
    )
    tool: str | None = None
    parameters: dict[str, Any] | None = None
    steps: list[Step] | None = None
    conversation_mode: bool = False
    max_steps: int | None = Field(None, ge=1)
    environment: str | None = None
    validation: Validation
    options: PromptOptions | None = None

    @field_validator("max_steps", mode="before")
    @classmethod
    def _zero_max_steps_is_unset(cls, v: Any) -> Any:
        """A zero turn limit means "use the default"."""
        return None if v == 0 else v

    @property
    def mode(self) -> PromptMode | None:
        """Execution mode, by precedence tool+parameters > steps > conversation."""
        if self.tool and self.parameters is not None:
            return "single"
        if self.steps:
            return "multi_step"
        if self.conversation_mode:
            return "conversation"
        return None


class ToolCallRecord(_CamelModel):
    """Record of one tool invocation, or a terminal conversation marker."""

    kind: RecordKind = "tool"
    tool: str | None = None
    parameters: dict[str, Any] = Field(default_factory=dict)
    response: Any = None
    error: str | None = None
    reasoning: str | None = None
    explanation: str | None = None
    timestamp: str = Field(default_factory=utc_now_iso)
    latency_ms: int = 0

    @property
    def succeeded(self) -> bool:
        """Whether this record is a successful tool invocation."""
        return self.kind == "tool" and self.error is None


class Verdict(_CamelModel):
    """Structured outcome of the judge."""

    passed: bool = False
    score: float = Field(0.0, ge=0.0, le=1.0)
    reasoning: str = ""


class TokenUsage(_CamelModel):
    """Token counters reported by a model provider."""

    prompt: int = 0
    completion: int = 0
    total: int = 0


class EvalMetrics(_CamelModel):
    """Timing and usage metrics for one evaluation."""

    start_time: int
    end_time: int
    latency_ms: int
    token_usage: TokenUsage = Field(default_factory=TokenUsage)
    tool_call_count: int = 0
    step_count: int | None = None


class EvalResult(_CamelModel):
    """Outcome of one (prompt, provider, model) evaluation."""

    id: str
    timestamp: str = Field(default_factory=utc_now_iso)
    prompt: Prompt
    tool_response: Any = None
    tool_calls: list[ToolCallRecord] = Field(default_factory=list)
    validation: Verdict
    metrics: EvalMetrics
    provider: str
    model: str


class GroupSummary(_CamelModel):
    """Rollup of results for one provider/model pair."""

    provider: str
    model: str
    total_tests: int
    passed: int
    failed: int
    success_rate: float
    average_latency: float
    average_tool_calls: float
    average_score: float


def _rollup(results: list[EvalResult]) -> dict[str, Any]:
    total = len(results)
    passed = sum(1 for r in results if r.validation.passed)
    if not total:
        return {
            "total_tests": 0,
            "passed": 0,
            "failed": 0,
            "success_rate": 0.0,
            "average_latency": 0.0,
            "average_tool_calls": 0.0,
        }
    return {
        "total_tests": total,
        "passed": passed,
        "failed": total - passed,
        "success_rate": passed / total,
        "average_latency": sum(r.metrics.latency_ms for r in results) / total,
        "average_tool_calls": sum(r.metrics.tool_call_count for r in results) / total,
    }


class EvalSummary(_CamelModel):
    """Run-level rollup of every evaluation result."""

    run_id: str
    timestamp: str = Field(default_factory=utc_now_iso)
    total_tests: int
    passed: int
    failed: int
    success_rate: float
    average_latency: float
    average_tool_calls: float
    groups: list[GroupSummary] = Field(default_factory=list)
    results: list[EvalResult] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_results(
        cls,
        results: list[EvalResult],
        run_id: str,
        metadata: dict[str, Any] | None = None,
    ) -> EvalSummary:
        """Compute the summary over all results of a run."""
        grouped: dict[tuple[str, str], list[EvalResult]] = {}
        for result in results:
            grouped.setdefault((result.provider, result.model), []).append(result)

        groups = [
            GroupSummary(
                provider=provider,
                model=model,
                average_score=sum(r.validation.score for r in members) / len(members),
                **_rollup(members),
            )
            for (provider, model), members in grouped.items()
        ]

        return cls(
            run_id=run_id,
            groups=groups,
            results=list(results),
            metadata=metadata or {},
            **_rollup(results),
        )
