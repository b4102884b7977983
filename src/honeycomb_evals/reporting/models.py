"""Data models for the JSONL run history."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class GitRecord:
    """Git metadata for the eval run."""

    commit: str
    branch: str


@dataclass
class HistoryRecord:
    """One evaluation result, one JSONL line."""

    run_id: str
    timestamp: str
    prompt_id: str
    mode: str
    provider: str
    model: str
    score: float = 0.0
    passed: bool = False
    tool_call_count: int = 0
    latency_ms: int = 0
    git: GitRecord = field(default_factory=lambda: GitRecord(commit="unknown", branch="unknown"))

    @property
    def label(self) -> str:
        """Provider/model label."""
        return f"{self.provider}/{self.model}"
