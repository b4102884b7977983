"""Eval result persistence.

Writes one JSON file per result, a summary file and an all-results file
per run, and appends one compact line per result to a JSONL history used
by the comparison report.
"""

from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path

from honeycomb_evals.models import EvalResult, EvalSummary
from honeycomb_evals.reporting.models import GitRecord, HistoryRecord

logger = logging.getLogger(__name__)


def _git(*args: str) -> str:
    return subprocess.check_output(["git", *args], stderr=subprocess.DEVNULL, text=True).strip()


def _get_git_info() -> GitRecord:
    """Commit and branch of the working tree, "unknown" outside a checkout."""
    try:
        return GitRecord(
            commit=_git("rev-parse", "--short", "HEAD"),
            branch=_git("rev-parse", "--abbrev-ref", "HEAD"),
        )
    except (subprocess.CalledProcessError, FileNotFoundError):
        return GitRecord(commit="unknown", branch="unknown")


def file_stamp(moment: datetime | None = None) -> str:
    """Filesystem-safe timestamp, e.g. 2025-01-31T12-00-00-000Z."""
    moment = moment or datetime.now(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H-%M-%S-") + f"{moment.microsecond // 1000:03d}Z"


def _safe(name: str) -> str:
    return "".join(c if c.isalnum() or c in "-_." else "_" for c in name)


def prompt_mode(result: EvalResult) -> str:
    """Execution mode label of a result's prompt."""
    return result.prompt.mode or "invalid"


class EvalRecorder:
    """Run-scoped result sink."""

    def __init__(self, results_dir: Path, history_path: Path | None = None) -> None:
        self.results_dir = results_dir
        self.history_path = history_path or results_dir / "eval_history.jsonl"
        self._git = _get_git_info()

    @property
    def git(self) -> GitRecord:
        return self._git

    def _write_json(self, path: Path, payload: object) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2, default=str), encoding="utf-8")

    def save_result(self, result: EvalResult, stamp: str) -> Path:
        """Write a single result file."""
        path = self.results_dir / f"{_safe(result.id)}-{_safe(result.provider)}-{_safe(result.model)}-{stamp}.json"
        self._write_json(path, result.model_dump(mode="json", by_alias=True))
        return path

    def save_summary(self, summary: EvalSummary, stamp: str) -> Path:
        """Write the summary file and the combined results file."""
        path = self.results_dir / f"summary-{stamp}.json"
        self._write_json(path, summary.model_dump(mode="json", by_alias=True))
        self._write_json(
            self.results_dir / f"all-results-{stamp}.json",
            [r.model_dump(mode="json", by_alias=True) for r in summary.results],
        )
        return path

    def append_history(self, summary: EvalSummary) -> None:
        """Append one JSONL line per result to the run history."""
        self.history_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.history_path, "a", encoding="utf-8") as f:
            for result in summary.results:
                record = HistoryRecord(
                    run_id=summary.run_id,
                    timestamp=result.timestamp,
                    prompt_id=result.id,
                    mode=prompt_mode(result),
                    provider=result.provider,
                    model=result.model,
                    score=result.validation.score,
                    passed=result.validation.passed,
                    tool_call_count=result.metrics.tool_call_count,
                    latency_ms=result.metrics.latency_ms,
                    git=self._git,
                )
                f.write(json.dumps(asdict(record)) + "\n")

    def save(self, summary: EvalSummary) -> Path:
        """Persist every result, the summary, and the history lines."""
        stamp = file_stamp()
        for result in summary.results:
            self.save_result(result, stamp)
        path = self.save_summary(summary, stamp)
        self.append_history(summary)
        logger.info(f"Saved {len(summary.results)} results; summary written to {path}")
        return path
