"""Readers for the run history and saved summaries."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from honeycomb_evals.models import EvalSummary
from honeycomb_evals.reporting.models import GitRecord, HistoryRecord

logger = logging.getLogger(__name__)


def load_history(path: Path) -> list[HistoryRecord]:
    """Load history records from a JSONL file.

    Returns an empty list if the file doesn't exist. Malformed lines are
    skipped with a warning.
    """
    if not path.exists():
        logger.debug(f"No eval history found at {path}")
        return []

    records: list[HistoryRecord] = []
    for line_num, line in enumerate(path.read_text(encoding="utf-8").splitlines(), 1):
        line = line.strip()
        if not line:
            continue
        try:
            data = json.loads(line)
            git = data.pop("git", None)
            record = HistoryRecord(**data)
            if git:
                record.git = GitRecord(**git)
            records.append(record)
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            logger.warning(f"Skipping malformed record at line {line_num}: {e}")
    return records


def latest_summary_path(results_dir: Path) -> Path | None:
    """Most recent summary file in a results directory."""
    candidates = sorted(results_dir.glob("summary-*.json"))
    return candidates[-1] if candidates else None


def load_summary(path: Path) -> EvalSummary | None:
    """Load a saved summary, or None if it cannot be read."""
    try:
        return EvalSummary.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as e:
        logger.warning(f"Could not load summary {path}: {e}")
        return None
