"""Result persistence and reporting."""

from honeycomb_evals.reporting.recorder import EvalRecorder

__all__ = ["EvalRecorder"]
