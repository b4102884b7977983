"""Provider comparison report over the run history."""

from __future__ import annotations

from collections import defaultdict

from honeycomb_evals.reporting.formatting import format_table, truncate
from honeycomb_evals.reporting.models import HistoryRecord


def provider_comparison_report(
    records: list[HistoryRecord],
    prompt_id: str | None = None,
    last_n: int = 10,
    fmt: str = "terminal",
) -> str:
    """Compare scores across providers/models.

    Groups records by provider/model, keeps the last N of each group and
    renders averages sorted by score, best first.

    Args:
        records: All history records.
        prompt_id: Filter to a specific prompt (None = all).
        last_n: Use only the last N records per provider group.
        fmt: 'terminal' or 'markdown'.
    """
    if not records:
        return "No eval records found."

    filtered = [r for r in records if r.prompt_id == prompt_id] if prompt_id else records
    if not filtered:
        return f"No records found for prompt={prompt_id}"

    groups: dict[str, list[HistoryRecord]] = defaultdict(list)
    for r in filtered:
        groups[r.label].append(r)

    row_data: list[tuple[float, list[str]]] = []
    for label, group in groups.items():
        recent = sorted(group, key=lambda r: r.timestamp)[-last_n:]
        avg_score = sum(r.score for r in recent) / len(recent)
        avg_calls = sum(r.tool_call_count for r in recent) / len(recent)
        avg_latency = sum(r.latency_ms for r in recent) / len(recent)
        passed = sum(1 for r in recent if r.passed)
        row_data.append(
            (
                avg_score,
                [
                    truncate(label, 35),
                    f"{avg_score:.2f}",
                    f"{avg_calls:.1f}",
                    f"{avg_latency:.0f}ms",
                    f"{passed}/{len(recent)}",
                ],
            )
        )

    row_data.sort(key=lambda x: x[0], reverse=True)
    rows = [row for _, row in row_data]

    title = "Provider Comparison"
    if prompt_id:
        title += f" - {prompt_id}"

    table = format_table(
        ["Provider/Model", "Avg Score", "Avg Calls", "Avg Latency", "Pass Rate"],
        rows,
        ["l", "r", "r", "r", "r"],
        fmt=fmt,
    )

    if fmt == "markdown":
        return f"## {title}\n\n{table}"
    return f"{title}\n\n{table}"
