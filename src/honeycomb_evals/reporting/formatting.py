"""Terminal and markdown table formatting for eval reports."""

from __future__ import annotations

from honeycomb_evals.models import EvalResult, EvalSummary
from honeycomb_evals.reporting.recorder import prompt_mode

_MODE_LABELS = {
    "single": "Single",
    "multi_step": "Multi-step",
    "conversation": "Conversation",
}


def truncate(text: str, width: int) -> str:
    """Truncate text to width, adding ellipsis if needed."""
    if len(text) <= width:
        return text
    return text[: width - 1] + "…"


def _pad(text: str, width: int, align: str) -> str:
    if align == "r":
        return text.rjust(width)
    if align == "c":
        return text.center(width)
    return text.ljust(width)


def _row(cells: list[str], widths: list[int], alignments: list[str]) -> str:
    padded = [
        _pad(cells[i] if i < len(cells) else "", widths[i], alignments[i])
        for i in range(len(widths))
    ]
    return "| " + " | ".join(padded) + " |"


def format_table(
    headers: list[str],
    rows: list[list[str]],
    alignments: list[str] | None = None,
    fmt: str = "terminal",
) -> str:
    """Render a fixed-width table.

    Args:
        headers: Column header strings.
        rows: List of row data (each row is a list of strings).
        alignments: Per-column alignment ('l', 'r', 'c'). Defaults to left.
        fmt: 'terminal' for ASCII borders, 'markdown' for GFM table.
    """
    if not headers:
        return ""

    alignments = alignments or ["l"] * len(headers)
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row[: len(headers)]):
            widths[i] = max(widths[i], len(cell))

    header_line = _row(headers, widths, alignments)
    data_lines = [_row(row, widths, alignments) for row in rows]

    if fmt == "markdown":
        separators = []
        for width, align in zip(widths, alignments):
            if align == "r":
                separators.append("-" * (width - 1) + ":")
            elif align == "c":
                separators.append(":" + "-" * (width - 2) + ":")
            else:
                separators.append("-" * width)
        return "\n".join([header_line, "| " + " | ".join(separators) + " |", *data_lines])

    border = "+-" + "-+-".join("-" * w for w in widths) + "-+"
    return "\n".join([border, header_line, border, *data_lines, border])


def mode_label(result: EvalResult) -> str:
    """Human label for a result's execution mode."""
    return _MODE_LABELS.get(prompt_mode(result), "Invalid")


def format_summary(summary: EvalSummary, fmt: str = "terminal") -> str:
    """Format the overview and per-result table of one run."""
    title = f"Eval Run: {summary.run_id} | {summary.timestamp[:19]}"
    overview = (
        f"Total: {summary.total_tests} | Passed: {summary.passed} | "
        f"Failed: {summary.failed} | Success rate: {summary.success_rate:.1%} | "
        f"Avg latency: {summary.average_latency:.0f}ms | "
        f"Avg tool calls: {summary.average_tool_calls:.1f}"
    )

    if not summary.results:
        return f"{title}\n{overview}\n\nNo eval results recorded."

    headers = ["Prompt", "Type", "Provider/Model", "Tool Calls", "Pass", "Score", "Latency"]
    alignments = ["l", "l", "l", "r", "c", "r", "r"]
    rows = [
        [
            truncate(r.id, 30),
            mode_label(r),
            truncate(f"{r.provider}/{r.model}", 35),
            str(r.metrics.tool_call_count),
            "Y" if r.validation.passed else "N",
            f"{r.validation.score:.2f}",
            f"{r.metrics.latency_ms}ms",
        ]
        for r in summary.results
    ]

    group_headers = ["Provider/Model", "Tests", "Pass Rate", "Avg Score", "Avg Calls", "Avg Latency"]
    group_rows = [
        [
            truncate(f"{g.provider}/{g.model}", 35),
            str(g.total_tests),
            f"{g.passed}/{g.total_tests}",
            f"{g.average_score:.2f}",
            f"{g.average_tool_calls:.1f}",
            f"{g.average_latency:.0f}ms",
        ]
        for g in summary.groups
    ]

    table = format_table(headers, rows, alignments, fmt=fmt)
    groups = format_table(group_headers, group_rows, ["l", "r", "r", "r", "r", "r"], fmt=fmt)

    if fmt == "markdown":
        return f"## {title}\n\n{overview}\n\n{groups}\n\n{table}"
    return f"{title}\n{overview}\n\n{groups}\n\n{table}"
