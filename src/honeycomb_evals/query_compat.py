"""Compatibility normalization for model-authored ``run_query`` arguments.

Models driving a conversation often emit legacy or loosely shaped query
parameters (``groupBy``, a single ``order`` object, calculations missing
their column). These are rewritten into the shape the ``run_query`` tool
schema accepts before the call is made.
"""

from __future__ import annotations

import copy
from typing import Any

QUERY_TOOL = "run_query"

# Calculation ops that take no column; every other op requires one.
COLUMNLESS_OPS = frozenset({"COUNT", "CONCURRENCY"})

DEFAULT_TIME_RANGE = 7200

_TIME_FIELDS = ("time_range", "start_time", "end_time")


def requires_column(op: Any) -> bool:
    """Whether a calculation op needs a column."""
    return isinstance(op, str) and op.upper() not in COLUMNLESS_OPS


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _normalize_breakdowns(params: dict[str, Any]) -> None:
    for legacy in ("groupBy", "group_by"):
        if legacy in params:
            legacy_value = params.pop(legacy)
            params.setdefault("breakdowns", legacy_value)
    if "breakdowns" in params:
        params["breakdowns"] = [str(b) for b in _as_list(params["breakdowns"])]


def _normalize_calculations(params: dict[str, Any]) -> None:
    if "calculations" not in params:
        return
    breakdowns = params.get("breakdowns") or []
    calculations = []
    for calc in _as_list(params["calculations"]):
        if isinstance(calc, str):
            calc = {"op": calc}
        elif isinstance(calc, dict):
            calc = dict(calc)
        else:
            continue
        alias = calc.pop("field", None)
        if requires_column(calc.get("op")) and not calc.get("column"):
            if alias:
                calc["column"] = alias
            elif breakdowns:
                calc["column"] = breakdowns[0]
        calculations.append(calc)
    params["calculations"] = calculations


def _normalize_orders(params: dict[str, Any]) -> None:
    if "order" in params:
        legacy_value = params.pop("order")
        params.setdefault("orders", legacy_value)
    if "orders" not in params:
        return

    calculations = [calc for calc in params.get("calculations") or [] if isinstance(calc, dict)]
    ops_by_column = {
        calc["column"]: calc.get("op")
        for calc in calculations
        if isinstance(calc.get("column"), str) and calc["column"]
    }
    declared_ops = {calc.get("op") for calc in calculations if isinstance(calc.get("op"), str)}

    orders = []
    for entry in _as_list(params["orders"]):
        if isinstance(entry, str):
            entry = {"column": entry}
        elif isinstance(entry, dict):
            entry = dict(entry)
        else:
            continue

        column = entry.get("column")
        op = entry.get("op")
        if op is None and isinstance(column, str) and column in ops_by_column:
            entry["op"] = ops_by_column[column]
        elif isinstance(op, str) and not requires_column(op) and op in declared_ops:
            # COUNT/CONCURRENCY orders reference the calculation, not a column
            entry.pop("column", None)
        orders.append(entry)
    params["orders"] = orders


def _normalize_time_window(params: dict[str, Any]) -> None:
    if "timeRange" in params:
        legacy_value = params.pop("timeRange")
        params.setdefault("time_range", legacy_value)
    if not any(params.get(name) is not None for name in _TIME_FIELDS):
        params["time_range"] = DEFAULT_TIME_RANGE


def normalize_query_parameters(params: dict[str, Any]) -> dict[str, Any]:
    """Return a normalized copy of ``run_query`` parameters.

    Breakdowns are normalized first so calculations can borrow a column
    from them, and calculations before orders so orders can be reconciled
    against the declared calculations.
    """
    normalized = copy.deepcopy(params)
    _normalize_breakdowns(normalized)
    _normalize_calculations(normalized)
    _normalize_orders(normalized)
    _normalize_time_window(normalized)
    return normalized


def normalize_tool_parameters(tool: str, params: dict[str, Any]) -> dict[str, Any]:
    """Normalize parameters for tools that need it; others pass through."""
    if tool == QUERY_TOOL:
        return normalize_query_parameters(params)
    return params
