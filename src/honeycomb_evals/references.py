"""Step reference resolution for multi-step prompts.

Step parameters may embed expressions of the form::

    ${{step:<N>.<path>}}
    ${{step:<N>.<path>||<fallback>}}

which are replaced with a value pulled from the raw result of an earlier
step. Unresolvable references never fail the step: they degrade to an
explicit fallback or a heuristic default, and a warning is returned to the
caller.

The resolver is pure. It performs no I/O and does not log.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

REFERENCE_PATTERN = re.compile(
    r"\$\{\{step:(?P<index>\d+)\.(?P<path>[^}|]+?)(?:\|\|(?P<fallback>[^}]*))?\}\}"
)

DEFAULT_VALUE = "duration_ms"

_INDEX_SYNTAX = re.compile(r"\[(\d+)\]")
_MISSING = object()


@dataclass(frozen=True)
class Reference:
    """A single parsed reference expression."""

    text: str
    step: int
    path: str
    fallback: str | None

    @classmethod
    def from_match(cls, match: re.Match[str]) -> Reference:
        fallback = match.group("fallback")
        return cls(
            text=match.group(0),
            step=int(match.group("index")),
            path=match.group("path").strip(),
            fallback=fallback.strip() if fallback is not None else None,
        )


@dataclass
class Resolution:
    """Resolved parameter tree plus any warnings raised along the way."""

    value: Any
    warnings: list[str] = field(default_factory=list)


def split_path(path: str) -> list[str]:
    """Split a dotted path, normalizing ``name[0]`` to ``name.0``."""
    normalized = _INDEX_SYNTAX.sub(r".\1", path)
    return [segment for segment in normalized.split(".") if segment]


def extract_path(data: Any, path: str) -> Any:
    """Follow a dotted path through nested dicts and lists.

    Returns the module-level missing sentinel as soon as an intermediate
    value is None, a key is absent, or a list segment is not an in-range
    non-negative index. Reading a segment from a scalar raises.
    """
    current = data
    for segment in split_path(path):
        if current is None:
            return _MISSING
        if isinstance(current, Mapping):
            if segment not in current:
                return _MISSING
            current = current[segment]
        elif isinstance(current, (list, tuple)):
            if not segment.isdigit() or int(segment) >= len(current):
                return _MISSING
            current = current[int(segment)]
        else:
            raise TypeError(
                f"Cannot read '{segment}' from {type(current).__name__}"
            )
    return current


def stringify(value: Any) -> str:
    """Coerce a resolved value to the text substituted into the template."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return json.dumps(value, default=str)


# Ordered fallback rules, consulted when a reference yields nothing.
# Each rule returns a replacement or None to defer to the next one.
FallbackRule = Callable[[Reference, Any], "str | None"]


def _explicit_fallback(ref: Reference, result: Any) -> str | None:
    return ref.fallback


def _duration_hint(ref: Reference, result: Any) -> str | None:
    if "duration" in ref.path or "duration" in ref.text:
        return DEFAULT_VALUE
    return None


def _name_hint(ref: Reference, result: Any) -> str | None:
    if "name" in ref.path or "name" in ref.text:
        return "name"
    return None


def _column_scan(ref: Reference, result: Any) -> str | None:
    if not isinstance(result, Mapping):
        return None
    columns = result.get("columns")
    if not isinstance(columns, list) or not columns:
        return None
    for column in columns:
        if not isinstance(column, Mapping):
            continue
        key = str(column.get("key") or "")
        description = str(column.get("description") or "")
        if "duration" in key or "duration" in description:
            return key
    first = columns[0]
    if isinstance(first, Mapping) and first.get("key"):
        return str(first["key"])
    return None


def _literal_default(ref: Reference, result: Any) -> str | None:
    return DEFAULT_VALUE


FALLBACK_RULES: tuple[FallbackRule, ...] = (
    _explicit_fallback,
    _duration_hint,
    _name_hint,
    _column_scan,
    _literal_default,
)


def apply_fallbacks(ref: Reference, result: Any) -> str:
    """Run the fallback rules in priority order."""
    for rule in FALLBACK_RULES:
        value = rule(ref, result)
        if value is not None:
            return value
    return DEFAULT_VALUE


def resolve_reference(ref: Reference, step_results: Mapping[int, Any]) -> tuple[str, str | None]:
    """Resolve one reference. Returns the replacement and an optional warning."""
    if ref.step not in step_results:
        value = ref.fallback if ref.fallback is not None else DEFAULT_VALUE
        return value, (
            f"Step {ref.step} has no result for reference {ref.text}; using '{value}'"
        )

    result = step_results[ref.step]
    try:
        extracted = extract_path(result, ref.path)
    except (TypeError, ValueError, IndexError, KeyError, AttributeError) as e:
        value = apply_fallbacks(ref, result)
        return value, f"Could not read {ref.text} ({e}); using '{value}'"

    if extracted is _MISSING or extracted is None:
        value = apply_fallbacks(ref, result)
        return value, f"Path '{ref.path}' not found in step {ref.step} result; using '{value}'"

    return stringify(extracted), None


def _resolve_string(text: str, step_results: Mapping[int, Any], warnings: list[str]) -> str:
    def _substitute(match: re.Match[str]) -> str:
        value, warning = resolve_reference(Reference.from_match(match), step_results)
        if warning:
            warnings.append(warning)
        return value

    return REFERENCE_PATTERN.sub(_substitute, text)


def _resolve(value: Any, step_results: Mapping[int, Any], warnings: list[str]) -> Any:
    if isinstance(value, str):
        return _resolve_string(value, step_results, warnings)
    if isinstance(value, Mapping):
        return {k: _resolve(v, step_results, warnings) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve(item, step_results, warnings) for item in value]
    return value


def resolve_references(value: Any, step_results: Mapping[int, Any]) -> Resolution:
    """Replace every step reference inside a parameter tree.

    Args:
        value: Parameter tree (dicts, lists and scalars).
        step_results: Raw results of completed steps, keyed by 0-based index.

    Returns:
        Resolution holding a new tree and the warnings emitted.
    """
    warnings: list[str] = []
    resolved = _resolve(value, step_results, warnings)
    return Resolution(value=resolved, warnings=warnings)


def has_references(value: Any) -> bool:
    """Whether a parameter tree contains any step reference."""
    if isinstance(value, str):
        return REFERENCE_PATTERN.search(value) is not None
    if isinstance(value, Mapping):
        return any(has_references(v) for v in value.values())
    if isinstance(value, list):
        return any(has_references(item) for item in value)
    return False
