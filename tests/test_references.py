"""Tests for step reference resolution."""

import pytest

from honeycomb_evals.references import (
    DEFAULT_VALUE,
    Reference,
    apply_fallbacks,
    extract_path,
    has_references,
    resolve_reference,
    resolve_references,
    split_path,
    stringify,
)


def _ref(step: int, path: str, fallback: str | None = None) -> Reference:
    text = f"${{{{step:{step}.{path}{'||' + fallback if fallback is not None else ''}}}}}"
    return Reference(text=text, step=step, path=path, fallback=fallback)


class TestPaths:
    """Tests for path splitting and extraction."""

    def test_index_syntax_normalized(self):
        assert split_path("columns[0].key") == ["columns", "0", "key"]
        assert split_path("columns.0.key") == ["columns", "0", "key"]

    def test_extract_nested(self):
        data = {"columns": [{"key": "duration_ms"}, {"key": "name"}]}
        assert extract_path(data, "columns.1.key") == "name"

    def test_missing_key_is_not_none(self):
        result = extract_path({"a": 1}, "b")
        assert result is not None
        assert result != 1

    def test_non_numeric_list_segment_missing(self):
        result = extract_path({"a": [1]}, "a.first")
        assert result is extract_path({"a": 1}, "b")

    def test_negative_and_out_of_range_index_missing(self):
        missing = extract_path({"a": 1}, "b")
        assert extract_path({"items": ["a", "b"]}, "items.-1") is missing
        assert extract_path({"items": ["a", "b"]}, "items.2") is missing

    def test_scalar_segment_raises(self):
        with pytest.raises(TypeError):
            extract_path({"a": 1}, "a.b")


class TestStringify:
    """Tests for value coercion."""

    def test_string_kept(self):
        assert stringify("abc") == "abc"

    def test_numbers_and_bools(self):
        assert stringify(42) == "42"
        assert stringify(True) == "true"

    def test_structures_serialized(self):
        assert stringify({"a": [1, 2]}) == '{"a": [1, 2]}'


class TestResolveReference:
    """Tests for single reference resolution."""

    def test_resolves_from_step_result(self):
        value, warning = resolve_reference(
            _ref(0, "columns.0.key"), {0: {"columns": [{"key": "trace.trace_id"}]}}
        )
        assert value == "trace.trace_id"
        assert warning is None

    def test_absent_step_uses_fallback(self):
        value, warning = resolve_reference(_ref(1, "columns.0.key", "service.name"), {})
        assert value == "service.name"
        assert warning is not None

    def test_absent_step_without_fallback_uses_default(self):
        value, warning = resolve_reference(_ref(3, "columns.0.key"), {})
        assert value == DEFAULT_VALUE
        assert "Step 3" in warning

    def test_missing_path_uses_explicit_fallback(self):
        value, _ = resolve_reference(_ref(0, "missing.key", "http.status"), {0: {"other": 1}})
        assert value == "http.status"

    def test_traversal_error_falls_back(self):
        value, warning = resolve_reference(_ref(0, "count.value", "x"), {0: {"count": 3}})
        assert value == "x"
        assert warning is not None


class TestFallbackRules:
    """Tests for the ordered fallback heuristics."""

    def test_duration_hint(self):
        assert apply_fallbacks(_ref(0, "columns.9.duration"), {}) == "duration_ms"

    def test_name_hint(self):
        assert apply_fallbacks(_ref(0, "columns.9.name"), {}) == "name"

    def test_duration_hint_before_name_hint(self):
        assert apply_fallbacks(_ref(0, "duration_name"), {}) == "duration_ms"

    def test_column_scan_prefers_duration_column(self):
        result = {
            "columns": [
                {"key": "service", "description": "service"},
                {"key": "latency", "description": "request duration in ms"},
            ]
        }
        assert apply_fallbacks(_ref(0, "columns.7.key"), result) == "latency"

    def test_column_scan_uses_first_column(self):
        result = {"columns": [{"key": "service"}, {"key": "status"}]}
        assert apply_fallbacks(_ref(0, "columns.7.key"), result) == "service"

    def test_literal_default(self):
        assert apply_fallbacks(_ref(0, "rows.3.key"), {"rows": []}) == DEFAULT_VALUE

    def test_explicit_fallback_wins(self):
        assert apply_fallbacks(_ref(0, "columns.9.name", "custom"), {}) == "custom"


class TestResolveReferences:
    """Tests for whole parameter tree resolution."""

    def test_nested_tree(self):
        params = {
            "dataset": "prod",
            "calculations": [{"op": "P99", "column": "${{step:0.columns[0].key}}"}],
            "filters": {"column": "${{step:0.columns.1.key}}"},
        }
        step_results = {0: {"columns": [{"key": "duration_ms"}, {"key": "status"}]}}

        resolution = resolve_references(params, step_results)

        assert resolution.value == {
            "dataset": "prod",
            "calculations": [{"op": "P99", "column": "duration_ms"}],
            "filters": {"column": "status"},
        }
        assert resolution.warnings == []

    def test_non_strings_untouched(self):
        params = {"limit": 10, "enabled": True, "ratio": 0.5, "nothing": None}
        assert resolve_references(params, {}).value == params

    def test_embedded_reference(self):
        resolution = resolve_references("dataset-${{step:0.name}}-v2", {0: {"name": "api"}})
        assert resolution.value == "dataset-api-v2"

    def test_does_not_mutate_input(self):
        params = {"column": "${{step:0.key}}"}
        resolve_references(params, {0: {"key": "x"}})
        assert params == {"column": "${{step:0.key}}"}

    def test_unresolved_reference_collects_warning(self):
        resolution = resolve_references({"column": "${{step:1.columns[0].key}}"}, {})
        assert resolution.value == {"column": DEFAULT_VALUE}
        assert len(resolution.warnings) == 1

    def test_has_references(self):
        assert has_references({"a": ["${{step:0.x}}"]})
        assert not has_references({"a": ["plain", 1]})

    def test_fallback_whitespace_trimmed(self):
        resolution = resolve_references({"c": "${{step:3.columns[0].key || duration_ms}}"}, {})
        assert resolution.value == {"c": "duration_ms"}

    def test_negative_index_uses_fallback(self):
        resolution = resolve_references(
            {"c": "${{step:0.items.-1||none}}"}, {0: {"items": ["a", "b"]}}
        )
        assert resolution.value == {"c": "none"}
        assert len(resolution.warnings) == 1
