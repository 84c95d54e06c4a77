"""
Tests for the condition evaluator.

These tests verify:
    - Dot-path resolution against nested contexts
    - Each operator family (equality, ordering, membership, strings, presence)
    - AND / OR combination and malformed-entry handling
    - parse_expression() and condition normalization
"""

import logging

import pytest

from uilayout.expressions import (
    Condition,
    ConditionLogic,
    evaluate,
    evaluate_condition,
    evaluate_multiple,
    invert_operator,
    is_empty,
    negate_condition,
    normalize_condition,
    parse_expression,
    resolve_path,
)


class TestResolvePath:
    """Test dot-path lookup."""

    def test_nested_lookup(self):
        """Should walk nested mappings."""
        assert resolve_path("a.b.c", {"a": {"b": {"c": 5}}}) == 5

    def test_missing_segment_is_none(self):
        """Missing segments resolve to None without raising."""
        assert resolve_path("a.b.x", {"a": {"b": {"c": 5}}}) is None
        assert resolve_path("a.b.c.d", {"a": {"b": {"c": 5}}}) is None

    def test_list_index_segment(self):
        """Numeric segments index into lists."""
        assert resolve_path("items.1.name", {"items": [{"name": "a"}, {"name": "b"}]}) == "b"

    def test_dot_path_condition(self):
        """A dot-path condition compares the nested value."""
        assert evaluate("a.b.c", "==", 5, {"a": {"b": {"c": 5}}}) is True
        assert evaluate("a.b.x", "null", None, {"a": {"b": {"c": 5}}}) is True


class TestEquality:
    """Test loose and strict equality."""

    def test_loose_numeric_string(self):
        """Loose equality compares numeric strings as numbers."""
        assert evaluate("age", "==", 18, {"age": "18"}) is True
        assert evaluate("age", "!=", 18, {"age": "18"}) is False

    def test_strict_distinguishes_types(self):
        """Strict equality requires the same type."""
        assert evaluate("age", "===", 18, {"age": "18"}) is False
        assert evaluate("age", "===", 18, {"age": 18}) is True
        assert evaluate("age", "!==", 18, {"age": "18"}) is True

    def test_equals_alias(self):
        """A single "=" behaves like "=="."""
        assert evaluate("role", "=", "admin", {"role": "admin"}) is True

    def test_none_equals_empty_string(self):
        """None loosely equals an empty string."""
        assert evaluate("name", "==", "", {}) is True


class TestOrdering:
    """Test ordering operators."""

    def test_numeric_comparisons(self):
        """Should compare numbers with every ordering operator."""
        context = {"age": 21}
        assert evaluate("age", ">", 18, context) is True
        assert evaluate("age", ">=", 21, context) is True
        assert evaluate("age", "<", 18, context) is False
        assert evaluate("age", "<=", 20, context) is False

    def test_numeric_string_comparison(self):
        """Numeric strings compare numerically, not lexically."""
        assert evaluate("count", ">", "9", {"count": "10"}) is True

    def test_incomparable_types_are_false(self):
        """Comparing unrelated types yields False instead of raising."""
        assert evaluate("tags", ">", 3, {"tags": ["a"]}) is False


class TestMembershipAndStrings:
    """Test membership and string operators."""

    def test_in_and_not_in(self):
        """Should test membership in a list."""
        context = {"status": "active"}
        assert evaluate("status", "in", ["active", "pending"], context) is True
        assert evaluate("status", "not_in", ["active", "pending"], context) is False

    def test_in_requires_collection(self):
        """A non-collection operand makes "in" false."""
        assert evaluate("status", "in", "active", {"status": "active"}) is False

    def test_string_operators(self):
        """Should test substrings, prefixes and suffixes."""
        context = {"email": "jane@example.com"}
        assert evaluate("email", "contains", "@", context) is True
        assert evaluate("email", "not_contains", "#", context) is True
        assert evaluate("email", "starts_with", "jane", context) is True
        assert evaluate("email", "ends_with", ".org", context) is False

    def test_regex(self):
        """Should accept delimited patterns with flags and bare patterns."""
        context = {"code": "AB-123"}
        assert evaluate("code", "regex", "/^ab-\\d+$/i", context) is True
        assert evaluate("code", "regex", "^\\d+$", context) is False

    def test_invalid_regex_is_false(self, caplog):
        """An invalid pattern evaluates to False and is logged."""
        with caplog.at_level(logging.WARNING, logger="uilayout.expressions"):
            assert evaluate("code", "regex", "/[/", {"code": "x"}) is False
        assert "Invalid regex" in caplog.text


class TestPresence:
    """Test presence operators."""

    def test_empty_and_not_null_on_null(self):
        """A null field is empty and not "not_null"."""
        context = {"x": None}
        assert evaluate("x", "empty", None, context) is True
        assert evaluate("x", "not_null", None, context) is False
        assert evaluate("x", "null", None, context) is True

    def test_not_empty(self):
        """Should treat an empty list as empty."""
        assert evaluate("tags", "not_empty", None, {"tags": ["a"]}) is True
        assert evaluate("tags", "not_empty", None, {"tags": []}) is False

    def test_true_false(self):
        """Should accept booleans and their string forms only."""
        assert evaluate("flag", "true", None, {"flag": True}) is True
        assert evaluate("flag", "false", None, {"flag": "0"}) is True
        assert evaluate("flag", "true", None, {"flag": "yes"}) is False

    def test_is_empty_values(self):
        """Form-style emptiness."""
        for value in (None, False, 0, "", "0", [], {}):
            assert is_empty(value)
        for value in ("a", 1, [0], True):
            assert not is_empty(value)

    def test_unknown_operator_is_false(self):
        """Should evaluate unknown operators to False."""
        assert evaluate("x", "between", [1, 2], {"x": 1}) is False


class TestEvaluateMultiple:
    """Test AND / OR combination."""

    def test_empty_list_is_true(self):
        """Vacuous truth for no conditions."""
        assert evaluate_multiple([], {}) is True
        assert evaluate_multiple([], {}, "OR") is True

    def test_or_and_combination(self):
        """Mixed outcomes: OR passes, AND fails."""
        conditions = [
            {"field": "role", "operator": "==", "value": "admin"},
            {"field": "role", "operator": "==", "value": "editor"},
        ]
        context = {"role": "editor"}
        assert evaluate_multiple(conditions, context, "OR") is True
        assert evaluate_multiple(conditions, context, "AND") is False

    def test_logic_enum_and_lowercase(self):
        """Should accept the logic as an enum or a lowercase string."""
        conditions = [Condition("a", "==", 1), Condition("b", "==", 2)]
        context = {"a": 1, "b": 3}
        assert evaluate_multiple(conditions, context, ConditionLogic.OR) is True
        assert evaluate_multiple(conditions, context, "or") is True

    def test_malformed_entries_are_skipped(self):
        """Entries without field/operator do not affect the result."""
        conditions = [{"value": 3}, {"field": "a", "operator": "==", "value": 1}]
        assert evaluate_multiple(conditions, {"a": 1}) is True
        assert evaluate_multiple(conditions, {"a": 2}) is False

    def test_only_malformed_entries(self):
        """With nothing evaluable, AND passes and OR fails."""
        assert evaluate_multiple([{"value": 3}], {}) is True
        assert evaluate_multiple([{"value": 3}], {}, "OR") is False


class TestParseExpression:
    """Test "field op value" parsing."""

    def test_equality(self):
        """Should parse a simple equality."""
        assert parse_expression("role == admin") == Condition("role", "==", "admin")

    def test_numeric_value(self):
        """Should turn numeric literals into numbers."""
        condition = parse_expression("age >= 18")
        assert condition == Condition("age", ">=", 18)
        assert isinstance(condition.value, int)

    def test_no_operator(self):
        """Should return None when no operator is present."""
        assert parse_expression("no operator here") is None

    def test_strict_before_loose(self):
        """=== wins over == when both could match."""
        assert parse_expression("a === 1") == Condition("a", "===", 1)

    def test_quotes_and_literals(self):
        """Should strip quotes and read true/false/null literals."""
        assert parse_expression("name == 'Jane'") == Condition("name", "==", "Jane")
        assert parse_expression("active != false") == Condition("active", "!=", False)
        assert parse_expression("deleted_at == null") == Condition("deleted_at", "==", None)

    def test_splits_on_first_occurrence(self):
        """Should keep the rest of the text as the value."""
        assert parse_expression("a == b == c") == Condition("a", "==", "b == c")


class TestNormalization:
    """Test condition construction helpers."""

    @pytest.mark.parametrize("args,expected", [
        (("role", "==", "admin"), Condition("role", "==", "admin")),
        (("role == admin",), Condition("role", "==", "admin")),
        (({"field": "role", "operator": "==", "value": "admin"},), Condition("role", "==", "admin")),
    ])
    def test_call_shapes(self, args, expected):
        """Should build the same condition from each call shape."""
        assert normalize_condition(*args) == expected

    def test_malformed_mapping_kept(self):
        """Malformed mappings survive so evaluation can skip them."""
        assert normalize_condition({"value": 1}) == {"value": 1}

    def test_invert_operator(self):
        """Should map operators to their complement."""
        assert invert_operator("==") == "!="
        assert invert_operator(">") == "<="
        assert invert_operator("in") == "not_in"

    @pytest.mark.parametrize("operator", ["regex", "starts_with", "ends_with", "true", "false", "between"])
    def test_operators_without_complement(self, operator):
        """Should report no complement rather than echo the operator."""
        assert invert_operator(operator) is None


class TestNegation:
    """Test negated conditions."""

    def test_negate_uses_complement(self):
        """Should prefer the complementary operator."""
        assert negate_condition("role", "==", "admin") == Condition("role", "!=", "admin")

    def test_negate_without_complement(self):
        """Should flag the condition when no complement exists."""
        condition = negate_condition("name", "starts_with", "adm")
        assert condition == Condition("name", "starts_with", "adm", negate=True)
        assert evaluate_condition(condition, {"name": "admin"}) is False
        assert evaluate_condition(condition, {"name": "user"}) is True

    def test_true_is_not_the_complement_of_false(self):
        """A missing value is neither true nor false, so its negation holds."""
        assert evaluate_condition(negate_condition("flag", "true"), {}) is True
        assert evaluate_condition(negate_condition("flag", "false"), {}) is True

    def test_negate_round_trips_through_mapping(self):
        """Should keep the negate flag when read back from a mapping."""
        data = negate_condition("code", "regex", "^\\d+$").to_dict()
        assert data["negate"] is True
        assert evaluate_multiple([data], {"code": "abc"}) is True
        assert evaluate_multiple([data], {"code": "123"}) is False

    def test_plain_condition_has_no_negate_key(self):
        assert "negate" not in Condition("a", "==", 1).to_dict()
