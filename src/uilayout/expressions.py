"""
Condition System for UI Layouts

Visibility, enablement and requirement rules are expressed as flat
condition triples:

    (field, operator, value)

evaluated against a plain nested data context. Fields use dot-paths
("user.profile.role") to reach into nested mappings.

This module provides:
    - Condition: immutable value type for a single rule
    - Operator / ConditionLogic: the closed operator set and combination modes
    - evaluate / evaluate_multiple: stateless evaluation against a context
    - parse_expression: "field == value" strings into Conditions

ARCHITECTURAL RULE:
    Evaluation never raises for bad input.
        - Unknown operators evaluate to False
        - Missing dot-path segments resolve to None
        - Malformed conditions are skipped when combined
    The layout tree relies on this to stay a best-effort configuration
    aggregator rather than a validator.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Union


logger = logging.getLogger(__name__)


class Operator(Enum):
    """
    Operators understood by the evaluator.

    Comparison operators follow loose/strict equality rules similar to
    dynamically typed form backends: "18" == 18 is loosely equal but not
    strictly equal.
    """

    # Equality
    EQUALS = "=="
    NOT_EQUALS = "!="
    IDENTICAL = "==="
    NOT_IDENTICAL = "!=="

    # Ordering
    GREATER_THAN = ">"
    LESS_THAN = "<"
    GREATER_EQUAL = ">="
    LESS_EQUAL = "<="

    # Membership
    IN = "in"
    NOT_IN = "not_in"

    # String tests
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    REGEX = "regex"

    # Presence / truthiness
    EMPTY = "empty"
    NOT_EMPTY = "not_empty"
    NULL = "null"
    NOT_NULL = "not_null"
    TRUE = "true"
    FALSE = "false"


class ConditionLogic(Enum):
    """How a list of conditions is combined."""

    AND = "AND"
    OR = "OR"


SUPPORTED_OPERATORS = frozenset(op.value for op in Operator)

# "=" was used by field-level rules; it means the same as "==".
OPERATOR_ALIASES = {"=": "=="}

# Priority order matters: "===" must be tried before "==", ">=" before ">".
EXPRESSION_OPERATORS = ("===", "!==", "==", "!=", ">=", "<=", ">", "<")

_NUMERIC_PATTERN = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")
_DELIMITED_PATTERN = re.compile(r"^([^\w\s\\])(.*)\1([imsxu]*)$", re.DOTALL)
_PATTERN_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL, "x": re.VERBOSE}


@dataclass(frozen=True)
class Condition:
    """
    A single (field, operator, value) rule.

    Examples:
        Condition("user.role", "==", "admin")
        Condition("age", ">=", 18)
        Condition("tags", "not_empty")

    Properties:
        field: Dot-path into the data context
        operator: Operator token (see Operator); unknown tokens are kept
                  as-is and evaluate to False
        value: Comparison operand (unused by presence operators)
        negate: Flip the result; used for operators with no complement

    IMPORTANT:
        This object is immutable (frozen=True).
        It is structure only; evaluation lives in evaluate().
    """

    field: str
    operator: str = "=="
    value: Any = None
    negate: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data = {"field": self.field, "operator": self.operator, "value": self.value}
        if self.negate:
            data["negate"] = True
        return data


ConditionLike = Union[Condition, Mapping]


# =============================================================================
# Value helpers
# =============================================================================

def is_numeric(value: Any) -> bool:
    """True for ints/floats and numeric strings ("18", "3.5", "1e3"); bools are not numeric."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    if isinstance(value, str):
        return _NUMERIC_PATTERN.match(value) is not None
    return False


def to_number(value: Any) -> Union[int, float]:
    """Convert a numeric value or string to int when integral in form, else float."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    text = str(value).strip()
    if re.fullmatch(r"[+-]?\d+", text):
        return int(text)
    return float(text)


def is_empty(value: Any) -> bool:
    """Emptiness in the form-data sense: None, False, 0, "", "0" and empty collections."""
    if value is None or value is False:
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    if isinstance(value, str):
        return value in ("", "0")
    if isinstance(value, (list, tuple, dict, set, frozenset)):
        return len(value) == 0
    return False


def loose_equals(left: Any, right: Any) -> bool:
    """Equality with type juggling: numeric strings compare as numbers, None matches empty values."""
    if left is None or right is None:
        other = right if left is None else left
        if other is None:
            return True
        if isinstance(other, str):
            return other == ""
        return is_empty(other)
    if isinstance(left, bool) or isinstance(right, bool):
        return (not is_empty(left)) == (not is_empty(right))
    if is_numeric(left) and is_numeric(right):
        return float(to_number(left)) == float(to_number(right))
    return left == right


def strict_equals(left: Any, right: Any) -> bool:
    """Equality without type juggling: 18 and "18" differ, as do 1 and 1.0."""
    return type(left) is type(right) and left == right


def _compare(left: Any, right: Any) -> Optional[int]:
    if left is None or right is None or isinstance(left, bool) or isinstance(right, bool):
        left, right = not is_empty(left), not is_empty(right)
    elif is_numeric(left) and is_numeric(right):
        left, right = to_number(left), to_number(right)
    try:
        return (left > right) - (left < right)
    except TypeError:
        return None


def _ordered(check: Callable[[int], bool]) -> Callable[[Any, Any], bool]:
    def compare(actual: Any, expected: Any) -> bool:
        result = _compare(actual, expected)
        return result is not None and check(result)
    return compare


def _members(value: Any) -> Optional[List[Any]]:
    if isinstance(value, Mapping):
        return list(value.values())
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return None


def _in(actual: Any, expected: Any) -> bool:
    members = _members(expected)
    return members is not None and any(loose_equals(actual, m) for m in members)


def _not_in(actual: Any, expected: Any) -> bool:
    members = _members(expected)
    return members is not None and not any(loose_equals(actual, m) for m in members)


def _needle(value: Any) -> str:
    return "" if value is None else str(value)


def _compile_pattern(pattern: str) -> "re.Pattern[str]":
    """Accept both delimited ("/^a/i") and bare ("^a") patterns."""
    match = _DELIMITED_PATTERN.match(pattern)
    if not match:
        return re.compile(pattern)
    flags = 0
    for flag in match.group(3):
        flags |= _PATTERN_FLAGS.get(flag, 0)
    return re.compile(match.group(2), flags)


def _regex(actual: Any, expected: Any) -> bool:
    if not isinstance(actual, str) or not isinstance(expected, str):
        return False
    try:
        return _compile_pattern(expected).search(actual) is not None
    except re.error as exc:
        logger.warning("Invalid regex pattern %r in condition: %s", expected, exc)
        return False


_OPERATIONS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": loose_equals,
    "!=": lambda a, b: not loose_equals(a, b),
    "===": strict_equals,
    "!==": lambda a, b: not strict_equals(a, b),
    ">": _ordered(lambda r: r > 0),
    "<": _ordered(lambda r: r < 0),
    ">=": _ordered(lambda r: r >= 0),
    "<=": _ordered(lambda r: r <= 0),
    "in": _in,
    "not_in": _not_in,
    "contains": lambda a, b: isinstance(a, str) and _needle(b) in a,
    "not_contains": lambda a, b: isinstance(a, str) and _needle(b) not in a,
    "starts_with": lambda a, b: isinstance(a, str) and a.startswith(_needle(b)),
    "ends_with": lambda a, b: isinstance(a, str) and a.endswith(_needle(b)),
    "regex": _regex,
    "empty": lambda a, _: is_empty(a),
    "not_empty": lambda a, _: not is_empty(a),
    "null": lambda a, _: a is None,
    "not_null": lambda a, _: a is not None,
    "true": lambda a, _: a is True or a == "1" or (type(a) is int and a == 1),
    "false": lambda a, _: a is False or a == "0" or (type(a) is int and a == 0),
}


# =============================================================================
# Evaluation
# =============================================================================

def resolve_path(field: str, context: Any) -> Any:
    """
    Resolve a dot-path against a nested context.

    Example:
        resolve_path("a.b.c", {"a": {"b": {"c": 5}}})  -> 5
        resolve_path("a.b.x", {"a": {"b": {"c": 5}}})  -> None

    Numeric segments index into lists ("items.0.name").
    Missing segments yield None; this never raises.
    """
    value = context
    for key in field.split("."):
        if isinstance(value, Mapping) and key in value:
            value = value[key]
        elif isinstance(value, (list, tuple)) and key.isdigit() and int(key) < len(value):
            value = value[int(key)]
        else:
            return None
    return value


def evaluate(field: str, operator: str, value: Any, context: Any) -> bool:
    """
    Evaluate one condition against a data context.

    Args:
        field: Dot-path to look up in context
        operator: Operator token
        value: Comparison operand
        context: Plain nested mapping

    Returns:
        Result of the comparison; False for unknown operators
    """
    operator = OPERATOR_ALIASES.get(operator, operator)
    operation = _OPERATIONS.get(operator)
    if operation is None:
        logger.debug("Unknown condition operator %r on field %r", operator, field)
        return False
    return bool(operation(resolve_path(field, context), value))


def evaluate_condition(condition: ConditionLike, context: Any) -> Optional[bool]:
    """Evaluate a Condition or condition mapping; None when the entry is malformed."""
    parsed = coerce_condition(condition)
    if parsed is None:
        logger.debug("Skipping malformed condition %r", condition)
        return None
    result = evaluate(parsed.field, parsed.operator, parsed.value, context)
    return not result if parsed.negate else result


def evaluate_multiple(
    conditions: Iterable[ConditionLike],
    context: Any,
    logic: Union[str, ConditionLogic] = ConditionLogic.AND,
) -> bool:
    """
    Combine several conditions.

    - An empty list passes (vacuous truth)
    - Malformed entries (no field/operator) are ignored
    - OR: true if any condition is true
    - AND (default): true unless some condition is false
    """
    conditions = list(conditions)
    if not conditions:
        return True

    results = [evaluate_condition(c, context) for c in conditions]
    results = [r for r in results if r is not None]

    if _logic_value(logic) == ConditionLogic.OR.value:
        return any(results)
    return all(results)


def _logic_value(logic: Union[str, ConditionLogic]) -> str:
    if isinstance(logic, ConditionLogic):
        return logic.value
    return str(logic).upper()


# =============================================================================
# Construction helpers
# =============================================================================

def coerce_literal(text: str) -> Any:
    """Turn "true"/"false"/"null" and numeric strings into Python values."""
    if text == "true":
        return True
    if text == "false":
        return False
    if text == "null":
        return None
    if is_numeric(text):
        return to_number(text)
    return text


def parse_expression(expression: str) -> Optional[Condition]:
    """
    Parse a simple "field <op> value" string.

    Examples:
        "role == admin"     -> Condition("role", "==", "admin")
        "age >= 18"         -> Condition("age", ">=", 18)
        "no operator here"  -> None

    The first operator found in priority order (===, !==, ==, !=, >=, <=, >, <)
    splits the expression at its first occurrence.
    """
    for operator in EXPRESSION_OPERATORS:
        if operator in expression:
            field, value = expression.split(operator, 1)
            value = value.strip().strip("'\"")
            return Condition(field=field.strip(), operator=operator, value=coerce_literal(value))
    return None


def coerce_condition(condition: Any) -> Optional[Condition]:
    """Return a Condition for a Condition or a mapping with field/operator, else None."""
    if isinstance(condition, Condition):
        return condition
    if isinstance(condition, Mapping):
        field = condition.get("field")
        operator = condition.get("operator")
        if field is None or operator is None:
            return None
        return Condition(
            field=field,
            operator=operator,
            value=condition.get("value"),
            negate=bool(condition.get("negate", False)),
        )
    return None


def normalize_condition(
    field: Union[str, ConditionLike],
    operator: Optional[str] = None,
    value: Any = None,
) -> ConditionLike:
    """
    Build a condition from the three accepted call shapes:

        normalize_condition("user.role", "==", "admin")
        normalize_condition("user.role == admin")
        normalize_condition({"field": "user.role", "operator": "==", "value": "admin"})

    Mappings that lack field/operator are returned untouched so that
    evaluate_multiple() can skip them.
    """
    if isinstance(field, (Condition, Mapping)):
        return coerce_condition(field) or dict(field)

    if operator is None and value is None:
        parsed = parse_expression(field)
        if parsed is not None:
            return parsed

    return Condition(field=field, operator=operator or "==", value=value)


_INVERSES = {
    "=": "!=",
    "==": "!=",
    "!=": "==",
    "===": "!==",
    "!==": "===",
    ">": "<=",
    "<": ">=",
    ">=": "<",
    "<=": ">",
    "in": "not_in",
    "not_in": "in",
    "empty": "not_empty",
    "not_empty": "empty",
    "contains": "not_contains",
    "not_contains": "contains",
    "null": "not_null",
    "not_null": "null",
}


def invert_operator(operator: str) -> Optional[str]:
    """Return the logical complement of an operator, or None when it has none (regex, true, ...)."""
    return _INVERSES.get(operator)


def negate_condition(field: str, operator: str, value: Any = None) -> Condition:
    """
    Build the condition that holds exactly when (field, operator, value) does not.

    Uses the complementary operator where one exists and a negated
    condition otherwise. "true"/"false" are not complements of each
    other (a missing value is neither), so they are negated too.
    """
    inverse = invert_operator(operator)
    if inverse is not None:
        return Condition(field, inverse, value)
    return Condition(field, operator, value, negate=True)


def condition_to_dict(condition: ConditionLike) -> Dict[str, Any]:
    if isinstance(condition, Condition):
        return condition.to_dict()
    return dict(condition)
