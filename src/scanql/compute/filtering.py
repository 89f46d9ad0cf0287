"""Evaluation of query filters against rows.

A filter like ``age >= 18`` is satisfied by a row only when
the row has an ``age`` field and its value compares as requested
with the value of the filter. Values compare only when they
are both numbers or both strings, any other combination
never satisfies the filter::

    age >= 18     # {"age": 20} satisfies it
                  # {"age": "20"} does not, a string is not a number
                  # {"name": "Jo"} does not, there is no age

The ``matches`` operator only applies to strings and its behaviour
is pluggable, by default it checks that the value contains
the pattern (case sensitive). :func:`regex_search` can be used
to treat the pattern as a regular expression instead.

>>> from scanql.sql.query import FilterDesc
>>> from scanql.compute.base import MappingRow
>>> adult = build_predicate(FilterDesc("age", ">=", 18))
>>> adult(MappingRow({"age": 20})), adult(MappingRow({"age": "20"}))
(True, False)
"""

import functools
import numbers
import operator
import re
from typing import Any, Callable

from ..sql.query import FilterDesc
from .base import Row, UnsupportedQueryError

Matcher = Callable[[str, str], bool]
Predicate = Callable[[Row], bool]


def contains(value: str, pattern: str) -> bool:
    """Default ``matches`` policy, case sensitive substring containment."""
    return pattern in value


def regex_search(value: str, pattern: str) -> bool:
    """``matches`` policy treating the pattern as a regular expression.

    Patterns that are not valid regular expressions
    raise :class:`UnsupportedQueryError`.
    """
    return compile_pattern(pattern).search(value) is not None


@functools.lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> re.Pattern:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise UnsupportedQueryError(f"Invalid regular expression {pattern!r}: {e}") from e


COMPARISONS = {
    "=": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}

MATCHES = "matches"

OPERATORS = frozenset(COMPARISONS) | {MATCHES}


def is_number(value: Any) -> bool:
    """Booleans are not considered numbers, even if Python thinks so."""
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def comparable(left: Any, right: Any) -> bool:
    """Check if two values can be compared with each other."""
    return (is_number(left) and is_number(right)) or (
        isinstance(left, str) and isinstance(right, str)
    )


def evaluate_filter(row: Row, condition: FilterDesc, matcher: Matcher = contains) -> bool:
    """Check if ``row`` satisfies the ``condition`` filter.

    :param row: The row to check.
    :param condition: The filter to apply.
    :param matcher: The policy implementing the ``matches`` operator.
    """
    value, present = row.get(condition.column)
    if not present:
        return False

    if condition.operator == MATCHES:
        return (
            isinstance(value, str)
            and isinstance(condition.value, str)
            and matcher(value, condition.value)
        )

    compare = COMPARISONS.get(condition.operator)
    if compare is None:
        raise UnsupportedQueryError(f"Unsupported filter operator: {condition.operator}")
    if not comparable(value, condition.value):
        return False
    return bool(compare(value, condition.value))


def build_predicate(condition: FilterDesc, matcher: Matcher = contains) -> Predicate:
    """Turn a filter into a function that checks rows against it.

    The operator is validated upfront, so that unsupported
    filters are detected before any row is read. For the same reason
    the ``matches`` policy is tried once, so it can reject the pattern.
    """
    if condition.operator not in OPERATORS:
        raise UnsupportedQueryError(f"Unsupported filter operator: {condition.operator}")
    if condition.operator == MATCHES and isinstance(condition.value, str):
        matcher("", condition.value)

    def predicate(row: Row) -> bool:
        return evaluate_filter(row, condition, matcher)

    return predicate
