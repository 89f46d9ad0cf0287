import pytest

from scanql.compute.base import MappingRow, UnsupportedQueryError
from scanql.compute.filtering import (
    build_predicate,
    comparable,
    contains,
    evaluate_filter,
    is_number,
    regex_search,
)
from scanql.sql.query import FilterDesc


@pytest.fixture
def row():
    return MappingRow({"name": "Flamingo", "n_legs": 2, "weight": 1.5, "wild": True})


@pytest.mark.parametrize(
    "condition, expected",
    [
        (FilterDesc("n_legs", "=", 2), True),
        (FilterDesc("n_legs", "=", 2.0), True),
        (FilterDesc("n_legs", "!=", 2), False),
        (FilterDesc("n_legs", "<", 3), True),
        (FilterDesc("n_legs", "<=", 2), True),
        (FilterDesc("n_legs", ">", 2), False),
        (FilterDesc("n_legs", ">=", 1.5), True),
        (FilterDesc("weight", ">", 1), True),
        (FilterDesc("weight", "<", 1), False),
        (FilterDesc("name", "=", "Flamingo"), True),
        (FilterDesc("name", "!=", "Flamingo"), False),
        (FilterDesc("name", "<", "Horse"), True),
        (FilterDesc("name", ">=", "Zebra"), False),
    ],
)
def test_comparisons(row, condition, expected):
    assert evaluate_filter(row, condition) is expected


@pytest.mark.parametrize(
    "condition",
    [
        FilterDesc("n_legs", "=", "2"),
        FilterDesc("n_legs", "!=", "2"),
        FilterDesc("name", ">", 1),
        FilterDesc("wild", "=", 1),
        FilterDesc("wild", "!=", 1),
    ],
)
def test_incompatible_types_never_match(row, condition):
    assert evaluate_filter(row, condition) is False


@pytest.mark.parametrize("operator", ["=", "!=", "<", "matches"])
def test_missing_field_never_matches(row, operator):
    assert evaluate_filter(row, FilterDesc("color", operator, "pink")) is False


def test_none_value_never_matches():
    row = MappingRow({"name": None})
    assert evaluate_filter(row, FilterDesc("name", "!=", "Jo")) is False
    assert evaluate_filter(row, FilterDesc("name", "matches", "Jo")) is False


@pytest.mark.parametrize(
    "condition, expected",
    [
        (FilterDesc("name", "matches", "lam"), True),
        (FilterDesc("name", "matches", ""), True),
        (FilterDesc("name", "matches", "LAM"), False),
        (FilterDesc("name", "matches", "F.*o"), False),
        (FilterDesc("name", "matches", 2), False),
        (FilterDesc("n_legs", "matches", "2"), False),
    ],
)
def test_matches_contains(row, condition, expected):
    assert evaluate_filter(row, condition) is expected


def test_matches_regex(row):
    assert evaluate_filter(row, FilterDesc("name", "matches", "^F.*o$"), regex_search)
    assert not evaluate_filter(row, FilterDesc("name", "matches", "^lam"), regex_search)


def test_custom_matcher(row):
    def prefix(value, pattern):
        return value.startswith(pattern)

    assert evaluate_filter(row, FilterDesc("name", "matches", "Fla"), prefix)
    assert not evaluate_filter(row, FilterDesc("name", "matches", "lam"), prefix)


def test_unknown_operator(row):
    with pytest.raises(UnsupportedQueryError, match="like"):
        evaluate_filter(row, FilterDesc("name", "like", "Jo"))


def test_build_predicate(row):
    predicate = build_predicate(FilterDesc("n_legs", ">", 1))

    assert predicate(row)
    assert not predicate(MappingRow({"n_legs": 0}))


def test_build_predicate_checks_operator_upfront():
    with pytest.raises(UnsupportedQueryError):
        build_predicate(FilterDesc("n_legs", "<>", 1))


def test_number_checks():
    assert is_number(1) and is_number(1.5)
    assert not is_number(True)
    assert not is_number("1")
    assert comparable(1, 2.5)
    assert comparable("a", "b")
    assert not comparable("1", 1)
    assert not comparable(None, None)


def test_contains():
    assert contains("Flamingo", "ming")
    assert not contains("ming", "Flamingo")


@pytest.mark.parametrize("pattern", ["(", "[a-", "*x"])
def test_invalid_regex_is_rejected_upfront(pattern):
    with pytest.raises(UnsupportedQueryError, match="Invalid regular expression"):
        build_predicate(FilterDesc("name", "matches", pattern), regex_search)


def test_invalid_regex_is_fine_for_contains(row):
    predicate = build_predicate(FilterDesc("name", "matches", "("))
    assert not predicate(row)
    assert predicate(MappingRow({"name": "f(x)"}))


def test_regex_search_reports_invalid_pattern():
    with pytest.raises(UnsupportedQueryError):
        regex_search("value", "(")
