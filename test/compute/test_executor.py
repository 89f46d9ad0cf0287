import pyarrow as pa
import pytest

from scanql.compute.base import Cursor, MappingRow, Table, UnsupportedQueryError
from scanql.compute.datasources import RowsTable
from scanql.compute.executor import Executor, Result
from scanql.compute.filtering import regex_search
from scanql.sql.query import ColumnDesc, FilterDesc, QueryDescription

SELECT_ALL = (ColumnDesc("*"),)

ANIMALS = [
    {"animal": "Flamingo", "n_legs": 2},
    {"animal": "Horse", "n_legs": 4},
    {"animal": "Brittle stars", "n_legs": 5},
    {"animal": "Centipede", "n_legs": 100},
]


class RecordingCursor(Cursor):
    """Cursor that keeps track of how it was used."""

    def __init__(self, rows, error=None):
        self.rows = rows
        self.error = error
        self.advanced = 0
        self.closed = False

    def next(self):
        if self.advanced >= len(self.rows):
            return False
        self.advanced += 1
        return True

    def row(self):
        return MappingRow(self.rows[self.advanced - 1])

    def err(self):
        return self.error

    def close(self):
        self.closed = True


class RecordingTable(Table):
    def __init__(self, rows, error=None):
        self.rows = rows
        self.error = error
        self.cursors = []

    def new_cursor(self):
        cursor = RecordingCursor(self.rows, self.error)
        self.cursors.append(cursor)
        return cursor

    def __str__(self):
        return "RecordingTable"


class FailingRow(MappingRow):
    def get(self, name):
        raise RuntimeError("broken row")


class FailingRowCursor(RecordingCursor):
    def row(self):
        return FailingRow(self.rows[self.advanced - 1])


@pytest.fixture
def table():
    return RecordingTable(ANIMALS)


def test_select_all(table):
    result = Executor(table).execute(QueryDescription(columns=SELECT_ALL))

    assert result.to_pylist() == ANIMALS
    assert table.cursors[0].closed


def test_filters_are_combined(table):
    query = QueryDescription(
        columns=SELECT_ALL,
        filters=(FilterDesc("n_legs", ">", 2), FilterDesc("n_legs", "<", 100)),
    )

    result = Executor(table).execute(query)

    assert [r["animal"] for r in result.to_pylist()] == ["Horse", "Brittle stars"]


def test_limit_stops_the_scan(table):
    query = QueryDescription(columns=SELECT_ALL, filters=(FilterDesc("n_legs", ">", 2),), limit=1)

    result = Executor(table).execute(query)

    assert result.to_pylist() == [{"animal": "Horse", "n_legs": 4}]
    (cursor,) = table.cursors
    assert cursor.advanced == 2
    assert cursor.closed


def test_limit_larger_than_table(table):
    result = Executor(table).execute(QueryDescription(columns=SELECT_ALL, limit=100))
    assert len(result) == len(ANIMALS)


def test_no_rows_selected(table):
    query = QueryDescription(columns=SELECT_ALL, filters=(FilterDesc("animal", "=", "Unicorn"),))

    result = Executor(table).execute(query)

    assert len(result) == 0
    assert result.to_pylist() == []


def test_empty_table():
    result = Executor(RecordingTable([])).execute(QueryDescription(columns=SELECT_ALL))
    assert result.to_pylist() == []


def test_rows_with_different_fields():
    table = RowsTable([{"a": 1}, {"b": 2}, {"a": 3, "b": 4}])
    query = QueryDescription(columns=SELECT_ALL, filters=(FilterDesc("a", ">=", 1),))

    assert Executor(table).execute(query).to_pylist() == [{"a": 1}, {"a": 3, "b": 4}]


def test_matcher_policy(table):
    query = QueryDescription(columns=SELECT_ALL, filters=(FilterDesc("animal", "matches", "^[FH]"),))

    assert len(Executor(table).execute(query)) == 0
    assert len(Executor(table, matcher=regex_search).execute(query)) == 2


def test_cursor_error_is_raised(table):
    table.error = OSError("disk is gone")

    with pytest.raises(OSError, match="disk is gone"):
        Executor(table).execute(QueryDescription(columns=SELECT_ALL))
    assert table.cursors[0].closed


def test_cursor_error_is_raised_after_limit(table):
    table.error = OSError("disk is gone")

    with pytest.raises(OSError):
        Executor(table).execute(QueryDescription(columns=SELECT_ALL, limit=1))


def test_cursor_is_closed_when_rows_fail():
    class BrokenTable(RecordingTable):
        def new_cursor(self):
            cursor = FailingRowCursor(self.rows)
            self.cursors.append(cursor)
            return cursor

    table = BrokenTable(ANIMALS)
    query = QueryDescription(columns=SELECT_ALL, filters=(FilterDesc("n_legs", ">", 2),))

    with pytest.raises(RuntimeError, match="broken row"):
        Executor(table).execute(query)
    assert table.cursors[0].closed


@pytest.mark.parametrize(
    "query, message",
    [
        (QueryDescription(), "Only SELECT"),
        (QueryDescription(columns=(ColumnDesc("animal"),)), "Only SELECT"),
        (QueryDescription(columns=(ColumnDesc("*"), ColumnDesc("animal"))), "Only SELECT"),
        (QueryDescription(columns=(ColumnDesc("id", "count"),)), "count\\(id\\)"),
        (QueryDescription(columns=SELECT_ALL, group_by=(ColumnDesc("animal"),)), "GROUP BY"),
        (QueryDescription(columns=SELECT_ALL, order_by=(ColumnDesc("animal"),)), "ORDER BY"),
    ],
)
def test_unsupported_queries(table, query, message):
    with pytest.raises(UnsupportedQueryError, match=message):
        Executor(table).execute(query)
    assert table.cursors == []


def test_unsupported_operator_is_rejected_before_scan(table):
    query = QueryDescription(columns=SELECT_ALL, filters=(FilterDesc("n_legs", "~", 2),))

    with pytest.raises(UnsupportedQueryError):
        Executor(table).execute(query)
    assert table.cursors == []


def test_executions_are_independent(table):
    executor = Executor(table)
    query = QueryDescription(columns=SELECT_ALL, limit=2)

    assert executor.execute(query).to_pylist() == executor.execute(query).to_pylist()
    assert len(table.cursors) == 2


def test_result_rows_are_copies(table):
    result = Executor(table).execute(QueryDescription(columns=SELECT_ALL, limit=1))
    result.to_pylist()[0]["animal"] = "Dodo"

    assert list(result) == [MappingRow(ANIMALS[0])]
    assert ANIMALS[0]["animal"] == "Flamingo"


def test_result_to_arrow():
    result = Result([{"animal": "Horse", "n_legs": 4}, {"animal": "Flamingo", "n_legs": 2}])

    table = result.to_arrow()

    assert table.column_names == ["animal", "n_legs"]
    assert table.to_pydict() == {"animal": ["Horse", "Flamingo"], "n_legs": [4, 2]}


def test_result_str():
    assert str(Result([{"a": 1}])) == "Result(rows=1)"
    assert Result([]).to_arrow().num_rows == 0
    assert isinstance(Result([]).to_arrow(), pa.Table)


def test_invalid_regex_is_rejected_before_scan(table):
    query = QueryDescription(columns=SELECT_ALL, filters=(FilterDesc("animal", "matches", "("),))

    with pytest.raises(UnsupportedQueryError, match="Invalid regular expression"):
        Executor(table, matcher=regex_search).execute(query)
    assert table.cursors == []
