"""Execution of parsed queries against a table.

The :class:`Executor` scans the rows of a :class:`scanql.compute.base.Table`
and keeps those satisfying all the filters of the query,
until the limit of the query is reached:

>>> from scanql.sql import parse
>>> from scanql.compute.datasources import RowsTable
>>> table = RowsTable([{"id": 1}, {"id": 2}, {"id": 3}, {"id": 4}])
>>> Executor(table).execute(parse("SELECT * WHERE id > 1 LIMIT 2")).to_pylist()
[{'id': 2}, {'id': 3}]

Only plain ``SELECT *`` queries, optionally filtered and limited,
can be executed. Queries asking for specific columns, aggregations,
``GROUP BY`` or ``ORDER BY`` are rejected with
:class:`scanql.compute.base.UnsupportedQueryError` before
any row is read.
"""

import logging
from typing import Any, Iterator

import pyarrow as pa

from ..sql.query import ColumnDesc, QueryDescription
from .base import Cursor, MappingRow, Row, Table, UnsupportedQueryError
from .filtering import Matcher, Predicate, build_predicate, contains

logger = logging.getLogger(__name__)

SELECT_ALL = (ColumnDesc("*"),)


class Result:
    """The rows produced by a query.

    Rows are copied out of the table while scanning,
    so they don't depend on the table or cursor anymore.
    """

    def __init__(self, rows: list[dict[str, Any]]) -> None:
        """
        :param rows: The values of each row of the result.
        """
        self._rows = rows

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[Row]:
        return iter(self.rows())

    def __str__(self) -> str:
        return f"Result(rows={len(self._rows)})"

    def rows(self) -> list[Row]:
        """The rows of the result."""
        return [MappingRow(values) for values in self._rows]

    def to_pylist(self) -> list[dict[str, Any]]:
        """The rows of the result as plain dictionaries."""
        return [dict(values) for values in self._rows]

    def to_arrow(self) -> pa.Table:
        """Collect the rows of the result into a :class:`pyarrow.Table`."""
        return pa.Table.from_pylist(self.to_pylist())


class Executor:
    """Execute queries on a table.

    The executor doesn't hold any state between executions,
    each execution opens its own cursor on the table.
    Reading rows blocks the caller as long as the
    cursor takes to provide them.
    """

    def __init__(self, table: Table, matcher: Matcher = contains) -> None:
        """
        :param table: The table queries will read from.
        :param matcher: How the ``matches`` operator compares values,
                        see :mod:`scanql.compute.filtering`.
        """
        self.table = table
        self.matcher = matcher

    def __str__(self) -> str:
        return f"Executor(table={self.table})"

    def execute(self, query: QueryDescription) -> Result:
        """Run the query and collect the rows it selects.

        Any error reported by the table or by its cursor is raised
        as is, and the rows read until then are discarded.
        """
        self.validate(query)
        predicates = [build_predicate(f, self.matcher) for f in query.filters]

        cursor = self.table.new_cursor()
        try:
            rows = self._scan(cursor, predicates, query.limit)
            error = cursor.err()
        finally:
            cursor.close()

        if error is not None:
            logger.debug("Cursor on %s failed: %r", self.table, error)
            raise error
        return Result(rows)

    @staticmethod
    def validate(query: QueryDescription) -> None:
        """Check that the query is one the executor is able to run."""
        if query.group_by:
            raise UnsupportedQueryError("GROUP BY is not supported")
        if query.order_by:
            raise UnsupportedQueryError("ORDER BY is not supported")
        aggregated = [c for c in query.columns if c.aggregate]
        if aggregated:
            raise UnsupportedQueryError(
                f"Aggregations are not supported: {aggregated[0].aggregate}({aggregated[0].name})"
            )
        if query.columns != SELECT_ALL:
            raise UnsupportedQueryError("Only SELECT * queries are supported")

    def _scan(self, cursor: Cursor, predicates: list[Predicate], limit: int) -> list[dict[str, Any]]:
        """Read rows from the cursor until it's exhausted or the limit is reached.

        The cursor is never advanced past the last row that
        fulfilled the limit.
        """
        rows = []
        scanned = 0
        while cursor.next():
            scanned += 1
            row = cursor.row()
            if not all(predicate(row) for predicate in predicates):
                continue

            values = {}
            for field in row.fields():
                values[field], _ = row.get(field)
            rows.append(values)
            if limit > 0 and len(rows) >= limit:
                break

        logger.debug("Scanned %d rows of %s, %d selected", scanned, self.table, len(rows))
        return rows
