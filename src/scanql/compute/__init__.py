"""The scanql Compute Engine

The compute engine executes a :class:`scanql.sql.query.QueryDescription`
against a table, producing the rows that the query selects.

The engine doesn't know anything about how data is stored,
it reads the rows through the :class:`Table`, :class:`Cursor`
and :class:`Row` interfaces. Any source of data implementing
them can be queried.

The execution is a single linear scan of the table:

1. The query is validated, only ``SELECT *`` queries with optional
   filters and limit are supported.
2. A new cursor is opened on the table.
3. Each row is checked against all the filters,
   the rows satisfying them are copied into the result.
4. The scan stops when the cursor is exhausted or the limit is reached.
5. If the cursor reports an error, the error is raised
   and the rows collected so far are discarded.

>>> from scanql.sql import parse
>>> from scanql.compute import Executor, RowsTable
>>> table = RowsTable([
...     {"animal": "Flamingo", "n_legs": 2},
...     {"animal": "Horse", "n_legs": 4},
...     {"animal": "Brittle stars", "n_legs": 5},
...     {"animal": "Centipede", "n_legs": 100},
... ])
>>> # Animals with at least 5 legs
>>> result = Executor(table).execute(parse("SELECT * WHERE n_legs >= 5"))
>>> for row in result.to_pylist():
...     print(row)
{'animal': 'Brittle stars', 'n_legs': 5}
{'animal': 'Centipede', 'n_legs': 100}
"""

from .base import Cursor, MappingRow, Row, Table, UnsupportedQueryError
from .datasources import CSVTable, ParquetTable, PyArrowTable, RowsTable
from .executor import Executor, Result
from .filtering import contains, regex_search

__all__ = (
    "Executor",
    "Result",
    "UnsupportedQueryError",
    "Table",
    "Cursor",
    "Row",
    "MappingRow",
    "RowsTable",
    "PyArrowTable",
    "CSVTable",
    "ParquetTable",
    "contains",
    "regex_search",
)
