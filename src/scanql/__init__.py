"""scanql

Filtered scans of tables expressed as text queries.

scanql targets storage systems that are not relational databases,
but still want to allow ad-hoc queries on their data like::

    SELECT * WHERE age >= 18, name matches "Jo" LIMIT 10

The library is constituted by two components, each isolated
within its own package and each self documented:

* The SQL parser (:mod:`scanql.sql`), which converts the text of
  a query into a :class:`scanql.sql.QueryDescription`.
* The Compute Engine (:mod:`scanql.compute`), which executes the
  described query against any table providing rows through cursors.

Combining them looks like::

    query = scanql.sql.parse("SELECT * WHERE id > 2")
    result = scanql.compute.Executor(table).execute(query)
"""

from . import compute, sql

__all__ = ("compute", "sql")
