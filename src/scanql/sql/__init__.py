"""Support for parsing the query language.

The query language is a small subset of SQL, designed to express
filtered scans of a table as text::

    SELECT * WHERE age >= 18, name matches "Jo" LIMIT 10

A query is made of optional clauses that must appear in this order:

- ``SELECT`` followed by the columns, ``*`` or aggregations like ``count(id)``
- ``WHERE`` followed by filters, separated by commas or spaces,
  each filter is ``column operator value`` and can be wrapped in parenthesis.
  Supported operators are ``= != < <= > >= matches``.
- ``GROUP BY`` followed by the columns
- ``ORDER BY`` followed by the columns and optionally ``DESC``
- ``LIMIT`` followed by a number

Keywords are case insensitive, column names and strings are not.

The parsing is done by three major components:

1. The :class:`scanql.sql.grammar.QueryGrammar`, a backtracking recursive
   descent recogniser that scans the text and records what it found
   as a flat list of tokens.
2. The :func:`scanql.sql.builder.build_query` function, which applies the semantic
   actions found in the tokens to build the description of the query.
3. The :class:`scanql.sql.parser.Parser`, that combines them.

To parse a query you would typically do::

    query = Parser("SELECT * WHERE id > 2").parse()

The resulting :class:`scanql.sql.query.QueryDescription` can then be executed
by :class:`scanql.compute.Executor`.
"""

from .grammar import SyntaxTree
from .parser import Parser, SQLParseError, parse
from .query import ColumnDesc, FilterDesc, QueryDescription

__all__ = (
    "Parser",
    "parse",
    "SQLParseError",
    "QueryDescription",
    "ColumnDesc",
    "FilterDesc",
    "SyntaxTree",
)
