"""Parse query text into a :class:`scanql.sql.query.QueryDescription`.

Parsing happens in two steps:

1. :class:`scanql.sql.grammar.QueryGrammar` scans the text and
   records the tokens and semantic actions of the rules that matched.
2. :func:`scanql.sql.builder.build_query` replays the actions
   to build the description of the query.

Given a query like ``"SELECT * WHERE foo = 1, bar = 2.5 LIMIT 10"``
the parser produces:

>>> query = Parser("SELECT * WHERE foo = 1, bar = 2.5 LIMIT 10").parse()
>>> query.filters
(FilterDesc(column='foo', operator='=', value=1), FilterDesc(column='bar', operator='=', value=2.5))
>>> query.limit
10

Queries that don't respect the grammar raise :class:`SQLParseError`,
pointing to where the parser thinks the error is:

>>> Parser("SELECT * WHERE foo = ").parse()
Traceback (most recent call last):
    ...
scanql.sql.parser.SQLParseError: parse error near LogicExpr (line 1 column 15 - line 1 column 21): 'foo = '

``GROUP BY``, ``ORDER BY`` and aggregations like ``count(id)``
are valid syntax and are part of the description, it's up to the
consumer of the description to decide if it supports them.
"""

import logging

from .builder import build_query
from .grammar import DEFAULT_TOKEN_CAPACITY, QueryGrammar, SyntaxTree, Token, translate_positions
from .query import QueryDescription

logger = logging.getLogger(__name__)


class Parser:
    """Parser for the query language.

    A parser instance owns the scan state for its text,
    so it can't be shared between threads, but it can
    be used to parse the same text multiple times.
    """

    def __init__(self, text: str, token_capacity: int = DEFAULT_TOKEN_CAPACITY) -> None:
        """
        :param text: The query text to parse.
        :param token_capacity: Initial number of tokens the parser
                               makes room for, it grows when needed.
        """
        self.text = text
        self.grammar = QueryGrammar(text, token_capacity=token_capacity)

    def parse(self) -> QueryDescription:
        """Parse the query and return its description."""
        self._match()
        query = build_query(self.grammar.tokens, self.grammar.buffer)
        logger.debug("Parsed %r into %s", self.text, query)
        return query

    def syntax_tree(self) -> SyntaxTree:
        """Parse the query and return the tree of the rules that matched.

        Mostly useful for debugging the grammar::

            >>> parser = Parser("LIMIT 5")
            >>> print(parser.syntax_tree().pretty(parser.text))
            Query 'LIMIT 5'
              LimitExpr 'LIMIT 5'
                _ ' '
                Text '5'
                  Unsigned '5'
        """
        self._match()
        return SyntaxTree(self.grammar.tokens)

    def _match(self) -> None:
        if not self.grammar.match():
            raise SQLParseError.from_failure(self.text, self.grammar.furthest_failure)


def parse(text: str) -> QueryDescription:
    """Shortcut for ``Parser(text).parse()``."""
    return Parser(text).parse()


class SQLParseError(Exception):
    """An exception raised when the query text doesn't respect the grammar.

    Positions are ``(line, column)`` pairs,
    lines start from 1 and columns from 0.
    """

    def __init__(
        self,
        rule: str,
        begin: tuple[int, int],
        end: tuple[int, int],
        text: str,
    ) -> None:
        """
        :param rule: Name of the grammar rule that failed.
        :param begin: Where the failing text starts.
        :param end: Where the failing text ends.
        :param text: The failing text itself.
        """
        self.rule = rule
        self.begin = begin
        self.end = end
        self.text = text
        super().__init__(
            f"parse error near {rule} "
            f"(line {begin[0]} column {begin[1]} - line {end[0]} column {end[1]}): "
            f"{text!r}"
        )

    @classmethod
    def from_failure(cls, text: str, failure: Token) -> "SQLParseError":
        """Build the error for the furthest failure recorded by the grammar."""
        positions = translate_positions(text, (failure.begin, failure.end))
        return cls(
            failure.rule.value,
            positions[failure.begin],
            positions[failure.end],
            text[failure.begin : failure.end],
        )
