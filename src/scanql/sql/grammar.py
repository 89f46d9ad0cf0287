"""Grammar engine recognising the query language.

The grammar is a Parsing Expression Grammar (PEG), implemented
by hand as a backtracking recursive descent recogniser.
Each rule of the grammar is a method of :class:`QueryGrammar`
and all rules share the same scan position over the text::

    Query       <- _ ColumnExpr? _ WhereExpr? _ GroupExpr? _ OrderByExpr? _ LimitExpr? _ !.
    ColumnExpr  <- "SELECT" _ Columns
    GroupExpr   <- "GROUP BY" _ Columns
    WhereExpr   <- "WHERE" _ LogicExpr (_ COMMA? LogicExpr)*
    OrderByExpr <- "ORDER BY" _ Columns Descending?
    LimitExpr   <- "LIMIT" _ Unsigned
    Columns     <- Column (COMMA Column)*
    Column      <- ColumnAggregation / Identifier _ / "*" _
    ColumnAggregation <- Identifier LPAR Identifier RPAR
    LogicExpr   <- LPAR LogicExpr RPAR / FilterKey _ FilterCondition _ FilterValue
    FilterValue <- Float / Integer / String

Alternatives are tried in order and the first one that matches wins
(ordered choice). When an alternative fails, the scan position is
rolled back to where it was before the alternative was attempted,
so that the next alternative can start from the same place.
The grammar is small enough that re-scanning the same text
multiple times is cheap, thus no memoization is involved.

The recogniser doesn't build any tree while it scans, it records
a flat list of :class:`Token` objects instead. Each rule that matches
records the ``[begin, end)`` span of text it consumed, tagged with the
rule itself. Tokens are stored in the order the rules *started*
scanning, so a rule always comes before the rules it's made of.

Among the tokens there are also zero length *actions*, which mark the
points where something has to happen to build the query,
and ``Text`` tokens that capture the text the actions operate on.
:func:`scanql.sql.builder.build_query` consumes them to build
the final :class:`scanql.sql.query.QueryDescription`.

>>> grammar = QueryGrammar("SELECT * LIMIT 5")
>>> grammar.match()
True
>>> [t.text(grammar.buffer) for t in grammar.tokens if t.rule is Rule.TEXT]
['*', '5']

When the text doesn't match, the grammar keeps track of the furthest
non empty span that a rule attempted before failing, which is
usually the best hint about where the error is:

>>> grammar = QueryGrammar("SELECT * WHERE foo = ")
>>> grammar.match()
False
>>> grammar.furthest_failure
Token(rule=<Rule.LOGIC_EXPR: 'LogicExpr'>, begin=15, end=21)
"""

import enum
import functools
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, NamedTuple

from . import lexical

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_CAPACITY = 4096
"""How many tokens the token buffer can hold before it has to grow."""

NO_NODE = -1

Matcher = Callable[[], bool]


class Rule(enum.Enum):
    """Identity of the grammar rules, values are the names used in errors."""

    UNKNOWN = "Unknown"
    QUERY = "Query"
    COLUMN_EXPR = "ColumnExpr"
    GROUP_EXPR = "GroupExpr"
    WHERE_EXPR = "WhereExpr"
    ORDER_BY_EXPR = "OrderByExpr"
    LIMIT_EXPR = "LimitExpr"
    COLUMNS = "Columns"
    COLUMN = "Column"
    COLUMN_AGGREGATION = "ColumnAggregation"
    LOGIC_EXPR = "LogicExpr"
    OPERATOR = "Operator"
    FILTER_KEY = "FilterKey"
    FILTER_CONDITION = "FilterCondition"
    FILTER_VALUE = "FilterValue"
    DESCENDING = "Descending"
    STRING = "String"
    STRING_CHAR = "StringChar"
    ESCAPE = "Escape"
    SIMPLE_ESCAPE = "SimpleEscape"
    OCTAL_ESCAPE = "OctalEscape"
    HEX_ESCAPE = "HexEscape"
    UNIVERSAL_CHARACTER = "UniversalCharacter"
    HEX_QUAD = "HexQuad"
    HEX_DIGIT = "HexDigit"
    UNSIGNED = "Unsigned"
    SIGN = "Sign"
    INTEGER = "Integer"
    FLOAT = "Float"
    EXPONENT = "Exponent"
    IDENTIFIER = "Identifier"
    ID_CHAR = "IdChar"
    KEYWORD = "Keyword"
    SPACING = "_"
    LPAR = "LPAR"
    RPAR = "RPAR"
    COMMA = "COMMA"
    TEXT = "Text"

    # Semantic actions
    SECTION_COLUMNS = "SectionColumns"
    SECTION_GROUP_BY = "SectionGroupBy"
    SECTION_ORDER_BY = "SectionOrderBy"
    ADD_COLUMN = "AddColumn"
    SET_COLUMN_NAME = "SetColumnName"
    SET_COLUMN_AGGREGATE = "SetColumnAggregate"
    ADD_FILTER = "AddFilter"
    SET_FILTER_COLUMN = "SetFilterColumn"
    SET_FILTER_OPERATOR = "SetFilterOperator"
    SET_FILTER_VALUE_FLOAT = "SetFilterValueFloat"
    SET_FILTER_VALUE_INTEGER = "SetFilterValueInteger"
    SET_FILTER_VALUE_STRING = "SetFilterValueString"
    SET_DESCENDING = "SetDescending"
    SET_LIMIT = "SetLimit"

    @property
    def is_action(self) -> bool:
        """Actions are zero length markers for the query builder."""
        return self in ACTIONS


ACTIONS = frozenset(
    (
        Rule.SECTION_COLUMNS,
        Rule.SECTION_GROUP_BY,
        Rule.SECTION_ORDER_BY,
        Rule.ADD_COLUMN,
        Rule.SET_COLUMN_NAME,
        Rule.SET_COLUMN_AGGREGATE,
        Rule.ADD_FILTER,
        Rule.SET_FILTER_COLUMN,
        Rule.SET_FILTER_OPERATOR,
        Rule.SET_FILTER_VALUE_FLOAT,
        Rule.SET_FILTER_VALUE_INTEGER,
        Rule.SET_FILTER_VALUE_STRING,
        Rule.SET_DESCENDING,
        Rule.SET_LIMIT,
    )
)


class Token(NamedTuple):
    """A span of text ``[begin, end)`` recognised by a rule."""

    rule: Rule
    begin: int
    end: int

    def text(self, buffer: str) -> str:
        """The text the token spans in ``buffer``."""
        return buffer[self.begin : self.end]

    def contains(self, other: "Token") -> bool:
        return self.begin <= other.begin and other.end <= self.end


class TokenBuffer:
    """Flat storage for the tokens recorded while scanning.

    The buffer is preallocated with ``capacity`` slots
    and doubles its size every time it runs out of them.

    Rules reserve their slot when they start scanning and
    fill it only when they match, that's what keeps the tokens
    sorted by the position where each rule started.
    When a rule fails, the buffer is truncated back to the
    reserved slot, discarding everything recorded meanwhile.
    """

    def __init__(self, capacity: int = DEFAULT_TOKEN_CAPACITY) -> None:
        """
        :param capacity: How many tokens to preallocate space for.
        """
        self._slots: list[Token | None] = [None] * max(capacity, 1)
        self._count = 0

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[Token]:
        for index in range(self._count):
            yield self._slots[index]

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def reserve(self) -> int:
        """Reserve the next slot and return its index."""
        if self._count >= len(self._slots):
            self._slots.extend([None] * len(self._slots))
        index = self._count
        self._count += 1
        return index

    def put(self, index: int, token: Token) -> None:
        self._slots[index] = token

    def append(self, token: Token) -> None:
        self.put(self.reserve(), token)

    def truncate(self, length: int) -> None:
        """Forget all tokens after the first ``length`` ones."""
        for index in range(length, self._count):
            self._slots[index] = None
        self._count = length


def rule(identity: Rule) -> Callable:
    """Turn a method of :class:`QueryGrammar` into a grammar rule.

    The decorated method only has to tell if the text at the
    current position matches. The decorator takes care of
    recording the token for the rule when it matches, and
    of rolling back the scan when it doesn't.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(self: "QueryGrammar") -> bool:
            begin, index = self.position, self.tokens.reserve()
            outer_reach, self._reach = self._reach, begin
            try:
                if func(self):
                    self.tokens.put(index, Token(identity, begin, self.position))
                    return True
                self._record_failure(identity, begin)
                self.position = begin
                self.tokens.truncate(index)
                return False
            finally:
                self._reach = max(outer_reach, self._reach)

        return wrapper

    return decorator


class QueryGrammar:
    """Recogniser for the query language.

    The grammar owns the scan state, so each text to parse
    needs its own instance. Call :meth:`match` to scan the whole
    text, it can be invoked multiple times as the state is
    reset every time.

    On success :attr:`tokens` contains the recorded tokens,
    on failure :attr:`furthest_failure` points to the span
    that is most likely to be wrong.
    """

    def __init__(self, text: str, token_capacity: int = DEFAULT_TOKEN_CAPACITY) -> None:
        """
        :param text: The query text to recognise.
        :param token_capacity: Initial size of the token buffer.
        """
        self.text = text
        self.token_capacity = token_capacity
        self.reset()

    def reset(self) -> None:
        """Restart scanning from the beginning of the text."""
        buffer = self.text
        if not buffer or buffer[-1] != lexical.END_OF_INPUT:
            buffer += lexical.END_OF_INPUT
        self.buffer = buffer
        self.position = 0
        self.tokens = TokenBuffer(self.token_capacity)
        self.furthest_failure = Token(Rule.UNKNOWN, 0, 0)
        self._reach = 0

    def match(self) -> bool:
        """Check that the whole text is a valid query."""
        self.reset()
        matched = self.query()
        if not matched:
            logger.debug("Query %r failed to match, furthest failure %s", self.text, self.furthest_failure)
        return matched

    def _record_failure(self, identity: Rule, begin: int) -> None:
        """Remember the failed rule if it got further than any previous one.

        The span of a failed rule goes from where it started
        to the furthest position it reached before failing.
        """
        end = self._reach
        if begin != end and end > self.furthest_failure.end:
            self.furthest_failure = Token(identity, begin, end)

    # Primitive matchers, they move forward the scan position only when they match.

    def _match_class(self, predicate: Callable[[str], bool]) -> bool:
        if predicate(self.buffer[self.position]):
            self.position += 1
            self._reach = max(self._reach, self.position)
            return True
        return False

    def _match_literal(self, literal: str, ignore_case: bool = False) -> bool:
        end = self.position + len(literal)
        candidate = self.buffer[self.position : end]
        if ignore_case:
            candidate = candidate.lower()
        if candidate == literal:
            self.position = end
            self._reach = max(self._reach, end)
            return True
        return False

    def _match_any(self) -> bool:
        return self._match_class(lambda c: c != lexical.END_OF_INPUT)

    # Combinators, they roll back position and tokens of failed attempts.

    def _attempt(self, matcher: Matcher) -> bool:
        position, count = self.position, len(self.tokens)
        if matcher():
            return True
        self.position = position
        self.tokens.truncate(count)
        return False

    def _choice(self, *alternatives: Matcher) -> bool:
        return any(self._attempt(alternative) for alternative in alternatives)

    def _optional(self, matcher: Matcher) -> bool:
        self._attempt(matcher)
        return True

    def _zero_or_more(self, matcher: Matcher) -> bool:
        while True:
            position = self.position
            if not self._attempt(matcher) or self.position == position:
                return True

    def _one_or_more(self, matcher: Matcher) -> bool:
        return self._attempt(matcher) and self._zero_or_more(matcher)

    def _not(self, matcher: Matcher) -> bool:
        """Negative lookahead, never consumes any input.

        Whatever happens inside the lookahead doesn't count
        as progress when reporting errors.
        """
        position, count = self.position, len(self.tokens)
        reach, failure = self._reach, self.furthest_failure
        matched = matcher()
        self.position = position
        self.tokens.truncate(count)
        self._reach, self.furthest_failure = reach, failure
        return not matched

    def _capture(self, matcher: Matcher) -> bool:
        """Record the text consumed by ``matcher`` as a ``Text`` token."""
        begin, index = self.position, self.tokens.reserve()
        if matcher():
            self.tokens.put(index, Token(Rule.TEXT, begin, self.position))
            return True
        self.position = begin
        self.tokens.truncate(index)
        return False

    def _action(self, action: Rule) -> bool:
        self.tokens.append(Token(action, self.position, self.position))
        return True

    def _keyword_literal(self, word: str) -> Matcher:
        return functools.partial(self._match_literal, word, ignore_case=True)

    # Grammar rules

    @rule(Rule.QUERY)
    def query(self) -> bool:
        return (
            self.spacing()
            and self._optional(self.column_expr)
            and self.spacing()
            and self._optional(self.where_expr)
            and self.spacing()
            and self._optional(self.group_expr)
            and self.spacing()
            and self._optional(self.order_by_expr)
            and self.spacing()
            and self._optional(self.limit_expr)
            and self.spacing()
            and self._not(self._match_any)
        )

    @rule(Rule.COLUMN_EXPR)
    def column_expr(self) -> bool:
        return (
            self._match_literal("select", ignore_case=True)
            and self.spacing()
            and self._action(Rule.SECTION_COLUMNS)
            and self.columns()
        )

    @rule(Rule.GROUP_EXPR)
    def group_expr(self) -> bool:
        return (
            self._match_literal("group by", ignore_case=True)
            and self.spacing()
            and self._action(Rule.SECTION_GROUP_BY)
            and self.columns()
        )

    @rule(Rule.WHERE_EXPR)
    def where_expr(self) -> bool:
        return (
            self._match_literal("where", ignore_case=True)
            and self.spacing()
            and self.logic_expr()
            and self._zero_or_more(
                lambda: self.spacing()
                and self._optional(self.comma)
                and self.logic_expr()
            )
        )

    @rule(Rule.ORDER_BY_EXPR)
    def order_by_expr(self) -> bool:
        return (
            self._match_literal("order by", ignore_case=True)
            and self.spacing()
            and self._action(Rule.SECTION_ORDER_BY)
            and self.columns()
            and self._optional(self.descending)
        )

    @rule(Rule.LIMIT_EXPR)
    def limit_expr(self) -> bool:
        return (
            self._match_literal("limit", ignore_case=True)
            and self.spacing()
            and self._capture(self.unsigned)
            and self._action(Rule.SET_LIMIT)
        )

    @rule(Rule.COLUMNS)
    def columns(self) -> bool:
        return self.column() and self._zero_or_more(
            lambda: self.comma() and self.column()
        )

    @rule(Rule.COLUMN)
    def column(self) -> bool:
        return self._action(Rule.ADD_COLUMN) and self._choice(
            self.column_aggregation,
            lambda: self._capture(self.identifier)
            and self.spacing()
            and self._action(Rule.SET_COLUMN_NAME),
            lambda: self._capture(lambda: self._match_literal("*"))
            and self.spacing()
            and self._action(Rule.SET_COLUMN_NAME),
        )

    @rule(Rule.COLUMN_AGGREGATION)
    def column_aggregation(self) -> bool:
        """``count(id)`` aggregates column ``id`` with function ``count``."""
        return (
            self._capture(self.identifier)
            and self._action(Rule.SET_COLUMN_AGGREGATE)
            and self.lpar()
            and self._capture(self.identifier)
            and self.rpar()
            and self._action(Rule.SET_COLUMN_NAME)
        )

    @rule(Rule.LOGIC_EXPR)
    def logic_expr(self) -> bool:
        """``LPAR LogicExpr RPAR / Filter``.

        Nesting is unrolled into a loop, so any number of parenthesis
        can be matched without growing the interpreter stack.
        Every open parenthesis reserves the slot of the ``LogicExpr``
        it contains, the recorded tokens and failures are the same
        that matching the rule recursively would produce.
        """
        nested: list[tuple[int, int]] = []
        while self.lpar():
            nested.append((self.tokens.reserve(), self.position))

        matched = self._filter()
        while matched and nested:
            index, begin = nested.pop()
            self.tokens.put(index, Token(Rule.LOGIC_EXPR, begin, self.position))
            matched = self.rpar()

        # Unclosed levels failed, innermost first.
        for _, begin in reversed(nested):
            self._record_failure(Rule.LOGIC_EXPR, begin)
        return matched

    def _filter(self) -> bool:
        return (
            self._action(Rule.ADD_FILTER)
            and self.filter_key()
            and self.spacing()
            and self.filter_condition()
            and self.spacing()
            and self.filter_value()
        )

    @rule(Rule.OPERATOR)
    def operator(self) -> bool:
        return self._choice(*(self._keyword_literal(op) for op in lexical.OPERATORS))

    @rule(Rule.FILTER_KEY)
    def filter_key(self) -> bool:
        return self._capture(self.identifier) and self._action(Rule.SET_FILTER_COLUMN)

    @rule(Rule.FILTER_CONDITION)
    def filter_condition(self) -> bool:
        return self._capture(self.operator) and self._action(Rule.SET_FILTER_OPERATOR)

    @rule(Rule.FILTER_VALUE)
    def filter_value(self) -> bool:
        """The literal syntax decides the type of the value.

        Floats are tried first, as any float starts like an integer.
        """
        return self._choice(
            lambda: self._capture(self.float_number)
            and self._action(Rule.SET_FILTER_VALUE_FLOAT),
            lambda: self._capture(self.integer)
            and self._action(Rule.SET_FILTER_VALUE_INTEGER),
            lambda: self._capture(self.string)
            and self._action(Rule.SET_FILTER_VALUE_STRING),
        )

    @rule(Rule.DESCENDING)
    def descending(self) -> bool:
        return self._match_literal("desc", ignore_case=True) and self._action(
            Rule.SET_DESCENDING
        )

    @rule(Rule.STRING)
    def string(self) -> bool:
        """One or more adjacent double quoted segments."""
        return self._one_or_more(
            lambda: self._match_literal(lexical.QUOTE)
            and self._zero_or_more(self.string_char)
            and self._match_literal(lexical.QUOTE)
        )

    @rule(Rule.STRING_CHAR)
    def string_char(self) -> bool:
        return self._choice(
            self.escape,
            lambda: self._match_class(
                lambda c: c not in (lexical.QUOTE, "\n", lexical.ESCAPE, lexical.END_OF_INPUT)
            ),
        )

    @rule(Rule.ESCAPE)
    def escape(self) -> bool:
        return self._choice(
            self.simple_escape,
            self.octal_escape,
            self.hex_escape,
            self.universal_character,
        )

    @rule(Rule.SIMPLE_ESCAPE)
    def simple_escape(self) -> bool:
        return self._match_literal(lexical.ESCAPE) and self._match_class(
            lambda c: c in lexical.SIMPLE_ESCAPES
        )

    @rule(Rule.OCTAL_ESCAPE)
    def octal_escape(self) -> bool:
        return (
            self._match_literal(lexical.ESCAPE)
            and self._match_class(lexical.is_octal_digit)
            and self._optional(lambda: self._match_class(lexical.is_octal_digit))
            and self._optional(lambda: self._match_class(lexical.is_octal_digit))
        )

    @rule(Rule.HEX_ESCAPE)
    def hex_escape(self) -> bool:
        return self._match_literal(lexical.ESCAPE + "x") and self._one_or_more(
            self.hex_digit
        )

    @rule(Rule.UNIVERSAL_CHARACTER)
    def universal_character(self) -> bool:
        return self._choice(
            lambda: self._match_literal(lexical.ESCAPE + "u") and self.hex_quad(),
            lambda: self._match_literal(lexical.ESCAPE + "U")
            and self.hex_quad()
            and self.hex_quad(),
        )

    @rule(Rule.HEX_QUAD)
    def hex_quad(self) -> bool:
        return all(self.hex_digit() for _ in range(4))

    @rule(Rule.HEX_DIGIT)
    def hex_digit(self) -> bool:
        return self._match_class(lexical.is_hex_digit)

    @rule(Rule.UNSIGNED)
    def unsigned(self) -> bool:
        return self._one_or_more(lambda: self._match_class(lexical.is_digit))

    @rule(Rule.SIGN)
    def sign(self) -> bool:
        return self._match_class(lexical.is_sign)

    @rule(Rule.INTEGER)
    def integer(self) -> bool:
        return self._optional(self.sign) and self.unsigned()

    @rule(Rule.FLOAT)
    def float_number(self) -> bool:
        """An integer followed by a fractional part, an exponent or both."""
        return self.integer() and self._choice(
            lambda: self._match_literal(".")
            and self.unsigned()
            and self._optional(self.exponent),
            self.exponent,
        )

    @rule(Rule.EXPONENT)
    def exponent(self) -> bool:
        return self._match_class(lambda c: c in ("e", "E")) and self.integer()

    @rule(Rule.IDENTIFIER)
    def identifier(self) -> bool:
        return (
            self._not(self.keyword)
            and self._match_class(lexical.is_ident_start)
            and self._zero_or_more(self.id_char)
        )

    @rule(Rule.ID_CHAR)
    def id_char(self) -> bool:
        return self._match_class(lexical.is_ident_char)

    @rule(Rule.KEYWORD)
    def keyword(self) -> bool:
        return self._choice(
            *(self._keyword_literal(word) for word in lexical.KEYWORDS)
        ) and self._not(self.id_char)

    @rule(Rule.SPACING)
    def spacing(self) -> bool:
        return self._zero_or_more(
            lambda: self._choice(
                *(functools.partial(self._match_literal, s) for s in lexical.SPACES)
            )
        )

    @rule(Rule.LPAR)
    def lpar(self) -> bool:
        return self.spacing() and self._match_literal("(") and self.spacing()

    @rule(Rule.RPAR)
    def rpar(self) -> bool:
        return self.spacing() and self._match_literal(")") and self.spacing()

    @rule(Rule.COMMA)
    def comma(self) -> bool:
        return self.spacing() and self._match_literal(",") and self.spacing()


def translate_positions(text: str, offsets: Iterable[int]) -> dict[int, tuple[int, int]]:
    """Map absolute offsets in ``text`` to ``(line, column)`` pairs.

    Lines are counted from 1, columns from 0 and restart
    after every newline. The text is scanned only once
    no matter how many offsets are translated.
    Offsets past the end of the text map to the end of the text.

    >>> translate_positions("SELECT *\\nWHERE", [0, 7, 9, 14])
    {0: (1, 0), 7: (1, 7), 9: (2, 0), 14: (2, 5)}
    """
    wanted = sorted(set(offsets))
    translations = {}
    line, column, pending = 1, 0, 0
    for offset, c in enumerate(text):
        while pending < len(wanted) and wanted[pending] == offset:
            translations[offset] = (line, column)
            pending += 1
        if pending == len(wanted):
            break
        if c == "\n":
            line, column = line + 1, 0
        else:
            column += 1
    for offset in wanted[pending:]:
        translations[offset] = (line, column)
    return translations


@dataclass
class Node:
    """A node of a :class:`SyntaxTree`, children are referenced by index."""

    token: Token
    first_child: int = NO_NODE
    next_sibling: int = NO_NODE


class SyntaxTree:
    """Tree view over the flat list of tokens.

    The tokens are sorted by where each rule started scanning,
    so a token that spans inside the previous one is one of its children.
    The tree is rebuilt with a stack, every token pops the
    stack until it finds the token that contains it.

    All nodes live in the flat :attr:`nodes` list and reference
    each other by index. Zero length tokens are not part of the tree.

    >>> grammar = QueryGrammar("SELECT *")
    >>> grammar.match()
    True
    >>> print(SyntaxTree(grammar.tokens).pretty(grammar.buffer))
    Query 'SELECT *'
      ColumnExpr 'SELECT *'
        _ ' '
        Columns '*'
          Column '*'
            Text '*'
    """

    def __init__(self, tokens: Iterable[Token]) -> None:
        """
        :param tokens: Tokens recorded by :class:`QueryGrammar`, in scan order.
        """
        self.nodes: list[Node] = []
        self.root = NO_NODE

        stack: list[int] = []
        last_child: dict[int, int] = {}
        last_root = NO_NODE
        for token in tokens:
            if token.begin == token.end:
                continue
            index = len(self.nodes)
            self.nodes.append(Node(token))
            while stack and not self.nodes[stack[-1]].token.contains(token):
                stack.pop()
            if stack:
                parent = stack[-1]
                previous = last_child.get(parent, NO_NODE)
                if previous == NO_NODE:
                    self.nodes[parent].first_child = index
                else:
                    self.nodes[previous].next_sibling = index
                last_child[parent] = index
            else:
                if last_root == NO_NODE:
                    self.root = index
                else:
                    self.nodes[last_root].next_sibling = index
                last_root = index
            stack.append(index)

    def children(self, index: int) -> Iterator[int]:
        """Indexes of the children of the node at ``index``."""
        child = self.nodes[index].first_child
        while child != NO_NODE:
            yield child
            child = self.nodes[child].next_sibling

    def walk(self) -> Iterator[tuple[int, Node]]:
        """Depth first traversal yielding ``(depth, node)``."""
        pending = []
        index = self.root
        while index != NO_NODE:
            pending.append((0, index))
            index = self.nodes[index].next_sibling
        pending.reverse()
        while pending:
            depth, index = pending.pop()
            yield depth, self.nodes[index]
            pending.extend((depth + 1, child) for child in reversed(list(self.children(index))))

    def pretty(self, buffer: str) -> str:
        """Render the tree as indented ``Rule 'text'`` lines."""
        return "\n".join(
            f"{'  ' * depth}{node.token.rule.value} {node.token.text(buffer)!r}"
            for depth, node in self.walk()
        )
