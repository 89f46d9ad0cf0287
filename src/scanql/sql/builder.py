"""Build a :class:`scanql.sql.query.QueryDescription` out of the grammar tokens.

The grammar records semantic actions as zero length tokens,
each preceded by the ``Text`` token the action has to operate on.
:func:`build_query` walks the tokens once from left to right,
remembering the last captured text and applying each action
as it meets it.

Actions don't keep any state of their own, they all receive
the :class:`BuildState` of the query being built together with
the captured text, and apply their effect to it::

    state = BuildState()
    enter_section(state, Section.COLUMNS)
    add_column(state, "")
    set_column_name(state, "*")
    state.build()  # QueryDescription(columns=(ColumnDesc("*"),))

Columns are used in three different places, the ``SELECT``
projections, ``GROUP BY`` and ``ORDER BY``. The grammar rules
for columns are the same in all three cases, so the state tracks
in which :class:`Section` of the query the scan currently is to know
which list of columns an action has to modify.

Actions that modify a column or a filter always modify the last
one that was added, which is the one the grammar is recognising.
"""

import enum
from dataclasses import dataclass, field, replace
from typing import Callable, Iterable

from . import lexical
from .grammar import Rule, Token
from .query import ColumnDesc, FilterDesc, QueryDescription


class Section(enum.Enum):
    """Part of the query that column actions apply to."""

    COLUMNS = "columns"
    GROUP_BY = "group by"
    ORDER_BY = "order by"


@dataclass
class BuildState:
    """What the actions collected so far.

    Until a section is entered, column actions do nothing.
    """

    section: Section | None = None
    columns: dict[Section, list[ColumnDesc]] = field(
        default_factory=lambda: {s: [] for s in Section}
    )
    filters: list[FilterDesc] = field(default_factory=list)
    descending: bool = False
    limit: int = 0

    def build(self) -> QueryDescription:
        return QueryDescription(
            columns=tuple(self.columns[Section.COLUMNS]),
            group_by=tuple(self.columns[Section.GROUP_BY]),
            filters=tuple(self.filters),
            order_by=tuple(self.columns[Section.ORDER_BY]),
            descending=self.descending,
            limit=self.limit,
        )


Handler = Callable[[BuildState, str], None]


def build_query(tokens: Iterable[Token], buffer: str) -> QueryDescription:
    """Execute the actions found in ``tokens`` and describe the query.

    Actions never fail, in the worst case they do nothing.
    Numbers that can't be parsed become ``0``, but the grammar
    already guarantees that they are well formed.

    :param tokens: The tokens recorded by the grammar, in scan order.
    :param buffer: The text the tokens refer to.
    """
    state = BuildState()
    text = ""
    for token in tokens:
        if token.rule is Rule.TEXT:
            text = token.text(buffer)
        elif token.rule.is_action:
            HANDLERS[token.rule](state, text)
    return state.build()


def enter_section(state: BuildState, section: Section) -> None:
    state.section = section


def add_column(state: BuildState, text: str) -> None:
    if state.section is not None:
        state.columns[state.section].append(ColumnDesc())


def set_column_name(state: BuildState, name: str) -> None:
    _update_last_column(state, name=name)


def set_column_aggregate(state: BuildState, aggregate: str) -> None:
    _update_last_column(state, aggregate=aggregate)


def add_filter(state: BuildState, text: str) -> None:
    state.filters.append(FilterDesc())


def set_filter_column(state: BuildState, column: str) -> None:
    _update_last_filter(state, column=column)


def set_filter_operator(state: BuildState, operator: str) -> None:
    """Operators are stored lowercase, ``MATCHES`` is the same as ``matches``."""
    _update_last_filter(state, operator=operator.lower())


def set_filter_value_float(state: BuildState, text: str) -> None:
    try:
        value = float(text)
    except ValueError:
        value = 0.0
    _update_last_filter(state, value=value)


def set_filter_value_integer(state: BuildState, text: str) -> None:
    _update_last_filter(state, value=_parse_int(text))


def set_filter_value_string(state: BuildState, text: str) -> None:
    """Strip the quotes, escape sequences are kept as they were written."""
    _update_last_filter(state, value=lexical.join_string_segments(text))


def set_descending(state: BuildState, text: str) -> None:
    state.descending = True


def set_limit(state: BuildState, text: str) -> None:
    state.limit = _parse_int(text)


HANDLERS: dict[Rule, Handler] = {
    Rule.SECTION_COLUMNS: lambda state, text: enter_section(state, Section.COLUMNS),
    Rule.SECTION_GROUP_BY: lambda state, text: enter_section(state, Section.GROUP_BY),
    Rule.SECTION_ORDER_BY: lambda state, text: enter_section(state, Section.ORDER_BY),
    Rule.ADD_COLUMN: add_column,
    Rule.SET_COLUMN_NAME: set_column_name,
    Rule.SET_COLUMN_AGGREGATE: set_column_aggregate,
    Rule.ADD_FILTER: add_filter,
    Rule.SET_FILTER_COLUMN: set_filter_column,
    Rule.SET_FILTER_OPERATOR: set_filter_operator,
    Rule.SET_FILTER_VALUE_FLOAT: set_filter_value_float,
    Rule.SET_FILTER_VALUE_INTEGER: set_filter_value_integer,
    Rule.SET_FILTER_VALUE_STRING: set_filter_value_string,
    Rule.SET_DESCENDING: set_descending,
    Rule.SET_LIMIT: set_limit,
}
"""The function implementing each semantic action of the grammar."""


def _update_last_column(state: BuildState, **changes: str) -> None:
    if state.section is None:
        return
    columns = state.columns[state.section]
    if columns:
        columns[-1] = replace(columns[-1], **changes)


def _update_last_filter(state: BuildState, **changes) -> None:
    if state.filters:
        state.filters[-1] = replace(state.filters[-1], **changes)


def _parse_int(text: str) -> int:
    try:
        return int(text, 10)
    except ValueError:
        return 0
