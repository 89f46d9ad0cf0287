"""Structured description of a parsed query.

The parser doesn't produce a generic syntax tree,
it directly produces a :class:`QueryDescription`, which
describes what the query asks for::

    SELECT * WHERE age >= 18, name matches "Jo" LIMIT 10

is described as::

    QueryDescription(
        columns=(ColumnDesc(name="*"),),
        filters=(
            FilterDesc(column="age", operator=">=", value=18),
            FilterDesc(column="name", operator="matches", value="Jo"),
        ),
        limit=10,
    )

Descriptions are immutable, they can be rendered to plain
dictionaries or JSON for logging and debugging purposes,
fields that are empty are omitted:

>>> print(QueryDescription(columns=(ColumnDesc("*"),), limit=10))
{"columns": [{"name": "*"}], "limit": 10}
"""

import json
from dataclasses import dataclass

FilterValue = float | int | str


@dataclass(frozen=True)
class ColumnDesc:
    """A column of the query, optionally wrapped in an aggregation function.

    ``count(id)`` is described as ``ColumnDesc(name="id", aggregate="count")``.
    """

    name: str = ""
    aggregate: str = ""

    def to_dict(self) -> dict:
        d = {"name": self.name}
        if self.aggregate:
            d["aggregate"] = self.aggregate
        return d


@dataclass(frozen=True)
class FilterDesc:
    """A ``column operator value`` predicate.

    The type of the value depends on how it was written in the query:
    ``1.5`` and ``1e3`` are floats, ``15`` is an integer
    and ``"15"`` is a string.
    """

    column: str = ""
    operator: str = ""
    value: FilterValue | None = None

    def to_dict(self) -> dict:
        return {"column": self.column, "operator": self.operator, "value": self.value}


@dataclass(frozen=True)
class QueryDescription:
    """Everything a query asks for.

    All filters must be satisfied by a row for it to be part
    of the result. A ``limit`` of ``0`` means no limit.
    """

    columns: tuple[ColumnDesc, ...] = ()
    group_by: tuple[ColumnDesc, ...] = ()
    filters: tuple[FilterDesc, ...] = ()
    order_by: tuple[ColumnDesc, ...] = ()
    descending: bool = False
    limit: int = 0

    def to_dict(self) -> dict:
        """Dictionary representation of the query, omitting empty fields."""
        d = {}
        if self.columns:
            d["columns"] = [c.to_dict() for c in self.columns]
        if self.group_by:
            d["group_by"] = [c.to_dict() for c in self.group_by]
        if self.filters:
            d["filters"] = [f.to_dict() for f in self.filters]
        if self.order_by:
            d["order_by"] = [c.to_dict() for c in self.order_by]
        if self.descending:
            d["descending"] = self.descending
        if self.limit:
            d["limit"] = self.limit
        return d

    def __str__(self) -> str:
        return json.dumps(self.to_dict())
