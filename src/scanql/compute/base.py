"""Base classes and interfaces for the compute engine.

The engine doesn't know how data is stored, it reads rows
from any :class:`Table` through the cursors the table provides.
Implementing a new row source requires implementing the three
interfaces defined here.

For example a table serving rows from a list of dictionaries
can be implemented as::

    class ListTable(Table):
        def __init__(self, rows):
            self.rows = rows

        def new_cursor(self):
            return ListCursor(self.rows)

        def __str__(self):
            return f"ListTable(rows={len(self.rows)})"

    class ListCursor(Cursor):
        def __init__(self, rows):
            self.rows = rows
            self.idx = -1

        def next(self):
            self.idx += 1
            return self.idx < len(self.rows)

        def row(self):
            return MappingRow(self.rows[self.idx])

        def err(self):
            return None

See :mod:`scanql.compute.datasources` for ready made tables.
"""

import abc
from typing import Any, Mapping


class Row(abc.ABC):
    """A row of data, made of named fields."""

    @abc.abstractmethod
    def fields(self) -> list[str]:
        """Names of the fields available in the row."""
        ...

    @abc.abstractmethod
    def get(self, name: str) -> tuple[Any, bool]:
        """Get the value of a field.

        Returns a ``(value, present)`` tuple, when the field
        is not part of the row ``present`` is ``False``.
        """
        ...


class Cursor(abc.ABC):
    """Stateful iterator over the rows of a table.

    The cursor starts before the first row, :meth:`next`
    has to be called to move to the first row.
    """

    @abc.abstractmethod
    def next(self) -> bool:
        """Move to the next row, returns ``False`` when there are no more rows."""
        ...

    @abc.abstractmethod
    def row(self) -> Row:
        """The row the cursor is currently on."""
        ...

    @abc.abstractmethod
    def err(self) -> BaseException | None:
        """The error that stopped the iteration, if any.

        Only meaningful after :meth:`next` returned ``False``,
        ``None`` means that all rows were read.
        """
        ...

    def close(self) -> None:
        """Release the resources held by the cursor.

        Cursors might be abandoned before they are exhausted,
        so this is the only guaranteed chance to clean up.
        """


class Table(abc.ABC):
    """A source of rows."""

    @abc.abstractmethod
    def new_cursor(self) -> Cursor:
        """Create a new cursor positioned before the first row."""
        ...

    @abc.abstractmethod
    def __str__(self) -> str:
        """Human readable representation of the table."""
        ...


class MappingRow(Row):
    """A :class:`Row` backed by a mapping of field names to values.

    >>> row = MappingRow({"id": 1, "name": "Flamingo"})
    >>> row.fields()
    ['id', 'name']
    >>> row.get("name"), row.get("legs")
    (('Flamingo', True), (None, False))
    """

    def __init__(self, values: Mapping[str, Any]) -> None:
        """
        :param values: The field values of the row.
        """
        self.values = values

    def fields(self) -> list[str]:
        return list(self.values)

    def get(self, name: str) -> tuple[Any, bool]:
        if name in self.values:
            return self.values[name], True
        return None, False

    def to_dict(self) -> dict[str, Any]:
        return dict(self.values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, MappingRow):
            return dict(self.values) == dict(other.values)
        return NotImplemented

    def __repr__(self) -> str:
        return f"MappingRow({dict(self.values)!r})"


class UnsupportedQueryError(Exception):
    """The query is valid but asks for something the engine can't do."""

    pass
