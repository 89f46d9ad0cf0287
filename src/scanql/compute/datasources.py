"""Tables that provide rows to the executor.

The datasources adapt common sources of data to the
:class:`scanql.compute.base.Table` interface:

- :class:`RowsTable` for rows already in memory, as dictionaries.
- :class:`PyArrowTable` for in-memory :class:`pyarrow.Table` or :class:`pyarrow.RecordBatch`.
- :class:`CSVTable` and :class:`ParquetTable` for local files.

Files are read lazily, one record batch at a time, so a query
with a limit stops reading the file as soon as it has enough rows.
Errors that happen while reading a file are reported
by :meth:`scanql.compute.base.Cursor.err`.

>>> table = PyArrowTable(pa.table({"animals": ["Flamingo", "Horse"], "n_legs": [2, 4]}))
>>> cursor = table.new_cursor()
>>> while cursor.next():
...     print(cursor.row())
MappingRow({'animals': 'Flamingo', 'n_legs': 2})
MappingRow({'animals': 'Horse', 'n_legs': 4})
>>> cursor.err() is None
True
"""

from typing import Any, Callable, Iterable, Iterator, Mapping, Sequence

import pyarrow as pa
import pyarrow.csv
import pyarrow.parquet

from .base import Cursor, MappingRow, Row, Table


class IteratorCursor(Cursor):
    """Cursor over an iterator of mappings."""

    def __init__(self, rows: Iterator[Mapping[str, Any]]) -> None:
        """
        :param rows: The iterator providing the rows.
        """
        self.rows = rows
        self.current: Row | None = None

    def next(self) -> bool:
        for values in self.rows:
            self.current = MappingRow(values)
            return True
        self.current = None
        return False

    def row(self) -> Row:
        if self.current is None:
            raise IndexError("Cursor is not positioned on a row")
        return self.current

    def err(self) -> BaseException | None:
        return None


class RecordBatchCursor(Cursor):
    """Cursor over the rows of a sequence of record batches.

    Batches are converted to rows only when the cursor reaches them.
    Arrow or I/O errors raised while fetching the next batch stop the
    iteration and are reported by :meth:`err`.
    """

    def __init__(
        self,
        batches: Iterator[pa.RecordBatch],
        close: Callable[[], None] | None = None,
    ) -> None:
        """
        :param batches: The iterator providing the batches.
        :param close: Invoked to release the resources
                      of the batches iterator.
        """
        self.batches = batches
        self._close = close
        self._rows: list[dict[str, Any]] = []
        self._idx = -1
        self._error: BaseException | None = None

    def next(self) -> bool:
        self._idx += 1
        while self._idx >= len(self._rows):
            if self._error is not None:
                return False
            try:
                batch = next(self.batches)
            except StopIteration:
                return False
            except (pa.ArrowException, OSError) as e:
                self._error = e
                return False
            self._rows = batch.to_pylist()
            self._idx = 0
        return True

    def row(self) -> Row:
        if not 0 <= self._idx < len(self._rows):
            raise IndexError("Cursor is not positioned on a row")
        return MappingRow(self._rows[self._idx])

    def err(self) -> BaseException | None:
        return self._error

    def close(self) -> None:
        if self._close is not None:
            self._close()
            self._close = None


class RowsTable(Table):
    """Table serving rows from a sequence of mappings.

    Rows don't have to share the same fields.
    """

    def __init__(self, rows: Sequence[Mapping[str, Any]]) -> None:
        """
        :param rows: The rows of the table.
        """
        self.rows = rows

    def __str__(self) -> str:
        return f"RowsTable(rows={len(self.rows)})"

    def new_cursor(self) -> Cursor:
        return IteratorCursor(iter(self.rows))


class PyArrowTable(Table):
    """Table serving rows from an in-memory pyarrow.Table or pyarrow.RecordBatch."""

    def __init__(self, table: pa.Table | pa.RecordBatch) -> None:
        """
        :param table: The table or recordbatch with the data to read.
        """
        self.table = table
        self.is_recordbatch = isinstance(table, pa.RecordBatch)

    def __str__(self) -> str:
        return f"PyArrowTable(columns={self.table.column_names}, rows={self.table.num_rows})"

    def new_cursor(self) -> Cursor:
        batches: Iterable[pa.RecordBatch]
        if self.is_recordbatch:
            batches = [self.table]
        else:
            batches = self.table.to_batches()
        return RecordBatchCursor(iter(batches))


class CSVTable(Table):
    """Table serving rows from a local CSV file.

    The file is opened every time a new cursor is created,
    errors opening the file are raised by :meth:`new_cursor`.
    """

    def __init__(self, filename: str, block_size: int | None = None) -> None:
        """
        :param filename: The path of the local CSV file.
        :param block_size: How many bytes of the file to read at once,
                           Influences how many batches will be produced.
        """
        self.filename = filename
        self.block_size = block_size

    def __str__(self) -> str:
        return f"CSVTable({self.filename}, block_size={self.block_size})"

    def new_cursor(self) -> Cursor:
        reader = pa.csv.open_csv(
            self.filename, read_options=pa.csv.ReadOptions(block_size=self.block_size)
        )
        return RecordBatchCursor(iter(reader), close=reader.close)


class ParquetTable(Table):
    """Table serving rows from a local Parquet file."""

    def __init__(self, filename: str, batch_size: int | None = None) -> None:
        """
        :param filename: The path of the local parquet file.
        :param batch_size: How many rows to read at once,
                           Influences how many batches will be produced.
        """
        self.filename = filename
        self.batch_size = batch_size or 65536

    def __str__(self) -> str:
        return f"ParquetTable({self.filename}, batch_size={self.batch_size})"

    def new_cursor(self) -> Cursor:
        reader = pa.parquet.ParquetFile(self.filename)
        return RecordBatchCursor(
            reader.iter_batches(batch_size=self.batch_size), close=reader.close
        )
