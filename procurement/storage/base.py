from __future__ import annotations

import dataclasses
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Sequence

from procurement.core.exceptions import ConfigurationError, TableNotFoundError
from procurement.core.values import is_blank, normalize_header, to_text


def find_column_index(header_row: Sequence[Any], name: str) -> int:
    """Return the 0-based column of ``name`` in ``header_row``, or -1.

    Matching ignores case, spaces and punctuation, so ``"DISTRIBUTOR NAME"``
    matches ``DistributorName``.
    """
    target = normalize_header(name)
    for idx, value in enumerate(header_row or ()):
        if normalize_header(value) == target:
            return idx
    return -1


class TableStore(ABC):
    """Named tables of rows; row 0 of every table is its header.

    Row indices are 0-based positions in ``get_all_rows`` output.
    """

    @abstractmethod
    def has_table(self, name: str) -> bool:
        ...

    @abstractmethod
    def table_names(self) -> list[str]:
        ...

    @abstractmethod
    def create_table(self, name: str, headers: Sequence[Any]) -> None:
        ...

    @abstractmethod
    def get_all_rows(self, name: str) -> list[list[Any]]:
        ...

    @abstractmethod
    def append_row(self, name: str, row: Sequence[Any]) -> None:
        ...

    @abstractmethod
    def update_cell(self, name: str, row_index: int, col_index: int, value: Any) -> None:
        ...

    @abstractmethod
    def delete_row(self, name: str, row_index: int) -> None:
        ...

    @abstractmethod
    def clear_table(self, name: str, headers: Optional[Sequence[Any]] = None) -> None:
        """Remove every row; write ``headers`` back as row 0 when given."""

    @abstractmethod
    def drop_table(self, name: str) -> None:
        ...

    def append_rows(self, name: str, rows: Iterable[Sequence[Any]]) -> None:
        for row in rows:
            self.append_row(name, row)

    def update_cells(self, name: str, row_index: int, values: dict[int, Any]) -> None:
        for col_index, value in values.items():
            self.update_cell(name, row_index, col_index, value)

    @staticmethod
    def find_column_index(header_row: Sequence[Any], name: str) -> int:
        return find_column_index(header_row, name)


@dataclass(frozen=True)
class Column:
    field: str
    header: str
    parse: Callable[[Any], Any] = to_text
    required: bool = False


class TableSchema:
    """Header-to-field adapter for one named table.

    Core code reads and writes typed records; only this class knows where
    a field lives in the row.
    """

    def __init__(self, name: str, columns: Sequence[Column]) -> None:
        self.name = name
        self.columns = tuple(columns)
        self._by_field = {column.field: column for column in self.columns}

    @property
    def headers(self) -> list[str]:
        return [column.header for column in self.columns]

    def ensure(self, store: TableStore) -> None:
        if not store.has_table(self.name):
            store.create_table(self.name, self.headers)
            return
        if not store.get_all_rows(self.name):
            store.clear_table(self.name, self.headers)

    def exists(self, store: TableStore) -> bool:
        return store.has_table(self.name)

    def header_row(self, store: TableStore) -> list[Any]:
        rows = store.get_all_rows(self.name)
        if not rows:
            return []
        return list(rows[0])

    def field_indexes(self, header_row: Sequence[Any]) -> dict[str, int]:
        indexes = {}
        missing = []
        for column in self.columns:
            idx = find_column_index(header_row, column.header)
            if idx >= 0:
                indexes[column.field] = idx
            elif column.required:
                missing.append(column.header)
        if missing:
            raise ConfigurationError(
                "{} is missing required column(s): {}".format(self.name, ", ".join(missing))
            )
        return indexes

    def parse_row(self, row: Sequence[Any], indexes: dict[str, int]) -> dict[str, Any]:
        values = {}
        for field, idx in indexes.items():
            raw = row[idx] if idx < len(row) else None
            values[field] = self._by_field[field].parse(raw)
        return values

    def read(self, store: TableStore, *, stop_at_blank: bool = False) -> list[tuple[int, dict[str, Any]]]:
        if not store.has_table(self.name):
            raise TableNotFoundError(self.name)
        rows = store.get_all_rows(self.name)
        if not rows:
            return []
        indexes = self.field_indexes(rows[0])
        parsed = []
        for row_index, row in enumerate(rows[1:], start=1):
            if all(is_blank(value) for value in row):
                if stop_at_blank:
                    break
                continue
            parsed.append((row_index, self.parse_row(row, indexes)))
        return parsed

    def records(self, store: TableStore, record_type, **kwargs) -> list:
        return [
            record_type(row_index=row_index, **values)
            for row_index, values in self.read(store, **kwargs)
        ]

    def to_row(self, header_row: Sequence[Any], values: dict[str, Any]) -> list[Any]:
        row: list[Any] = [None] * len(header_row)
        for field, value in values.items():
            column = self._by_field.get(field)
            if column is None:
                continue
            idx = find_column_index(header_row, column.header)
            if idx >= 0:
                row[idx] = value
        return row

    def append(self, store: TableStore, values: dict[str, Any]) -> int:
        """Append a row and return its row index."""
        self.ensure(store)
        header_row = self.header_row(store)
        store.append_row(self.name, self.to_row(header_row, values))
        return len(store.get_all_rows(self.name)) - 1

    def update(self, store: TableStore, row_index: int, **values: Any) -> None:
        header_row = self.header_row(store)
        cells = {}
        for field, value in values.items():
            column = self._by_field[field]
            idx = find_column_index(header_row, column.header)
            if idx < 0:
                raise ConfigurationError("{} has no column {}".format(self.name, column.header))
            cells[idx] = value
        store.update_cells(self.name, row_index, cells)

    def read_cell(self, store: TableStore, row_index: int, field: str) -> Any:
        rows = store.get_all_rows(self.name)
        if row_index >= len(rows):
            return None
        column = self._by_field[field]
        idx = find_column_index(rows[0], column.header)
        if idx < 0 or idx >= len(rows[row_index]):
            return None
        return column.parse(rows[row_index][idx])

    def replace_all(self, store: TableStore, rows: Iterable[dict[str, Any]]) -> None:
        store.clear_table(self.name, self.headers)
        header_row = self.headers
        store.append_rows(self.name, (self.to_row(header_row, values) for values in rows))

    @staticmethod
    def values_of(record) -> dict[str, Any]:
        values = dataclasses.asdict(record)
        values.pop("row_index", None)
        return values


__all__ = ["Column", "TableSchema", "TableStore", "find_column_index"]
