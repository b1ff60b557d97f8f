from __future__ import annotations

import threading
from typing import Any, Optional, Sequence

from procurement.core.exceptions import TableNotFoundError
from procurement.storage.base import TableStore


class InMemoryTableStore(TableStore):
    def __init__(self, tables: Optional[dict[str, list[list[Any]]]] = None) -> None:
        self._lock = threading.RLock()
        self._tables: dict[str, list[list[Any]]] = {}
        for name, rows in (tables or {}).items():
            self._tables[name] = [list(row) for row in rows]

    def _rows(self, name: str) -> list[list[Any]]:
        try:
            return self._tables[name]
        except KeyError:
            raise TableNotFoundError(name) from None

    def has_table(self, name: str) -> bool:
        return name in self._tables

    def table_names(self) -> list[str]:
        return list(self._tables)

    def create_table(self, name: str, headers: Sequence[Any]) -> None:
        with self._lock:
            self._tables[name] = [list(headers)] if headers else []

    def get_all_rows(self, name: str) -> list[list[Any]]:
        with self._lock:
            return [list(row) for row in self._rows(name)]

    def append_row(self, name: str, row: Sequence[Any]) -> None:
        with self._lock:
            self._rows(name).append(list(row))

    def update_cell(self, name: str, row_index: int, col_index: int, value: Any) -> None:
        with self._lock:
            rows = self._rows(name)
            if row_index < 0 or row_index >= len(rows):
                raise IndexError("row {} out of range for {}".format(row_index, name))
            row = rows[row_index]
            if col_index >= len(row):
                row.extend([None] * (col_index + 1 - len(row)))
            row[col_index] = value

    def delete_row(self, name: str, row_index: int) -> None:
        with self._lock:
            rows = self._rows(name)
            if row_index <= 0 or row_index >= len(rows):
                raise IndexError("row {} out of range for {}".format(row_index, name))
            del rows[row_index]

    def clear_table(self, name: str, headers: Optional[Sequence[Any]] = None) -> None:
        with self._lock:
            self._tables[name] = [list(headers)] if headers else []

    def drop_table(self, name: str) -> None:
        with self._lock:
            self._tables.pop(name, None)


__all__ = ["InMemoryTableStore"]
