from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Optional, Sequence

from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from procurement.core.exceptions import ConfigurationError, TableNotFoundError
from procurement.core.values import is_blank
from procurement.storage.base import TableStore

logger = logging.getLogger(__name__)


class WorkbookTableStore(TableStore):
    """One worksheet per table in an .xlsx file.

    Every mutation is written back to disk unless ``autosave`` is off, in
    which case callers invoke ``save()`` themselves.
    """

    def __init__(self, path, *, autosave: bool = True) -> None:
        self.path = Path(path)
        self.autosave = autosave
        self._lock = threading.RLock()
        self._workbook = self._open()

    def _open(self) -> Workbook:
        if self.path.exists():
            try:
                return load_workbook(self.path)
            except (InvalidFileException, OSError, KeyError) as exc:
                raise ConfigurationError(
                    "Unable to open workbook {}: {}".format(self.path, exc)
                ) from exc
        workbook = Workbook()
        workbook.remove(workbook.active)
        logger.info("Created new workbook store at %s", self.path)
        return workbook

    def _sheet(self, name: str):
        if name not in self._workbook.sheetnames:
            raise TableNotFoundError(name)
        return self._workbook[name]

    def _changed(self) -> None:
        if self.autosave:
            self.save()

    def save(self) -> None:
        with self._lock:
            if self.path.parent and not self.path.parent.exists():
                self.path.parent.mkdir(parents=True, exist_ok=True)
            self._workbook.save(self.path)

    def has_table(self, name: str) -> bool:
        return name in self._workbook.sheetnames

    def table_names(self) -> list[str]:
        return list(self._workbook.sheetnames)

    def create_table(self, name: str, headers: Sequence[Any]) -> None:
        with self._lock:
            if name in self._workbook.sheetnames:
                self._workbook.remove(self._workbook[name])
            sheet = self._workbook.create_sheet(title=name)
            if headers:
                sheet.append(list(headers))
            self._changed()

    def get_all_rows(self, name: str) -> list[list[Any]]:
        with self._lock:
            sheet = self._sheet(name)
            rows = [list(row) for row in sheet.iter_rows(values_only=True)]
        while rows and all(is_blank(value) for value in rows[-1]):
            rows.pop()
        return rows

    def append_row(self, name: str, row: Sequence[Any]) -> None:
        with self._lock:
            sheet = self._sheet(name)
            values = list(row)
            if sheet.max_row == 1 and all(cell.value is None for cell in sheet[1]):
                for col_index, value in enumerate(values, start=1):
                    sheet.cell(row=1, column=col_index, value=value)
            else:
                sheet.append(values)
            self._changed()

    def update_cell(self, name: str, row_index: int, col_index: int, value: Any) -> None:
        with self._lock:
            sheet = self._sheet(name)
            sheet.cell(row=row_index + 1, column=col_index + 1, value=value)
            self._changed()

    def update_cells(self, name: str, row_index: int, values: dict[int, Any]) -> None:
        with self._lock:
            sheet = self._sheet(name)
            for col_index, value in values.items():
                sheet.cell(row=row_index + 1, column=col_index + 1, value=value)
            self._changed()

    def append_rows(self, name, rows) -> None:
        with self._lock:
            sheet = self._sheet(name)
            for row in rows:
                sheet.append(list(row))
            self._changed()

    def delete_row(self, name: str, row_index: int) -> None:
        if row_index <= 0:
            raise IndexError("cannot delete the header row of {}".format(name))
        with self._lock:
            sheet = self._sheet(name)
            sheet.delete_rows(row_index + 1)
            self._changed()

    def clear_table(self, name: str, headers: Optional[Sequence[Any]] = None) -> None:
        with self._lock:
            position = None
            if name in self._workbook.sheetnames:
                position = self._workbook.sheetnames.index(name)
                self._workbook.remove(self._workbook[name])
            sheet = self._workbook.create_sheet(title=name, index=position)
            if headers:
                sheet.append(list(headers))
            self._changed()

    def drop_table(self, name: str) -> None:
        with self._lock:
            if name in self._workbook.sheetnames:
                self._workbook.remove(self._workbook[name])
                self._changed()


__all__ = ["WorkbookTableStore"]
