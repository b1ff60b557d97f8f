from procurement.storage.base import Column, TableSchema, TableStore, find_column_index
from procurement.storage.memory import InMemoryTableStore
from procurement.storage.workbook import WorkbookTableStore

__all__ = [
    "Column",
    "InMemoryTableStore",
    "TableSchema",
    "TableStore",
    "WorkbookTableStore",
    "find_column_index",
]
