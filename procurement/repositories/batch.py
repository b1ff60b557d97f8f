from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from procurement.core.constants import BATCH_DONE, PO_BATCH_TABLE
from procurement.core.values import to_text
from procurement.storage.base import Column, TableSchema, TableStore

BATCH_SCHEMA = TableSchema(
    PO_BATCH_TABLE,
    [
        Column("outlet", "Outlet", to_text, required=True),
        Column("brand", "Brand", to_text, required=True),
        Column("po_number", "PONumber"),
        Column("status", "Status"),
    ],
)


@dataclass
class BatchRequest:
    outlet: str = ""
    brand: str = ""
    po_number: str = ""
    status: str = ""
    row_index: Optional[int] = None

    @property
    def done(self) -> bool:
        return self.status.upper() == BATCH_DONE


class BatchRepository:
    def __init__(self, store: TableStore) -> None:
        self.store = store

    def exists(self) -> bool:
        return BATCH_SCHEMA.exists(self.store)

    def list_requests(self) -> list[BatchRequest]:
        """Rows up to the first blank row."""
        return BATCH_SCHEMA.records(self.store, BatchRequest, stop_at_blank=True)

    def mark_done(self, request: BatchRequest, po_number: str) -> None:
        BATCH_SCHEMA.update(self.store, request.row_index, po_number=po_number, status=BATCH_DONE)
        request.po_number = po_number
        request.status = BATCH_DONE


__all__ = ["BATCH_SCHEMA", "BatchRepository", "BatchRequest"]
