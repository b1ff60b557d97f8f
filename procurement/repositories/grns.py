from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from procurement.core.constants import GRN_TABLE
from procurement.core.values import to_bool, to_datetime, to_float, to_text
from procurement.storage.base import Column, TableSchema, TableStore

GRN_SCHEMA = TableSchema(
    GRN_TABLE,
    [
        Column("number", "GRNNumber", to_text, required=True),
        Column("order_number", "PONumber", to_text, required=True),
        Column("outlet", "OutletName"),
        Column("brand", "Brand"),
        Column("invoice_number", "InvoiceNumber"),
        Column("date", "GRNDate", to_datetime),
        Column("amount", "GRNAmount", to_float, required=True),
        Column("approved", "Approved", to_bool, required=True),
        Column("approval_type", "ApprovalType"),
        Column("date_approved", "DateApproved", to_datetime),
        Column("notes", "Notes"),
    ],
)


@dataclass
class GoodsReceipt:
    number: str = ""
    order_number: str = ""
    outlet: str = ""
    brand: str = ""
    invoice_number: str = ""
    date: Optional[datetime] = None
    amount: float = 0.0
    approved: bool = False
    approval_type: str = ""
    date_approved: Optional[datetime] = None
    notes: str = ""
    row_index: Optional[int] = None


class GRNRepository:
    def __init__(self, store: TableStore) -> None:
        self.store = store

    def list_all(self) -> list[GoodsReceipt]:
        if not GRN_SCHEMA.exists(self.store):
            return []
        return GRN_SCHEMA.records(self.store, GoodsReceipt)

    def list_for(self, order_number) -> list[GoodsReceipt]:
        target = to_text(order_number)
        return [grn for grn in self.list_all() if grn.order_number == target]

    def find(self, grn_number) -> Optional[GoodsReceipt]:
        target = to_text(grn_number)
        for grn in self.list_all():
            if grn.number == target:
                return grn
        return None

    def append(self, grn: GoodsReceipt) -> GoodsReceipt:
        grn.row_index = GRN_SCHEMA.append(self.store, GRN_SCHEMA.values_of(grn))
        return grn

    def update(self, grn: GoodsReceipt, **fields) -> GoodsReceipt:
        GRN_SCHEMA.update(self.store, grn.row_index, **fields)
        for field, value in fields.items():
            setattr(grn, field, value)
        return grn

    def is_approved_now(self, grn: GoodsReceipt) -> bool:
        return bool(GRN_SCHEMA.read_cell(self.store, grn.row_index, "approved"))


__all__ = ["GRN_SCHEMA", "GRNRepository", "GoodsReceipt"]
