from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from procurement.core.constants import SALES_TABLE
from procurement.core.values import to_datetime, to_float, to_optional_float, to_text
from procurement.storage.base import Column, TableSchema, TableStore

SALES_SCHEMA = TableSchema(
    SALES_TABLE,
    [
        Column("sku", "SKU", to_text, required=True),
        Column("item_name", "ItemName"),
        Column("sold_qty", "SoldQty", to_float, required=True),
        Column("revenue", "Revenue", to_float, required=True),
        Column("gross_margin", "GrossMargin", to_float),
        Column("cost_price", "CostPrice", to_optional_float),
        Column("last_bill_date", "LastBillDate", to_datetime),
        Column("first_inward_date", "FirstInwardDate", to_datetime),
        Column("current_stock", "CurrentStock", to_float),
        Column("brand", "Brand", to_text, required=True),
        Column("outlet", "OutletName", to_text, required=True),
    ],
)


@dataclass
class SalesRecord:
    """One sale/bill line from the sales history export."""

    sku: str = ""
    item_name: str = ""
    sold_qty: float = 0.0
    revenue: float = 0.0
    gross_margin: float = 0.0
    cost_price: Optional[float] = None
    last_bill_date: Optional[datetime] = None
    first_inward_date: Optional[datetime] = None
    current_stock: float = 0.0
    brand: str = ""
    outlet: str = ""
    row_index: Optional[int] = None


class SalesRepository:
    def __init__(self, store: TableStore) -> None:
        self.store = store

    def exists(self) -> bool:
        return SALES_SCHEMA.exists(self.store)

    def list_records(self) -> list[SalesRecord]:
        return SALES_SCHEMA.records(self.store, SalesRecord)

    def append(self, record: SalesRecord) -> None:
        SALES_SCHEMA.append(self.store, SALES_SCHEMA.values_of(record))


__all__ = ["SALES_SCHEMA", "SalesRecord", "SalesRepository"]
