from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from procurement.core.constants import LINE_ITEMS_TABLE, PO_TRACKING_TABLE
from procurement.core.values import (
    to_bool,
    to_datetime,
    to_float,
    to_int,
    to_optional_int,
    to_text,
)
from procurement.storage.base import Column, TableSchema, TableStore

TRACKING_SCHEMA = TableSchema(
    PO_TRACKING_TABLE,
    [
        Column("number", "PONumber", to_text, required=True),
        Column("order_type", "POType"),
        Column("name", "POName"),
        Column("amount", "POAmount", to_float),
        Column("outlet", "OutletName"),
        Column("brand", "Brand"),
        Column("status", "Status", to_text, required=True),
        Column("distributor_name", "DistributorName"),
        Column("distributor_email", "DistributorEmail"),
        Column("date_created", "DateCreated", to_datetime),
        Column("approved", "Approved", to_bool),
        Column("approval_type", "ApprovalType"),
        Column("date_approved", "DateApproved", to_datetime),
        Column("email_sent", "EmailSent", to_bool),
        Column("send_status", "SendStatus"),
        Column("date_sent", "DateSent", to_datetime),
        Column("fulfillment_amount", "FulfillmentAmount", to_float),
        Column("fulfillment_percentage", "FulfillmentPercentage", to_float),
    ],
)

LINE_ITEM_SCHEMA = TableSchema(
    LINE_ITEMS_TABLE,
    [
        Column("line_item_id", "LineItemID"),
        Column("order_number", "PONumber", to_text, required=True),
        Column("order_type", "OrderType"),
        Column("order_name", "POName"),
        Column("outlet", "Outlet"),
        Column("brand", "Brand"),
        Column("sku", "SKU"),
        Column("item_name", "ItemName"),
        Column("avg_cost", "AvgCost", to_float),
        Column("order_qty", "OrderQty", to_int),
        Column("date", "Date", to_datetime),
        Column("current_stock", "CurrentStock", to_float),
        Column("justification", "Justification"),
        Column("is_new_item", "IsNewItem", to_bool),
    ],
)


@dataclass
class PurchaseOrder:
    """A tracking row in POTracking (one per PO number)."""

    number: str = ""
    order_type: str = "PO"
    name: str = ""
    amount: float = 0.0
    outlet: str = ""
    brand: str = ""
    status: str = ""
    distributor_name: str = ""
    distributor_email: str = ""
    date_created: Optional[datetime] = None
    approved: bool = False
    approval_type: str = ""
    date_approved: Optional[datetime] = None
    email_sent: bool = False
    send_status: str = ""
    date_sent: Optional[datetime] = None
    fulfillment_amount: float = 0.0
    fulfillment_percentage: float = 0.0
    row_index: Optional[int] = None


@dataclass
class LineItem:
    line_item_id: str = ""
    order_number: str = ""
    order_type: str = "PO"
    order_name: str = ""
    outlet: str = ""
    brand: str = ""
    sku: str = ""
    item_name: str = ""
    avg_cost: float = 0.0
    order_qty: int = 0
    date: Optional[datetime] = None
    current_stock: float = 0.0
    justification: str = ""
    is_new_item: bool = False
    row_index: Optional[int] = None

    @property
    def value(self) -> float:
        return self.avg_cost * self.order_qty


def order_amount(items: Iterable[LineItem]) -> float:
    return round(sum(item.value for item in items), 2)


class OrderTrackingRepository:
    def __init__(self, store: TableStore) -> None:
        self.store = store

    def list_all(self) -> list[PurchaseOrder]:
        if not TRACKING_SCHEMA.exists(self.store):
            return []
        return TRACKING_SCHEMA.records(self.store, PurchaseOrder)

    def find(self, number) -> Optional[PurchaseOrder]:
        target = to_text(number)
        for order in self.list_all():
            if order.number == target:
                return order
        return None

    def append(self, order: PurchaseOrder) -> PurchaseOrder:
        order.row_index = TRACKING_SCHEMA.append(self.store, TRACKING_SCHEMA.values_of(order))
        return order

    def update(self, order: PurchaseOrder, **fields) -> PurchaseOrder:
        TRACKING_SCHEMA.update(self.store, order.row_index, **fields)
        for field, value in fields.items():
            setattr(order, field, value)
        return order

    def max_numeric_number(self) -> int:
        numbers = [to_optional_int(order.number) for order in self.list_all()]
        return max((number for number in numbers if number is not None), default=0)


class LineItemRepository:
    def __init__(self, store: TableStore) -> None:
        self.store = store

    def list_all(self) -> list[LineItem]:
        if not LINE_ITEM_SCHEMA.exists(self.store):
            return []
        return LINE_ITEM_SCHEMA.records(self.store, LineItem)

    def list_for(self, order_number) -> list[LineItem]:
        target = to_text(order_number)
        return [item for item in self.list_all() if item.order_number == target]

    def append_many(self, items: Iterable[LineItem]) -> int:
        LINE_ITEM_SCHEMA.ensure(self.store)
        header_row = LINE_ITEM_SCHEMA.header_row(self.store)
        rows = [LINE_ITEM_SCHEMA.to_row(header_row, LINE_ITEM_SCHEMA.values_of(item)) for item in items]
        self.store.append_rows(LINE_ITEM_SCHEMA.name, rows)
        return len(rows)

    def delete_for(self, order_number) -> int:
        items = self.list_for(order_number)
        # Bottom-up so earlier row indexes stay valid.
        for item in sorted(items, key=lambda entry: entry.row_index, reverse=True):
            self.store.delete_row(LINE_ITEM_SCHEMA.name, item.row_index)
        return len(items)

    def replace_for(self, order_number, items: Iterable[LineItem]) -> int:
        self.delete_for(order_number)
        return self.append_many(items)


__all__ = [
    "LINE_ITEM_SCHEMA",
    "LineItem",
    "LineItemRepository",
    "OrderTrackingRepository",
    "PurchaseOrder",
    "TRACKING_SCHEMA",
    "order_amount",
]
