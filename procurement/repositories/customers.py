from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from procurement.core.constants import CUSTOMER_MASTER_TABLE, CUSTOMER_ORDERS_TABLE
from procurement.core.values import to_bool, to_datetime, to_float, to_int, to_text
from procurement.storage.base import Column, TableSchema, TableStore

CUSTOMER_ORDER_SCHEMA = TableSchema(
    CUSTOMER_ORDERS_TABLE,
    [
        Column("number", "CONumber", to_text, required=True),
        Column("outlet", "OutletName", to_text, required=True),
        Column("brand", "Brand", to_text, required=True),
        Column("customer_id", "CustomerID"),
        Column("customer_name", "CustomerName"),
        Column("customer_email", "CustomerEmail"),
        Column("customer_phone", "CustomerPhone"),
        Column("customer_pic", "CustomerPIC"),
        Column("value", "COValue", to_float),
        Column("has_new_items", "HasNewItems", to_bool),
        Column("status", "Status", to_text, required=True),
        Column("approved", "Approved", to_bool),
        Column("approval_type", "ApprovalType"),
        Column("date_created", "DateCreated", to_datetime),
        Column("date_approved", "DateApproved", to_datetime),
        Column("approved_by", "ApprovedBy"),
        Column("sent", "Sent", to_bool),
        Column("send_status", "SendStatus"),
        Column("distributor_name", "DistributorName"),
        Column("distributor_email", "DistributorEmail"),
        Column("notes", "Notes"),
        Column("fulfillment_amount", "FulfillmentAmount", to_float),
        Column("fulfillment_percentage", "FulfillmentPercentage", to_float),
    ],
)

CUSTOMER_SCHEMA = TableSchema(
    CUSTOMER_MASTER_TABLE,
    [
        Column("customer_id", "CustomerID", to_text, required=True),
        Column("name", "CustomerName"),
        Column("email", "CustomerEmail"),
        Column("phone", "CustomerPhone"),
        Column("pic", "CustomerPIC"),
        Column("outlet", "OutletName"),
        Column("date_first_order", "DateFirstOrder", to_datetime),
        Column("total_orders", "TotalOrders", to_int),
        Column("last_order_date", "LastOrderDate", to_datetime),
    ],
)


@dataclass
class CustomerOrder:
    number: str = ""
    outlet: str = ""
    brand: str = ""
    customer_id: str = ""
    customer_name: str = ""
    customer_email: str = ""
    customer_phone: str = ""
    customer_pic: str = ""
    value: float = 0.0
    has_new_items: bool = False
    status: str = ""
    approved: bool = False
    approval_type: str = ""
    date_created: Optional[datetime] = None
    date_approved: Optional[datetime] = None
    approved_by: str = ""
    sent: bool = False
    send_status: str = ""
    distributor_name: str = ""
    distributor_email: str = ""
    notes: str = ""
    fulfillment_amount: float = 0.0
    fulfillment_percentage: float = 0.0
    row_index: Optional[int] = None

    @property
    def amount(self) -> float:
        return self.value


@dataclass
class Customer:
    customer_id: str = ""
    name: str = ""
    email: str = ""
    phone: str = ""
    pic: str = ""
    outlet: str = ""
    date_first_order: Optional[datetime] = None
    total_orders: int = 0
    last_order_date: Optional[datetime] = None
    row_index: Optional[int] = None


class CustomerOrderRepository:
    def __init__(self, store: TableStore) -> None:
        self.store = store

    def list_all(self) -> list[CustomerOrder]:
        if not CUSTOMER_ORDER_SCHEMA.exists(self.store):
            return []
        return CUSTOMER_ORDER_SCHEMA.records(self.store, CustomerOrder)

    def find(self, number) -> Optional[CustomerOrder]:
        target = to_text(number)
        for order in self.list_all():
            if order.number == target:
                return order
        return None

    def count_with_prefix(self, prefix: str) -> int:
        return sum(1 for order in self.list_all() if order.number.startswith(prefix))

    def append(self, order: CustomerOrder) -> CustomerOrder:
        order.row_index = CUSTOMER_ORDER_SCHEMA.append(
            self.store, CUSTOMER_ORDER_SCHEMA.values_of(order)
        )
        return order

    def update(self, order: CustomerOrder, **fields) -> CustomerOrder:
        CUSTOMER_ORDER_SCHEMA.update(self.store, order.row_index, **fields)
        for field, value in fields.items():
            setattr(order, field, value)
        return order

    def is_approved_now(self, order: CustomerOrder) -> bool:
        return bool(CUSTOMER_ORDER_SCHEMA.read_cell(self.store, order.row_index, "approved"))


class CustomerRepository:
    def __init__(self, store: TableStore) -> None:
        self.store = store

    def list_all(self) -> list[Customer]:
        if not CUSTOMER_SCHEMA.exists(self.store):
            return []
        return CUSTOMER_SCHEMA.records(self.store, Customer)

    def find_by_contact(self, email: str = "", phone: str = "") -> Optional[Customer]:
        email_key = to_text(email).lower()
        phone_key = to_text(phone)
        if not email_key and not phone_key:
            return None
        for customer in self.list_all():
            if email_key and customer.email.lower() == email_key:
                return customer
            if phone_key and customer.phone == phone_key:
                return customer
        return None

    def append(self, customer: Customer) -> Customer:
        customer.row_index = CUSTOMER_SCHEMA.append(self.store, CUSTOMER_SCHEMA.values_of(customer))
        return customer

    def update(self, customer: Customer, **fields) -> Customer:
        CUSTOMER_SCHEMA.update(self.store, customer.row_index, **fields)
        for field, value in fields.items():
            setattr(customer, field, value)
        return customer


__all__ = [
    "CUSTOMER_ORDER_SCHEMA",
    "CUSTOMER_SCHEMA",
    "Customer",
    "CustomerOrder",
    "CustomerOrderRepository",
    "CustomerRepository",
]
