from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from procurement.config import Settings, get_settings
from procurement.core.constants import (
    APPROVAL_AUTO,
    APPROVAL_MANUAL,
    CO_STATUS_APPROVED,
    CO_STATUS_PENDING,
    CUSTOMER_ID_PREFIX,
    NEW_ITEM_CODE,
    ORDER_TYPE_CO,
    SEND_EMAIL_FAIL,
    SEND_ERROR,
    SEND_OK,
    SEND_SKIPPED,
)
from procurement.core.dates import normalize_datetime
from procurement.core.exceptions import ExternalServiceError, ValidationError
from procurement.core.results import ErrorKind, Result
from procurement.core.values import to_float, to_optional_float, to_text
from procurement.repositories.customers import (
    Customer,
    CustomerOrder,
    CustomerOrderRepository,
    CustomerRepository,
)
from procurement.repositories.directory import ItemMasterRepository
from procurement.repositories.orders import LineItem
from procurement.services.notifications import render_co_email, render_text_summary
from procurement.services.order_service import OrderLifecycleManager

logger = logging.getLogger(__name__)

SYSTEM_APPROVER = "System"

_NON_ALNUM = re.compile(r"[^A-Z0-9]")


@dataclass
class OrderItemRequest:
    item_code: str = ""
    item_name: str = ""
    quantity: float = 0
    cost_price: Optional[float] = None
    is_new: bool = False

    @property
    def new_item(self) -> bool:
        return self.is_new or to_text(self.item_code).upper() == NEW_ITEM_CODE


def brand_code(brand: str) -> str:
    return _NON_ALNUM.sub("", to_text(brand).upper())


def make_customer_id(now: datetime) -> str:
    millis = str(int(now.timestamp() * 1000))
    return "{}{}".format(CUSTOMER_ID_PREFIX, millis[-8:])


class CustomerOrderService:
    def __init__(self, orders: OrderLifecycleManager, *, settings: Optional[Settings] = None) -> None:
        self.orders = orders
        self.settings = settings or orders.settings or get_settings()
        self.customer_orders = CustomerOrderRepository(orders.store)
        self.customers = CustomerRepository(orders.store)
        self.item_master = ItemMasterRepository(orders.store)

    # ==============================
    # Helpers
    # ==============================
    def next_co_number(self, outlet: str, brand: str, now: datetime) -> str:
        outlet_code = self.orders.outlet_code(outlet)
        code = brand_code(brand)
        day = now.strftime("%Y%m%d")
        prefix = "CO-{}-{}-{}-".format(outlet_code, code, day)
        scope = "co:{}:{}:{}".format(outlet_code, code, day)
        value = self.orders.sequences.next_value(scope, floor=self.customer_orders.count_with_prefix(prefix))
        return "{}{:03d}".format(prefix, value)

    def catalog_cost(self, item_code: str, outlet: str) -> Optional[float]:
        row = self.orders.classifications.find_sku(item_code, outlet)
        if row is not None:
            return row.avg_cost
        entry = self.item_master.find(item_code)
        if entry is not None:
            return entry.cost_price
        return None

    def _item_exists(self, item_code: str) -> bool:
        if self.orders.classifications.find_sku(item_code) is not None:
            return True
        return self.item_master.find(item_code) is not None

    def validate_items(self, requests: Iterable[OrderItemRequest]) -> None:
        for item in requests:
            if item.new_item:
                if not to_text(item.item_name):
                    raise ValidationError("New items need an item name")
                continue
            if not to_text(item.item_code):
                raise ValidationError("Item code is required for existing items")
            if not self._item_exists(item.item_code):
                raise ValidationError("Item {} not found in catalog".format(item.item_code))

    def get_or_create_customer(self, name, email, phone, pic, outlet, now: datetime) -> Customer:
        customer = self.customers.find_by_contact(email, phone)
        if customer is None:
            customer = self.customers.append(
                Customer(
                    customer_id=make_customer_id(now),
                    name=name,
                    email=email,
                    phone=phone,
                    pic=pic,
                    outlet=outlet,
                    date_first_order=now,
                    total_orders=1,
                    last_order_date=now,
                )
            )
            logger.info("Created customer %s", customer.customer_id)
            return customer
        return self.customers.update(
            customer,
            total_orders=customer.total_orders + 1,
            last_order_date=now,
        )

    # ==============================
    # Creation
    # ==============================
    def create_customer_order(
        self,
        outlet: str,
        brand: str,
        customer_name: str,
        items: Iterable,
        customer_email: str = "",
        customer_phone: str = "",
        customer_pic: str = "",
        notes: str = "",
        now: Optional[datetime] = None,
    ) -> Result:
        """Record a CO with its line items; small orders of known items auto-approve."""
        outlet = to_text(outlet)
        brand = to_text(brand)
        customer_name = to_text(customer_name)
        requests = [item if isinstance(item, OrderItemRequest) else OrderItemRequest(**item) for item in items]

        if not outlet or not brand or not customer_name:
            return Result.fail(ErrorKind.VALIDATION, "Outlet, brand and customer name are required")
        requests = [item for item in requests if to_float(item.quantity) > 0]
        if not requests:
            return Result.fail(ErrorKind.VALIDATION, "At least one item with a positive quantity is required")
        try:
            self.validate_items(requests)
        except ValidationError as exc:
            return Result.fail(ErrorKind.VALIDATION, str(exc))

        now = now or datetime.now()
        customer = self.get_or_create_customer(
            customer_name,
            to_text(customer_email),
            to_text(customer_phone),
            to_text(customer_pic),
            outlet,
            now,
        )
        number = self.next_co_number(outlet, brand, now)
        name = self.orders.order_name(ORDER_TYPE_CO, outlet, brand, now)

        line_items = []
        has_new_items = False
        for item in requests:
            has_new_items = has_new_items or item.new_item
            cost = to_optional_float(item.cost_price)
            if cost is None and not item.new_item:
                cost = self.catalog_cost(item.item_code, outlet)
            line_items.append(
                LineItem(
                    line_item_id=str(uuid.uuid4()),
                    sku=NEW_ITEM_CODE if item.new_item else to_text(item.item_code),
                    item_name=to_text(item.item_name),
                    avg_cost=round(cost or 0.0, 2),
                    order_qty=int(to_float(item.quantity)),
                    current_stock=0,
                    justification="Customer order for {}".format(customer_name),
                    is_new_item=item.new_item,
                )
            )

        created = self.orders.create_po(outlet, brand, number, ORDER_TYPE_CO, line_items, now=now)
        if not created.success:
            return created
        value = created.get("amount", 0.0)

        distributor = self.orders.directory.lookup(brand, outlet)
        order = self.customer_orders.append(
            CustomerOrder(
                number=number,
                outlet=outlet,
                brand=brand,
                customer_id=customer.customer_id,
                customer_name=customer_name,
                customer_email=to_text(customer_email),
                customer_phone=to_text(customer_phone),
                customer_pic=to_text(customer_pic),
                value=value,
                has_new_items=has_new_items,
                status=CO_STATUS_PENDING,
                approved=False,
                date_created=now,
                sent=False,
                distributor_name=distributor.name,
                distributor_email=distributor.email,
                notes=to_text(notes),
            )
        )
        logger.info(
            "Customer order %s created (value %.2f, new items: %s)",
            number,
            value,
            has_new_items,
            extra={"order_number": number, "outlet": outlet, "brand": brand},
        )

        auto_approved = False
        send_outcome = None
        if not has_new_items and value < self.settings.CO_AUTO_APPROVE_THRESHOLD:
            self._approve(order, APPROVAL_AUTO, SYSTEM_APPROVER, now)
            auto_approved = True
            send_outcome = self.send_customer_order(number)

        return Result.ok(
            "Customer order {} created".format(number),
            coNumber=number,
            customerId=customer.customer_id,
            value=value,
            hasNewItems=has_new_items,
            autoApproved=auto_approved,
            sendStatus=send_outcome,
        )

    # ==============================
    # Approval and sending
    # ==============================
    def _approve(self, order: CustomerOrder, approval_type: str, approved_by: str, now: datetime) -> None:
        self.customer_orders.update(
            order,
            approved=True,
            status=CO_STATUS_APPROVED,
            approval_type=approval_type,
            approved_by=approved_by,
            date_approved=now,
        )

    def approve_customer_order(self, number, approved_by: str = "", now: Optional[datetime] = None) -> Result:
        order = self.customer_orders.find(number)
        if order is None:
            return Result.fail(ErrorKind.VALIDATION, "Customer order {} not found".format(number))
        if order.approved and order.sent:
            return Result.ok("Customer order {} is already approved".format(order.number), coNumber=order.number)
        if not order.approved:
            self._approve(order, APPROVAL_MANUAL, to_text(approved_by), now or datetime.now())
        outcome = self.send_customer_order(order.number)
        return Result.ok(
            "Customer order {} approved".format(order.number),
            coNumber=order.number,
            sendStatus=outcome,
        )

    def auto_approve_old_cos(self, now: Optional[datetime] = None) -> dict:
        now = normalize_datetime(now) or datetime.now()
        cutoff = now - timedelta(minutes=self.settings.CO_AUTO_APPROVE_MINUTES)
        stats = {"checked": 0, "approved": 0, "sent": 0}
        for order in self.customer_orders.list_all():
            if order.status != CO_STATUS_PENDING or order.approved:
                continue
            if order.date_created is None or order.date_created > cutoff:
                continue
            stats["checked"] += 1
            if self.customer_orders.is_approved_now(order):
                continue
            self._approve(order, APPROVAL_AUTO, SYSTEM_APPROVER, now)
            stats["approved"] += 1
            if self.send_customer_order(order.number) == SEND_OK:
                stats["sent"] += 1
        logger.info("CO auto-approve sweep: %s", stats)
        return stats

    def send_customer_order(self, number) -> str:
        number = to_text(number)
        timeout = self.settings.SEND_LOCK_TIMEOUT_SECONDS
        with self.orders.locks.hold("order:{}".format(number), timeout) as acquired:
            if not acquired:
                logger.warning("Send already in progress for %s", number, extra={"order_number": number})
                return SEND_SKIPPED
            order = self.customer_orders.find(number)
            if order is None:
                logger.error("Customer order %s not found for sending", number)
                return SEND_ERROR
            if not order.approved or order.sent:
                return SEND_SKIPPED

            items = [item for item in self.orders.line_items.list_for(number) if item.order_qty > 0]
            if not items:
                self.customer_orders.update(order, send_status="No line items with quantity")
                return SEND_ERROR

            try:
                self.orders.notifier.send(
                    order.distributor_email,
                    "Customer Order {} - {} - {}".format(order.number, order.brand, order.outlet),
                    render_co_email(order, items, self.settings.COMPANY_NAME),
                    render_text_summary(order.number, items),
                    cc=self.orders.cc_for(order.outlet),
                )
            except ExternalServiceError as exc:
                logger.warning("Email failed for CO %s: %s", number, exc, extra={"order_number": number})
                self.customer_orders.update(order, send_status=str(exc))
                return SEND_EMAIL_FAIL

            self.customer_orders.update(order, sent=True, send_status=SEND_OK)
            logger.info("CO %s sent to %s", number, order.distributor_email, extra={"order_number": number})
            return SEND_OK


__all__ = [
    "CustomerOrderService",
    "OrderItemRequest",
    "brand_code",
    "make_customer_id",
]
