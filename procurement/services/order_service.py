from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import Iterable, Optional, Union

from procurement.config import Settings, get_settings
from procurement.core.constants import (
    APPROVAL_MANUAL,
    CO_STATUS_APPROVED,
    CO_STATUS_RECEIVED,
    ORDER_TYPE_CO,
    ORDER_TYPE_PO,
    PO_AUTO_CLOSE_STATUSES,
    PO_CLOSED_STATUSES,
    PO_RECEIVABLE_STATUSES,
    PO_STATUS_CLOSED_COMPLETE,
    PO_STATUS_CLOSED_NO_RECEIPT,
    PO_STATUS_CLOSED_PARTIAL,
    PO_STATUS_LATE_FULFILLMENT,
    PO_STATUS_PARTIALLY_RECEIVED,
    PO_STATUS_PENDING,
    PO_STATUS_SENT,
    SEND_EMAIL_FAIL,
    SEND_ERROR,
    SEND_OK,
    SEND_SKIPPED,
    UNKNOWN_OUTLET_CODE,
)
from procurement.core.dates import normalize_datetime
from procurement.core.exceptions import ExternalServiceError
from procurement.core.locks import KeyedLock, send_locks
from procurement.core.results import ErrorKind, Result
from procurement.core.values import normalize_name, to_text
from procurement.repositories.batch import BatchRepository
from procurement.repositories.classification import ClassificationRepository
from procurement.repositories.customers import CustomerOrder, CustomerOrderRepository
from procurement.repositories.directory import DistributorDirectory
from procurement.repositories.grns import GRNRepository
from procurement.repositories.orders import (
    LineItem,
    LineItemRepository,
    OrderTrackingRepository,
    PurchaseOrder,
    order_amount,
)
from procurement.services.business_rules import BusinessRuleEngine
from procurement.services.notifications import (
    EmailNotifier,
    Notifier,
    render_po_email,
    render_text_summary,
    split_addresses,
)
from procurement.services.sequences import SequenceService
from procurement.storage.base import TableStore

logger = logging.getLogger(__name__)

PO_SEQUENCE_SCOPE = "po"

Order = Union[PurchaseOrder, CustomerOrder]


def fulfillment_ratio(total: float, amount: float) -> float:
    if amount <= 0:
        return 0.0
    return round(total / amount, 6)


def closing_status(fulfillment_percentage: float) -> str:
    if fulfillment_percentage >= 1:
        return PO_STATUS_CLOSED_COMPLETE
    if fulfillment_percentage > 0:
        return PO_STATUS_CLOSED_PARTIAL
    return PO_STATUS_CLOSED_NO_RECEIPT


def is_receivable(order: Order) -> bool:
    if isinstance(order, CustomerOrder):
        return order.approved and order.sent
    return order.status in PO_RECEIVABLE_STATUSES


class OrderLifecycleManager:
    def __init__(
        self,
        store: TableStore,
        *,
        sequences: Optional[SequenceService] = None,
        notifier: Optional[Notifier] = None,
        settings: Optional[Settings] = None,
        rules: Optional[BusinessRuleEngine] = None,
        locks: Optional[KeyedLock] = None,
    ) -> None:
        self.store = store
        self.settings = settings or get_settings()
        self.sequences = sequences or SequenceService()
        self.notifier = notifier or EmailNotifier(self.settings)
        self.rules = rules or BusinessRuleEngine(store)
        self.locks = locks or send_locks
        self.tracking = OrderTrackingRepository(store)
        self.line_items = LineItemRepository(store)
        self.grns = GRNRepository(store)
        self.customer_orders = CustomerOrderRepository(store)
        self.classifications = ClassificationRepository(store)
        self.directory = DistributorDirectory(store)
        self.batches = BatchRepository(store)

    # ==============================
    # Naming and numbering
    # ==============================
    def outlet_code(self, outlet: str) -> str:
        outlet_key = normalize_name(outlet)
        for name, code in self.settings.OUTLET_SHORT_CODES.items():
            if normalize_name(name) == outlet_key:
                return code
        return UNKNOWN_OUTLET_CODE

    def order_name(self, order_type: str, outlet: str, brand: str, when: datetime) -> str:
        prefix = ORDER_TYPE_CO if order_type == ORDER_TYPE_CO else ORDER_TYPE_PO
        return "{}-{}-{}-{}".format(prefix, self.outlet_code(outlet), brand, when.strftime("%y%m%d"))

    def make_sequential_po_number(self) -> str:
        floor = max(self.settings.PO_NUMBER_START, self.tracking.max_numeric_number())
        return str(self.sequences.next_value(PO_SEQUENCE_SCOPE, floor=floor))

    # ==============================
    # Lookups
    # ==============================
    def find_order(self, number) -> Optional[Order]:
        order = self.tracking.find(number)
        if order is not None:
            return order
        return self.customer_orders.find(number)

    def cc_for(self, outlet: str) -> list[str]:
        outlet_key = normalize_name(outlet)
        for name, addresses in self.settings.OUTLET_CC_EMAILS.items():
            if normalize_name(name) == outlet_key:
                return split_addresses(addresses)
        return []

    # ==============================
    # PO creation
    # ==============================
    def _line_items_from_classification(self, outlet, brand, number, order_type, name, distributor, now):
        items = []
        for row in self.classifications.list_for(outlet, brand):
            if row.final_order_qty <= 0:
                continue
            decision = self.rules.apply_business_rules(
                row.sku,
                distributor,
                brand,
                row.item_name,
                outlet,
                row.current_stock,
                row.final_order_qty,
            )
            items.append(
                LineItem(
                    line_item_id=str(uuid.uuid4()),
                    order_number=number,
                    order_type=order_type,
                    order_name=name,
                    outlet=outlet,
                    brand=brand,
                    sku=row.sku,
                    item_name=row.item_name,
                    avg_cost=round(row.avg_cost, 2),
                    order_qty=max(0, int(decision.quantity)),
                    date=now,
                    current_stock=row.current_stock,
                    justification=decision.justification or row.justification,
                )
            )
        return items

    def _prepare_supplied_items(self, items, outlet, brand, number, order_type, name, now):
        prepared = []
        for item in items:
            if isinstance(item, dict):
                item = LineItem(**item)
            item.line_item_id = item.line_item_id or str(uuid.uuid4())
            item.order_number = number
            item.order_type = order_type
            item.order_name = name
            item.outlet = item.outlet or outlet
            item.brand = item.brand or brand
            item.date = item.date or now
            item.row_index = None
            prepared.append(item)
        return prepared

    def create_po(
        self,
        outlet: str,
        brand: str,
        po_number,
        order_type: str = ORDER_TYPE_PO,
        line_items: Optional[Iterable[LineItem]] = None,
        now: Optional[datetime] = None,
    ) -> Result:
        """Write line items and the tracking row for one order.

        Line items default to the classification rows for the outlet and
        brand, with business rules overriding each quantity.
        """
        outlet = to_text(outlet)
        brand = to_text(brand)
        number = to_text(po_number)
        if not outlet or not brand or not number:
            return Result.fail(ErrorKind.VALIDATION, "Outlet, brand and order number are required")

        now = now or datetime.now()
        name = self.order_name(order_type, outlet, brand, now)
        distributor = self.directory.lookup(brand, outlet)

        if line_items is None:
            items = self._line_items_from_classification(
                outlet, brand, number, order_type, name, distributor.name, now
            )
        else:
            items = self._prepare_supplied_items(line_items, outlet, brand, number, order_type, name, now)

        if not items:
            logger.info("No line items for %s - %s. Skipping.", outlet, brand)
            return Result.fail(
                ErrorKind.VALIDATION,
                "No line items for {} - {}".format(outlet, brand),
                poNumber=number,
            )

        items.sort(key=lambda item: item.order_qty)
        self.line_items.replace_for(number, items)
        amount = order_amount(items)

        if order_type == ORDER_TYPE_CO:
            logger.info("Wrote %d line item(s) for CO %s", len(items), number, extra={"order_number": number})
            return Result.ok(poNumber=number, poName=name, amount=amount, lineItems=len(items))

        existing = self.tracking.find(number)
        if existing is None:
            self.tracking.append(
                PurchaseOrder(
                    number=number,
                    order_type=order_type,
                    name=name,
                    amount=amount,
                    outlet=outlet,
                    brand=brand,
                    status=PO_STATUS_PENDING,
                    distributor_name=distributor.name,
                    distributor_email=distributor.email,
                    date_created=now,
                    approved=False,
                    email_sent=False,
                )
            )
        else:
            self.tracking.update(
                existing,
                order_type=order_type,
                name=name,
                amount=amount,
                outlet=outlet,
                brand=brand,
                status=existing.status or PO_STATUS_PENDING,
                distributor_name=distributor.name,
                distributor_email=distributor.email,
                date_created=existing.date_created or now,
                approved=False,
                email_sent=False,
            )
        logger.info(
            "Tracking updated for %s %s (%d line items, amount %.2f)",
            order_type,
            number,
            len(items),
            amount,
            extra={"order_number": number},
        )
        return Result.ok(poNumber=number, poName=name, amount=amount, lineItems=len(items))

    def create_po_from_ui(self, outlet: str, brand: str, now: Optional[datetime] = None) -> Result:
        po_number = self.make_sequential_po_number()
        result = self.create_po(outlet, brand, po_number, now=now)
        if result.success:
            result.message = "PO created successfully! PO Number: {} Outlet: {} Brand: {}".format(
                po_number, outlet, brand
            )
        return result

    def generate_pos_from_batch(self, now: Optional[datetime] = None) -> dict:
        stats = {"created": 0, "skipped": 0, "failed": 0}
        if not self.batches.exists():
            logger.warning("POBatch table not found")
            return stats
        for request in self.batches.list_requests():
            if request.done:
                stats["skipped"] += 1
                continue
            po_number = self.make_sequential_po_number()
            result = self.create_po(request.outlet, request.brand, po_number, now=now)
            if not result.success:
                logger.warning("Batch row %s not processed: %s", request.row_index, result.message)
                stats["failed"] += 1
                continue
            self.batches.mark_done(request, po_number)
            stats["created"] += 1
        logger.info("PO batch complete: %s", stats)
        return stats

    # ==============================
    # Approval and sending
    # ==============================
    def approve_po(self, number, now: Optional[datetime] = None) -> Result:
        order = self.tracking.find(number)
        if order is None:
            return Result.fail(ErrorKind.VALIDATION, "PO {} not found".format(number))
        if order.approved:
            return Result.ok("PO {} is already approved".format(number), poNumber=order.number)
        self.tracking.update(
            order,
            approved=True,
            approval_type=APPROVAL_MANUAL,
            date_approved=now or datetime.now(),
        )
        return Result.ok("PO {} approved".format(number), poNumber=order.number)

    def clean_order(self, number) -> list[LineItem]:
        """Drop zero-quantity lines and order the rest by quantity."""
        items = [item for item in self.line_items.list_for(number) if item.order_qty > 0]
        items.sort(key=lambda item: item.order_qty)
        self.line_items.replace_for(number, items)
        return items

    def send_order(self, number, now: Optional[datetime] = None) -> str:
        number = to_text(number)
        with self.locks.hold("order:{}".format(number), self.settings.SEND_LOCK_TIMEOUT_SECONDS) as acquired:
            if not acquired:
                logger.warning("Send already in progress for %s", number, extra={"order_number": number})
                return SEND_SKIPPED
            order = self.tracking.find(number)
            if order is None:
                logger.error("PO %s not found for sending", number)
                return SEND_ERROR
            if not order.approved or order.email_sent:
                return SEND_SKIPPED

            items = self.clean_order(number)
            amount = order_amount(items)
            self.tracking.update(order, amount=amount)
            if not items:
                self.tracking.update(order, send_status="No line items with quantity")
                return SEND_ERROR

            try:
                self.notifier.send(
                    order.distributor_email,
                    "Purchase Order {} - {} - {}".format(order.number, order.brand, order.outlet),
                    render_po_email(order, items, self.settings.COMPANY_NAME),
                    render_text_summary(order.number, items),
                    cc=self.cc_for(order.outlet),
                )
            except ExternalServiceError as exc:
                logger.warning("Email failed for PO %s: %s", number, exc, extra={"order_number": number})
                self.tracking.update(order, send_status=str(exc))
                return SEND_EMAIL_FAIL

            self.tracking.update(
                order,
                email_sent=True,
                status=PO_STATUS_SENT,
                send_status=SEND_OK,
                date_sent=now or datetime.now(),
            )
            logger.info("PO %s sent to %s", number, order.distributor_email, extra={"order_number": number})
            return SEND_OK

    def send_approved_pos(self, now: Optional[datetime] = None) -> dict:
        stats = {SEND_OK: 0, SEND_SKIPPED: 0, SEND_EMAIL_FAIL: 0, SEND_ERROR: 0}
        for order in self.tracking.list_all():
            if order.order_type == ORDER_TYPE_CO or not order.approved or order.email_sent:
                continue
            outcome = self.send_order(order.number, now=now)
            stats[outcome] += 1
        logger.info("Approved PO send run: %s", stats)
        return stats

    def refresh_po_values(self) -> int:
        """Recompute amounts for POs still open to edits (unapproved, unsent)."""
        updated = 0
        for order in self.tracking.list_all():
            if order.approved or order.email_sent:
                continue
            items = [item for item in self.line_items.list_for(order.number) if item.order_qty > 0]
            amount = order_amount(items)
            if amount != order.amount:
                self.tracking.update(order, amount=amount)
                updated += 1
        return updated

    # ==============================
    # Fulfillment and closure
    # ==============================
    def update_order_fulfillment(self, number) -> Result:
        order = self.find_order(number)
        if order is None:
            return Result.fail(ErrorKind.VALIDATION, "Order {} not found".format(number))

        total = round(sum(grn.amount for grn in self.grns.list_for(order.number) if grn.approved), 2)
        percentage = fulfillment_ratio(total, order.amount)
        fields = {"fulfillment_amount": total, "fulfillment_percentage": percentage}

        if isinstance(order, CustomerOrder):
            if order.status == CO_STATUS_APPROVED and percentage >= 1:
                fields["status"] = CO_STATUS_RECEIVED
            self.customer_orders.update(order, **fields)
        else:
            if order.status == PO_STATUS_PARTIALLY_RECEIVED and percentage >= 1:
                fields["status"] = PO_STATUS_CLOSED_COMPLETE
            self.tracking.update(order, **fields)

        logger.info(
            "Fulfillment for %s: %.2f of %.2f (%.1f%%)",
            order.number,
            total,
            order.amount,
            percentage * 100,
            extra={"order_number": order.number},
        )
        return Result.ok(
            orderNumber=order.number,
            fulfillmentAmount=total,
            fulfillmentPercentage=percentage,
            status=order.status,
        )

    def close_old_orders(self, now: Optional[datetime] = None) -> dict:
        now = normalize_datetime(now) or datetime.now()
        cutoff = now - timedelta(days=self.settings.PO_AUTO_CLOSE_DAYS)
        stats = {"checked": 0, "closed": 0}
        for order in self.tracking.list_all():
            stats["checked"] += 1
            if order.status not in PO_AUTO_CLOSE_STATUSES or not order.email_sent:
                continue
            if order.date_created is None or order.date_created >= cutoff:
                continue
            status = closing_status(order.fulfillment_percentage)
            self.tracking.update(order, status=status)
            stats["closed"] += 1
            logger.info("Auto-closed PO %s with status: %s", order.number, status, extra={"order_number": order.number})
        return stats

    def handle_late_grn(self, number) -> Result:
        order = self.tracking.find(number)
        if order is None:
            return Result.fail(ErrorKind.VALIDATION, "PO {} not found".format(number))
        if order.status not in PO_CLOSED_STATUSES:
            return Result.ok(poNumber=order.number, status=order.status, changed=False)
        self.tracking.update(order, status=PO_STATUS_LATE_FULFILLMENT)
        logger.info("PO %s moved to Late Fulfillment", order.number, extra={"order_number": order.number})
        return Result.ok(poNumber=order.number, status=order.status, changed=True)

    def get_eligible_orders_for_grn(self) -> list[dict]:
        eligible = []
        for order in self.tracking.list_all():
            if is_receivable(order):
                eligible.append(
                    {
                        "orderNumber": order.number,
                        "orderType": order.order_type or ORDER_TYPE_PO,
                        "outlet": order.outlet,
                        "brand": order.brand,
                        "amount": order.amount,
                        "status": order.status,
                        "dateCreated": order.date_created,
                    }
                )
        for order in self.customer_orders.list_all():
            if is_receivable(order):
                eligible.append(
                    {
                        "orderNumber": order.number,
                        "orderType": ORDER_TYPE_CO,
                        "outlet": order.outlet,
                        "brand": order.brand,
                        "amount": order.value,
                        "status": order.status,
                        "dateCreated": order.date_created,
                    }
                )
        eligible.sort(key=lambda entry: entry["dateCreated"] or datetime.min, reverse=True)
        return eligible


__all__ = [
    "OrderLifecycleManager",
    "closing_status",
    "fulfillment_ratio",
    "is_receivable",
]
