from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from procurement.config import Settings, get_settings
from procurement.core.constants import (
    APPROVAL_AUTO,
    APPROVAL_MANUAL,
    PO_STATUS_PARTIALLY_RECEIVED,
    PO_STATUS_SENT,
)
from procurement.core.dates import normalize_datetime
from procurement.core.results import ErrorKind, Result
from procurement.core.values import to_float, to_text
from procurement.repositories.customers import CustomerOrder
from procurement.repositories.grns import GoodsReceipt, GRNRepository
from procurement.services.order_service import OrderLifecycleManager, is_receivable
from procurement.services.sequences import SequenceService

logger = logging.getLogger(__name__)


def grn_sequence_scope(order_number: str) -> str:
    return "grn:{}".format(order_number)


class GRNService:
    """Goods receipts against sent POs and approved, sent COs."""

    def __init__(
        self,
        orders: OrderLifecycleManager,
        *,
        sequences: Optional[SequenceService] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.orders = orders
        self.settings = settings or orders.settings or get_settings()
        self.sequences = sequences or orders.sequences
        self.grns = GRNRepository(orders.store)

    def next_grn_number(self, order_number: str) -> str:
        floor = len(self.grns.list_for(order_number))
        value = self.sequences.next_value(grn_sequence_scope(order_number), floor=floor)
        return "GRN-{}-{:03d}".format(order_number, value)

    def create_grn(
        self,
        order_number,
        invoice_number,
        amount,
        date=None,
        notes=None,
        now: Optional[datetime] = None,
    ) -> Result:
        order_number = to_text(order_number)
        invoice_number = to_text(invoice_number)
        grn_amount = to_float(amount)
        if not order_number:
            return Result.fail(ErrorKind.VALIDATION, "Order number is required")
        if not invoice_number:
            return Result.fail(ErrorKind.VALIDATION, "Invoice number is required")
        if grn_amount <= 0:
            return Result.fail(ErrorKind.VALIDATION, "GRN amount must be greater than zero")

        order = self.orders.find_order(order_number)
        if order is None:
            return Result.fail(ErrorKind.VALIDATION, "Order {} not found".format(order_number))

        if not is_receivable(order):
            logger.warning(
                "GRN rejected for %s in status %s",
                order.number,
                order.status,
                extra={"order_number": order.number},
            )
            return Result.fail(
                ErrorKind.VALIDATION,
                "Order {} is not eligible for GRN (status: {})".format(order.number, order.status),
            )

        now = now or datetime.now()
        grn = self.grns.append(
            GoodsReceipt(
                number=self.next_grn_number(order.number),
                order_number=order.number,
                outlet=order.outlet,
                brand=order.brand,
                invoice_number=invoice_number,
                date=normalize_datetime(date) or now,
                amount=round(grn_amount, 2),
                approved=False,
                notes=to_text(notes),
            )
        )

        if not isinstance(order, CustomerOrder) and order.status == PO_STATUS_SENT:
            self.orders.tracking.update(order, status=PO_STATUS_PARTIALLY_RECEIVED)

        logger.info(
            "GRN %s created for %s (amount %.2f)",
            grn.number,
            order.number,
            grn.amount,
            extra={"order_number": order.number, "grn_number": grn.number},
        )
        return Result.ok(
            "GRN {} created".format(grn.number),
            grnNumber=grn.number,
            orderNumber=order.number,
            status=order.status,
        )

    def _approve(self, grn: GoodsReceipt, approval_type: str, now: datetime) -> None:
        self.grns.update(grn, approved=True, approval_type=approval_type, date_approved=now)
        self.orders.update_order_fulfillment(grn.order_number)

    def approve_grn(self, grn_number, approval_type: str = APPROVAL_MANUAL, now: Optional[datetime] = None) -> Result:
        grn = self.grns.find(grn_number)
        if grn is None:
            return Result.fail(ErrorKind.VALIDATION, "GRN {} not found".format(grn_number))
        if grn.approved:
            return Result.ok("GRN {} is already approved".format(grn.number), grnNumber=grn.number)
        self._approve(grn, approval_type, now or datetime.now())
        logger.info("GRN %s approved (%s)", grn.number, approval_type, extra={"grn_number": grn.number})
        return Result.ok("GRN {} approved".format(grn.number), grnNumber=grn.number)

    def auto_approve_old_grns(self, now: Optional[datetime] = None) -> dict:
        now = normalize_datetime(now) or datetime.now()
        cutoff = now - timedelta(minutes=self.settings.GRN_AUTO_APPROVE_MINUTES)
        stats = {"checked": 0, "approved": 0}
        for grn in self.grns.list_all():
            if grn.approved or grn.date is None or grn.date > cutoff:
                continue
            stats["checked"] += 1
            if self.grns.is_approved_now(grn):
                continue
            self._approve(grn, APPROVAL_AUTO, now)
            stats["approved"] += 1
            logger.info("GRN %s auto-approved", grn.number, extra={"grn_number": grn.number})
        return stats


__all__ = ["GRNService", "grn_sequence_scope"]
