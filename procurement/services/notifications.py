from __future__ import annotations

import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Iterable, Optional, Protocol, Sequence

from procurement.config import Settings, get_settings
from procurement.core.exceptions import ExternalServiceError
from procurement.repositories.orders import LineItem

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def send(
        self,
        to: str,
        subject: str,
        html_body: str,
        text_body: str = "",
        cc: Optional[Sequence[str]] = None,
    ) -> None:
        ...


def split_addresses(value) -> list[str]:
    if not value:
        return []
    if isinstance(value, (list, tuple, set)):
        items = value
    else:
        items = str(value).replace(";", ",").split(",")
    return [item.strip() for item in items if item and item.strip()]


def _line_item_rows(items: Iterable[LineItem]) -> str:
    rows = []
    for item in items:
        rows.append(
            "<tr><td>{}</td><td>{}</td><td style=\"text-align:right\">{}</td></tr>".format(
                html.escape(item.sku),
                html.escape(item.item_name),
                item.order_qty,
            )
        )
    return "\n".join(rows)


def _render_order_email(title, intro, distributor, brand, outlet, number, items, company) -> str:
    return """
<div style="font-family: Arial, sans-serif; color: #222;">
  <h2 style="color: #1976d2;">{title}</h2>
  <p>Dear <b>{distributor}</b>,</p>
  <p>{intro}</p>
  <table style="border: 1px solid #e3e3e3; border-collapse: collapse;">
    <tr><td><b>Order</b></td><td>{number}</td></tr>
    <tr><td><b>Brand</b></td><td>{brand}</td></tr>
    <tr><td><b>Outlet</b></td><td>{outlet}</td></tr>
  </table>
  <table style="margin-top: 16px; border: 1px solid #e3e3e3; border-collapse: collapse;">
    <tr><th>SKU</th><th>Item</th><th>Qty</th></tr>
    {rows}
  </table>
  <p>Regards,<br>{company}</p>
</div>
""".format(
        title=html.escape(title),
        intro=intro,
        distributor=html.escape(distributor or "Partner"),
        number=html.escape(str(number)),
        brand=html.escape(brand),
        outlet=html.escape(outlet),
        rows=_line_item_rows(items),
        company=html.escape(company),
    )


def render_po_email(order, items, company: str) -> str:
    return _render_order_email(
        "Purchase Order Notification",
        "Please find below the <b>Purchase Order</b> for <b>{}</b> at <b>{}</b>.".format(
            html.escape(order.brand), html.escape(order.outlet)
        ),
        order.distributor_name,
        order.brand,
        order.outlet,
        order.number,
        items,
        company,
    )


def render_co_email(order, items, company: str) -> str:
    return _render_order_email(
        "Customer Order Notification",
        "Please arrange the <b>Customer Order</b> below for customer <b>{}</b>.".format(
            html.escape(order.customer_name or "-")
        ),
        order.distributor_name,
        order.brand,
        order.outlet,
        order.number,
        items,
        company,
    )


def render_text_summary(number, items: Iterable[LineItem]) -> str:
    lines = ["Order {}".format(number)]
    for item in items:
        lines.append("{} {} x {}".format(item.sku, item.item_name, item.order_qty))
    return "\n".join(lines)


class EmailNotifier:
    """SMTP delivery; raises ExternalServiceError on any failure."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()

    @property
    def configured(self) -> bool:
        return bool(self.settings.SMTP_HOST and self.settings.EMAIL_FROM)

    def build_message(self, to, subject, html_body, text_body="", cc=None) -> MIMEMultipart:
        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = self.settings.EMAIL_FROM or ""
        message["To"] = to
        cc_list = split_addresses(cc)
        if cc_list:
            message["Cc"] = ", ".join(cc_list)
        message.attach(MIMEText(text_body or subject, "plain"))
        message.attach(MIMEText(html_body, "html"))
        return message

    def send(self, to, subject, html_body, text_body="", cc=None) -> None:
        if not to:
            raise ExternalServiceError("No recipient email address")
        if not self.configured:
            raise ExternalServiceError("SMTP_HOST/EMAIL_FROM are not configured")

        message = self.build_message(to, subject, html_body, text_body, cc)
        recipients = [to] + split_addresses(cc)
        try:
            with smtplib.SMTP(self.settings.SMTP_HOST, self.settings.SMTP_PORT, timeout=30) as server:
                if self.settings.SMTP_USE_TLS:
                    server.starttls()
                if self.settings.SMTP_USERNAME:
                    server.login(self.settings.SMTP_USERNAME, self.settings.SMTP_PASSWORD or "")
                server.sendmail(self.settings.EMAIL_FROM, recipients, message.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            raise ExternalServiceError("Email delivery failed: {}".format(exc)) from exc
        logger.info("Email sent to %s: %s", to, subject)


__all__ = [
    "EmailNotifier",
    "Notifier",
    "render_co_email",
    "render_po_email",
    "render_text_summary",
    "split_addresses",
]
