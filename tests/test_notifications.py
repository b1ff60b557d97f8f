import smtplib
import unittest
from unittest import mock

from procurement.core.exceptions import ExternalServiceError
from procurement.repositories.orders import LineItem, PurchaseOrder
from procurement.services.notifications import (
    EmailNotifier,
    render_po_email,
    render_text_summary,
    split_addresses,
)

from factories import make_settings


def _smtp_settings(**overrides):
    values = {
        "SMTP_HOST": "smtp.example.com",
        "SMTP_PORT": 587,
        "SMTP_USERNAME": "mailer",
        "SMTP_PASSWORD": "secret",
        "EMAIL_FROM": "procurement@example.com",
    }
    values.update(overrides)
    return make_settings(**values)


class SplitAddressesTest(unittest.TestCase):
    def test_accepts_strings_and_lists(self):
        self.assertEqual(split_addresses("a@x.com; b@x.com, "), ["a@x.com", "b@x.com"])
        self.assertEqual(split_addresses(["a@x.com", " "]), ["a@x.com"])
        self.assertEqual(split_addresses(None), [])


class RenderTest(unittest.TestCase):
    def test_po_email_escapes_and_lists_items(self):
        order = PurchaseOrder(number="1001", outlet="Colombo City", brand="R&B", distributor_name="Lanka <Ceramics>")
        items = [LineItem(sku="DK-1", item_name="Plate", order_qty=4)]

        body = render_po_email(order, items, "Acme Retail")

        self.assertIn("R&amp;B", body)
        self.assertIn("Lanka &lt;Ceramics&gt;", body)
        self.assertIn("DK-1", body)
        self.assertIn("Acme Retail", body)
        self.assertEqual(render_text_summary("1001", items), "Order 1001\nDK-1 Plate x 4")


class EmailNotifierTest(unittest.TestCase):
    def test_unconfigured_notifier_raises(self):
        notifier = EmailNotifier(make_settings(SMTP_HOST=None))
        with self.assertRaises(ExternalServiceError):
            notifier.send("orders@lanka.example", "Subject", "<p>Hi</p>")

    def test_missing_recipient_raises(self):
        notifier = EmailNotifier(_smtp_settings())
        with self.assertRaises(ExternalServiceError):
            notifier.send("", "Subject", "<p>Hi</p>")

    @mock.patch("procurement.services.notifications.smtplib.SMTP")
    def test_send_uses_tls_login_and_cc(self, smtp_cls):
        server = smtp_cls.return_value.__enter__.return_value
        notifier = EmailNotifier(_smtp_settings())

        notifier.send("orders@lanka.example", "PO 1001", "<p>Hi</p>", "Hi", cc="cmb@example.com")

        smtp_cls.assert_called_once_with("smtp.example.com", 587, timeout=30)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("mailer", "secret")
        sender, recipients, message = server.sendmail.call_args[0]
        self.assertEqual(sender, "procurement@example.com")
        self.assertEqual(recipients, ["orders@lanka.example", "cmb@example.com"])
        self.assertIn("Subject: PO 1001", message)
        self.assertIn("Cc: cmb@example.com", message)

    @mock.patch("procurement.services.notifications.smtplib.SMTP")
    def test_smtp_failure_is_wrapped(self, smtp_cls):
        server = smtp_cls.return_value.__enter__.return_value
        server.sendmail.side_effect = smtplib.SMTPRecipientsRefused({})
        notifier = EmailNotifier(_smtp_settings(SMTP_USE_TLS=False))

        with self.assertRaises(ExternalServiceError) as ctx:
            notifier.send("orders@lanka.example", "PO 1001", "<p>Hi</p>")

        server.starttls.assert_not_called()
        self.assertIn("Email delivery failed", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
