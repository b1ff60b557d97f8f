import unittest
from datetime import timedelta

from procurement.core.constants import LINE_ITEMS_TABLE, PO_BATCH_TABLE, PO_TRACKING_TABLE
from procurement.repositories.orders import LINE_ITEM_SCHEMA, LineItem
from procurement.services.business_rules import BusinessRuleEngine

from factories import NOW, RecordingNotifier, add_distributor, classification_row, make_services, seed_catalog


def _services(**kwargs):
    services = make_services(**kwargs)
    add_distributor(services.store)
    seed_catalog(
        services.store,
        [
            classification_row("DK-1", 3, avg_cost=100),
            classification_row("DK-2", 0, avg_cost=75),
            classification_row("DK-3", 1, avg_cost=50, item_name="Dinner Plates", stock=2),
            classification_row("NR-1", 4, brand="Noritake"),
        ],
    )
    return services


class CreatePOTest(unittest.TestCase):
    def test_creates_line_items_and_pending_tracking_row(self):
        services = _services()
        result = services.orders.create_po("Colombo City", "Dankotuwa", "1001", now=NOW)

        self.assertTrue(result.success)
        self.assertEqual(result.get("amount"), 350.0)
        items = services.orders.line_items.list_for("1001")
        self.assertEqual([item.sku for item in items], ["DK-3", "DK-1"])
        self.assertEqual([item.order_qty for item in items], [1, 3])

        order = services.orders.tracking.find("1001")
        self.assertEqual(order.name, "PO-CMB-Dankotuwa-240315")
        self.assertEqual(order.status, "Pending")
        self.assertFalse(order.approved)
        self.assertFalse(order.email_sent)
        self.assertEqual(order.distributor_name, "Lanka Ceramics")
        self.assertEqual(order.distributor_email, "orders@lanka.example")
        self.assertEqual(order.date_created, NOW)

    def test_business_rules_override_line_quantities(self):
        services = _services()
        BusinessRuleEngine(services.store).seed_business_rules()
        services.orders.create_po("Colombo City", "Dankotuwa", "1001", now=NOW)

        plates = next(item for item in services.orders.line_items.list_for("1001") if item.sku == "DK-3")
        self.assertEqual(plates.order_qty, 6)
        self.assertTrue(plates.justification.startswith("Business Rule: Dankotuwa Plates MOQ"))

    def test_recreating_keeps_creation_date_and_status(self):
        services = _services()
        services.orders.create_po("Colombo City", "Dankotuwa", "1001", now=NOW)
        order = services.orders.tracking.find("1001")
        services.orders.tracking.update(order, status="Sent")

        services.orders.create_po("Colombo City", "Dankotuwa", "1001", now=NOW + timedelta(days=1))

        order = services.orders.tracking.find("1001")
        self.assertEqual(order.date_created, NOW)
        self.assertEqual(order.status, "Sent")
        self.assertEqual(len(services.orders.line_items.list_for("1001")), 2)
        self.assertEqual(len(services.orders.tracking.list_all()), 1)

    def test_empty_selection_fails_without_writes(self):
        services = _services()
        result = services.orders.create_po("Kandy", "Dankotuwa", "1001", now=NOW)

        self.assertFalse(result.success)
        self.assertEqual(result.error.value, "validation")
        self.assertFalse(services.store.has_table(PO_TRACKING_TABLE))
        self.assertFalse(services.store.has_table(LINE_ITEMS_TABLE))

    def test_unknown_outlet_uses_placeholder_code(self):
        services = _services()
        self.assertEqual(services.orders.order_name("PO", "Galle", "Noritake", NOW), "PO-UNK-Noritake-240315")

    def test_sequential_numbers_start_after_configured_floor(self):
        services = _services()
        self.assertEqual(services.orders.make_sequential_po_number(), "1001")
        self.assertEqual(services.orders.make_sequential_po_number(), "1002")

    def test_sequential_numbers_continue_after_existing_tracking_rows(self):
        services = _services()
        services.orders.create_po("Colombo City", "Dankotuwa", "1500", now=NOW)
        self.assertEqual(services.orders.make_sequential_po_number(), "1501")

    def test_create_from_ui_allocates_number(self):
        services = _services()
        result = services.orders.create_po_from_ui("Colombo City", "Noritake", now=NOW)
        self.assertTrue(result.success)
        self.assertEqual(result.get("poNumber"), "1001")
        self.assertIn("PO Number: 1001", result.message)


class BatchTest(unittest.TestCase):
    def test_batch_creates_pos_and_marks_rows_done(self):
        services = _services()
        services.store.create_table(PO_BATCH_TABLE, ["Outlet", "Brand", "PONumber", "Status"])
        services.store.append_row(PO_BATCH_TABLE, ["Colombo City", "Dankotuwa", "", ""])
        services.store.append_row(PO_BATCH_TABLE, ["Colombo City", "Noritake", "999", "DONE"])
        services.store.append_row(PO_BATCH_TABLE, ["Kandy", "Dankotuwa", "", ""])
        services.store.append_row(PO_BATCH_TABLE, ["Colombo City", "Noritake", "", ""])

        stats = services.orders.generate_pos_from_batch(now=NOW)

        self.assertEqual(stats, {"created": 2, "skipped": 1, "failed": 1})
        rows = services.store.get_all_rows(PO_BATCH_TABLE)
        self.assertEqual(rows[1][2:], ["1001", "DONE"])
        self.assertEqual(rows[3][2:], ["", ""])
        self.assertEqual(rows[4][2:], ["1003", "DONE"])

    def test_missing_batch_table_returns_empty_stats(self):
        services = _services()
        self.assertEqual(services.orders.generate_pos_from_batch(), {"created": 0, "skipped": 0, "failed": 0})


class SendOrderTest(unittest.TestCase):
    def _approved_po(self, **kwargs):
        services = _services(**kwargs)
        services.orders.create_po(
            "Colombo City",
            "Dankotuwa",
            "1001",
            line_items=[
                LineItem(sku="DK-1", item_name="Bowl", avg_cost=10, order_qty=2),
                LineItem(sku="DK-2", item_name="Cup", avg_cost=5, order_qty=0),
            ],
            now=NOW,
        )
        services.orders.approve_po("1001", now=NOW)
        return services

    def test_send_emails_distributor_and_marks_sent(self):
        services = self._approved_po(OUTLET_CC_EMAILS={"Colombo City": "manager@example.com; buyer@example.com"})
        outcome = services.orders.send_order("1001", now=NOW)

        self.assertEqual(outcome, "OK")
        notifier = services.orders.notifier
        self.assertEqual(len(notifier.sent), 1)
        self.assertEqual(notifier.sent[0]["to"], "orders@lanka.example")
        self.assertEqual(notifier.sent[0]["cc"], ["manager@example.com", "buyer@example.com"])
        self.assertIn("Bowl", notifier.sent[0]["html"])

        order = services.orders.tracking.find("1001")
        self.assertTrue(order.email_sent)
        self.assertEqual(order.status, "Sent")
        self.assertEqual(order.send_status, "OK")
        self.assertEqual(order.date_sent, NOW)
        self.assertEqual(order.amount, 20.0)
        self.assertEqual([item.sku for item in services.orders.line_items.list_for("1001")], ["DK-1"])

    def test_already_sent_or_unapproved_orders_are_skipped(self):
        services = self._approved_po()
        services.orders.send_order("1001")
        self.assertEqual(services.orders.send_order("1001"), "SKIPPED")

        services.orders.create_po("Colombo City", "Noritake", "1002", now=NOW)
        self.assertEqual(services.orders.send_order("1002"), "SKIPPED")
        self.assertEqual(services.orders.send_order("404"), "ERROR")

    def test_email_failure_is_recorded_on_the_row(self):
        services = self._approved_po(notifier=RecordingNotifier(fail_with="SMTP down"))
        outcome = services.orders.send_order("1001")

        self.assertEqual(outcome, "EMAIL_FAIL")
        order = services.orders.tracking.find("1001")
        self.assertFalse(order.email_sent)
        self.assertEqual(order.status, "Pending")
        self.assertEqual(order.send_status, "SMTP down")

    def test_held_lock_skips_send(self):
        services = self._approved_po(SEND_LOCK_TIMEOUT_SECONDS=0)
        with services.orders.locks.hold("order:1001") as acquired:
            self.assertTrue(acquired)
            self.assertEqual(services.orders.send_order("1001"), "SKIPPED")
        self.assertFalse(services.orders.tracking.find("1001").email_sent)

    def test_send_approved_pos_counts_outcomes(self):
        services = self._approved_po()
        services.orders.create_po("Colombo City", "Noritake", "1002", now=NOW)
        stats = services.orders.send_approved_pos(now=NOW)
        self.assertEqual(stats, {"OK": 1, "SKIPPED": 0, "EMAIL_FAIL": 0, "ERROR": 0})


class RefreshAndCloseTest(unittest.TestCase):
    def test_refresh_recomputes_open_po_amounts(self):
        services = _services()
        services.orders.create_po("Colombo City", "Dankotuwa", "1001", now=NOW)
        item = next(item for item in services.orders.line_items.list_for("1001") if item.sku == "DK-1")
        LINE_ITEM_SCHEMA.update(services.store, item.row_index, order_qty=5)

        self.assertEqual(services.orders.refresh_po_values(), 1)
        self.assertEqual(services.orders.tracking.find("1001").amount, 550.0)

    def test_close_old_orders_by_fulfillment(self):
        services = _services()
        old = NOW - timedelta(days=11)
        for number, status, pct in (
            ("1001", "Sent", 0.0),
            ("1002", "Partially Received", 0.6),
            ("1003", "Partially Received", 1.0),
        ):
            services.orders.create_po("Colombo City", "Dankotuwa", number, now=old)
            order = services.orders.tracking.find(number)
            services.orders.tracking.update(order, status=status, email_sent=True, fulfillment_percentage=pct)
        services.orders.create_po("Colombo City", "Noritake", "1004", now=NOW - timedelta(days=2))
        recent = services.orders.tracking.find("1004")
        services.orders.tracking.update(recent, status="Sent", email_sent=True)

        stats = services.orders.close_old_orders(now=NOW)

        self.assertEqual(stats["closed"], 3)
        statuses = {order.number: order.status for order in services.orders.tracking.list_all()}
        self.assertEqual(
            statuses,
            {
                "1001": "Closed - No Receipt",
                "1002": "Closed - Partial",
                "1003": "Closed - Complete",
                "1004": "Sent",
            },
        )

    def test_late_grn_reopens_closed_po(self):
        services = _services()
        services.orders.create_po("Colombo City", "Dankotuwa", "1001", now=NOW)
        services.orders.tracking.update(services.orders.tracking.find("1001"), status="Closed - Partial")

        result = services.orders.handle_late_grn("1001")

        self.assertTrue(result.get("changed"))
        self.assertEqual(services.orders.tracking.find("1001").status, "Late Fulfillment")

    def test_eligible_orders_are_receivable_and_newest_first(self):
        services = _services()
        services.orders.create_po("Colombo City", "Dankotuwa", "1001", now=NOW - timedelta(days=3))
        services.orders.create_po("Colombo City", "Noritake", "1002", now=NOW)
        services.orders.create_po("Colombo City", "Dankotuwa", "1003", now=NOW - timedelta(days=1))
        for number in ("1001", "1003"):
            services.orders.tracking.update(services.orders.tracking.find(number), status="Sent")

        eligible = services.orders.get_eligible_orders_for_grn()

        self.assertEqual([entry["orderNumber"] for entry in eligible], ["1003", "1001"])


if __name__ == "__main__":
    unittest.main()
