import unittest
from datetime import timedelta

from procurement.core.constants import GRN_TABLE
from procurement.repositories.orders import LineItem

from factories import NOW, add_distributor, make_services


def _sent_po(services, number="1001", amount=10000):
    services.orders.create_po(
        "Colombo City",
        "Dankotuwa",
        number,
        line_items=[LineItem(sku="DK-1", item_name="Plate", avg_cost=amount / 10, order_qty=10)],
        now=NOW,
    )
    services.orders.approve_po(number, now=NOW)
    services.orders.send_order(number, now=NOW)
    return services.orders.tracking.find(number)


def _services():
    services = make_services()
    add_distributor(services.store)
    return services


class CreateGRNTest(unittest.TestCase):
    def test_first_grn_moves_sent_po_to_partially_received(self):
        services = _services()
        _sent_po(services)

        result = services.grns.create_grn("1001", "INV-1", 6000, now=NOW)

        self.assertTrue(result.success)
        self.assertEqual(result.get("grnNumber"), "GRN-1001-001")
        order = services.orders.tracking.find("1001")
        self.assertEqual(order.status, "Partially Received")
        self.assertEqual(order.fulfillment_percentage, 0.0)
        grn = services.grns.grns.find("GRN-1001-001")
        self.assertFalse(grn.approved)
        self.assertEqual(grn.date, NOW)

    def test_grn_numbers_are_sequential_per_order(self):
        services = _services()
        _sent_po(services, "1001")
        _sent_po(services, "1002")
        numbers = [
            services.grns.create_grn("1001", "INV-1", 100, now=NOW).get("grnNumber"),
            services.grns.create_grn("1001", "INV-2", 100, now=NOW).get("grnNumber"),
            services.grns.create_grn("1002", "INV-3", 100, now=NOW).get("grnNumber"),
        ]
        self.assertEqual(numbers, ["GRN-1001-001", "GRN-1001-002", "GRN-1002-001"])

    def test_non_receivable_order_fails_without_mutation(self):
        services = _services()
        services.orders.create_po(
            "Colombo City",
            "Dankotuwa",
            "1001",
            line_items=[LineItem(sku="DK-1", avg_cost=10, order_qty=1)],
            now=NOW,
        )
        before = {name: services.store.get_all_rows(name) for name in services.store.table_names()}

        result = services.grns.create_grn("1001", "INV-1", 10, now=NOW)

        self.assertFalse(result.success)
        self.assertIn("not eligible", result.message)
        after = {name: services.store.get_all_rows(name) for name in services.store.table_names()}
        self.assertEqual(before, after)
        self.assertFalse(services.store.has_table(GRN_TABLE))

    def test_validation_failures(self):
        services = _services()
        _sent_po(services)
        self.assertFalse(services.grns.create_grn("1001", "INV-1", 0).success)
        self.assertFalse(services.grns.create_grn("1001", "", 10).success)
        self.assertFalse(services.grns.create_grn("9999", "INV-1", 10).success)

    def test_closed_po_is_rejected_without_changes(self):
        services = _services()
        order = _sent_po(services)
        services.orders.tracking.update(order, status="Closed - Partial")
        before = {name: services.store.get_all_rows(name) for name in services.store.table_names()}

        result = services.grns.create_grn("1001", "INV-9", 500, now=NOW)

        self.assertFalse(result.success)
        self.assertIn("not eligible", result.message)
        after = {name: services.store.get_all_rows(name) for name in services.store.table_names()}
        self.assertEqual(before, after)
        self.assertEqual(services.orders.tracking.find("1001").status, "Closed - Partial")

    def test_late_fulfillment_reopens_closed_po_for_grn(self):
        services = _services()
        order = _sent_po(services)
        services.orders.tracking.update(order, status="Closed - No Receipt")

        late = services.orders.handle_late_grn("1001")
        result = services.grns.create_grn("1001", "INV-9", 500, now=NOW)

        self.assertTrue(late.get("changed"))
        self.assertTrue(result.success)
        self.assertEqual(result.get("status"), "Late Fulfillment")


class ApproveGRNTest(unittest.TestCase):
    def test_sixty_then_hundred_percent_closes_complete(self):
        services = _services()
        _sent_po(services)
        first = services.grns.create_grn("1001", "INV-1", 6000, now=NOW).get("grnNumber")
        second = services.grns.create_grn("1001", "INV-2", 4000, now=NOW).get("grnNumber")

        services.grns.approve_grn(first, now=NOW)
        order = services.orders.tracking.find("1001")
        self.assertEqual(order.fulfillment_percentage, 0.6)
        self.assertEqual(order.fulfillment_amount, 6000)
        self.assertEqual(order.status, "Partially Received")

        services.grns.approve_grn(second, now=NOW)
        order = services.orders.tracking.find("1001")
        self.assertEqual(order.fulfillment_percentage, 1.0)
        self.assertEqual(order.status, "Closed - Complete")

    def test_fulfillment_does_not_depend_on_approval_order(self):
        results = []
        for order_of_approval in ((0, 1, 2), (2, 0, 1)):
            services = _services()
            _sent_po(services)
            numbers = [
                services.grns.create_grn("1001", "INV-{}".format(idx), amount, now=NOW).get("grnNumber")
                for idx, amount in enumerate((1000, 2500, 1500))
            ]
            for idx in order_of_approval:
                services.grns.approve_grn(numbers[idx], now=NOW)
            order = services.orders.tracking.find("1001")
            results.append((order.fulfillment_amount, order.fulfillment_percentage))
        self.assertEqual(results[0], results[1])
        self.assertEqual(results[0], (5000, 0.5))

    def test_approving_twice_is_harmless(self):
        services = _services()
        _sent_po(services)
        number = services.grns.create_grn("1001", "INV-1", 100, now=NOW).get("grnNumber")
        services.grns.approve_grn(number, approval_type="Manual", now=NOW)
        result = services.grns.approve_grn(number, now=NOW)
        self.assertTrue(result.success)
        self.assertIn("already approved", result.message)

    def test_unknown_grn(self):
        self.assertFalse(_services().grns.approve_grn("GRN-X-001").success)


class AutoApproveGRNTest(unittest.TestCase):
    def test_only_grns_older_than_window_are_approved(self):
        services = _services()
        _sent_po(services)
        old = services.grns.create_grn("1001", "INV-1", 2000, now=NOW - timedelta(minutes=90)).get("grnNumber")
        fresh = services.grns.create_grn("1001", "INV-2", 3000, now=NOW - timedelta(minutes=10)).get("grnNumber")

        stats = services.grns.auto_approve_old_grns(now=NOW)

        self.assertEqual(stats, {"checked": 1, "approved": 1})
        self.assertEqual(services.grns.grns.find(old).approval_type, "Auto")
        self.assertFalse(services.grns.grns.find(fresh).approved)
        self.assertEqual(services.orders.tracking.find("1001").fulfillment_percentage, 0.2)

    def test_sweep_is_idempotent(self):
        services = _services()
        _sent_po(services)
        services.grns.create_grn("1001", "INV-1", 2000, now=NOW - timedelta(hours=2))
        services.grns.auto_approve_old_grns(now=NOW)
        self.assertEqual(services.grns.auto_approve_old_grns(now=NOW), {"checked": 0, "approved": 0})


if __name__ == "__main__":
    unittest.main()
