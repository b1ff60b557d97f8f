import unittest

from fastapi.testclient import TestClient

from procurement.dependencies import get_services
from procurement.main import app

from factories import add_distributor, classification_row, make_services, seed_catalog


class ApiTest(unittest.TestCase):
    def setUp(self):
        self.services = make_services()
        add_distributor(self.services.store)
        seed_catalog(self.services.store, [classification_row("DK-1", 2, avg_cost=800, item_name="Dinner Plates")])
        app.dependency_overrides[get_services] = lambda: self.services
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    def test_health_lists_tables(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")
        self.assertIn("SKUClassification", response.json()["tables"])

    def test_po_lifecycle(self):
        created = self.client.post("/orders/po/next", json={"outlet": "Colombo City", "brand": "Dankotuwa"})
        self.assertEqual(created.status_code, 200)
        number = created.json()["poNumber"]
        self.assertEqual(number, "1001")

        self.assertEqual(self.client.post("/orders/{}/approve".format(number)).status_code, 200)
        sent = self.client.post("/orders/{}/send".format(number))
        self.assertEqual(sent.json(), {"orderNumber": number, "sendStatus": "OK"})

        eligible = self.client.get("/orders/eligible-for-grn").json()
        self.assertEqual([order["orderNumber"] for order in eligible], [number])

        grn = self.client.post(
            "/grns/",
            json={"order_number": number, "invoice_number": "INV-7", "amount": 800},
        )
        self.assertEqual(grn.status_code, 200)
        self.assertEqual(grn.json()["status"], "Partially Received")
        approved = self.client.post("/grns/{}/approve".format(grn.json()["grnNumber"]))
        self.assertEqual(approved.status_code, 200)

        fulfillment = self.client.post("/orders/{}/fulfillment".format(number)).json()
        self.assertEqual(fulfillment["fulfillmentPercentage"], 0.5)

    def test_validation_failures_map_to_400(self):
        response = self.client.post(
            "/grns/",
            json={"order_number": "9999", "invoice_number": "INV-1", "amount": 10},
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("not found", response.json()["detail"])

    def test_customer_order_endpoint(self):
        response = self.client.post(
            "/customer-orders/",
            json={
                "outlet": "Colombo City",
                "brand": "Dankotuwa",
                "customer_name": "Nimal Perera",
                "customer_email": "nimal@example.com",
                "items": [{"item_code": "DK-1", "quantity": 2}],
            },
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["autoApproved"])

        invalid = self.client.post(
            "/customer-orders/",
            json={"outlet": "Colombo City", "brand": "Dankotuwa", "customer_name": "X", "items": [{"quantity": 0}]},
        )
        self.assertEqual(invalid.status_code, 422)

    def test_customer_order_send_retry_endpoint(self):
        notifier = self.services.orders.notifier
        notifier.fail_with = "mailbox full"
        created = self.client.post(
            "/customer-orders/",
            json={
                "outlet": "Colombo City",
                "brand": "Dankotuwa",
                "customer_name": "Nimal Perera",
                "items": [{"item_code": "DK-1", "quantity": 2}],
            },
        ).json()
        self.assertEqual(created["sendStatus"], "EMAIL_FAIL")

        notifier.fail_with = None
        number = created["coNumber"]
        resent = self.client.post("/customer-orders/{}/send".format(number))

        self.assertEqual(resent.status_code, 200)
        self.assertEqual(resent.json(), {"orderNumber": number, "sendStatus": "OK"})
        self.assertTrue(self.services.customer_orders.customer_orders.find(number).sent)

    def test_late_grn_endpoint(self):
        number = self.client.post("/orders/po/next", json={"outlet": "Colombo City", "brand": "Dankotuwa"}).json()["poNumber"]
        order = self.services.orders.tracking.find(number)
        self.services.orders.tracking.update(order, status="Closed - No Receipt")

        rejected = self.client.post("/grns/", json={"order_number": number, "invoice_number": "INV-1", "amount": 10})
        self.assertEqual(rejected.status_code, 400)

        reopened = self.client.post("/orders/{}/late-grn".format(number))
        self.assertEqual(reopened.json()["status"], "Late Fulfillment")
        accepted = self.client.post("/grns/", json={"order_number": number, "invoice_number": "INV-1", "amount": 10})
        self.assertEqual(accepted.status_code, 200)

    def test_bins_missing_is_404(self):
        self.assertEqual(self.client.get("/classification/bins").status_code, 404)

    def test_rules_seed_and_evaluate(self):
        self.assertEqual(self.client.post("/rules/seed").json()["created"], 5)
        decision = self.client.post(
            "/rules/evaluate",
            json={"sku": "DK-1", "brand": "Dankotuwa", "item_name": "Dinner Plates", "current_stock": 2, "standard_qty": 1},
        ).json()
        self.assertEqual(decision["quantity"], 6)
        self.assertIn("Dankotuwa Plates MOQ", decision["justification"])


if __name__ == "__main__":
    unittest.main()
