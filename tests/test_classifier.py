import unittest
from datetime import datetime

from procurement.config import Settings
from procurement.core.constants import BINNING_CONFIG_TABLE, CLASSIFICATION_TABLE
from procurement.repositories.classification import ClassificationRepository
from procurement.repositories.sales import SalesRecord, SalesRepository
from procurement.services.binning_service import compute_average_cost_bins
from procurement.services.classifier import (
    SKUClassifier,
    aggregate_sales,
    assign_rank_classes,
    bin_quantity,
    classify_records,
    decide_usage,
    recommended_quantity,
    velocity_class,
)
from procurement.storage import InMemoryTableStore

TODAY = datetime(2024, 3, 15)
SETTINGS = Settings()


def _sale(sku, qty, revenue, margin, cost, last_bill, first_inward, stock, outlet="Colombo City", brand="Dankotuwa"):
    return SalesRecord(
        sku=sku,
        item_name="Item {}".format(sku),
        sold_qty=qty,
        revenue=revenue,
        gross_margin=margin,
        cost_price=cost,
        last_bill_date=last_bill,
        first_inward_date=first_inward,
        current_stock=stock,
        brand=brand,
        outlet=outlet,
    )


def _history():
    return [
        _sale("A", 10, 700, 280, 40, datetime(2024, 3, 10), datetime(2023, 12, 25), 2),
        _sale("B", 5, 250, 50, 30, datetime(2024, 3, 1), datetime(2023, 11, 1), 0),
        _sale("C", 1, 50, 5, 30, datetime(2023, 8, 1), datetime(2023, 6, 1), 4),
    ]


class QuantityRulesTest(unittest.TestCase):
    def test_high_cost_item_with_low_sales_gets_single_unit(self):
        bin_qty = bin_quantity(2500, 3, [], SETTINGS)
        self.assertEqual(bin_qty, 1)
        self.assertEqual(recommended_quantity(bin_qty, 3, SETTINGS), 1)

    def test_high_cost_item_selling_monthly_gets_two_units(self):
        self.assertEqual(bin_quantity(2500, 6, [], SETTINGS), 2)

    def test_velocity_thresholds(self):
        self.assertEqual(velocity_class(60, SETTINGS), "Fast")
        self.assertEqual(velocity_class(61, SETTINGS), "Medium")
        self.assertEqual(velocity_class(120, SETTINGS), "Slow")
        self.assertEqual(velocity_class(151, SETTINGS), "Dead")


class DecideUsageTest(unittest.TestCase):
    def _decide(self, **overrides):
        values = dict(
            is_new_item=False,
            rev_class="A",
            velocity="Fast",
            margin="Medium",
            active_flag="Active",
            recommended_qty=5,
        )
        values.update(overrides)
        return decide_usage(**values)

    def test_new_item_wins_over_everything(self):
        self.assertEqual(self._decide(is_new_item=True, rev_class="C", velocity="Dead"), (5, "New-Item"))

    def test_dead_branches(self):
        self.assertEqual(self._decide(rev_class="C", velocity="Medium"), (0, "Dead"))
        self.assertEqual(self._decide(velocity="Dead"), (0, "Dead"))
        self.assertEqual(self._decide(active_flag="Inactive"), (0, "Dead"))

    def test_revenue_class_branches(self):
        self.assertEqual(self._decide(velocity="Slow"), (3, "Watch-List"))
        self.assertEqual(self._decide(velocity="Medium"), (5, "Auto-ReOrder"))
        self.assertEqual(self._decide(rev_class="B", margin="High", velocity="Slow"), (5, "Auto-ReOrder"))
        self.assertEqual(self._decide(rev_class="B", velocity="Medium"), (3, "Watch-List"))
        self.assertEqual(self._decide(rev_class="C", velocity="Fast"), (5, "Auto-ReOrder"))


class RankingTest(unittest.TestCase):
    def test_revenue_classes_partition_each_group(self):
        aggregates = aggregate_sales(_history() + [_sale("Z", 1, 10, 1, 5, None, None, 0, brand="Noritake")])
        assign_rank_classes(aggregates.values(), SETTINGS)
        classes = {key[0]: aggregate.rev_class for key, aggregate in aggregates.items()}
        self.assertEqual(classes, {"A": "A", "B": "B", "C": "C", "Z": "C"})
        self.assertEqual(aggregates[("A", "Colombo City")].volume_class, "Fast")
        self.assertEqual(aggregates[("B", "Colombo City")].volume_class, "Slow")

    def test_current_stock_comes_from_latest_bill(self):
        records = [
            _sale("A", 1, 10, 1, 5, datetime(2024, 3, 1), None, 2),
            _sale("A", 1, 10, 1, 5, datetime(2024, 1, 1), None, 9),
        ]
        aggregate = aggregate_sales(records)[("A", "Colombo City")]
        self.assertEqual(aggregate.current_stock, 2)
        self.assertEqual(aggregate.qty, 2)
        self.assertEqual(aggregate.last_sold_date, datetime(2024, 3, 1))


class ClassifyRecordsTest(unittest.TestCase):
    def test_full_history(self):
        records = _history()
        rows = {row.sku: row for row in classify_records(records, compute_average_cost_bins(records), SETTINGS, TODAY)}

        a_row = rows["A"]
        self.assertEqual((a_row.rev_class, a_row.margin_class, a_row.velocity_class), ("A", "Medium", "Medium"))
        self.assertEqual((a_row.bin_qty, a_row.suggested_qty, a_row.final_order_qty), (3, 3, 1))
        self.assertEqual(a_row.usage_recommendation, "Auto-ReOrder")
        self.assertEqual(a_row.justification, "Revenue Rank: 1, Margin: 0.40, AvgTOS: 64.2, NewItem:false")

        b_row = rows["B"]
        self.assertEqual((b_row.rev_class, b_row.margin_class, b_row.velocity_class), ("B", "Low", "Slow"))
        self.assertEqual((b_row.suggested_qty, b_row.final_order_qty), (6, 6))
        self.assertEqual(b_row.usage_recommendation, "Watch-List")

        c_row = rows["C"]
        self.assertEqual(c_row.usage_recommendation, "Dead")
        self.assertEqual(c_row.final_order_qty, 0)

    def test_recent_first_inward_is_a_new_item(self):
        record = _sale("N", 12, 1200, 300, 100, datetime(2024, 3, 14), datetime(2024, 3, 5), 0)
        row = classify_records([record], {}, SETTINGS, TODAY)[0]
        self.assertEqual(row.usage_recommendation, "New-Item")
        self.assertEqual(row.suggested_qty, 2)
        self.assertEqual(row.final_order_qty, 2)
        self.assertTrue(row.justification.endswith("NewItem:true"))


class SKUClassifierTest(unittest.TestCase):
    def test_classify_skus_rewrites_output_table_and_persists_bins(self):
        store = InMemoryTableStore()
        sales = SalesRepository(store)
        for record in _history():
            sales.append(record)
        store.create_table(CLASSIFICATION_TABLE, ["Outlet", "Brand", "SKU", "FinalOrderQty"])
        store.append_row(CLASSIFICATION_TABLE, ["Old", "Old", "OLD", 9])

        rows = SKUClassifier(store, SETTINGS).classify_skus(today=TODAY)

        self.assertEqual(len(rows), 3)
        stored = ClassificationRepository(store).list_all()
        self.assertEqual(sorted(row.sku for row in stored), ["A", "B", "C"])
        self.assertTrue(store.has_table(BINNING_CONFIG_TABLE))

    def test_missing_sales_table_returns_empty(self):
        with self.assertLogs("procurement.services.classifier", level="WARNING"):
            rows = SKUClassifier(InMemoryTableStore(), SETTINGS).classify_skus(today=TODAY)
        self.assertEqual(rows, [])


if __name__ == "__main__":
    unittest.main()
