import math
import unittest

from procurement.core.constants import BINNING_CONFIG_TABLE
from procurement.repositories.binning import CostBin
from procurement.repositories.sales import SalesRecord
from procurement.services.binning_service import (
    BinningEngine,
    bins_for,
    compute_average_cost_bins,
    match_pack_qty,
)
from procurement.storage import InMemoryTableStore


def _record(sku, cost, outlet="Colombo City"):
    return SalesRecord(sku=sku, cost_price=cost, outlet=outlet, brand="Dankotuwa", sold_qty=1, revenue=cost)


class ComputeBinsTest(unittest.TestCase):
    def test_nearest_rank_cut_points_and_unbounded_last_bin(self):
        records = [_record("SKU-{}".format(idx), cost) for idx, cost in enumerate(range(10, 110, 10))]
        bins = compute_average_cost_bins(records)["Colombo City"]

        self.assertEqual([cost_bin.pack_qty for cost_bin in bins], [12, 6, 4, 3, 2, 1])
        # costs 10..100: floor(p*10) -> indexes 2, 4, 6, 8, 9
        self.assertEqual([cost_bin.max_avg_cost for cost_bin in bins[:5]], [30, 50, 70, 90, 100])
        self.assertTrue(math.isinf(bins[-1].max_avg_cost))

    def test_bins_are_non_decreasing(self):
        records = [_record("A", 5), _record("B", 500), _record("C", 50), _record("D", 50)]
        bins = compute_average_cost_bins(records)["Colombo City"]
        limits = [cost_bin.max_avg_cost for cost_bin in bins]
        self.assertEqual(limits, sorted(limits))

    def test_sku_cost_is_averaged_per_outlet(self):
        records = [_record("A", 100), _record("A", 300), _record("A", None), _record("A", 50, outlet="Kandy")]
        bins = compute_average_cost_bins(records)
        self.assertEqual(bins["Colombo City"][0].max_avg_cost, 200)
        self.assertEqual(bins["Kandy"][0].max_avg_cost, 50)

    def test_outlet_without_bins_uses_default(self):
        self.assertEqual(bins_for({}, "Nowhere"), [CostBin(math.inf, 1)])

    def test_match_pack_qty_uses_first_accepting_bin(self):
        bins = [CostBin(100, 12), CostBin(200, 6), CostBin(math.inf, 1)]
        self.assertEqual(match_pack_qty(bins, 100), 12)
        self.assertEqual(match_pack_qty(bins, 150), 6)
        self.assertEqual(match_pack_qty(bins, 10_000), 1)


class BinningConfigTest(unittest.TestCase):
    def test_round_trip_preserves_mapping_and_order(self):
        store = InMemoryTableStore()
        engine = BinningEngine(store)
        bins = {
            "Colombo City": [CostBin(120.5, 12), CostBin(300, 6), CostBin(math.inf, 1)],
            "Kandy": [CostBin(90, 4), CostBin(math.inf, 1)],
        }
        engine.write_binning_config(bins)

        self.assertIn("Infinity", [row[2] for row in store.get_all_rows(BINNING_CONFIG_TABLE)])
        self.assertEqual(engine.read_binning_config(), bins)

    def test_absent_or_empty_config_reads_as_none(self):
        store = InMemoryTableStore()
        engine = BinningEngine(store)
        self.assertIsNone(engine.read_binning_config())
        store.create_table(BINNING_CONFIG_TABLE, ["Outlet", "BinIndex", "MaxAvgCost", "PackQty"])
        self.assertIsNone(engine.read_binning_config())

    def test_stored_config_is_reused_until_recomputed(self):
        store = InMemoryTableStore()
        engine = BinningEngine(store)
        stored = {"Colombo City": [CostBin(1, 12), CostBin(math.inf, 1)]}
        engine.write_binning_config(stored)

        records = [_record("A", 500), _record("B", 900)]
        self.assertEqual(engine.load_or_compute(records), stored)

        recomputed = engine.recompute(records)
        self.assertEqual(recomputed["Colombo City"][0].max_avg_cost, 500)
        self.assertEqual(engine.read_binning_config(), recomputed)


if __name__ == "__main__":
    unittest.main()
