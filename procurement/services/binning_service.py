from __future__ import annotations

import logging
import math
from typing import Iterable, Optional

from procurement.core.constants import BIN_PACK_QUANTITIES, BIN_PERCENTILES
from procurement.core.values import normalize_name
from procurement.repositories.binning import BinningConfigRepository, BinTable, CostBin
from procurement.repositories.sales import SalesRecord
from procurement.storage.base import TableStore

logger = logging.getLogger(__name__)

DEFAULT_BINS = (CostBin(max_avg_cost=math.inf, pack_qty=1),)


def _nearest_rank(sorted_costs: list[float], percentile: float) -> float:
    idx = int(math.floor(percentile * len(sorted_costs)))
    return sorted_costs[min(idx, len(sorted_costs) - 1)]


def compute_average_cost_bins(records: Iterable[SalesRecord]) -> BinTable:
    """Quantile pack-size bins per outlet from each SKU's mean cost price.

    Cheaper items get larger pack multiples. Records without a numeric cost
    are ignored; an outlet with no costed SKU gets no entry.
    """
    totals: dict[tuple[str, str], list[float]] = {}
    for record in records:
        if record.cost_price is None or math.isinf(record.cost_price):
            continue
        key = (record.outlet, record.sku)
        entry = totals.setdefault(key, [0.0, 0])
        entry[0] += record.cost_price
        entry[1] += 1

    by_outlet: dict[str, list[float]] = {}
    for (outlet, _sku), (cost_sum, cost_count) in totals.items():
        by_outlet.setdefault(outlet, []).append(cost_sum / cost_count)

    bins: BinTable = {}
    for outlet, costs in by_outlet.items():
        costs.sort()
        outlet_bins = [
            CostBin(max_avg_cost=_nearest_rank(costs, percentile), pack_qty=pack_qty)
            for percentile, pack_qty in zip(BIN_PERCENTILES, BIN_PACK_QUANTITIES)
        ]
        outlet_bins.append(CostBin(max_avg_cost=math.inf, pack_qty=BIN_PACK_QUANTITIES[-1]))
        bins[outlet] = outlet_bins
    return bins


def bins_for(bins: BinTable, outlet: str) -> list[CostBin]:
    outlet_bins = bins.get(outlet)
    if outlet_bins is None:
        outlet_key = normalize_name(outlet)
        for name, candidate in bins.items():
            if normalize_name(name) == outlet_key:
                outlet_bins = candidate
                break
    return list(outlet_bins or DEFAULT_BINS)


def match_pack_qty(outlet_bins: Iterable[CostBin], avg_cost: float) -> int:
    for cost_bin in outlet_bins:
        if cost_bin.accepts(avg_cost):
            return cost_bin.pack_qty
    return 1


class BinningEngine:
    def __init__(self, store: TableStore) -> None:
        self.repository = BinningConfigRepository(store)

    def compute_average_cost_bins(self, records: Iterable[SalesRecord]) -> BinTable:
        return compute_average_cost_bins(records)

    def read_binning_config(self) -> Optional[BinTable]:
        return self.repository.read()

    def write_binning_config(self, bins: BinTable) -> None:
        self.repository.write(bins)
        logger.info("Wrote binning config for %d outlet(s)", len(bins))

    def load_or_compute(self, records: Iterable[SalesRecord]) -> BinTable:
        bins = self.read_binning_config()
        if bins is not None:
            logger.info("Loaded binning config for %d outlet(s)", len(bins))
            return bins
        logger.info("No binning config found; computing bins")
        bins = self.compute_average_cost_bins(records)
        self.write_binning_config(bins)
        return bins

    def recompute(self, records: Iterable[SalesRecord]) -> BinTable:
        bins = self.compute_average_cost_bins(records)
        self.write_binning_config(bins)
        return bins


__all__ = [
    "BinningEngine",
    "DEFAULT_BINS",
    "bins_for",
    "compute_average_cost_bins",
    "match_pack_qty",
]
