from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from procurement.core.constants import BINNING_CONFIG_TABLE, INFINITY_TEXT
from procurement.core.values import to_int, to_optional_float, to_text
from procurement.storage.base import Column, TableSchema, TableStore

BINNING_SCHEMA = TableSchema(
    BINNING_CONFIG_TABLE,
    [
        Column("outlet", "Outlet", to_text, required=True),
        Column("bin_index", "BinIndex", to_int, required=True),
        Column("max_avg_cost", "MaxAvgCost", to_optional_float, required=True),
        Column("pack_qty", "PackQty", to_int, required=True),
    ],
)


@dataclass(frozen=True)
class CostBin:
    max_avg_cost: float
    pack_qty: int

    def accepts(self, avg_cost: float) -> bool:
        return avg_cost <= self.max_avg_cost


BinTable = dict[str, list[CostBin]]


def _persisted_max(value: float):
    if math.isinf(value):
        return INFINITY_TEXT
    return value


class BinningConfigRepository:
    def __init__(self, store: TableStore) -> None:
        self.store = store

    def read(self) -> Optional[BinTable]:
        """Return the stored outlet -> bins mapping, or None when nothing is stored."""
        if not BINNING_SCHEMA.exists(self.store):
            return None
        indexed: dict[str, dict[int, CostBin]] = {}
        for _row_index, values in BINNING_SCHEMA.read(self.store):
            max_cost = values["max_avg_cost"]
            if max_cost is None:
                continue
            indexed.setdefault(values["outlet"], {})[values["bin_index"]] = CostBin(
                max_avg_cost=max_cost,
                pack_qty=values["pack_qty"],
            )
        if not indexed:
            return None
        return {
            outlet: [bins[idx] for idx in sorted(bins)]
            for outlet, bins in indexed.items()
        }

    def write(self, bins: BinTable) -> None:
        rows = []
        for outlet, outlet_bins in bins.items():
            for idx, cost_bin in enumerate(outlet_bins, start=1):
                rows.append(
                    {
                        "outlet": outlet,
                        "bin_index": idx,
                        "max_avg_cost": _persisted_max(cost_bin.max_avg_cost),
                        "pack_qty": cost_bin.pack_qty,
                    }
                )
        BINNING_SCHEMA.replace_all(self.store, rows)


__all__ = ["BINNING_SCHEMA", "BinTable", "BinningConfigRepository", "CostBin"]
