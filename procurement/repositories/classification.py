from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from procurement.core.constants import CLASSIFICATION_TABLE
from procurement.core.values import normalize_name, to_float, to_int, to_text
from procurement.storage.base import Column, TableSchema, TableStore

CLASSIFICATION_SCHEMA = TableSchema(
    CLASSIFICATION_TABLE,
    [
        Column("outlet", "Outlet", to_text, required=True),
        Column("brand", "Brand", to_text, required=True),
        Column("sku", "SKU", to_text, required=True),
        Column("item_name", "ItemName"),
        Column("avg_cost", "AvgCost", to_float),
        Column("rev_class", "RevClass"),
        Column("margin_class", "MarginClass"),
        Column("velocity_class", "VelocityClass"),
        Column("bin_qty", "BinQty", to_int),
        Column("suggested_qty", "SuggestedQty", to_int),
        Column("current_stock", "CS", to_float),
        Column("final_order_qty", "FinalOrderQty", to_int, required=True),
        Column("usage_recommendation", "UsageReco"),
        Column("justification", "Justification"),
    ],
)


@dataclass
class SkuClassification:
    outlet: str = ""
    brand: str = ""
    sku: str = ""
    item_name: str = ""
    avg_cost: float = 0.0
    rev_class: str = ""
    margin_class: str = ""
    velocity_class: str = ""
    bin_qty: int = 0
    suggested_qty: int = 0
    current_stock: float = 0.0
    final_order_qty: int = 0
    usage_recommendation: str = ""
    justification: str = ""
    row_index: Optional[int] = None


class ClassificationRepository:
    def __init__(self, store: TableStore) -> None:
        self.store = store

    def exists(self) -> bool:
        return CLASSIFICATION_SCHEMA.exists(self.store)

    def list_all(self) -> list[SkuClassification]:
        if not self.exists():
            return []
        return CLASSIFICATION_SCHEMA.records(self.store, SkuClassification)

    def replace_all(self, rows: Iterable[SkuClassification]) -> None:
        CLASSIFICATION_SCHEMA.replace_all(
            self.store,
            (CLASSIFICATION_SCHEMA.values_of(row) for row in rows),
        )

    def list_for(self, outlet: str, brand: str) -> list[SkuClassification]:
        outlet_key = normalize_name(outlet)
        brand_key = normalize_name(brand)
        return [
            row
            for row in self.list_all()
            if normalize_name(row.outlet) == outlet_key and normalize_name(row.brand) == brand_key
        ]

    def find_sku(self, sku: str, outlet: Optional[str] = None) -> Optional[SkuClassification]:
        target = to_text(sku).upper()
        fallback = None
        for row in self.list_all():
            if row.sku.upper() != target:
                continue
            if outlet is None or normalize_name(row.outlet) == normalize_name(outlet):
                return row
            if fallback is None:
                fallback = row
        return fallback


__all__ = ["CLASSIFICATION_SCHEMA", "ClassificationRepository", "SkuClassification"]
