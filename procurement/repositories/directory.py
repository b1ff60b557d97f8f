from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from procurement.core.constants import (
    DISTRIBUTOR_MATRIX_TABLE,
    ITEM_MASTER_TABLE,
    VENDOR_DETAILS_TABLE,
)
from procurement.core.values import normalize_name, to_optional_float, to_text
from procurement.storage.base import Column, TableSchema, TableStore, find_column_index

logger = logging.getLogger(__name__)

VENDOR_SCHEMA = TableSchema(
    VENDOR_DETAILS_TABLE,
    [
        Column("name", "DISTRIBUTOR NAME", to_text, required=True),
        Column("email", "EMAIL ID", to_text, required=True),
    ],
)

# Positional layout of legacy item-master exports without usable headers.
_ITEM_MASTER_POSITIONS = {"brand": 0, "item_name": 1, "sku": 2, "cost_price": 3}
_ITEM_MASTER_HEADERS = {"brand": "Brand", "item_name": "ItemName", "sku": "SKU", "cost_price": "CostPrice"}


@dataclass(frozen=True)
class Distributor:
    name: str = ""
    email: str = ""


@dataclass(frozen=True)
class ItemMasterEntry:
    brand: str
    item_name: str
    sku: str
    cost_price: Optional[float]


class DistributorDirectory:
    """Brand x outlet distributor matrix plus the vendor email list."""

    def __init__(self, store: TableStore) -> None:
        self.store = store

    def distributor_name(self, brand: str, outlet: str) -> str:
        if not self.store.has_table(DISTRIBUTOR_MATRIX_TABLE):
            logger.warning("%s table not found; no distributor for %s/%s", DISTRIBUTOR_MATRIX_TABLE, brand, outlet)
            return ""
        rows = self.store.get_all_rows(DISTRIBUTOR_MATRIX_TABLE)
        if not rows:
            return ""
        outlet_key = normalize_name(outlet)
        outlet_col = None
        for idx, value in enumerate(rows[0]):
            if idx and normalize_name(value) == outlet_key:
                outlet_col = idx
                break
        if outlet_col is None:
            return ""
        brand_key = normalize_name(brand)
        for row in rows[1:]:
            if row and normalize_name(row[0]) == brand_key:
                return to_text(row[outlet_col]) if outlet_col < len(row) else ""
        return ""

    def distributor_email(self, distributor_name: str) -> str:
        if not distributor_name or not VENDOR_SCHEMA.exists(self.store):
            return ""
        target = distributor_name.strip().lower()
        for _row_index, values in VENDOR_SCHEMA.read(self.store):
            if values["name"].lower() == target:
                return values["email"]
        return ""

    def lookup(self, brand: str, outlet: str) -> Distributor:
        name = self.distributor_name(brand, outlet)
        return Distributor(name=name, email=self.distributor_email(name))


class ItemMasterRepository:
    def __init__(self, store: TableStore) -> None:
        self.store = store

    def _column_positions(self, header_row) -> dict[str, int]:
        positions = {
            field: find_column_index(header_row, header)
            for field, header in _ITEM_MASTER_HEADERS.items()
        }
        if all(idx >= 0 for idx in positions.values()):
            return positions
        logger.warning("%s headers not recognised; using positional columns", ITEM_MASTER_TABLE)
        return dict(_ITEM_MASTER_POSITIONS)

    def list_entries(self) -> list[ItemMasterEntry]:
        if not self.store.has_table(ITEM_MASTER_TABLE):
            return []
        rows = self.store.get_all_rows(ITEM_MASTER_TABLE)
        if not rows:
            return []
        positions = self._column_positions(rows[0])
        entries = []
        for row in rows[1:]:
            cells = {
                field: row[idx] if idx < len(row) else None
                for field, idx in positions.items()
            }
            sku = to_text(cells["sku"])
            if not sku:
                continue
            entries.append(
                ItemMasterEntry(
                    brand=to_text(cells["brand"]),
                    item_name=to_text(cells["item_name"]),
                    sku=sku,
                    cost_price=to_optional_float(cells["cost_price"]),
                )
            )
        return entries

    def find(self, sku: str) -> Optional[ItemMasterEntry]:
        target = to_text(sku).upper()
        for entry in self.list_entries():
            if entry.sku.upper() == target:
                return entry
        return None


__all__ = [
    "Distributor",
    "DistributorDirectory",
    "ItemMasterEntry",
    "ItemMasterRepository",
    "VENDOR_SCHEMA",
]
