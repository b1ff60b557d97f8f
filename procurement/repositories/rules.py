from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from procurement.core.constants import BUSINESS_RULES_TABLE
from procurement.core.values import to_optional_float, to_text
from procurement.storage.base import Column, TableSchema, TableStore

RULES_SCHEMA = TableSchema(
    BUSINESS_RULES_TABLE,
    [
        Column("name", "RuleName", to_text, required=True),
        Column("vendor", "Vendor"),
        Column("brand", "Brand"),
        Column("product_filter", "ProductFilter"),
        Column("outlet", "Outlet"),
        Column("stock_condition", "StockCondition", to_text, required=True),
        Column("stock_value1", "StockValue1", to_optional_float),
        Column("stock_value2", "StockValue2", to_optional_float),
        Column("order_quantity", "OrderQuantity", to_optional_float, required=True),
        Column("alternate_quantity", "AlternateQuantity", to_optional_float),
        Column("priority", "Priority", to_optional_float),
        Column("active", "Active", to_text, required=True),
        Column("notes", "Notes"),
    ],
)


@dataclass
class BusinessRule:
    name: str = ""
    vendor: str = ""
    brand: str = ""
    product_filter: str = ""
    outlet: str = ""
    stock_condition: str = ""
    stock_value1: Optional[float] = None
    stock_value2: Optional[float] = None
    order_quantity: Optional[float] = None
    alternate_quantity: Optional[float] = None
    priority: Optional[float] = None
    active: str = ""
    notes: str = ""
    row_index: Optional[int] = None


SAMPLE_RULES = (
    BusinessRule(
        name="Dankotuwa Plates MOQ",
        vendor="ANY",
        brand="Dankotuwa",
        product_filter="plates",
        outlet="ANY",
        stock_condition="<=",
        stock_value1=3,
        order_quantity=6,
        alternate_quantity=0,
        priority=1,
        active="TRUE",
        notes="Vendor requires minimum 6-piece orders for plates due to packaging",
    ),
    BusinessRule(
        name="Crystal Safety Stock",
        vendor="ANY",
        brand="ANY",
        product_filter="crystal",
        outlet="ANY",
        stock_condition="<=",
        stock_value1=2,
        order_quantity=5,
        alternate_quantity=0,
        priority=2,
        active="TRUE",
        notes="Premium outlets need higher safety stock for crystal items",
    ),
    BusinessRule(
        name="Seasonal Tea Sets",
        vendor="ANY",
        brand="ANY",
        product_filter="tea set",
        outlet="ANY",
        stock_condition="between",
        stock_value1=5,
        stock_value2=15,
        order_quantity=20,
        alternate_quantity=10,
        priority=3,
        active="TRUE",
        notes="Seasonal boost: order more tea sets when stock is moderate",
    ),
    BusinessRule(
        name="Bulk Discount Rule",
        vendor="Premium Vendor",
        brand="ANY",
        product_filter="ANY",
        outlet="ANY",
        stock_condition=">=",
        stock_value1=50,
        order_quantity=0,
        alternate_quantity=100,
        priority=4,
        active="FALSE",
        notes="Example: skip small orders, place bulk orders instead (disabled)",
    ),
    BusinessRule(
        name="Dead Stock Prevention",
        vendor="ANY",
        brand="ANY",
        product_filter="discontinued",
        outlet="ANY",
        stock_condition=">=",
        stock_value1=0,
        order_quantity=0,
        alternate_quantity=0,
        priority=10,
        active="TRUE",
        notes="Never order discontinued items regardless of stock level",
    ),
)


class BusinessRuleRepository:
    def __init__(self, store: TableStore) -> None:
        self.store = store

    def exists(self) -> bool:
        return RULES_SCHEMA.exists(self.store)

    def list_rules(self) -> list[BusinessRule]:
        return RULES_SCHEMA.records(self.store, BusinessRule)

    def append(self, rule: BusinessRule) -> None:
        RULES_SCHEMA.append(self.store, RULES_SCHEMA.values_of(rule))

    def seed(self, rules=SAMPLE_RULES) -> int:
        """Create the rules table with sample rules; no-op when it already exists."""
        if self.exists():
            return 0
        RULES_SCHEMA.ensure(self.store)
        for rule in rules:
            self.append(rule)
        return len(rules)


__all__ = ["BusinessRule", "BusinessRuleRepository", "RULES_SCHEMA", "SAMPLE_RULES"]
