from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from typing import Optional

from procurement.core.constants import DEFAULT_RULE_PRIORITY, STOCK_CONDITIONS, WILDCARD
from procurement.core.exceptions import ConfigurationError, DataIntegrityWarning
from procurement.core.values import to_bool, to_float, to_text
from procurement.repositories.rules import BusinessRule, BusinessRuleRepository
from procurement.storage.base import TableStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuleDecision:
    quantity: float
    justification: Optional[str] = None


def _is_wildcard(criteria) -> bool:
    text = to_text(criteria)
    return not text or text.upper() == WILDCARD


def matches_criteria(value, criteria) -> bool:
    if _is_wildcard(criteria):
        return True
    return to_text(value).lower() == to_text(criteria).lower()


def matches_product_filter(item_name, product_filter) -> bool:
    if _is_wildcard(product_filter):
        return True
    return to_text(product_filter).lower() in to_text(item_name).lower()


def evaluate_stock_condition(current_stock, condition, value1=None, value2=None) -> bool:
    stock = to_float(current_stock)
    low = to_float(value1)
    high = to_float(value2)
    condition_text = to_text(condition).lower()
    if condition_text == "<=":
        return stock <= low
    if condition_text == ">=":
        return stock >= low
    if condition_text == "=":
        return stock == low
    if condition_text == "between":
        return low <= stock <= high
    return False


def _rule_problem(rule: BusinessRule) -> Optional[str]:
    condition = to_text(rule.stock_condition).lower()
    if _is_wildcard(rule.stock_condition):
        return "missing stock condition"
    if condition not in STOCK_CONDITIONS:
        return "unknown stock condition {!r}".format(rule.stock_condition)
    if rule.order_quantity is None:
        return "order quantity is not numeric"
    return None


def active_rules(rules: list[BusinessRule]) -> list[BusinessRule]:
    """Usable rules in evaluation order (priority ascending, missing = lowest)."""
    usable = []
    for rule in rules:
        if not rule.name or not to_bool(rule.active):
            continue
        problem = _rule_problem(rule)
        if problem:
            message = "Invalid business rule skipped: {} ({})".format(rule.name, problem)
            logger.warning(message)
            warnings.warn(message, DataIntegrityWarning, stacklevel=2)
            continue
        usable.append(rule)
    usable.sort(key=lambda rule: rule.priority if rule.priority else DEFAULT_RULE_PRIORITY)
    return usable


def evaluate_rule(rule: BusinessRule, vendor, brand, item_name, outlet, current_stock) -> Optional[float]:
    """Quantity chosen by ``rule`` or None when it does not match."""
    if not matches_criteria(vendor, rule.vendor):
        return None
    if not matches_criteria(brand, rule.brand):
        return None
    if not matches_product_filter(item_name, rule.product_filter):
        return None
    if not matches_criteria(outlet, rule.outlet):
        return None
    if evaluate_stock_condition(current_stock, rule.stock_condition, rule.stock_value1, rule.stock_value2):
        return rule.order_quantity
    return to_float(rule.alternate_quantity)


def justification_for(rule: BusinessRule) -> str:
    text = "Business Rule: {}".format(rule.name)
    if rule.notes:
        text += " - {}".format(rule.notes)
    return text


class BusinessRuleEngine:
    def __init__(self, store: TableStore) -> None:
        self.repository = BusinessRuleRepository(store)

    def load_rules(self) -> list[BusinessRule]:
        if not self.repository.exists():
            logger.info("BusinessRules table not found; using standard quantities")
            return []
        return active_rules(self.repository.list_rules())

    def apply_business_rules(
        self,
        sku,
        vendor,
        brand,
        item_name,
        outlet,
        current_stock,
        standard_qty,
    ) -> RuleDecision:
        """First matching active rule by priority overrides ``standard_qty``.

        Never raises: a missing or malformed rules table falls back to the
        standard quantity.
        """
        try:
            rules = self.load_rules()
            for rule in rules:
                quantity = evaluate_rule(rule, vendor, brand, item_name, outlet, current_stock)
                if quantity is None:
                    continue
                logger.debug("Business rule %s applied to SKU %s: quantity %s", rule.name, sku, quantity)
                return RuleDecision(quantity=quantity, justification=justification_for(rule))
        except (ConfigurationError, TypeError, ValueError) as exc:
            logger.warning("Business rules unavailable for SKU %s: %s", sku, exc)
        return RuleDecision(quantity=standard_qty)

    def seed_business_rules(self) -> int:
        return self.repository.seed()


__all__ = [
    "BusinessRuleEngine",
    "RuleDecision",
    "active_rules",
    "evaluate_rule",
    "evaluate_stock_condition",
    "justification_for",
    "matches_criteria",
    "matches_product_filter",
]
