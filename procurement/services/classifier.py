from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from procurement.config import Settings, get_settings
from procurement.core.constants import (
    ACTIVE,
    INACTIVE,
    USAGE_AUTO_REORDER,
    USAGE_DEAD,
    USAGE_NEW_ITEM,
    USAGE_WATCH_LIST,
)
from procurement.core.dates import as_reference_datetime, days_between
from procurement.repositories.binning import BinTable
from procurement.repositories.classification import ClassificationRepository, SkuClassification
from procurement.repositories.sales import SalesRecord, SalesRepository
from procurement.services.binning_service import BinningEngine, bins_for, match_pack_qty
from procurement.storage.base import TableStore

logger = logging.getLogger(__name__)


@dataclass
class SkuAggregate:
    """Sales history for one SKU at one outlet, rebuilt on every run."""

    sku: str
    outlet: str
    brand: str = ""
    item_name: str = ""
    qty: float = 0.0
    revenue: float = 0.0
    gross_margin: float = 0.0
    cost_sum: float = 0.0
    cost_count: int = 0
    bill_sum: float = 0.0
    bill_count: int = 0
    inward_sum: float = 0.0
    inward_count: int = 0
    first_inward_date: Optional[datetime] = None
    last_sold_date: Optional[datetime] = None
    current_stock: float = 0.0
    revenue_rank: int = 0
    rev_class: str = "C"
    volume_class: str = "Slow"
    _stock_as_of: Optional[datetime] = field(default=None, repr=False)

    def add(self, record: SalesRecord) -> None:
        self.qty += record.sold_qty
        self.revenue += record.revenue
        self.gross_margin += record.gross_margin
        if record.cost_price is not None and not math.isinf(record.cost_price):
            self.cost_sum += record.cost_price
            if record.cost_price > 0:
                self.cost_count += 1

        bill_date = record.last_bill_date
        inward_date = record.first_inward_date
        if bill_date is not None:
            self.bill_sum += bill_date.timestamp()
            self.bill_count += 1
            if self.last_sold_date is None or bill_date > self.last_sold_date:
                self.last_sold_date = bill_date
        if inward_date is not None:
            self.inward_sum += inward_date.timestamp()
            self.inward_count += 1
            if self.first_inward_date is None or inward_date < self.first_inward_date:
                self.first_inward_date = inward_date

        if self._stock_as_of is None or (bill_date is not None and bill_date >= self._stock_as_of):
            self.current_stock = record.current_stock
            self._stock_as_of = bill_date or self._stock_as_of
        if not self.item_name and record.item_name:
            self.item_name = record.item_name

    @property
    def avg_cost(self) -> float:
        return self.cost_sum / (self.cost_count or 1)

    @property
    def avg_bill_date(self) -> Optional[datetime]:
        if not self.bill_count:
            return None
        return datetime.fromtimestamp(self.bill_sum / self.bill_count)

    @property
    def avg_inward_date(self) -> Optional[datetime]:
        if not self.inward_count:
            return None
        return datetime.fromtimestamp(self.inward_sum / self.inward_count)


def aggregate_sales(records: Iterable[SalesRecord]) -> dict[tuple[str, str], SkuAggregate]:
    aggregates: dict[tuple[str, str], SkuAggregate] = {}
    for record in records:
        if not record.sku:
            continue
        key = (record.sku, record.outlet)
        aggregate = aggregates.get(key)
        if aggregate is None:
            aggregate = SkuAggregate(
                sku=record.sku,
                outlet=record.outlet,
                brand=record.brand,
                item_name=record.item_name,
            )
            aggregates[key] = aggregate
        aggregate.add(record)
    return aggregates


def _share_class(share: float, first_cutoff: float, second_cutoff: float, labels) -> str:
    if share <= first_cutoff:
        return labels[0]
    if share <= second_cutoff:
        return labels[1]
    return labels[2]


def assign_rank_classes(aggregates: Iterable[SkuAggregate], settings: Settings) -> None:
    """Revenue A/B/C and volume Fast/Medium/Slow by cumulative share per brand x outlet."""
    groups: dict[tuple[str, str], list[SkuAggregate]] = {}
    for aggregate in aggregates:
        groups.setdefault((aggregate.brand, aggregate.outlet), []).append(aggregate)

    for members in groups.values():
        total_revenue = sum(member.revenue for member in members)
        cumulative = 0.0
        by_revenue = sorted(members, key=lambda member: (-member.revenue, member.sku))
        for rank, member in enumerate(by_revenue, start=1):
            cumulative += member.revenue
            share = cumulative / total_revenue if total_revenue > 0 else 1.0
            member.revenue_rank = rank
            member.rev_class = _share_class(share, settings.REV_RANK_A, settings.REV_RANK_B, ("A", "B", "C"))

        total_qty = sum(member.qty for member in members)
        cumulative = 0.0
        for member in sorted(members, key=lambda member: (-member.qty, member.sku)):
            cumulative += member.qty
            share = cumulative / total_qty if total_qty > 0 else 1.0
            member.volume_class = _share_class(
                share, settings.VOL_RANK_A, settings.VOL_RANK_B, ("Fast", "Medium", "Slow")
            )


def velocity_class(avg_tos: float, settings: Settings) -> str:
    if avg_tos > settings.TOS_THRESHOLD_HIGH:
        return "Dead"
    if avg_tos > settings.TOS_THRESHOLD_MED:
        return "Slow"
    if avg_tos > settings.TOS_THRESHOLD_LOW:
        return "Medium"
    return "Fast"


def margin_class(item_margin: float, avg_margin: float, settings: Settings) -> str:
    if item_margin >= avg_margin + settings.GM_MARGIN_BAND:
        return "High"
    if item_margin <= avg_margin - settings.GM_MARGIN_BAND:
        return "Low"
    return "Medium"


def average_time_on_shelf(aggregate: SkuAggregate, today: datetime) -> float:
    tos_sold = 0.0
    if aggregate.avg_bill_date is not None and aggregate.avg_inward_date is not None:
        tos_sold = days_between(aggregate.avg_bill_date, aggregate.avg_inward_date)
    tos_idle = 0.0
    if aggregate.current_stock > 0 and aggregate.last_sold_date is not None:
        tos_idle = days_between(today, aggregate.last_sold_date)
    weight = aggregate.qty + aggregate.current_stock
    if weight <= 0:
        return 0.0
    return (tos_sold * aggregate.qty + tos_idle * aggregate.current_stock) / weight


def bin_quantity(avg_cost: float, qty: float, outlet_bins, settings: Settings) -> int:
    if avg_cost >= settings.HIGH_COST_THRESHOLD:
        return 2 if qty / settings.MONTHS_OF_DATA >= 1 else 1
    return match_pack_qty(outlet_bins, avg_cost)


def recommended_quantity(bin_qty: int, qty: float, settings: Settings) -> int:
    return max(bin_qty, int(math.ceil(qty / settings.MONTHS_OF_DATA)))


def decide_usage(
    *,
    is_new_item: bool,
    rev_class: str,
    velocity: str,
    margin: str,
    active_flag: str,
    recommended_qty: int,
) -> tuple[int, str]:
    """Suggested quantity and usage label; first matching branch wins."""
    half = int(math.ceil(recommended_qty / 2))
    if is_new_item:
        return recommended_qty, USAGE_NEW_ITEM
    if (rev_class == "C" and velocity in ("Dead", "Slow", "Medium")) or velocity == "Dead" or active_flag == INACTIVE:
        return 0, USAGE_DEAD
    if rev_class == "A":
        if velocity == "Slow":
            return half, USAGE_WATCH_LIST
        return recommended_qty, USAGE_AUTO_REORDER
    if rev_class == "B":
        if margin == "High" or velocity == "Fast":
            return recommended_qty, USAGE_AUTO_REORDER
        return half, USAGE_WATCH_LIST
    if rev_class == "C" and velocity == "Fast":
        return recommended_qty, USAGE_AUTO_REORDER
    return 0, USAGE_DEAD


def classify_records(
    records: Iterable[SalesRecord],
    bins: BinTable,
    settings: Optional[Settings] = None,
    today=None,
) -> list[SkuClassification]:
    settings = settings or get_settings()
    reference = as_reference_datetime(today)
    aggregates = aggregate_sales(records)
    assign_rank_classes(aggregates.values(), settings)

    outlet_totals: dict[str, list[float]] = {}
    for aggregate in aggregates.values():
        totals = outlet_totals.setdefault(aggregate.outlet, [0.0, 0.0])
        totals[0] += aggregate.gross_margin
        totals[1] += aggregate.revenue

    output = []
    for aggregate in aggregates.values():
        if aggregate.first_inward_date is not None:
            days_on_shelf = days_between(reference, aggregate.first_inward_date)
            is_new_item = days_on_shelf < settings.NEW_ITEM_THRESHOLD_DAYS
        else:
            is_new_item = False

        avg_tos = average_time_on_shelf(aggregate, reference)
        velocity = velocity_class(avg_tos, settings)

        active_flag = INACTIVE
        if aggregate.last_sold_date is not None:
            if days_between(reference, aggregate.last_sold_date) <= settings.ACTIVE_DAYS_THRESHOLD:
                active_flag = ACTIVE

        outlet_gm, outlet_revenue = outlet_totals[aggregate.outlet]
        avg_margin = outlet_gm / outlet_revenue if outlet_revenue else 0.0
        item_margin = aggregate.gross_margin / aggregate.revenue if aggregate.revenue > 0 else 0.0
        margin = margin_class(item_margin, avg_margin, settings)

        avg_cost = aggregate.avg_cost
        bin_qty = bin_quantity(avg_cost, aggregate.qty, bins_for(bins, aggregate.outlet), settings)
        recommended_qty = recommended_quantity(bin_qty, aggregate.qty, settings)

        suggested_qty, usage = decide_usage(
            is_new_item=is_new_item,
            rev_class=aggregate.rev_class,
            velocity=velocity,
            margin=margin,
            active_flag=active_flag,
            recommended_qty=recommended_qty,
        )
        stock = aggregate.current_stock or 0
        final_order_qty = int(math.ceil(max(suggested_qty - stock, 0)))

        justification = "Revenue Rank: {}, Margin: {:.2f}, AvgTOS: {:.1f}, NewItem:{}".format(
            aggregate.revenue_rank,
            item_margin,
            avg_tos,
            "true" if is_new_item else "false",
        )
        output.append(
            SkuClassification(
                outlet=aggregate.outlet,
                brand=aggregate.brand,
                sku=aggregate.sku,
                item_name=aggregate.item_name,
                avg_cost=avg_cost,
                rev_class=aggregate.rev_class,
                margin_class=margin,
                velocity_class=velocity,
                bin_qty=bin_qty,
                suggested_qty=suggested_qty,
                current_stock=stock,
                final_order_qty=final_order_qty,
                usage_recommendation=usage,
                justification=justification,
            )
        )
    return output


class SKUClassifier:
    def __init__(self, store: TableStore, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()
        self.sales = SalesRepository(store)
        self.classifications = ClassificationRepository(store)
        self.binning = BinningEngine(store)

    def classify_skus(self, today=None) -> list[SkuClassification]:
        """Rebuild the SKUClassification table from the full sales history."""
        if not self.sales.exists():
            logger.warning("SalesData table not found; nothing to classify")
            return []
        records = self.sales.list_records()
        logger.info("Classifying %d sales record(s)", len(records))
        bins = self.binning.load_or_compute(records)
        rows = classify_records(records, bins, self.settings, today)
        self.classifications.replace_all(rows)
        logger.info("Wrote %d SKU classification row(s)", len(rows))
        return rows


__all__ = [
    "SKUClassifier",
    "SkuAggregate",
    "aggregate_sales",
    "assign_rank_classes",
    "average_time_on_shelf",
    "bin_quantity",
    "classify_records",
    "decide_usage",
    "margin_class",
    "recommended_quantity",
    "velocity_class",
]
