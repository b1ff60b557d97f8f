from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from fastapi import HTTPException

from procurement.config import Settings, get_settings
from procurement.core.results import ErrorKind, Result
from procurement.services import (
    BinningEngine,
    BusinessRuleEngine,
    CustomerOrderService,
    GRNService,
    Notifier,
    OrderLifecycleManager,
    SequenceService,
    SKUClassifier,
)
from procurement.storage import InMemoryTableStore, TableStore, WorkbookTableStore


@dataclass
class Services:
    store: TableStore
    binning: BinningEngine
    rules: BusinessRuleEngine
    classifier: SKUClassifier
    orders: OrderLifecycleManager
    grns: GRNService
    customer_orders: CustomerOrderService


def build_store(settings: Settings) -> TableStore:
    backend = settings.STORE_BACKEND.lower()
    if backend == "memory":
        return InMemoryTableStore()
    if backend == "workbook":
        return WorkbookTableStore(settings.WORKBOOK_PATH)
    raise ValueError("Unknown STORE_BACKEND: {}".format(settings.STORE_BACKEND))


def build_services(
    store: TableStore,
    *,
    settings: Optional[Settings] = None,
    sequences: Optional[SequenceService] = None,
    notifier: Optional[Notifier] = None,
) -> Services:
    settings = settings or get_settings()
    rules = BusinessRuleEngine(store)
    orders = OrderLifecycleManager(
        store,
        sequences=sequences,
        notifier=notifier,
        settings=settings,
        rules=rules,
    )
    return Services(
        store=store,
        binning=BinningEngine(store),
        rules=rules,
        classifier=SKUClassifier(store, settings),
        orders=orders,
        grns=GRNService(orders, settings=settings),
        customer_orders=CustomerOrderService(orders, settings=settings),
    )


@lru_cache
def get_services() -> Services:
    settings = get_settings()
    return build_services(build_store(settings), settings=settings)


_STATUS_BY_ERROR = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.CONFIGURATION: 500,
    ErrorKind.EXTERNAL_SERVICE: 502,
}


def raise_for_result(result: Result) -> dict:
    if not result.success:
        status_code = _STATUS_BY_ERROR.get(result.error, 400)
        raise HTTPException(status_code=status_code, detail=result.message)
    return result.to_dict()


__all__ = ["Services", "build_services", "build_store", "get_services", "raise_for_result"]
