from procurement.routers.classification import router as classification_router
from procurement.routers.customer_orders import router as customer_orders_router
from procurement.routers.grns import router as grns_router
from procurement.routers.health import router as health_router
from procurement.routers.orders import router as orders_router
from procurement.routers.rules import router as rules_router

__all__ = [
    "classification_router",
    "customer_orders_router",
    "grns_router",
    "health_router",
    "orders_router",
    "rules_router",
]
