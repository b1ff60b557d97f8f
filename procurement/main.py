from contextlib import asynccontextmanager

from fastapi import FastAPI

from procurement.config import Settings, get_settings
from procurement.core.logging import setup_logging
from procurement.database import ensure_schema
from procurement.dependencies import get_services
from procurement.routers import (
    classification_router,
    customer_orders_router,
    grns_router,
    health_router,
    orders_router,
    rules_router,
)
from procurement.scheduler.sweeps import build_scheduler

setup_logging()
settings: Settings = get_settings()

ensure_schema()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    scheduler = None
    if settings.SCHEDULER_ENABLED:
        scheduler = build_scheduler(get_services(), settings)
        scheduler.start()
    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.stop()


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

app.include_router(health_router)
app.include_router(classification_router)
app.include_router(rules_router)
app.include_router(orders_router)
app.include_router(grns_router)
app.include_router(customer_orders_router)


__all__ = ["app"]
