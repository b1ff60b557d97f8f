from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from procurement.config import get_settings
from procurement.dependencies import Services, get_services

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(services: Services = Depends(get_services)):
    settings = get_settings()
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
        "store": settings.STORE_BACKEND,
        "tables": services.store.table_names(),
        "time": datetime.now(timezone.utc).isoformat(),
    }
