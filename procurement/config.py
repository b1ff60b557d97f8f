from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ==============================
    # Application
    # ==============================
    APP_NAME: str = "Procurement Workflow Engine"
    ENVIRONMENT: str = "local"

    # ==============================
    # Database
    # ==============================
    DATABASE_URL: str = "sqlite:///./procurement.db"

    # ==============================
    # Table Store
    # ==============================
    STORE_BACKEND: str = "workbook"
    WORKBOOK_PATH: str = "procurement.xlsx"

    # ==============================
    # Logging
    # ==============================
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # ==============================
    # SKU Classification
    # ==============================
    ACTIVE_DAYS_THRESHOLD: int = 180
    MONTHS_OF_DATA: int = 6
    TOS_THRESHOLD_LOW: float = 60
    TOS_THRESHOLD_MED: float = 90
    TOS_THRESHOLD_HIGH: float = 150
    REV_RANK_A: float = 0.70
    REV_RANK_B: float = 0.95
    VOL_RANK_A: float = 0.70
    VOL_RANK_B: float = 0.90
    NEW_ITEM_THRESHOLD_DAYS: int = 75
    GM_MARGIN_BAND: float = 0.10
    HIGH_COST_THRESHOLD: float = 2000

    # ==============================
    # Order Lifecycle
    # ==============================
    GRN_AUTO_APPROVE_MINUTES: int = 60
    CO_AUTO_APPROVE_MINUTES: int = 60
    PO_AUTO_CLOSE_DAYS: int = 10
    CO_AUTO_APPROVE_THRESHOLD: float = 10000
    PO_NUMBER_START: int = 1000
    SEND_LOCK_TIMEOUT_SECONDS: float = 10
    OUTLET_SHORT_CODES: dict[str, str] = {}
    OUTLET_CC_EMAILS: dict[str, str] = {}

    # ==============================
    # Email (SMTP)
    # ==============================
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_USE_TLS: bool = True
    EMAIL_FROM: Optional[str] = None
    COMPANY_NAME: str = "Procurement Team"

    # ==============================
    # Scheduler
    # ==============================
    SCHEDULER_ENABLED: bool = True
    SCHEDULER_POLL_SECONDS: int = 30
    GRN_SWEEP_MINUTES: int = 15
    CO_SWEEP_MINUTES: int = 15
    PO_CLOSE_SWEEP_MINUTES: int = 1440


@lru_cache
def get_settings() -> Settings:
    """Cached settings loader (once per process)."""
    return Settings()


__all__ = ["Settings", "get_settings"]
