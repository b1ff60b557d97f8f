from procurement.database.base import Base
from procurement.database.engine import engine, ensure_schema
from procurement.database.session import SessionLocal, default_session

__all__ = ["Base", "engine", "ensure_schema", "SessionLocal", "default_session"]
