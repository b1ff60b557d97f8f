from sqlalchemy.orm import Session, sessionmaker

from procurement.database.engine import engine

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)


def default_session() -> Session:
    """Session on the configured DATABASE_URL, for counters and job logs."""
    return SessionLocal()


__all__ = ["SessionLocal", "default_session"]
