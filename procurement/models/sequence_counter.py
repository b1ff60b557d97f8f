from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from procurement.database.base import Base


class SequenceCounter(Base):
    __tablename__ = "sequence_counters"

    scope = Column(String(160), primary_key=True)
    value = Column(Integer, nullable=False, default=0)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )


__all__ = ["SequenceCounter"]
