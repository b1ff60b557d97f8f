from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, Integer, String, Text

from procurement.database.base import Base


class JobLog(Base):
    """One row per sweep execution (GRN/CO auto-approval, PO auto-close)."""

    __tablename__ = "job_logs"

    id = Column(Integer, primary_key=True)
    job_name = Column(String(80), nullable=False)
    status = Column(String(20), nullable=False, default="running")
    locked_by = Column(String(120))

    started_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    finished_at = Column(DateTime(timezone=True))

    processed = Column(Integer, nullable=False, default=0)
    stats_json = Column(Text)
    error_message = Column(String)

    __table_args__ = (
        Index("idx_job_logs_name_started", "job_name", "started_at"),
        Index("idx_job_logs_status", "status"),
    )


__all__ = ["JobLog"]
