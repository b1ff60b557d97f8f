from __future__ import annotations

import json
import logging
import os
import socket
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from procurement.config import Settings, get_settings
from procurement.core.scheduler import Scheduler
from procurement.database.session import default_session
from procurement.models.job_log import JobLog

logger = logging.getLogger(__name__)

STATUS_RUNNING = "running"
STATUS_SUCCESS = "success"
STATUS_FAILED = "failed"

GRN_SWEEP = "grn-auto-approve"
CO_SWEEP = "co-auto-approve"
PO_CLOSE_SWEEP = "po-auto-close"

_PROCESSED_KEYS = ("approved", "closed")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _owner_id() -> str:
    return "{}:{}".format(socket.gethostname(), os.getpid())


def _truncate_error(value, limit: int = 1000) -> str:
    if value is None:
        return ""
    return str(value)[:limit]


def _processed_count(stats) -> int:
    if not isinstance(stats, dict):
        return 0
    for key in _PROCESSED_KEYS:
        if key in stats:
            return int(stats[key])
    return 0


def _start_run(session_factory, job_name: str) -> int:
    db = session_factory()
    try:
        log = JobLog(
            job_name=job_name,
            status=STATUS_RUNNING,
            locked_by=_owner_id(),
            started_at=utc_now(),
        )
        db.add(log)
        db.commit()
        db.refresh(log)
        return log.id
    finally:
        db.close()


def _finish_run(session_factory, job_id: int, **values) -> None:
    db = session_factory()
    try:
        db.execute(update(JobLog).where(JobLog.id == job_id).values(finished_at=utc_now(), **values))
        db.commit()
    finally:
        db.close()


def run_sweep(
    job_name: str,
    func: Callable[[], dict],
    *,
    session_factory: Optional[Callable[[], Session]] = None,
) -> Optional[dict]:
    """Run one sweep and record it in job_logs. Returns the stats, or None on failure."""
    session_factory = session_factory or default_session
    job_id = _start_run(session_factory, job_name)
    logger.info("Running sweep %s", job_name, extra={"job_name": job_name})
    try:
        stats = func()
    except Exception as exc:
        logger.exception("Sweep %s failed", job_name, extra={"job_name": job_name})
        _finish_run(
            session_factory,
            job_id,
            status=STATUS_FAILED,
            error_message=_truncate_error("{}: {}".format(type(exc).__name__, exc)),
        )
        return None
    _finish_run(
        session_factory,
        job_id,
        status=STATUS_SUCCESS,
        processed=_processed_count(stats),
        stats_json=json.dumps(stats or {}, default=str),
    )
    logger.info("Sweep %s completed: %s", job_name, stats, extra={"job_name": job_name})
    return stats


def sweep_jobs(services) -> dict[str, Callable[[], dict]]:
    return {
        GRN_SWEEP: services.grns.auto_approve_old_grns,
        CO_SWEEP: services.customer_orders.auto_approve_old_cos,
        PO_CLOSE_SWEEP: services.orders.close_old_orders,
    }


def run_all_sweeps(services, *, session_factory=None) -> dict[str, Optional[dict]]:
    return {
        name: run_sweep(name, func, session_factory=session_factory)
        for name, func in sweep_jobs(services).items()
    }


def build_scheduler(
    services,
    settings: Optional[Settings] = None,
    *,
    session_factory=None,
    clock: Callable[[], datetime] = datetime.now,
) -> Scheduler:
    settings = settings or get_settings()
    scheduler = Scheduler(poll_seconds=settings.SCHEDULER_POLL_SECONDS, clock=clock)
    intervals = {
        GRN_SWEEP: settings.GRN_SWEEP_MINUTES,
        CO_SWEEP: settings.CO_SWEEP_MINUTES,
        PO_CLOSE_SWEEP: settings.PO_CLOSE_SWEEP_MINUTES,
    }
    for name, func in sweep_jobs(services).items():
        scheduler.add_interval_job(
            name,
            intervals[name],
            lambda name=name, func=func: run_sweep(name, func, session_factory=session_factory),
            run_immediately=True,
        )
    return scheduler


__all__ = [
    "CO_SWEEP",
    "GRN_SWEEP",
    "PO_CLOSE_SWEEP",
    "build_scheduler",
    "run_all_sweeps",
    "run_sweep",
    "sweep_jobs",
]
