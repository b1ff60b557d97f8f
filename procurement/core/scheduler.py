from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Callable, Optional

logger = logging.getLogger(__name__)

_SCHEDULED_JOB_EXCEPTIONS = (OSError, RuntimeError, ValueError)


def _parse_time(value: str) -> time:
    parts = value.strip().split(":")
    if len(parts) < 2:
        raise ValueError("run time must be in HH:MM format")
    hour = int(parts[0])
    minute = int(parts[1])
    second = int(parts[2]) if len(parts) > 2 else 0
    return time(hour=hour, minute=minute, second=second)


def _next_daily_run(run_time: time, now: datetime) -> datetime:
    candidate = now.replace(
        hour=run_time.hour,
        minute=run_time.minute,
        second=run_time.second,
        microsecond=0,
    )
    if candidate <= now:
        candidate = candidate + timedelta(days=1)
    return candidate


@dataclass
class ScheduledJob:
    name: str
    func: Callable[[], object]
    interval: Optional[timedelta] = None
    run_time: Optional[time] = None
    run_in_thread: bool = False
    next_run: Optional[datetime] = None

    def schedule_next(self, now: datetime) -> datetime:
        if self.interval is not None:
            return now + self.interval
        return _next_daily_run(self.run_time, now)


class Scheduler:
    """In-process trigger for the approval and closure sweeps."""

    def __init__(self, *, poll_seconds: int = 1, clock: Callable[[], datetime] = datetime.now):
        self._jobs: list[ScheduledJob] = []
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._poll_seconds = max(1, int(poll_seconds))
        self._clock = clock

    @property
    def jobs(self) -> list[ScheduledJob]:
        with self._lock:
            return list(self._jobs)

    def add_interval_job(
        self,
        name: str,
        minutes: float,
        func: Callable[[], object],
        *,
        run_immediately: bool = False,
        run_in_thread: bool = False,
    ) -> ScheduledJob:
        if minutes <= 0:
            raise ValueError("interval must be positive")
        job = ScheduledJob(
            name=name,
            func=func,
            interval=timedelta(minutes=minutes),
            run_in_thread=run_in_thread,
        )
        now = self._clock()
        job.next_run = now if run_immediately else job.schedule_next(now)
        with self._lock:
            self._jobs.append(job)
        return job

    def add_daily_job(
        self,
        name: str,
        run_time: str,
        func: Callable[[], object],
        *,
        run_in_thread: bool = False,
    ) -> ScheduledJob:
        job = ScheduledJob(
            name=name,
            func=func,
            run_time=_parse_time(run_time),
            run_in_thread=run_in_thread,
        )
        job.next_run = job.schedule_next(self._clock())
        with self._lock:
            self._jobs.append(job)
        return job

    def run_pending(self) -> int:
        now = self._clock()
        ran = 0
        for job in self.jobs:
            if job.next_run and now >= job.next_run:
                self._run_job(job)
                job.next_run = job.schedule_next(now)
                ran += 1
        return ran

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name="scheduler",
            daemon=True,
        )
        self._thread.start()
        logger.info("Scheduler started with %d job(s).", len(self._jobs))

    def stop(self) -> None:
        if not self._thread:
            return
        self._stop_event.set()
        self._thread.join(timeout=self._poll_seconds + 1)
        self._thread = None
        logger.info("Scheduler stopped.")

    def run_forever(self) -> None:
        logger.info("Scheduler running in foreground with %d job(s).", len(self._jobs))
        self._run()

    def _run_job(self, job: ScheduledJob) -> None:
        logger.info("Running scheduled job: %s", job.name)
        if job.run_in_thread:
            threading.Thread(
                target=self._safe_run,
                args=(job,),
                name=f"job-{job.name}",
                daemon=True,
            ).start()
        else:
            self._safe_run(job)

    @staticmethod
    def _safe_run(job: ScheduledJob) -> None:
        try:
            job.func()
        except _SCHEDULED_JOB_EXCEPTIONS:
            logger.exception("Scheduled job failed: %s", job.name)

    def _run(self) -> None:
        while not self._stop_event.is_set():
            self.run_pending()
            self._stop_event.wait(self._poll_seconds)


__all__ = ["ScheduledJob", "Scheduler"]
