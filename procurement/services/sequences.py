from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy import case, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from procurement.database.session import default_session
from procurement.models.sequence_counter import SequenceCounter

logger = logging.getLogger(__name__)

_MAX_ATTEMPTS = 3


class SequenceService:
    """Monotonic counters per scope (global PO, per-day CO, per-order GRN).

    A number handed out is never handed out again, even when the row that
    used it is later deleted.
    """

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None) -> None:
        self._session_factory = session_factory or default_session

    def current(self, scope: str) -> int:
        db = self._session_factory()
        try:
            value = db.execute(
                select(SequenceCounter.value).where(SequenceCounter.scope == scope)
            ).scalar_one_or_none()
            return value or 0
        finally:
            db.close()

    def next_value(self, scope: str, floor: int = 0) -> int:
        """Increment ``scope`` and return the new value, never below ``floor + 1``."""
        floor = max(0, int(floor))
        for _attempt in range(_MAX_ATTEMPTS):
            db = self._session_factory()
            try:
                now = datetime.now(timezone.utc)
                result = db.execute(
                    update(SequenceCounter)
                    .where(SequenceCounter.scope == scope)
                    .values(
                        value=case(
                            (SequenceCounter.value < floor, floor),
                            else_=SequenceCounter.value,
                        )
                        + 1,
                        updated_at=now,
                    )
                )
                if result.rowcount == 1:
                    value = db.execute(
                        select(SequenceCounter.value).where(SequenceCounter.scope == scope)
                    ).scalar_one()
                    db.commit()
                    return value
                db.add(SequenceCounter(scope=scope, value=floor + 1, updated_at=now))
                db.commit()
                return floor + 1
            except IntegrityError:
                db.rollback()
                logger.debug("Sequence %s created concurrently; retrying", scope)
            finally:
                db.close()
        raise RuntimeError("Unable to allocate a number for sequence {}".format(scope))


__all__ = ["SequenceService"]
