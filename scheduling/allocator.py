"""
Token allocation.

The active count and the last issued token for a queue live on one counter row
(a ``Slot`` or a ``LiveQueueDay``). Admission is a single conditional UPDATE:

    UPDATE ... SET booked = booked + 1, last_token = last_token + 1, version = version + 1
    WHERE id = :id AND version = :seen AND booked < :capacity

If it touches no row the counter moved under us and the attempt is retried. The
booking row is written in the same transaction, so a failed attempt leaves
neither a reserved seat nor a used token behind.
"""

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from models import db
from scheduling.errors import CapacityExceededError, ConflictError, NotFoundError, ServiceUnavailableError
from scheduling.locks import KeyedLocks

logger = logging.getLogger(__name__)


class TokenAllocator:
    def __init__(self, locks: KeyedLocks = None, max_retries: int = 3):
        self.locks = locks or KeyedLocks()
        self.max_retries = max(1, max_retries)

    def allocate(self, counter, capacity: int, admit, held_elsewhere=None):
        """
        Claim the next token on ``counter`` and call ``admit(token)`` to write
        the booking, then commit both together.

        ``held_elsewhere()`` counts seats of the same unit that sit on another
        counter (live bookings carried over from an earlier operating day). It
        is re-read on every attempt and lowers the ceiling for this counter.

        Returns whatever ``admit`` returned. Raises ``CapacityExceededError`` when
        the queue is full and ``ServiceUnavailableError`` when every attempt lost
        a race.
        """
        model = type(counter)
        counter_id = counter.id
        key = counter.queue_key

        with self.locks.hold(key):
            for attempt in range(1, self.max_retries + 1):
                try:
                    held = held_elsewhere() if held_elsewhere else 0
                    token = self._claim(model, counter_id, capacity, held)
                    result = admit(token)
                    db.session.commit()
                except (ConflictError, IntegrityError) as exc:
                    db.session.rollback()
                    logger.warning("Allocation conflict on %s (attempt %d/%d): %s",
                                   key, attempt, self.max_retries, exc)
                    continue
                except Exception:
                    db.session.rollback()
                    raise

                logger.info("Admitted token %d on %s", token, key)
                return result

        logger.error("Allocation on %s gave up after %d attempts", key, self.max_retries)
        raise ServiceUnavailableError()

    def _claim(self, model, counter_id: int, capacity: int, held: int = 0) -> int:
        row = db.session.execute(
            select(model.booked, model.last_token, model.version).where(model.id == counter_id)
        ).one_or_none()
        if row is None:
            raise NotFoundError("Queue not found")

        ceiling = capacity - held
        if row.booked >= ceiling:
            logger.info("Rejected admission on %s #%s: %d/%d booked (%d carried over)",
                        model.__tablename__, counter_id, row.booked + held, capacity, held)
            raise CapacityExceededError(
                f"Fully booked ({row.booked + held}/{capacity}); pick another slot or queue"
            )

        result = db.session.execute(
            update(model)
            .where(
                model.id == counter_id,
                model.version == row.version,
                model.booked < ceiling,
            )
            .values(
                booked=model.booked + 1,
                last_token=model.last_token + 1,
                version=model.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConflictError(f"{model.__tablename__} #{counter_id} changed since version {row.version}")

        return row.last_token + 1

    def release(self, model, counter_id: int):
        """Give back one seat. Runs inside the caller's transaction."""
        result = db.session.execute(
            update(model)
            .where(model.id == counter_id, model.booked > 0)
            .values(booked=model.booked - 1, version=model.version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning("Release on %s #%s found no seat to free", model.__tablename__, counter_id)
