"""
Queue positions and wait estimates.

Position is never stored authoritatively: it is the 1-based rank of a booking
among the active bookings of its queue ordered by token. The ``position`` and
``estimated_wait_minutes`` columns on ``Booking`` are a read cache that
``recompute`` rewrites after every mutation of the queue.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional

from models import db
from models.booking import Booking
from models.enums import ACTIVE_STATUSES, BookingStatus
from models.slot import Slot
from scheduling.locks import KeyedLocks

logger = logging.getLogger(__name__)


def estimate_wait(position: int, average_service_minutes: int) -> int:
    return max(0, position - 1) * average_service_minutes


@dataclass(frozen=True)
class QueueRef:
    """Identifies one queue: a slot, or a unit's live queue on one operating day."""

    capacity_unit_id: int
    key: str
    slot_id: Optional[int] = None
    service_date: Optional[date] = None

    @classmethod
    def for_counter(cls, counter) -> "QueueRef":
        slot_id = counter.id if isinstance(counter, Slot) else None
        service_date = counter.slot_date if slot_id else counter.service_date
        return cls(
            capacity_unit_id=counter.capacity_unit_id,
            key=counter.queue_key,
            slot_id=slot_id,
            service_date=service_date,
        )

    @classmethod
    def for_booking(cls, booking: Booking) -> "QueueRef":
        return cls(
            capacity_unit_id=booking.capacity_unit_id,
            key=booking.queue_key,
            slot_id=booking.slot_id,
            service_date=booking.service_date,
        )


@dataclass(frozen=True)
class QueueEntry:
    booking_id: int
    token: int
    status: BookingStatus
    position: int
    estimated_wait_minutes: int


@dataclass
class QueueSnapshot:
    ref: QueueRef
    capacity: int
    average_service_minutes: int
    entries: List[QueueEntry] = field(default_factory=list)

    def __iter__(self):
        return iter(self.entries)

    def __len__(self):
        return len(self.entries)

    def entry_for(self, booking_id: int) -> Optional[QueueEntry]:
        for entry in self.entries:
            if entry.booking_id == booking_id:
                return entry
        return None


class QueueStateTracker:
    def __init__(self, clock, locks: KeyedLocks = None):
        self.clock = clock
        self.locks = locks or KeyedLocks()

    def _active_bookings(self, ref: QueueRef) -> List[Booking]:
        return (
            Booking.query
            .filter(Booking.queue_key == ref.key, Booking.status.in_(list(ACTIVE_STATUSES)))
            .order_by(Booking.token.asc())
            .all()
        )

    def _rank(self, bookings: List[Booking], average_service_minutes: int) -> List[QueueEntry]:
        return [
            QueueEntry(
                booking_id=b.id,
                token=b.token,
                status=b.status,
                position=position,
                estimated_wait_minutes=estimate_wait(position, average_service_minutes),
            )
            for position, b in enumerate(bookings, start=1)
        ]

    def snapshot(self, ref: QueueRef, capacity: int, average_service_minutes: int) -> QueueSnapshot:
        """Read-only: ranks the committed active set, writes nothing."""
        entries = self._rank(self._active_bookings(ref), average_service_minutes)
        return QueueSnapshot(ref=ref, capacity=capacity,
                             average_service_minutes=average_service_minutes, entries=entries)

    def recompute(self, ref: QueueRef, capacity: int, average_service_minutes: int,
                  before_commit=None) -> QueueSnapshot:
        """
        Rank the active set and refresh the cached position/wait on every booking
        of the queue. Must be called after the triggering change has committed.

        ``before_commit`` runs once the new positions are set, inside the same
        transaction.
        """
        with self.locks.hold(ref.key):
            # drop anything this session still holds from before the commit
            db.session.expire_all()
            active = self._active_bookings(ref)
            entries = self._rank(active, average_service_minutes)
            now = self.clock.now()

            changed = 0
            for booking, entry in zip(active, entries):
                if booking.position != entry.position or booking.estimated_wait_minutes != entry.estimated_wait_minutes:
                    booking.position = entry.position
                    booking.estimated_wait_minutes = entry.estimated_wait_minutes
                    changed += 1
                if booking.slot_id is None:
                    # live queue: expected time only moves earlier as the queue drains
                    expected = now + timedelta(minutes=entry.estimated_wait_minutes)
                    if booking.scheduled_at is None or expected < booking.scheduled_at:
                        booking.scheduled_at = expected

            stale = (
                Booking.query
                .filter(
                    Booking.queue_key == ref.key,
                    Booking.status.notin_(list(ACTIVE_STATUSES)),
                    Booking.position.isnot(None),
                )
                .all()
            )
            for booking in stale:
                booking.position = None
                booking.estimated_wait_minutes = None

            if before_commit is not None:
                before_commit()
            db.session.commit()

        logger.debug("Recomputed %s: %d active, %d moved, %d cleared",
                     ref.key, len(entries), changed, len(stale))
        return QueueSnapshot(ref=ref, capacity=capacity,
                             average_service_minutes=average_service_minutes, entries=entries)
