"""
Domain events for the notification subsystem.

Each event is stored in ``booking_events`` (the outbox a notifier can poll) in
the same transaction as the change it describes. The queue recompute that
follows stamps the fresh position onto the row, and only then are in-process
listeners registered with ``subscribe`` called.
"""

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Callable, List, Optional

from models import db
from models.booking import Booking
from models.booking_event import BookingEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingEventPayload:
    booking_id: int
    capacity_unit_id: int
    slot_id: Optional[int]
    old_status: Optional[str]
    new_status: str
    position: Optional[int]
    estimated_wait_minutes: Optional[int]
    timestamp: datetime
    actor: Optional[str] = None

    @classmethod
    def from_row(cls, event: BookingEvent) -> "BookingEventPayload":
        return cls(
            booking_id=event.booking_id,
            capacity_unit_id=event.capacity_unit_id,
            slot_id=event.slot_id,
            old_status=event.old_status,
            new_status=event.new_status,
            position=event.position,
            estimated_wait_minutes=event.estimated_wait_minutes,
            timestamp=event.timestamp,
            actor=event.actor,
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


class EventPublisher:
    def __init__(self, clock):
        self.clock = clock
        self._listeners: List[Callable[[BookingEventPayload], None]] = []

    def subscribe(self, listener):
        self._listeners.append(listener)
        return listener

    def unsubscribe(self, listener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def record(self, booking: Booking, old_status, new_status, actor=None) -> BookingEvent:
        """Add the outbox row to the caller's transaction; nothing is committed here."""
        event = BookingEvent(
            booking_id=booking.id,
            capacity_unit_id=booking.capacity_unit_id,
            slot_id=booking.slot_id,
            old_status=old_status.value if old_status else None,
            new_status=new_status.value,
            actor=actor.value if actor else None,
            position=booking.position if new_status.is_active else None,
            estimated_wait_minutes=booking.estimated_wait_minutes if new_status.is_active else None,
            timestamp=self.clock.now(),
        )
        db.session.add(event)
        return event

    @staticmethod
    def stamp(event: BookingEvent, booking: Booking):
        # runs inside the recompute transaction
        event.position = booking.position
        event.estimated_wait_minutes = booking.estimated_wait_minutes

    def notify(self, event: BookingEvent) -> BookingEventPayload:
        payload = BookingEventPayload.from_row(event)
        for listener in list(self._listeners):
            try:
                listener(payload)
            except Exception:
                # the change is already committed; listener failures are only logged
                logger.exception("Booking event listener %r failed for booking %s", listener, payload.booking_id)
        return payload
