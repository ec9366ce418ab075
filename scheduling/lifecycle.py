"""
Booking state machine.

``TRANSITIONS`` is the only authority on which status changes are legal. Each
change is a conditional UPDATE guarded on the status we read, so two operators
pressing buttons at once cannot both win; the loser re-reads and is judged
against the new status.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta
from typing import FrozenSet, Optional, Tuple

from sqlalchemy import update

from models import db
from models.booking import Booking
from models.booking_event import BookingEvent
from models.enums import Actor, BookingStatus
from models.live_queue_day import LiveQueueDay
from models.slot import Slot
from scheduling.errors import InvalidRequestError, InvalidTransitionError, NotFoundError, ServiceUnavailableError
from scheduling.locks import KeyedLocks

logger = logging.getLogger(__name__)

BUSINESS_ONLY = frozenset({Actor.BUSINESS})
ANYONE = frozenset({Actor.CUSTOMER, Actor.BUSINESS})


@dataclass(frozen=True)
class Rule:
    event: str
    actors: FrozenSet[Actor]
    stamp: str  # timestamp column set by the move


_CANCEL = Rule("cancel", ANYONE, "cancelled_at")
_NO_SHOW = Rule("mark_no_show", BUSINESS_ONLY, "no_show_at")

TRANSITIONS = {
    (BookingStatus.PENDING, BookingStatus.CONFIRMED): Rule("approve", BUSINESS_ONLY, "confirmed_at"),
    (BookingStatus.PENDING, BookingStatus.CANCELLED): _CANCEL,
    (BookingStatus.CONFIRMED, BookingStatus.CANCELLED): _CANCEL,
    (BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN): Rule("check_in", BUSINESS_ONLY, "checked_in_at"),
    (BookingStatus.CHECKED_IN, BookingStatus.IN_PROGRESS): Rule("start_service", BUSINESS_ONLY, "started_at"),
    (BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED): Rule("complete", BUSINESS_ONLY, "completed_at"),
    (BookingStatus.CONFIRMED, BookingStatus.NO_SHOW): _NO_SHOW,
    (BookingStatus.CHECKED_IN, BookingStatus.NO_SHOW): _NO_SHOW,
}


def parse_status(value) -> BookingStatus:
    try:
        return BookingStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in BookingStatus)
        raise InvalidRequestError(f"Unknown status '{value}'. Use one of: {allowed}")


@dataclass(frozen=True)
class Customer:
    name: str
    phone: str
    email: Optional[str] = None


@dataclass(frozen=True)
class Transition:
    booking: Booking
    old_status: Optional[BookingStatus]
    new_status: BookingStatus
    actor: Actor
    event: Optional[BookingEvent] = None

    @property
    def changed(self) -> bool:
        return self.old_status != self.new_status


class BookingLifecycle:
    def __init__(self, clock, allocator, events, locks: KeyedLocks = None, max_retries: int = 3,
                 default_grace_minutes: int = 15):
        self.clock = clock
        self.allocator = allocator
        self.events = events
        self.locks = locks or KeyedLocks()
        self.max_retries = max(1, max_retries)
        self.default_grace_minutes = default_grace_minutes

    @staticmethod
    def initial_status(unit) -> BookingStatus:
        return BookingStatus.CONFIRMED if unit.business.auto_approve else BookingStatus.PENDING

    def create(self, unit, counter, token: int, customer: Customer, notes: str = None) -> Booking:
        """Write a new booking row. The allocator commits it together with the token."""
        now = self.clock.now()
        status = self.initial_status(unit)
        slot = counter if isinstance(counter, Slot) else None

        booking = Booking(
            capacity_unit_id=unit.id,
            slot_id=slot.id if slot else None,
            live_queue_day_id=None if slot else counter.id,
            queue_key=counter.queue_key,
            service_date=slot.slot_date if slot else counter.service_date,
            token=token,
            status=status,
            customer_name=customer.name,
            customer_phone=customer.phone,
            customer_email=customer.email,
            notes=notes,
            check_in_code=secrets.token_urlsafe(12),
            scheduled_at=slot.starts_at if slot else None,
            created_at=now,
            confirmed_at=now if status == BookingStatus.CONFIRMED else None,
            updated_at=now,
        )
        db.session.add(booking)
        # surface a duplicate token inside the allocator's retry loop
        db.session.flush()
        return booking

    def transition(self, booking_id: int, target: BookingStatus, actor: Actor, reason: str = None) -> Transition:
        booking = db.session.get(Booking, booking_id)
        if booking is None:
            raise NotFoundError("Booking not found")

        with self.locks.hold(booking.queue_key):
            for attempt in range(1, self.max_retries + 1):
                db.session.refresh(booking)
                current = booking.status

                # cancelling twice lands in the same place: report it, change nothing
                if current == target == BookingStatus.CANCELLED:
                    return Transition(booking, current, current, actor)

                self._check(booking, current, target, actor)

                event = self._apply(booking, current, target, actor, reason)
                if event is not None:
                    db.session.refresh(booking)
                    logger.info("Booking %s: %s -> %s by %s", booking.id, current.value, target.value, actor.value)
                    return Transition(booking, current, target, actor, event)

                logger.warning("Booking %s changed during %s -> %s (attempt %d/%d)",
                               booking.id, current.value, target.value, attempt, self.max_retries)

        raise ServiceUnavailableError()

    def _check(self, booking: Booking, current: BookingStatus, target: BookingStatus, actor: Actor) -> Rule:
        rule = TRANSITIONS.get((current, target))
        if rule is None:
            raise InvalidTransitionError(current, target)
        if actor not in rule.actors:
            raise InvalidTransitionError(current, target, f"only the business may {rule.event.replace('_', ' ')}")

        if target == BookingStatus.CHECKED_IN and booking.confirmed_at is None:
            raise InvalidTransitionError(current, target, "booking was never confirmed")

        if target == BookingStatus.NO_SHOW:
            due = booking.scheduled_at or booking.confirmed_at or booking.created_at
            grace = booking.capacity_unit.no_show_grace_minutes
            if grace is None:
                grace = self.default_grace_minutes
            allowed_from = due + timedelta(minutes=grace)
            if self.clock.now() < allowed_from:
                raise InvalidTransitionError(
                    current, target,
                    f"grace period runs until {allowed_from.isoformat(timespec='minutes')} UTC",
                )
        return rule

    def _apply(self, booking: Booking, current: BookingStatus, target: BookingStatus,
               actor: Actor, reason: Optional[str]) -> Optional[BookingEvent]:
        rule = TRANSITIONS[(current, target)]
        now = self.clock.now()
        values = {"status": target, rule.stamp: now, "updated_at": now}
        if target == BookingStatus.CANCELLED:
            values["cancelled_by"] = actor
            values["cancel_reason"] = (reason or "")[:120] or None

        try:
            result = db.session.execute(
                update(Booking)
                .where(Booking.id == booking.id, Booking.status == current)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                db.session.rollback()
                return None

            if current.is_active and target.is_terminal:
                self._release_seat(booking)

            event = self.events.record(booking, current, target, actor)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return event

    def _release_seat(self, booking: Booking):
        if booking.slot_id is not None:
            self.allocator.release(Slot, booking.slot_id)
        else:
            self.allocator.release(LiveQueueDay, booking.live_queue_day_id)


def describe_transitions() -> Tuple[Tuple[str, str, str], ...]:
    """(from, to, event) triples, for API clients building operator buttons."""
    return tuple(
        (src.value, dst.value, rule.event)
        for (src, dst), rule in TRANSITIONS.items()
    )
