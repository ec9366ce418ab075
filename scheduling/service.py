"""
Scheduling facade used by the HTTP layer and by notification dispatch.

Every write follows the same order: mutate and write the outbox event in one
transaction, recompute the queue from committed state (stamping the fresh
position onto the event), then notify listeners.
"""

import logging
from dataclasses import dataclass
from datetime import date, time
from functools import partial
from typing import List, Optional

from models import db
from models.booking import Booking
from models.enums import Actor, BookingStatus
from scheduling.allocator import TokenAllocator
from scheduling.clock import SystemClock
from scheduling.errors import InvalidRequestError, NotFoundError
from scheduling.events import EventPublisher
from scheduling.lifecycle import BookingLifecycle, Customer, Transition
from scheduling.locks import KeyedLocks
from scheduling.registry import CapacityUnitRegistry
from scheduling.tracker import QueueRef, QueueSnapshot, QueueStateTracker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlotRequest:
    date: date
    start_time: time


class SchedulingService:
    def __init__(self, clock=None, max_retries: int = 3, default_grace_minutes: int = 15):
        self.clock = clock or SystemClock()
        self.locks = KeyedLocks()
        self.registry = CapacityUnitRegistry(self.clock)
        self.allocator = TokenAllocator(self.locks, max_retries=max_retries)
        self.tracker = QueueStateTracker(self.clock, self.locks)
        self.events = EventPublisher(self.clock)
        self.lifecycle = BookingLifecycle(
            self.clock,
            self.allocator,
            self.events,
            self.locks,
            max_retries=max_retries,
            default_grace_minutes=default_grace_minutes,
        )

    def set_clock(self, clock):
        for component in (self, self.registry, self.tracker, self.lifecycle, self.events):
            component.clock = clock

    # ---------- writes ----------
    def create_booking(self, business_id, department_id, customer: Customer,
                       notes: str = None, slot_request: SlotRequest = None) -> Booking:
        if not customer.name or not customer.phone:
            raise InvalidRequestError("Customer name and phone are required")

        resolution = self.registry.resolve(
            business_id,
            department_id,
            slot_request.date if slot_request else None,
            slot_request.start_time if slot_request else None,
        )
        unit = resolution.unit
        counter = resolution.slot or self.registry.get_or_create_live_day(unit, resolution.service_date)

        def admit(token):
            booking = self.lifecycle.create(unit, counter, token, customer, notes)
            return booking, self.events.record(booking, None, booking.status, Actor.CUSTOMER)

        held_elsewhere = None
        if resolution.slot is None:
            # yesterday's queue may still be draining; its seats count against today
            held_elsewhere = partial(self.registry.active_from_earlier_days, unit, resolution.service_date)

        booking, event = self.allocator.allocate(counter, unit.capacity, admit, held_elsewhere)

        self._settle(booking, unit, event)
        logger.info("Booking %s created: unit=%s queue=%s token=%s status=%s",
                    booking.id, unit.id, booking.queue_key, booking.token, booking.status.value)
        return booking

    def cancel_booking(self, booking_id: int, actor: Actor, reason: str = None) -> Booking:
        """Cancelling an already-cancelled booking returns it untouched."""
        return self._move(booking_id, BookingStatus.CANCELLED, actor, reason)

    def advance_booking(self, booking_id: int, actor: Actor, target_status: BookingStatus) -> Booking:
        if target_status == BookingStatus.PENDING:
            raise InvalidRequestError("A booking cannot be moved back to pending")
        return self._move(booking_id, target_status, actor)

    def _move(self, booking_id, target, actor, reason=None) -> Booking:
        transition: Transition = self.lifecycle.transition(booking_id, target, actor, reason)
        booking = transition.booking
        if not transition.changed:
            return booking

        self._settle(booking, booking.capacity_unit, transition.event)
        return booking

    def refresh_queue(self, capacity_unit_id: int, slot_id: int = None, service_date: date = None) -> QueueSnapshot:
        """Periodic tick for UIs: rewrites cached positions from the current order."""
        unit = self.registry.get_unit(capacity_unit_id)
        ref = self._ref_for(unit, slot_id, service_date)
        return self._recompute(ref, unit)

    def _recompute(self, ref: QueueRef, unit, before_commit=None) -> QueueSnapshot:
        return self.tracker.recompute(ref, unit.capacity, unit.average_service_minutes, before_commit)

    def _settle(self, booking: Booking, unit, event):
        self._recompute(QueueRef.for_booking(booking), unit, lambda: self.events.stamp(event, booking))
        self.events.notify(event)

    # ---------- reads ----------
    def get_queue_snapshot(self, capacity_unit_id: int, slot_id: int = None,
                           service_date: date = None) -> QueueSnapshot:
        unit = self.registry.get_unit(capacity_unit_id)
        ref = self._ref_for(unit, slot_id, service_date)
        return self.tracker.snapshot(ref, unit.capacity, unit.average_service_minutes)

    def _ref_for(self, unit, slot_id: Optional[int], service_date: Optional[date]) -> QueueRef:
        if unit.is_slotted:
            if slot_id is None:
                raise InvalidRequestError("slot_id is required for a slotted department")
            return QueueRef.for_counter(self.registry.get_slot(unit, slot_id))

        if slot_id is not None:
            raise InvalidRequestError("This department runs a live queue")
        day = service_date or self.registry.operating_day(unit)
        live_day = self.registry.find_live_day(unit, day)
        if live_day:
            return QueueRef.for_counter(live_day)
        # nobody has joined that day yet; key it the way the row would be keyed
        return QueueRef(capacity_unit_id=unit.id, key=f"live:{unit.id}:{day.isoformat()}", service_date=day)

    def get_booking(self, booking_id: int) -> Booking:
        booking = db.session.get(Booking, booking_id)
        if booking is None:
            raise NotFoundError("Booking not found")
        return booking

    def get_booking_by_code(self, code: str) -> Booking:
        booking = Booking.query.filter_by(check_in_code=code).first()
        if booking is None:
            raise NotFoundError("Booking not found")
        return booking

    def list_customer_bookings(self, phone: str) -> List[Booking]:
        phone = (phone or "").strip()
        if not phone:
            raise InvalidRequestError("phone is required")
        return (
            Booking.query
            .filter_by(customer_phone=phone)
            .order_by(Booking.created_at.desc())
            .limit(200)
            .all()
        )

    def list_unit_bookings(self, capacity_unit_id: int, status: BookingStatus = None,
                           service_date: date = None) -> List[Booking]:
        unit = self.registry.get_unit(capacity_unit_id)
        q = Booking.query.filter_by(capacity_unit_id=unit.id)
        if status:
            q = q.filter(Booking.status == status)
        if service_date:
            q = q.filter(Booking.service_date == service_date)
        return q.order_by(Booking.service_date.desc(), Booking.queue_key, Booking.token.asc()).limit(500).all()

    def list_slots(self, capacity_unit_id: int, on_date: date) -> List[dict]:
        unit = self.registry.get_unit(capacity_unit_id)
        return self.registry.list_slots(unit, on_date)
