"""
Read-only view over business/department configuration.

Slots are never created ad hoc: a slot exists only at a start time derived from
the unit's operating window for that weekday and its slot duration. The rows are
materialized lazily the first time someone books or inspects them.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError

from models import db
from models.booking import Booking
from models.business import Business
from models.capacity_unit import CapacityUnit
from models.enums import ACTIVE_STATUSES
from models.live_queue_day import LiveQueueDay
from models.slot import Slot
from scheduling.clock import to_local, to_utc
from scheduling.errors import ClosedError, InvalidRequestError, NotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    unit: CapacityUnit
    service_date: date
    slot: Optional[Slot] = None


class CapacityUnitRegistry:
    def __init__(self, clock):
        self.clock = clock

    # ---------- lookup ----------
    def get_unit(self, capacity_unit_id: int) -> CapacityUnit:
        unit = db.session.get(CapacityUnit, capacity_unit_id)
        if not unit or not unit.is_active or not unit.business.is_active:
            raise NotFoundError("Department not found")
        return unit

    def find_unit(self, business_id: int, department_id: str) -> CapacityUnit:
        business = db.session.get(Business, business_id)
        if not business or not business.is_active:
            raise NotFoundError("Business not found")

        unit = (
            CapacityUnit.query
            .filter_by(business_id=business.id, department_id=str(department_id))
            .first()
        )
        if not unit or not unit.is_active:
            raise NotFoundError("Department not found")
        return unit

    def get_slot(self, unit: CapacityUnit, slot_id: int) -> Slot:
        slot = db.session.get(Slot, slot_id)
        if not slot or slot.capacity_unit_id != unit.id:
            raise NotFoundError("Slot not found")
        return slot

    def resolve(self, business_id, department_id, slot_date: date = None, start_time: time = None) -> Resolution:
        unit = self.find_unit(business_id, department_id)

        if unit.is_slotted:
            if slot_date is None or start_time is None:
                raise InvalidRequestError("This department takes bookings for a date and start time")
            slot = self.resolve_slot(unit, slot_date, start_time)
            return Resolution(unit=unit, service_date=slot.slot_date, slot=slot)

        if slot_date is not None or start_time is not None:
            raise InvalidRequestError("This department runs a live queue; no slot can be requested")
        self.ensure_open_now(unit)
        return Resolution(unit=unit, service_date=self.operating_day(unit))

    # ---------- time ----------
    def local_now(self, unit: CapacityUnit) -> datetime:
        return to_local(self.clock.now(), unit.business.timezone)

    def operating_day(self, unit: CapacityUnit, now: datetime = None) -> date:
        """Local calendar date, shifted back a day before the unit's day boundary."""
        local = to_local(now, unit.business.timezone) if now else self.local_now(unit)
        if local.time() < unit.day_starts_at:
            return local.date() - timedelta(days=1)
        return local.date()

    def window_for(self, unit: CapacityUnit, weekday: int):
        for window in unit.windows:
            if window.weekday == weekday:
                return window
        return None

    def ensure_open_now(self, unit: CapacityUnit):
        # Live queues without any configured hours are always open
        if not unit.windows:
            return
        local = self.local_now(unit)
        window = self.window_for(unit, local.weekday())
        if window is None or not window.contains(local.time()):
            raise ClosedError(f"{unit.name} is closed right now")

    # ---------- slots ----------
    def slot_times(self, unit: CapacityUnit, on_date: date) -> List[Tuple[time, time]]:
        """Every (start, end) pair the window allows on that date, in order."""
        window = self.window_for(unit, on_date.weekday())
        if window is None or window.closed or not unit.slot_duration_minutes:
            return []

        step = timedelta(minutes=unit.slot_duration_minutes)
        cursor = datetime.combine(on_date, window.open_time)
        close = datetime.combine(on_date, window.close_time)

        times = []
        while cursor + step <= close:
            times.append((cursor.time(), (cursor + step).time()))
            cursor += step
        return times

    def resolve_slot(self, unit: CapacityUnit, slot_date: date, start_time: time) -> Slot:
        window = self.window_for(unit, slot_date.weekday())
        if window is None or window.closed:
            raise ClosedError(f"{unit.name} is closed on {slot_date.strftime('%A')}s")

        if not (window.open_time <= start_time < window.close_time):
            raise ClosedError(
                f"{unit.name} is open {window.open_time.strftime('%H:%M')}-"
                f"{window.close_time.strftime('%H:%M')} on {slot_date.strftime('%A')}s"
            )

        match = None
        for start, end in self.slot_times(unit, slot_date):
            if start == start_time:
                match = (start, end)
                break
        if match is None:
            raise NotFoundError(f"No slot starts at {start_time.strftime('%H:%M')}")

        starts_at = to_utc(slot_date, start_time, unit.business.timezone)
        if starts_at <= self.clock.now():
            raise ClosedError("That slot has already started")

        return self._get_or_create_slot(unit, slot_date, match, starts_at)

    def _get_or_create_slot(self, unit, slot_date, times, starts_at) -> Slot:
        start, end = times
        slot = Slot.query.filter_by(capacity_unit_id=unit.id, slot_date=slot_date, start_time=start).first()
        if slot:
            return slot

        slot = Slot(
            capacity_unit_id=unit.id,
            slot_date=slot_date,
            start_time=start,
            end_time=end,
            starts_at=starts_at,
            booked=0,
            last_token=0,
            version=0,
        )
        db.session.add(slot)
        try:
            db.session.commit()
        except IntegrityError:
            # Someone else materialized it first (uq_unit_slot_start)
            db.session.rollback()
            slot = Slot.query.filter_by(capacity_unit_id=unit.id, slot_date=slot_date, start_time=start).one()
        else:
            logger.debug("Materialized slot %s for unit %s on %s at %s", slot.id, unit.id, slot_date, start)
        return slot

    def list_slots(self, unit: CapacityUnit, on_date: date) -> List[dict]:
        """Derived slots for a date with their live counts; nothing is written."""
        if not unit.is_slotted:
            raise InvalidRequestError("This department runs a live queue")

        existing = {
            s.start_time: s
            for s in Slot.query.filter_by(capacity_unit_id=unit.id, slot_date=on_date).all()
        }
        now = self.clock.now()
        out = []
        for start, end in self.slot_times(unit, on_date):
            slot = existing.get(start)
            booked = slot.booked if slot else 0
            starts_at = to_utc(on_date, start, unit.business.timezone)
            out.append({
                "slot_id": slot.id if slot else None,
                "date": on_date.isoformat(),
                "start_time": start.strftime("%H:%M"),
                "end_time": end.strftime("%H:%M"),
                "capacity": unit.capacity,
                "booked": booked,
                "available": booked < unit.capacity and starts_at > now,
            })
        return out

    # ---------- live queue days ----------
    def find_live_day(self, unit: CapacityUnit, service_date: date) -> Optional[LiveQueueDay]:
        return LiveQueueDay.query.filter_by(capacity_unit_id=unit.id, service_date=service_date).first()

    def active_from_earlier_days(self, unit: CapacityUnit, service_date: date) -> int:
        """Live bookings from before ``service_date`` that still hold a seat of the unit."""
        return (
            Booking.query
            .filter(
                Booking.capacity_unit_id == unit.id,
                Booking.live_queue_day_id.isnot(None),
                Booking.service_date < service_date,
                Booking.status.in_(list(ACTIVE_STATUSES)),
            )
            .count()
        )

    def get_or_create_live_day(self, unit: CapacityUnit, service_date: date) -> LiveQueueDay:
        day = self.find_live_day(unit, service_date)
        if day:
            return day

        day = LiveQueueDay(capacity_unit_id=unit.id, service_date=service_date, booked=0, last_token=0, version=0)
        db.session.add(day)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            day = LiveQueueDay.query.filter_by(capacity_unit_id=unit.id, service_date=service_date).one()
        else:
            logger.info("Opened live queue day %s for unit %s", service_date, unit.id)
        return day
