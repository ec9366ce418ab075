from datetime import date, datetime, time

import pytest

from models import db
from models.booking import Booking
from models.booking_event import BookingEvent
from models.enums import Actor, BookingStatus, QueueMode
from models.live_queue_day import LiveQueueDay
from models.slot import Slot
from scheduling import (
    InvalidRequestError,
    InvalidTransitionError,
    NotFoundError,
    SchedulingService,
    SlotRequest,
    TRANSITIONS,
)
from tests.helpers import customer, weekday_windows


def _join(service, unit, n=1):
    return service.create_booking(unit.business_id, unit.department_id, customer(n))


def _reload(booking_id):
    db.session.expire_all()
    return db.session.get(Booking, booking_id)


def test_check_in_straight_from_pending_is_rejected(service, live_unit):
    booking = _join(service, live_unit)
    assert booking.status == BookingStatus.PENDING

    with pytest.raises(InvalidTransitionError) as excinfo:
        service.advance_booking(booking.id, Actor.BUSINESS, BookingStatus.CHECKED_IN)

    assert excinfo.value.to_dict()["from"] == "pending"
    assert excinfo.value.to_dict()["to"] == "checked-in"
    assert _reload(booking.id).status == BookingStatus.PENDING


def test_full_visit_stamps_each_step(service, live_unit, clock):
    booking = _join(service, live_unit)

    steps = [
        (BookingStatus.CONFIRMED, "confirmed_at"),
        (BookingStatus.CHECKED_IN, "checked_in_at"),
        (BookingStatus.IN_PROGRESS, "started_at"),
        (BookingStatus.COMPLETED, "completed_at"),
    ]
    for status, stamp in steps:
        moment = clock.advance(minutes=1)
        service.advance_booking(booking.id, Actor.BUSINESS, status)
        current = _reload(booking.id)
        assert current.status == status
        assert getattr(current, stamp) == moment

    done = _reload(booking.id)
    assert done.position is None
    assert LiveQueueDay.query.one().booked == 0


def test_customer_cannot_approve(service, live_unit):
    booking = _join(service, live_unit)

    with pytest.raises(InvalidTransitionError):
        service.advance_booking(booking.id, Actor.CUSTOMER, BookingStatus.CONFIRMED)

    assert _reload(booking.id).status == BookingStatus.PENDING


def test_auto_approve_business_confirms_on_admission(service, make_unit, clock):
    unit = make_unit(auto_approve=True)

    booking = _join(service, unit)

    assert booking.status == BookingStatus.CONFIRMED
    assert booking.confirmed_at == clock.now()


def test_moving_back_to_pending_is_refused(service, live_unit):
    booking = _join(service, live_unit)
    service.advance_booking(booking.id, Actor.BUSINESS, BookingStatus.CONFIRMED)

    with pytest.raises(InvalidRequestError):
        service.advance_booking(booking.id, Actor.BUSINESS, BookingStatus.PENDING)


def test_cancel_after_check_in_is_not_allowed(service, live_unit):
    booking = _join(service, live_unit)
    service.advance_booking(booking.id, Actor.BUSINESS, BookingStatus.CONFIRMED)
    service.advance_booking(booking.id, Actor.BUSINESS, BookingStatus.CHECKED_IN)

    with pytest.raises(InvalidTransitionError):
        service.cancel_booking(booking.id, Actor.CUSTOMER)


def test_terminal_bookings_do_not_move(service, live_unit):
    booking = _join(service, live_unit)
    service.cancel_booking(booking.id, Actor.CUSTOMER)

    with pytest.raises(InvalidTransitionError):
        service.advance_booking(booking.id, Actor.BUSINESS, BookingStatus.CONFIRMED)


def test_no_show_waits_for_the_grace_period(service, make_unit, clock):
    unit = make_unit(mode=QueueMode.SLOTTED, capacity=1, slot_duration_minutes=30,
                     windows=weekday_windows(), auto_approve=True, grace_minutes=15)
    booking = service.create_booking(unit.business_id, unit.department_id, customer(1),
                                     slot_request=SlotRequest(clock.now().date(), time(11, 0)))

    clock.current = datetime(2026, 10, 19, 11, 10)
    with pytest.raises(InvalidTransitionError) as excinfo:
        service.advance_booking(booking.id, Actor.BUSINESS, BookingStatus.NO_SHOW)
    assert "grace period" in excinfo.value.message

    clock.current = datetime(2026, 10, 19, 11, 15)
    service.advance_booking(booking.id, Actor.BUSINESS, BookingStatus.NO_SHOW)

    current = _reload(booking.id)
    assert current.status == BookingStatus.NO_SHOW
    assert current.no_show_at == datetime(2026, 10, 19, 11, 15)
    assert db.session.get(Slot, booking.slot_id).booked == 0


def test_cancel_twice_has_one_effect(service, slotted_unit):
    booking = service.create_booking(slotted_unit.business_id, slotted_unit.department_id, customer(1),
                                     slot_request=SlotRequest(date(2026, 10, 20), time(9, 0)))

    first = service.cancel_booking(booking.id, Actor.CUSTOMER, "changed plans")
    second = service.cancel_booking(booking.id, Actor.CUSTOMER)

    assert first.status == second.status == BookingStatus.CANCELLED
    assert second.cancel_reason == "changed plans"
    assert second.cancelled_by == Actor.CUSTOMER
    assert db.session.get(Slot, booking.slot_id).booked == 0
    assert BookingEvent.query.filter_by(booking_id=booking.id, new_status="cancelled").count() == 1


def test_unknown_booking(service):
    with pytest.raises(NotFoundError):
        service.cancel_booking(12345, Actor.CUSTOMER)


def test_every_transition_has_a_stamp_column():
    for (_, target), rule in TRANSITIONS.items():
        assert hasattr(Booking, rule.stamp)
        assert target != BookingStatus.PENDING


def test_checked_in_live_booking_no_show_counts_from_its_estimate(service, make_unit, clock):
    unit = make_unit(auto_approve=True, average_service_minutes=10, grace_minutes=15)
    first = _join(service, unit, 1)
    second = _join(service, unit, 2)
    assert second.scheduled_at == datetime(2026, 10, 19, 10, 10)

    service.advance_booking(second.id, Actor.BUSINESS, BookingStatus.CHECKED_IN)

    clock.current = datetime(2026, 10, 19, 10, 24)
    with pytest.raises(InvalidTransitionError) as excinfo:
        service.advance_booking(second.id, Actor.BUSINESS, BookingStatus.NO_SHOW)
    assert excinfo.value.to_dict()["from"] == "checked-in"

    clock.current = datetime(2026, 10, 19, 10, 25)
    service.advance_booking(second.id, Actor.BUSINESS, BookingStatus.NO_SHOW)

    assert _reload(second.id).status == BookingStatus.NO_SHOW
    assert LiveQueueDay.query.one().booked == 1
    assert [e.booking_id for e in service.get_queue_snapshot(unit.id)] == [first.id]


def test_unit_without_grace_uses_the_configured_default(app, make_unit, clock):
    service = SchedulingService(clock, default_grace_minutes=5)
    unit = make_unit(auto_approve=True, grace_minutes=None)
    booking = _join(service, unit)

    clock.advance(minutes=4)
    with pytest.raises(InvalidTransitionError):
        service.advance_booking(booking.id, Actor.BUSINESS, BookingStatus.NO_SHOW)

    clock.advance(minutes=1)
    service.advance_booking(booking.id, Actor.BUSINESS, BookingStatus.NO_SHOW)
    assert _reload(booking.id).status == BookingStatus.NO_SHOW
