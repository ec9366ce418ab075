from datetime import datetime

from models import db
from models.booking import Booking
from models.enums import Actor, BookingStatus
from scheduling import estimate_wait
from tests.helpers import customer


def _join(service, unit, n):
    return service.create_booking(unit.business_id, unit.department_id, customer(n))


def _walk_to_completed(service, booking_id):
    for status in (BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN,
                   BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED):
        service.advance_booking(booking_id, Actor.BUSINESS, status)


def test_estimate_wait():
    assert estimate_wait(1, 10) == 0
    assert estimate_wait(3, 10) == 20
    assert estimate_wait(4, 0) == 0


def test_positions_close_up_when_the_head_is_served(service, live_unit):
    first, second, third = (_join(service, live_unit, n) for n in range(1, 4))

    snapshot = service.get_queue_snapshot(live_unit.id)
    assert [e.token for e in snapshot] == [1, 2, 3]
    assert [e.position for e in snapshot] == [1, 2, 3]
    assert [e.estimated_wait_minutes for e in snapshot] == [0, 10, 20]

    _walk_to_completed(service, first.id)

    snapshot = service.get_queue_snapshot(live_unit.id)
    assert [e.booking_id for e in snapshot] == [second.id, third.id]
    assert [e.position for e in snapshot] == [1, 2]
    assert [e.estimated_wait_minutes for e in snapshot] == [0, 10]


def test_cached_position_follows_recompute(service, live_unit):
    bookings = [_join(service, live_unit, n) for n in range(1, 4)]
    assert [b.position for b in bookings] == [1, 2, 3]

    service.cancel_booking(bookings[0].id, Actor.CUSTOMER)

    db.session.expire_all()
    first, second, third = (db.session.get(Booking, b.id) for b in bookings)
    assert first.position is None
    assert first.estimated_wait_minutes is None
    assert (second.position, second.estimated_wait_minutes) == (1, 0)
    assert (third.position, third.estimated_wait_minutes) == (2, 10)


def test_wait_never_grows_while_a_booking_stays_active(service, live_unit):
    bookings = [_join(service, live_unit, n) for n in range(1, 5)]
    last = bookings[-1]
    waits = [service.get_queue_snapshot(live_unit.id).entry_for(last.id).estimated_wait_minutes]

    for booking in bookings[:-1]:
        service.cancel_booking(booking.id, Actor.BUSINESS)
        waits.append(service.get_queue_snapshot(live_unit.id).entry_for(last.id).estimated_wait_minutes)

    assert waits == sorted(waits, reverse=True)
    assert waits[-1] == 0


def test_snapshot_does_not_touch_the_cache(service, live_unit):
    booking = _join(service, live_unit, 1)

    Booking.query.filter_by(id=booking.id).update({"position": 99})
    db.session.commit()

    snapshot = service.get_queue_snapshot(live_unit.id)
    assert snapshot.entry_for(booking.id).position == 1

    db.session.expire_all()
    assert db.session.get(Booking, booking.id).position == 99

    service.refresh_queue(live_unit.id)
    db.session.expire_all()
    assert db.session.get(Booking, booking.id).position == 1


def test_live_expected_time_only_moves_earlier(service, live_unit, clock):
    _join(service, live_unit, 1)
    second = _join(service, live_unit, 2)
    assert second.scheduled_at == datetime(2026, 10, 19, 10, 10)

    # a later tick with the same rank would push it out; it must not
    clock.advance(minutes=5)
    service.refresh_queue(live_unit.id)
    db.session.expire_all()
    assert db.session.get(Booking, second.id).scheduled_at == datetime(2026, 10, 19, 10, 10)


def test_empty_queue_snapshot(service, live_unit):
    snapshot = service.get_queue_snapshot(live_unit.id)
    assert len(snapshot) == 0
    assert snapshot.ref.key == f"live:{live_unit.id}:2026-10-19"
