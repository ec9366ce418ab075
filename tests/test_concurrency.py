import threading
from datetime import date, time

from models import db
from models.booking import Booking
from models.slot import Slot
from scheduling import CapacityExceededError, SlotRequest
from tests.helpers import customer

SLOT = SlotRequest(date(2026, 10, 20), time(9, 0))


def _race(app, service, unit, callers):
    barrier = threading.Barrier(callers)
    results = []
    lock = threading.Lock()

    def worker(n):
        with app.app_context():
            try:
                barrier.wait()
                booking = service.create_booking(unit.business_id, unit.department_id, customer(n),
                                                 slot_request=SLOT)
                outcome = booking.token
            except CapacityExceededError as exc:
                outcome = exc
            finally:
                db.session.remove()
            with lock:
                results.append(outcome)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(1, callers + 1)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return results


def test_concurrent_bookings_never_oversell_a_slot(app, service, slotted_unit):
    # materialize the slot up front so the race is on admission only
    slot = service.registry.resolve(slotted_unit.business_id, slotted_unit.department_id,
                                    SLOT.date, SLOT.start_time).slot

    results = _race(app, service, slotted_unit, 3)

    tokens = sorted(r for r in results if isinstance(r, int))
    rejected = [r for r in results if isinstance(r, CapacityExceededError)]
    assert tokens == [1, 2]
    assert len(rejected) == 1

    db.session.expire_all()
    assert db.session.get(Slot, slot.id).booked == 2
    assert Booking.query.filter_by(slot_id=slot.id).count() == 2


def test_concurrent_live_joins_get_distinct_tokens(app, service, make_unit):
    unit = make_unit(capacity=50)
    barrier = threading.Barrier(5)
    tokens = []
    lock = threading.Lock()

    def worker(n):
        with app.app_context():
            try:
                barrier.wait()
                booking = service.create_booking(unit.business_id, unit.department_id, customer(n))
                with lock:
                    tokens.append(booking.token)
            finally:
                db.session.remove()

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(1, 6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    assert sorted(tokens) == [1, 2, 3, 4, 5]
    snapshot = service.get_queue_snapshot(unit.id)
    assert [e.position for e in snapshot] == [1, 2, 3, 4, 5]
