from datetime import date

import pytest

from models import db
from models.booking import Booking
from models.live_queue_day import LiveQueueDay
from scheduling import CapacityExceededError, ConflictError, InvalidRequestError, ServiceUnavailableError
from scheduling.allocator import TokenAllocator
from tests.helpers import customer

DAY = date(2026, 10, 19)


def _admit(service, unit, counter, n=1):
    return lambda token: service.lifecycle.create(unit, counter, token, customer(n))


def _counter(service, unit):
    return service.registry.get_or_create_live_day(unit, DAY)


def test_tokens_are_issued_in_order(service, live_unit):
    counter = _counter(service, live_unit)

    tokens = [
        service.allocator.allocate(counter, live_unit.capacity, _admit(service, live_unit, counter, n)).token
        for n in range(1, 4)
    ]

    assert tokens == [1, 2, 3]
    db.session.refresh(counter)
    assert counter.booked == 3
    assert counter.last_token == 3


def test_full_queue_is_rejected_without_using_a_token(service, make_unit):
    unit = make_unit(capacity=1)
    counter = _counter(service, unit)
    service.allocator.allocate(counter, unit.capacity, _admit(service, unit, counter, 1))
    version = counter.version

    with pytest.raises(CapacityExceededError):
        service.allocator.allocate(counter, unit.capacity, _admit(service, unit, counter, 2))

    db.session.refresh(counter)
    assert counter.booked == 1
    assert counter.last_token == 1
    assert counter.version == version
    assert Booking.query.count() == 1


def test_lost_race_is_retried(service, live_unit, monkeypatch):
    counter = _counter(service, live_unit)
    allocator = service.allocator
    real_claim = allocator._claim
    calls = {"n": 0}

    def flaky_claim(model, counter_id, capacity, held=0):
        calls["n"] += 1
        if calls["n"] == 1:
            raise ConflictError("counter moved")
        return real_claim(model, counter_id, capacity, held)

    monkeypatch.setattr(allocator, "_claim", flaky_claim)

    booking = allocator.allocate(counter, live_unit.capacity, _admit(service, live_unit, counter))

    assert calls["n"] == 2
    assert booking.token == 1


def test_exhausted_retries_commit_nothing(service, live_unit, monkeypatch):
    counter = _counter(service, live_unit)
    allocator = TokenAllocator(service.locks, max_retries=2)

    def always_conflicts(model, counter_id, capacity, held=0):
        raise ConflictError("counter moved")

    monkeypatch.setattr(allocator, "_claim", always_conflicts)

    with pytest.raises(ServiceUnavailableError):
        allocator.allocate(counter, live_unit.capacity, _admit(service, live_unit, counter))

    assert Booking.query.count() == 0
    day = LiveQueueDay.query.one()
    assert (day.booked, day.last_token) == (0, 0)


def test_failed_admission_rolls_back_the_claim(service, live_unit):
    counter = _counter(service, live_unit)

    def refuse(token):
        raise InvalidRequestError("nope")

    with pytest.raises(InvalidRequestError):
        service.allocator.allocate(counter, live_unit.capacity, refuse)

    db.session.refresh(counter)
    assert counter.booked == 0
    assert counter.last_token == 0

    booking = service.allocator.allocate(counter, live_unit.capacity, _admit(service, live_unit, counter))
    assert booking.token == 1


def test_release_frees_a_seat_but_keeps_the_token_sequence(service, make_unit):
    unit = make_unit(capacity=1)
    counter = _counter(service, unit)
    service.allocator.allocate(counter, unit.capacity, _admit(service, unit, counter, 1))

    service.allocator.release(LiveQueueDay, counter.id)
    db.session.commit()

    booking = service.allocator.allocate(counter, unit.capacity, _admit(service, unit, counter, 2))
    assert booking.token == 2
