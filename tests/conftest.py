from datetime import datetime, time

import pytest

from app import create_app
from models import db
from models.business import Business
from models.capacity_unit import CapacityUnit
from models.enums import QueueMode
from scheduling import FixedClock
from tests.helpers import weekday_windows

# Monday
NOW = datetime(2026, 10, 19, 10, 0)


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def app(tmp_path, clock):
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite:///" + str(tmp_path / "queueslot-test.db"),
            "LOG_LEVEL": "WARNING",
        },
        clock=clock,
    )
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def service(app):
    return app.extensions["scheduling"]


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_unit(app):
    counter = {"n": 0}

    def _make(mode=QueueMode.LIVE, capacity=10, slot_duration_minutes=None, average_service_minutes=10,
              auto_approve=False, windows=None, timezone="UTC", day_starts_at=time(0, 0), grace_minutes=15):
        counter["n"] += 1
        business = Business(name=f"Business {counter['n']}", timezone=timezone, auto_approve=auto_approve)
        unit = CapacityUnit(
            business=business,
            department_id=f"dept-{counter['n']}",
            name=f"Department {counter['n']}",
            mode=mode,
            capacity=capacity,
            slot_duration_minutes=slot_duration_minutes,
            average_service_minutes=average_service_minutes,
            no_show_grace_minutes=grace_minutes,
            day_starts_at=day_starts_at,
            windows=windows if windows is not None else [],
        )
        db.session.add(business)
        db.session.commit()
        return unit

    return _make


@pytest.fixture
def live_unit(make_unit):
    return make_unit(mode=QueueMode.LIVE, capacity=10, average_service_minutes=10)


@pytest.fixture
def slotted_unit(make_unit):
    return make_unit(mode=QueueMode.SLOTTED, capacity=2, slot_duration_minutes=30, windows=weekday_windows())
