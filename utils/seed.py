from datetime import time

from flask import current_app

from models import db
from models.business import Business
from models.capacity_unit import CapacityUnit
from models.enums import QueueMode
from models.operating_window import OperatingWindow

DEMO_BUSINESS = "Demo Clinic"
DEFAULT_OPEN = time(9, 0)
DEFAULT_CLOSE = time(18, 0)


def weekly_windows(open_time=DEFAULT_OPEN, close_time=DEFAULT_CLOSE, closed_days=(6,)):
    """Monday-Saturday open, Sunday closed unless told otherwise."""
    return [
        OperatingWindow(weekday=day, open_time=open_time, close_time=close_time, closed=day in closed_days)
        for day in range(7)
    ]


def seed_demo():
    """Create a demo business with one live and one slotted department (idempotent)."""
    business = Business.query.filter_by(name=DEMO_BUSINESS).first()
    if business:
        return business

    avg = current_app.config.get("DEFAULT_AVERAGE_SERVICE_MINUTES", 15)

    business = Business(
        name=DEMO_BUSINESS,
        timezone=current_app.config.get("DEFAULT_BUSINESS_TIMEZONE", "UTC"),
        auto_approve=False,
    )
    business.capacity_units = [
        CapacityUnit(
            department_id="reception",
            name="Reception",
            mode=QueueMode.LIVE,
            capacity=50,
            average_service_minutes=avg,
            windows=weekly_windows(),
        ),
        CapacityUnit(
            department_id="consultation",
            name="Consultation",
            mode=QueueMode.SLOTTED,
            capacity=4,
            slot_duration_minutes=30,
            average_service_minutes=avg,
            windows=weekly_windows(),
        ),
    ]
    db.session.add(business)
    db.session.commit()
    return business
