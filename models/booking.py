from datetime import datetime
from models.db import db
from models.enums import BookingStatus, Actor, enum_values

class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)

    capacity_unit_id = db.Column(db.Integer, db.ForeignKey("capacity_units.id"), nullable=False, index=True)
    slot_id = db.Column(db.Integer, db.ForeignKey("slots.id"), nullable=True, index=True)
    live_queue_day_id = db.Column(db.Integer, db.ForeignKey("live_queue_days.id"), nullable=True, index=True)

    # "slot:<id>" or "live:<unit>:<date>"; tokens are unique within it
    queue_key = db.Column(db.String(64), nullable=False, index=True)
    service_date = db.Column(db.Date, nullable=False)
    token = db.Column(db.Integer, nullable=False)

    status = db.Column(
        db.Enum(BookingStatus, values_callable=enum_values, native_enum=False, length=20),
        nullable=False,
        default=BookingStatus.PENDING,
    )

    customer_name = db.Column(db.String(120), nullable=False)
    customer_phone = db.Column(db.String(30), nullable=False, index=True)
    customer_email = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    # shown as a QR code; the operator scans it at check-in
    check_in_code = db.Column(db.String(64), unique=True, nullable=False, index=True)

    # slot start, or the live-queue estimate; drives the no-show grace period
    scheduled_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    confirmed_at = db.Column(db.DateTime, nullable=True)
    checked_in_at = db.Column(db.DateTime, nullable=True)
    started_at = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)
    no_show_at = db.Column(db.DateTime, nullable=True)

    cancelled_by = db.Column(
        db.Enum(Actor, values_callable=enum_values, native_enum=False, length=16),
        nullable=True,
    )
    cancel_reason = db.Column(db.String(120), nullable=True)

    # cache only: the tracker rewrites these on every queue mutation
    position = db.Column(db.Integer, nullable=True)
    estimated_wait_minutes = db.Column(db.Integer, nullable=True)

    updated_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    capacity_unit = db.relationship("CapacityUnit")
    slot = db.relationship("Slot")

    __table_args__ = (
        # Hard business rule: one token number per queue
        db.UniqueConstraint("queue_key", "token", name="uq_booking_queue_token"),
        db.CheckConstraint("token >= 1", name="ck_booking_token_positive"),
    )