from datetime import datetime
from models.db import db

class BookingEvent(db.Model):
    """Outbox row read by the notification subsystem."""

    __tablename__ = "booking_events"

    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=False, index=True)
    capacity_unit_id = db.Column(db.Integer, db.ForeignKey("capacity_units.id"), nullable=False, index=True)
    slot_id = db.Column(db.Integer, db.ForeignKey("slots.id"), nullable=True)

    old_status = db.Column(db.String(20), nullable=True)  # null on admission
    new_status = db.Column(db.String(20), nullable=False)
    actor = db.Column(db.String(16), nullable=True)

    position = db.Column(db.Integer, nullable=True)
    estimated_wait_minutes = db.Column(db.Integer, nullable=True)

    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
