from datetime import datetime
from models.db import db

class Business(db.Model):
    __tablename__ = "businesses"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)

    # IANA zone name, e.g. "Asia/Kolkata"; operating days and hours are local to it
    timezone = db.Column(db.String(64), nullable=False, default="UTC")

    # new bookings skip "pending" and start "confirmed"
    auto_approve = db.Column(db.Boolean, default=False, nullable=False)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    capacity_units = db.relationship("CapacityUnit", back_populates="business")
