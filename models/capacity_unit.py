from datetime import datetime, time
from models.db import db
from models.enums import QueueMode, enum_values

class CapacityUnit(db.Model):
    """A bookable department: one live queue, or a calendar of dated slots."""

    __tablename__ = "capacity_units"

    id = db.Column(db.Integer, primary_key=True)
    business_id = db.Column(db.Integer, db.ForeignKey("businesses.id"), nullable=False, index=True)
    department_id = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(120), nullable=False)

    mode = db.Column(
        db.Enum(QueueMode, values_callable=enum_values, native_enum=False, length=16),
        nullable=False,
        default=QueueMode.LIVE,
    )
    # live: max concurrent active bookings; slotted: max per slot
    capacity = db.Column(db.Integer, nullable=False, default=1)
    slot_duration_minutes = db.Column(db.Integer, nullable=True)

    average_service_minutes = db.Column(db.Integer, nullable=False, default=15)
    # None falls back to the app-wide DEFAULT_NO_SHOW_GRACE_MINUTES
    no_show_grace_minutes = db.Column(db.Integer, nullable=True)

    # local time at which a new live-queue operating day (and token run) begins
    day_starts_at = db.Column(db.Time, nullable=False, default=time(0, 0))

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    business = db.relationship("Business", back_populates="capacity_units")
    windows = db.relationship(
        "OperatingWindow",
        back_populates="capacity_unit",
        order_by="OperatingWindow.weekday",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        db.UniqueConstraint("business_id", "department_id", name="uq_unit_department"),
        db.CheckConstraint("capacity >= 1", name="ck_unit_capacity_positive"),
        db.CheckConstraint("average_service_minutes >= 0", name="ck_unit_avg_service"),
    )

    @property
    def is_slotted(self) -> bool:
        return self.mode == QueueMode.SLOTTED
