from datetime import datetime
from models.db import db
from models.queue_counter import QueueCounterMixin

class Slot(QueueCounterMixin, db.Model):
    __tablename__ = "slots"

    id = db.Column(db.Integer, primary_key=True)

    capacity_unit_id = db.Column(db.Integer, db.ForeignKey("capacity_units.id"), nullable=False, index=True)
    slot_date = db.Column(db.Date, nullable=False, index=True)
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)

    # slot start converted to UTC, used for "already started" and no-show checks
    starts_at = db.Column(db.DateTime, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    capacity_unit = db.relationship("CapacityUnit")

    __table_args__ = (
        # Slots are derived from the operating window: one row per unit/date/start
        db.UniqueConstraint("capacity_unit_id", "slot_date", "start_time", name="uq_unit_slot_start"),
        db.CheckConstraint("booked >= 0", name="ck_slot_booked_non_negative"),
    )

    @property
    def queue_key(self) -> str:
        return f"slot:{self.id}"
