from datetime import datetime
from models.db import db
from models.queue_counter import QueueCounterMixin

class LiveQueueDay(QueueCounterMixin, db.Model):
    __tablename__ = "live_queue_days"

    id = db.Column(db.Integer, primary_key=True)

    capacity_unit_id = db.Column(db.Integer, db.ForeignKey("capacity_units.id"), nullable=False, index=True)
    service_date = db.Column(db.Date, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    capacity_unit = db.relationship("CapacityUnit")

    __table_args__ = (
        db.UniqueConstraint("capacity_unit_id", "service_date", name="uq_live_unit_day"),
        db.CheckConstraint("booked >= 0", name="ck_live_booked_non_negative"),
    )

    @property
    def queue_key(self) -> str:
        return f"live:{self.capacity_unit_id}:{self.service_date.isoformat()}"
