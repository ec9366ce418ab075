from models.db import db

class OperatingWindow(db.Model):
    __tablename__ = "operating_windows"

    id = db.Column(db.Integer, primary_key=True)
    capacity_unit_id = db.Column(db.Integer, db.ForeignKey("capacity_units.id"), nullable=False, index=True)

    weekday = db.Column(db.Integer, nullable=False)  # 0 = Monday ... 6 = Sunday
    open_time = db.Column(db.Time, nullable=False)
    close_time = db.Column(db.Time, nullable=False)
    closed = db.Column(db.Boolean, default=False, nullable=False)

    capacity_unit = db.relationship("CapacityUnit", back_populates="windows")

    __table_args__ = (
        db.UniqueConstraint("capacity_unit_id", "weekday", name="uq_window_unit_weekday"),
        db.CheckConstraint("weekday BETWEEN 0 AND 6", name="ck_window_weekday"),
    )

    def contains(self, moment) -> bool:
        if self.closed:
            return False
        return self.open_time <= moment < self.close_time
