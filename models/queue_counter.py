from models.db import db


class QueueCounterMixin:
    """
    Per-queue admission counter. Every change goes through a conditional
    UPDATE that bumps ``version``, so a stale reader can never commit.
    """

    booked = db.Column(db.Integer, nullable=False, default=0)
    last_token = db.Column(db.Integer, nullable=False, default=0)
    version = db.Column(db.Integer, nullable=False, default=0)
