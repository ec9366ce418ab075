"""Time sources. All engine timestamps are naive UTC, like the stored columns."""

from datetime import datetime, timedelta, timezone

import pytz


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc).replace(tzinfo=None)


class FixedClock:
    """A clock that only moves when told to."""

    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current

    def advance(self, **delta) -> datetime:
        self.current = self.current + timedelta(**delta)
        return self.current


def to_local(utc_naive: datetime, tz_name: str) -> datetime:
    return pytz.UTC.localize(utc_naive).astimezone(pytz.timezone(tz_name))


def to_utc(local_date, local_time, tz_name: str) -> datetime:
    tz = pytz.timezone(tz_name)
    local_dt = tz.localize(datetime.combine(local_date, local_time))
    return local_dt.astimezone(pytz.UTC).replace(tzinfo=None)
