"""Shared builders for tests."""

from datetime import time

from models.operating_window import OperatingWindow
from scheduling import Customer


def weekday_windows(open_time=time(9, 0), close_time=time(17, 0)):
    """Open Monday-Saturday, closed Sunday."""
    return [
        OperatingWindow(weekday=day, open_time=open_time, close_time=close_time, closed=(day == 6))
        for day in range(7)
    ]


def customer(n=1):
    return Customer(name=f"Customer {n}", phone=f"+1555000{n:04d}", email=f"c{n}@example.com")
