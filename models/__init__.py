from .db import db
from .enums import QueueMode, BookingStatus, Actor, ACTIVE_STATUSES, TERMINAL_STATUSES
from .business import Business
from .capacity_unit import CapacityUnit
from .operating_window import OperatingWindow
from .slot import Slot
from .live_queue_day import LiveQueueDay
from .booking import Booking
from .booking_event import BookingEvent
