from .clock import SystemClock, FixedClock
from .errors import (
    SchedulingError,
    InvalidRequestError,
    NotFoundError,
    ClosedError,
    CapacityExceededError,
    InvalidTransitionError,
    ConflictError,
    ServiceUnavailableError,
)
from .lifecycle import Customer, TRANSITIONS, parse_status
from .tracker import QueueEntry, QueueRef, QueueSnapshot, estimate_wait
from .service import SchedulingService, SlotRequest
