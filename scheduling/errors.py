"""
Errors raised by the scheduling engine.

Everything except ``ConflictError`` is a business outcome the caller can act on
("this slot is full", "the department is closed"). ``ConflictError`` is a lost
race inside the store and is retried before anyone sees it.
"""


class SchedulingError(Exception):
    status_code = 400
    code = "scheduling_error"
    default_message = "Scheduling request failed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class InvalidRequestError(SchedulingError):
    status_code = 400
    code = "bad_request"
    default_message = "Invalid booking request"


class NotFoundError(SchedulingError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class ClosedError(SchedulingError):
    status_code = 422
    code = "closed"
    default_message = "Department is closed at the requested time"


class CapacityExceededError(SchedulingError):
    status_code = 409
    code = "fully_booked"
    default_message = "Fully booked"


class InvalidTransitionError(SchedulingError):
    status_code = 409
    code = "invalid_transition"

    def __init__(self, current, target, reason: str = None):
        self.current = current
        self.target = target
        message = f"Cannot move booking from '{_value(current)}' to '{_value(target)}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["from"] = _value(self.current)
        data["to"] = _value(self.target)
        return data


class ConflictError(SchedulingError):
    status_code = 409
    code = "conflict"
    default_message = "Concurrent update detected"


class ServiceUnavailableError(SchedulingError):
    status_code = 503
    code = "service_unavailable"
    default_message = "Booking service is busy, please try again"


def _value(status):
    return getattr(status, "value", status)
