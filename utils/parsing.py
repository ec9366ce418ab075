from datetime import date, time

from scheduling.errors import InvalidRequestError


def parse_date(value: str) -> date:
    # Expect "2026-01-20"
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise InvalidRequestError("Invalid date. Use YYYY-MM-DD")


def parse_time(value: str) -> time:
    # Expect "09:30"
    try:
        return time.fromisoformat(value)
    except (TypeError, ValueError):
        raise InvalidRequestError("Invalid time. Use HH:MM")


def json_object(value, what: str = "Request body") -> dict:
    # a missing body reads as {}
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise InvalidRequestError(f"{what} must be a JSON object")
    return value


def text_field(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise InvalidRequestError(f"{key} must be a string")
    return value.strip()
