import uuid
from datetime import datetime, timezone
from typing import Any


def current_time() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def normalize_timestamp(value: Any) -> datetime:
    """
    Convert the timestamp shapes a backing store may hand back into a naive
    UTC datetime.

    Accepts datetimes (aware or naive UTC), epoch seconds, ISO-8601 strings
    and mappings holding ``seconds`` (plus optional ``nanoseconds``).
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(value, bool):
        raise ValueError(f'Invalid timestamp: {value!r}')
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, timezone.utc).replace(tzinfo=None)
    if isinstance(value, str):
        return normalize_timestamp(datetime.fromisoformat(value))
    if isinstance(value, dict) and 'seconds' in value:
        seconds = value['seconds'] + value.get('nanoseconds', 0) / 1e9
        return normalize_timestamp(seconds)
    raise ValueError(f'Invalid timestamp: {value!r}')


def generate_id() -> str:
    return uuid.uuid4().hex
