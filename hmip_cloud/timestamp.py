"""Conversion between the wire's epoch-millisecond integers and datetimes."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from .errors import DecodeError

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def decode_timestamp(value, field: str = "timestamp") -> datetime:
    """
    Decode an integer millisecond count since the epoch into a UTC datetime.

    Any token that is not a JSON integer (null, float, string, boolean)
    raises DecodeError.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(field, f"expected integer milliseconds, got {value!r}")
    try:
        return _EPOCH + timedelta(milliseconds=value)
    except (OverflowError, ValueError) as exc:
        raise DecodeError(field, f"timestamp {value!r} is out of range") from exc


def encode_timestamp(value: datetime) -> int:
    """Encode a datetime as integer milliseconds since the epoch."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    delta = value - _EPOCH
    return (delta.days * 86_400_000) + (delta.seconds * 1000) + (delta.microseconds // 1000)
