"""
Single ingress point for date values.

Stored appointments historically mixed plain ``YYYY-MM-DD`` strings, full ISO
timestamps and backend timestamp objects. Everything is normalized here to a
``pendulum.Date`` in the salon's local zone before any comparison happens.
"""

from __future__ import annotations

from datetime import date, datetime, timezone as dt_timezone
from typing import Any, Mapping

import pendulum
from pendulum import Date

from .exceptions import InvalidDateFormat

DEFAULT_TIMEZONE = "Europe/Rome"


def to_local_date(value: Any, tz: str = DEFAULT_TIMEZONE) -> Date:
    """
    Resolve a date-like value to the salon-local calendar day.

    Accepts plain date strings, ISO timestamp strings, ``date``/``datetime``
    objects and backend timestamps (``to_datetime()``/``ToDatetime()``,
    a ``seconds`` attribute, or a mapping with ``seconds``/``_seconds``).

    Raises:
        InvalidDateFormat: If the value cannot be resolved.
    """
    if value is None or isinstance(value, bool):
        raise InvalidDateFormat(f"Cannot resolve a date from {value!r}")

    if isinstance(value, datetime):
        return _datetime_to_local_date(value, tz)

    if isinstance(value, date):
        return pendulum.date(value.year, value.month, value.day)

    if isinstance(value, str):
        return _parse_date_string(value, tz)

    if isinstance(value, Mapping):
        seconds = value.get("seconds", value.get("_seconds"))
        if seconds is None:
            raise InvalidDateFormat(f"Timestamp mapping without seconds: {value!r}")
        return _epoch_to_local_date(seconds, tz)

    for converter in ("to_datetime", "ToDatetime"):
        if callable(getattr(value, converter, None)):
            converted = getattr(value, converter)()
            if isinstance(converted, datetime):
                if converted.tzinfo is None:
                    # protobuf Timestamp.ToDatetime() returns naive UTC
                    converted = converted.replace(tzinfo=dt_timezone.utc)
                return _datetime_to_local_date(converted, tz)

    seconds = getattr(value, "seconds", None)
    if isinstance(seconds, (int, float)) and not isinstance(seconds, bool):
        return _epoch_to_local_date(seconds, tz)

    raise InvalidDateFormat(f"Unsupported date representation: {type(value).__name__}")


def _parse_date_string(value: str, tz: str) -> Date:
    text = value.strip()
    if not text:
        raise InvalidDateFormat("Empty date string")

    try:
        parsed = pendulum.parse(text, tz=tz, exact=True)
    except (ValueError, TypeError) as exc:
        raise InvalidDateFormat(f"Invalid date format: {value!r}") from exc

    if isinstance(parsed, pendulum.DateTime):
        return parsed.in_timezone(tz).date()
    if isinstance(parsed, pendulum.Date):
        return parsed
    raise InvalidDateFormat(f"Not a date: {value!r}")


def _datetime_to_local_date(value: datetime, tz: str) -> Date:
    if value.tzinfo is None:
        return pendulum.date(value.year, value.month, value.day)
    return pendulum.instance(value).in_timezone(tz).date()


def _epoch_to_local_date(seconds: Any, tz: str) -> Date:
    try:
        return pendulum.from_timestamp(float(seconds), tz=tz).date()
    except (ValueError, TypeError, OverflowError) as exc:
        raise InvalidDateFormat(f"Invalid timestamp seconds: {seconds!r}") from exc


def same_local_day(first: Any, second: Any, tz: str = DEFAULT_TIMEZONE) -> bool:
    return to_local_date(first, tz) == to_local_date(second, tz)


def today(tz: str = DEFAULT_TIMEZONE) -> Date:
    return pendulum.today(tz).date()


def is_past_date(day: Date, reference: Date) -> bool:
    """Strictly before the reference day."""
    return day < reference


def iter_days(start: Date, end: Date):
    """Yield every day from start to end inclusive."""
    current = start
    while current <= end:
        yield current
        current = current.add(days=1)
