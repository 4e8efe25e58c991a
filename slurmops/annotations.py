"""Typed lookups of values stored in annotation maps."""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone

from .stores import ZERO_TIME

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1

_DECIMAL = re.compile(r"[+-]?[0-9]+")

_TRUE_WORDS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_WORDS = frozenset({"0", "f", "F", "FALSE", "false", "False"})

_RFC3339 = re.compile(
    r"(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})"
    r"T(?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})"
    r"(?:\.(?P<fraction>\d+))?"
    r"(?P<zone>Z|[+-]\d{2}:\d{2})"
)


def valid_first_digit(value: str) -> bool:
    """Reject empty strings, a leading plus sign and leading zeros."""
    if not value:
        return False
    first = value[0]
    return first == "-" or value == "0" or "1" <= first <= "9"


def get_number_from_annotations(annotations: Mapping[str, str], key: str) -> int:
    """Return the 32-bit integer stored under ``key``, or 0 when it is absent.

    Raises ValueError when the value is not a valid decimal 32-bit integer.
    """
    if key not in annotations:
        return 0
    value = annotations[key]
    if not valid_first_digit(value):
        raise ValueError(f"invalid value {value!r}")
    if not _DECIMAL.fullmatch(value):
        raise ValueError(f"parsing {value!r}: invalid syntax")
    number = int(value, 10)
    if not _INT32_MIN <= number <= _INT32_MAX:
        raise ValueError(f"parsing {value!r}: value out of range")
    return number


def get_bool_from_annotations(annotations: Mapping[str, str], key: str) -> bool:
    """Return the boolean stored under ``key``, or False when it is absent.

    Raises ValueError when the value is not a recognised boolean word.
    """
    if key not in annotations:
        return False
    value = annotations[key]
    if value in _TRUE_WORDS:
        return True
    if value in _FALSE_WORDS:
        return False
    raise ValueError(f"parsing {value!r}: invalid syntax")


def _parse_rfc3339(value: str) -> datetime:
    match = _RFC3339.fullmatch(value)
    if match is None:
        raise ValueError(f"cannot parse {value!r} as RFC 3339 time")
    zone = match["zone"]
    if zone == "Z":
        tz = timezone.utc
    else:
        sign = -1 if zone[0] == "-" else 1
        hours, minutes = int(zone[1:3]), int(zone[4:6])
        if hours > 23 or minutes > 59:
            raise ValueError(f"time zone offset out of range in {value!r}")
        tz = timezone(sign * timedelta(hours=hours, minutes=minutes))
    fraction = match["fraction"] or ""
    microsecond = int(fraction[:6].ljust(6, "0")) if fraction else 0
    return datetime(
        int(match["year"]),
        int(match["month"]),
        int(match["day"]),
        int(match["hour"]),
        int(match["minute"]),
        int(match["second"]),
        microsecond,
        tzinfo=tz,
    )


def get_time_from_annotations(annotations: Mapping[str, str], key: str) -> datetime:
    """Return the RFC 3339 time stored under ``key``, or the zero time when absent.

    Raises ValueError when the value is not an RFC 3339 timestamp.
    """
    if key not in annotations:
        return ZERO_TIME
    return _parse_rfc3339(annotations[key])