"""Numeric helpers: clamping and int-or-percent scaling."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, TypeVar

T = TypeVar("T")

_INTEGER = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class IntOrString:
    """A value that is either a plain integer or a string such as ``"50%"``."""

    value: int | str

    @classmethod
    def from_int(cls, value: int) -> "IntOrString":
        return cls(int(value))

    @classmethod
    def from_string(cls, value: str) -> "IntOrString":
        return cls(str(value))


def clamp(val: T, a: T, b: T) -> T:
    """Keep ``val`` within the range spanned by ``a`` and ``b``, in either order."""
    lower = min(a, b)
    upper = max(a, b)
    return min(max(val, lower), upper)


def scaled_value_from_int_or_percent(
    int_or_percent: Optional[IntOrString], total: int, round_up: bool
) -> int:
    """Return the integer, or the percentage of ``total`` rounded as asked.

    Raises ValueError when the value is missing or not a valid percentage.
    """
    if int_or_percent is None:
        raise ValueError("nil value for IntOrString")
    value = int_or_percent.value
    if isinstance(value, int):
        return value
    if not value.endswith("%"):
        raise ValueError(f"invalid type: string is not a percentage")
    number = value[:-1]
    if not _INTEGER.fullmatch(number):
        raise ValueError(f"invalid value for IntOrString: invalid value {value!r}")
    scaled = int(number) * total
    if round_up:
        return -(-scaled // 100)
    return scaled // 100


def get_scaled_value_from_int_or_percent(
    int_or_percent: Optional[IntOrString],
    total: int,
    round_up: bool,
    default_value: int,
) -> int:
    """Like :func:`scaled_value_from_int_or_percent`, falling back to a default."""
    try:
        return scaled_value_from_int_or_percent(int_or_percent, total, round_up)
    except ValueError:
        return default_value