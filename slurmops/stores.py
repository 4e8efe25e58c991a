"""Thread-safe keyed stores of durations and times."""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any, Generic, TypeVar

T = TypeVar("T")

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
ZERO_DURATION = timedelta(0)


def greater(old: Any, new: Any) -> bool:
    """Keep the new value when it is larger (or later)."""
    return new > old


def less(old: Any, new: Any) -> bool:
    """Keep the new value when it is smaller (or earlier)."""
    return new < old


class Slot(Generic[T]):
    """A single value guarded by its own lock."""

    def __init__(self, value: T) -> None:
        self._lock = threading.Lock()
        self._value = value

    def get(self) -> T:
        with self._lock:
            return self._value

    def update(self, new: T, evaluate: Callable[[T, T], bool]) -> None:
        """Replace the value with ``new`` when ``evaluate(old, new)`` is true."""
        with self._lock:
            if evaluate(self._value, new):
                self._value = new


class ValueStore(Generic[T]):
    """Stores one value per key; repeated pushes keep the one ``evaluate`` prefers."""

    def __init__(self, evaluate: Callable[[T, T], bool], zero: T) -> None:
        self._evaluate = evaluate
        self._zero = zero
        self._lock = threading.Lock()
        self._slots: dict[str, Slot[T]] = {}

    def push(self, key: str, value: T) -> None:
        with self._lock:
            slot = self._slots.get(key)
            if slot is None:
                self._slots[key] = Slot(value)
                return
        slot.update(value, self._evaluate)

    def pop(self, key: str) -> T:
        """Return and remove the value for ``key``, or the zero value."""
        with self._lock:
            slot = self._slots.pop(key, None)
        return self._zero if slot is None else slot.get()

    def peek(self, key: str) -> T:
        """Return the value for ``key`` without removing it, or the zero value."""
        with self._lock:
            slot = self._slots.get(key)
        return self._zero if slot is None else slot.get()


class DurationStore(ValueStore[timedelta]):
    """Keyed durations; missing keys read as a zero duration."""

    def __init__(self, evaluate: Callable[[timedelta, timedelta], bool]) -> None:
        super().__init__(evaluate, ZERO_DURATION)


class TimeStore(ValueStore[datetime]):
    """Keyed times; missing keys read as the zero time."""

    def __init__(self, evaluate: Callable[[datetime, datetime], bool]) -> None:
        super().__init__(evaluate, ZERO_TIME)