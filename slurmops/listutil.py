"""Conversions between plain lists and lists of optional entries."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Optional, TypeVar

T = TypeVar("T")


def reference_list(items: Iterable[T]) -> list[Optional[T]]:
    """Return a new list holding every item, suitable for optional-entry use."""
    return list(items)


def dereference_list(items: Iterable[Optional[T]]) -> list[T]:
    """Return the items that are present, dropping the missing (None) entries."""
    return [item for item in items if item is not None]