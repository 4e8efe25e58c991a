"""An in-memory object store with the semantics of an API server client."""

from __future__ import annotations

import copy
import json
import random
import re
import string
import threading
from collections.abc import Mapping
from dataclasses import MISSING, Field, fields, is_dataclass
from datetime import datetime
from typing import Any, Optional, TypeVar

from .objects import OwnerReference, PodCondition, PodPhase

T = TypeVar("T")

_SEED_VERSION = "999"
_CREATE_VERSION = "1"
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


class ApiError(Exception):
    """Base class for errors reported by the object store."""


class NotFoundError(ApiError):
    """The object does not exist."""


class AlreadyExistsError(ApiError):
    """An object with the same kind, namespace and name already exists."""


class ConflictError(ApiError):
    """The object was modified since it was read."""


class InvalidError(ApiError):
    """The request or object is not valid."""


def _kind_name(kind: type) -> str:
    return getattr(kind, "KIND", kind.__name__)


def _parse_time(value: Any) -> datetime:
    if not isinstance(value, str):
        raise TypeError(f"expected a timestamp string, got {type(value).__name__}")
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


_CONVERTERS = {
    "phase": PodPhase,
    "deletion_timestamp": _parse_time,
    "last_transition_time": _parse_time,
}
_LIST_ITEMS = {"owner_references": OwnerReference, "conditions": PodCondition}


def _default(spec: Field) -> Any:
    if spec.default is not MISSING:
        return spec.default
    return spec.default_factory()  # type: ignore[misc]


def _merge_mapping(current: Mapping[str, Any], patch: Mapping[str, Any]) -> dict[str, Any]:
    result = dict(current)
    for key, value in patch.items():
        if value is None:
            result.pop(key, None)
        elif isinstance(value, dict):
            base = result.get(key)
            result[key] = _merge_mapping(base if isinstance(base, dict) else {}, value)
        else:
            result[key] = value
    return result


def _build(cls: type, item: Any) -> Any:
    if not isinstance(item, dict):
        raise InvalidError(f"cannot decode {type(item).__name__} into {cls.__name__}")
    obj = cls()
    _merge_object(obj, item)
    return obj


def _merged_value(spec: Field, current: Any, value: Any) -> Any:
    if value is None:
        return _default(spec)
    if is_dataclass(current) and isinstance(value, dict):
        _merge_object(current, value)
        return current
    if isinstance(current, dict) and isinstance(value, dict):
        return _merge_mapping(current, value)
    if spec.name in _LIST_ITEMS:
        if not isinstance(value, list):
            raise InvalidError(f"field {spec.name!r} expects a list")
        return [_build(_LIST_ITEMS[spec.name], item) for item in value]
    converter = _CONVERTERS.get(spec.name)
    if converter is not None:
        try:
            return converter(value)
        except (ValueError, TypeError) as exc:
            raise InvalidError(f"invalid value for {spec.name!r}: {exc}") from exc
    return value


def _merge_object(target: Any, patch: Mapping[str, Any]) -> None:
    known = {spec.name: spec for spec in fields(target)}
    for key, value in patch.items():
        if key.startswith("$"):
            continue
        name = _CAMEL_BOUNDARY.sub("_", key).lower()
        spec = known.get(name)
        if spec is None:
            raise InvalidError(f"unknown field {key!r} in {type(target).__name__}")
        setattr(target, name, _merged_value(spec, getattr(target, name), value))


class InMemoryClient:
    """Stores objects by kind, namespace and name; every read returns a copy.

    Objects handed to the constructor are stored as they are and get a
    resource version if they lack one.
    """

    def __init__(self, *objects: Any) -> None:
        self._lock = threading.RLock()
        self._objects: dict[tuple[type, str, str], Any] = {}
        for obj in objects:
            stored = copy.deepcopy(obj)
            if not stored.metadata.resource_version:
                stored.metadata.resource_version = _SEED_VERSION
            self._objects[self._key(stored)] = stored

    @staticmethod
    def _key(obj: Any) -> tuple[type, str, str]:
        meta = obj.metadata
        return type(obj), meta.namespace, meta.name

    def _describe(self, obj: Any) -> str:
        meta = obj.metadata
        return f'{_kind_name(type(obj))} "{meta.namespace}/{meta.name}"'

    def create(self, obj: T) -> T:
        """Store a new object and return the stored copy."""
        stored = copy.deepcopy(obj)
        meta = stored.metadata
        if meta.resource_version:
            raise InvalidError("resourceVersion can not be set for Create requests")
        if not meta.name:
            if not meta.generate_name:
                raise InvalidError("name is required")
            suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=5))
            meta.name = meta.generate_name + suffix
        with self._lock:
            key = self._key(stored)
            if key in self._objects:
                raise AlreadyExistsError(f"{self._describe(stored)} already exists")
            meta.resource_version = _CREATE_VERSION
            self._objects[key] = stored
            return copy.deepcopy(stored)

    def get(self, kind: type[T], namespace: str, name: str) -> T:
        """Return a copy of the stored object."""
        with self._lock:
            stored = self._objects.get((kind, namespace, name))
            if stored is None:
                raise NotFoundError(f'{_kind_name(kind)} "{namespace}/{name}" not found')
            return copy.deepcopy(stored)

    def _existing(self, obj: Any) -> Any:
        stored = self._objects.get(self._key(obj))
        if stored is None:
            raise NotFoundError(f"{self._describe(obj)} not found")
        return stored

    @staticmethod
    def _next_version(stored: Any) -> str:
        return str(int(stored.metadata.resource_version or "0") + 1)

    def update(self, obj: T) -> T:
        """Replace a stored object; a stale resource version raises ConflictError."""
        with self._lock:
            stored = self._existing(obj)
            version = obj.metadata.resource_version
            if version and version != stored.metadata.resource_version:
                raise ConflictError(
                    f"{self._describe(obj)}: the object has been modified"
                )
            updated = copy.deepcopy(obj)
            updated.metadata.resource_version = self._next_version(stored)
            self._objects[self._key(updated)] = updated
            return copy.deepcopy(updated)

    def delete(self, obj: Any) -> None:
        """Remove a stored object."""
        with self._lock:
            self._existing(obj)
            del self._objects[self._key(obj)]

    def list(
        self,
        kind: type[T],
        namespace: str = "",
        selector: Optional[Mapping[str, str]] = None,
    ) -> list[T]:
        """Return copies of objects of ``kind`` whose labels match ``selector``.

        An empty namespace lists every namespace; no selector matches everything.
        """
        wanted = dict(selector or {})
        with self._lock:
            found = [
                copy.deepcopy(obj)
                for (obj_kind, obj_namespace, _), obj in self._objects.items()
                if obj_kind is kind
                and (not namespace or obj_namespace == namespace)
                and wanted.items() <= obj.metadata.labels.items()
            ]
        return sorted(found, key=lambda o: (o.metadata.namespace, o.metadata.name))

    def patch(self, obj: T, data: bytes | str) -> T:
        """Apply a JSON merge patch to the stored object and return the result."""
        try:
            document = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise InvalidError(f"invalid patch: {exc}") from exc
        if not isinstance(document, dict):
            raise InvalidError("patch must be a JSON object")
        with self._lock:
            stored = self._existing(obj)
            patched = copy.deepcopy(stored)
            _merge_object(patched, document)
            patched.metadata.resource_version = self._next_version(stored)
            del self._objects[self._key(stored)]
            self._objects[self._key(patched)] = patched
            return copy.deepcopy(patched)