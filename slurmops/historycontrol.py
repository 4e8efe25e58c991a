"""Controller revision storage: hashing, naming, listing and ownership changes."""

from __future__ import annotations

import copy
import random
import time
from collections.abc import Callable, Iterable, Mapping, MutableMapping
from contextlib import suppress
from typing import Any, Optional

from .apiclient import ApiError, ConflictError, InMemoryClient, InvalidError, NotFoundError
from .objects import ControllerRevision, GroupVersionKind, OwnerReference, get_controller_of

CONTROLLER_REVISION_HASH_LABEL = "controller.kubernetes.io/hash"

_MAX_PREFIX_LENGTH = 223
_SAFE_ALPHABET = "bcdfghjklmnpqrstvwxz2456789"
_FNV_OFFSET = 0x811C9DC5
_FNV_PRIME = 0x01000193

_RETRY_STEPS = 4
_RETRY_DELAY = 0.01
_RETRY_FACTOR = 5.0
_RETRY_JITTER = 0.1


def _fnv1_32(chunks: Iterable[bytes]) -> int:
    value = _FNV_OFFSET
    for chunk in chunks:
        for byte in chunk:
            value = (value * _FNV_PRIME) & 0xFFFFFFFF
            value ^= byte
    return value


def _safe_encode(text: str) -> str:
    return "".join(_SAFE_ALPHABET[ord(char) % len(_SAFE_ALPHABET)] for char in text)


def hash_controller_revision(
    revision: ControllerRevision, collision_count: Optional[int]
) -> str:
    """Hash the revision data, and the collision count when given, into a name-safe string."""
    chunks = [revision.data]
    if collision_count is not None:
        chunks.append(str(collision_count).encode())
    return _safe_encode(str(_fnv1_32(chunks)))


def controller_revision_name(prefix: str, hash_value: str) -> str:
    """Join a (possibly truncated) prefix and a hash into a revision name."""
    return f"{prefix[:_MAX_PREFIX_LENGTH]}-{hash_value}"


def set_revision(
    labels: Optional[MutableMapping[str, str]], revision: str
) -> MutableMapping[str, str]:
    """Record ``revision`` in ``labels`` when it is non-empty; return the labels."""
    if labels is None:
        labels = {}
    if revision:
        labels[CONTROLLER_REVISION_HASH_LABEL] = revision
    return labels


def get_revision(labels: Optional[Mapping[str, str]]) -> str:
    """Return the revision recorded in ``labels``, or an empty string."""
    if labels is None:
        return ""
    return labels.get(CONTROLLER_REVISION_HASH_LABEL, "")


def _retry_on_conflict(attempt: Callable[[], None]) -> None:
    delay = _RETRY_DELAY
    for step in range(_RETRY_STEPS):
        try:
            attempt()
            return
        except ConflictError:
            if step == _RETRY_STEPS - 1:
                raise
        time.sleep(delay * (1 + random.random() * _RETRY_JITTER))
        delay *= _RETRY_FACTOR


class HistoryControl:
    """Creates, updates and re-owns controller revisions through a client."""

    def __init__(self, client: InMemoryClient) -> None:
        self._client = client

    def _refetch(self, revision: ControllerRevision) -> Optional[ControllerRevision]:
        meta = revision.metadata
        with suppress(ApiError):
            return self._client.get(ControllerRevision, meta.namespace, meta.name)
        return None

    def list_controller_revisions(
        self, parent: Any, selector: Optional[Mapping[str, str]]
    ) -> list[ControllerRevision]:
        """Return revisions in the parent's namespace matching ``selector`` that
        are owned by the parent or by no controller at all."""
        revisions = self._client.list(
            ControllerRevision, parent.metadata.namespace, selector
        )
        owned = []
        for revision in revisions:
            ref = get_controller_of(revision)
            if ref is None or ref.uid == parent.metadata.uid:
                owned.append(revision)
        return owned

    def create_controller_revision(
        self,
        parent: Any,
        revision: ControllerRevision,
        collision_count: Optional[int],
    ) -> tuple[ControllerRevision, int]:
        """Create the revision under a hashed name, bumping the collision count on clashes.

        Returns the stored revision and the collision count finally used. An
        existing revision with the same name and identical data is returned as is.
        """
        if collision_count is None:
            raise ValueError("collisionCount should not be nil")
        namespace = parent.metadata.namespace
        clone = copy.deepcopy(revision)
        while True:
            hash_value = hash_controller_revision(revision, collision_count)
            clone.metadata.name = controller_revision_name(
                parent.metadata.name, hash_value
            )
            candidate = copy.deepcopy(clone)
            candidate.metadata.namespace = namespace
            try:
                return self._client.create(candidate), collision_count
            except ApiError as exc:
                if not isinstance(exc, type(exc)) or exc.__class__.__name__ != "AlreadyExistsError":
                    raise
            exists = self._client.get(ControllerRevision, namespace, clone.metadata.name)
            if exists.data == clone.data:
                return exists, collision_count
            collision_count += 1

    def update_controller_revision(
        self, revision: ControllerRevision, new_revision: int
    ) -> ControllerRevision:
        """Set the revision number, retrying on conflicts with the latest copy."""
        clone = copy.deepcopy(revision)

        def attempt() -> None:
            nonlocal clone
            if clone.revision == new_revision:
                return
            clone.revision = new_revision
            try:
                clone = self._client.update(clone)
            except ApiError:
                latest = self._refetch(clone)
                if latest is not None:
                    clone = latest
                raise

        _retry_on_conflict(attempt)
        return clone

    def delete_controller_revision(self, revision: ControllerRevision) -> None:
        self._client.delete(revision)

    def adopt_controller_revision(
        self,
        parent: Any,
        parent_kind: GroupVersionKind,
        revision: ControllerRevision,
    ) -> ControllerRevision:
        """Make ``parent`` the controlling owner of an orphaned revision."""
        clone = copy.deepcopy(revision)

        def attempt() -> None:
            nonlocal clone
            owner = get_controller_of(clone)
            if owner is not None:
                raise ValueError(f"attempt to adopt revision owned by {owner}")
            clone.metadata.owner_references.append(
                OwnerReference(
                    api_version=parent_kind.api_version(),
                    kind=parent_kind.kind,
                    name=parent.metadata.name,
                    uid=parent.metadata.uid,
                    controller=True,
                    block_owner_deletion=True,
                )
            )
            try:
                clone = self._client.update(clone)
            except ApiError:
                latest = self._refetch(clone)
                if latest is not None:
                    clone = latest
                raise

        _retry_on_conflict(attempt)
        return clone

    def release_controller_revision(
        self, parent: Any, revision: ControllerRevision
    ) -> Optional[ControllerRevision]:
        """Drop the parent's owner references from the revision.

        Returns None when the revision is gone or the update is invalid.
        """
        clone = copy.deepcopy(revision)

        def attempt() -> None:
            nonlocal clone
            owner = get_controller_of(clone)
            if owner is not None:
                raise ValueError(f"attempt to adopt revision owned by {owner}")
            clone.metadata.owner_references = [
                ref
                for ref in clone.metadata.owner_references
                if ref.uid != parent.metadata.uid
            ]
            try:
                clone = self._client.update(clone)
            except ApiError:
                latest = self._refetch(clone)
                if latest is not None:
                    clone = latest
                raise

        try:
            _retry_on_conflict(attempt)
        except (NotFoundError, InvalidError):
            return None
        return clone