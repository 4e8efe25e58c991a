"""Object model for pods, revisions and their metadata, with pod state checks."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, ClassVar, Optional

POD_READY = "Ready"
CONDITION_TRUE = "True"
CONDITION_FALSE = "False"


@dataclass(frozen=True)
class NamespacedName:
    """A namespace and name pair, written as ``namespace/name``."""

    namespace: str = ""
    name: str = ""

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True)
class GroupVersionKind:
    """An API group, version and kind."""

    group: str = ""
    version: str = ""
    kind: str = ""

    @classmethod
    def from_api_version_and_kind(cls, api_version: str, kind: str) -> "GroupVersionKind":
        """Split ``group/version`` (or a bare version); malformed values give an empty group and version."""
        parts = api_version.split("/")
        if api_version in ("", "/"):
            group, version = "", ""
        elif len(parts) == 1:
            group, version = "", parts[0]
        elif len(parts) == 2:
            group, version = parts
        else:
            group, version = "", ""
        return cls(group, version, kind)

    def api_version(self) -> str:
        """Return ``group/version``, or just the version for the core group."""
        return f"{self.group}/{self.version}" if self.group else self.version


@dataclass
class OwnerReference:
    """A reference from an object to the object that owns it."""

    api_version: str = ""
    kind: str = ""
    name: str = ""
    uid: str = ""
    controller: Optional[bool] = None
    block_owner_deletion: Optional[bool] = None


@dataclass
class ObjectMeta:
    """Metadata shared by every stored object."""

    name: str = ""
    namespace: str = ""
    generate_name: str = ""
    uid: str = ""
    resource_version: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    finalizers: list[str] = field(default_factory=list)
    owner_references: list[OwnerReference] = field(default_factory=list)
    deletion_timestamp: Optional[datetime] = None

    @property
    def metadata(self) -> "ObjectMeta":
        """The metadata itself, so bare metadata can stand in for an object."""
        return self


class PodPhase(str, Enum):
    PENDING = "Pending"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    UNKNOWN = "Unknown"


@dataclass
class PodCondition:
    type: str = ""
    status: str = ""
    last_transition_time: Optional[datetime] = None


@dataclass
class PodStatus:
    phase: Optional[PodPhase] = None
    conditions: list[PodCondition] = field(default_factory=list)


@dataclass
class Pod:
    KIND: ClassVar[str] = "Pod"

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: dict[str, Any] = field(default_factory=dict)
    status: PodStatus = field(default_factory=PodStatus)


@dataclass
class PodTemplateSpec:
    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: dict[str, Any] = field(default_factory=dict)


@dataclass
class ControllerRevision:
    KIND: ClassVar[str] = "ControllerRevision"

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    data: bytes = b""
    revision: int = 0


def get_controller_of(obj: Any) -> Optional[OwnerReference]:
    """Return the owner reference marked as controller, if any."""
    for ref in obj.metadata.owner_references:
        if ref.controller:
            return ref
    return None


def key_func(obj: Any) -> str:
    """Return ``namespace/name`` for an object, usable as a map key."""
    meta = obj.metadata
    return str(NamespacedName(namespace=meta.namespace, name=meta.name))


def _ready_condition(pod: Pod) -> Optional[PodCondition]:
    return next((c for c in pod.status.conditions if c.type == POD_READY), None)


def is_pod_ready(pod: Pod) -> bool:
    """True when the pod has a Ready condition whose status is True."""
    condition = _ready_condition(pod)
    return condition is not None and condition.status == CONDITION_TRUE


def is_running_and_ready(pod: Pod) -> bool:
    return pod.status.phase == PodPhase.RUNNING and is_pod_ready(pod)


def is_running_and_available(
    pod: Pod, min_ready_seconds: int, now: Optional[datetime] = None
) -> bool:
    """True when the pod is ready and has been so for longer than ``min_ready_seconds``."""
    if not is_pod_ready(pod):
        return False
    if min_ready_seconds == 0:
        return True
    if now is None:
        now = datetime.now(timezone.utc)
    condition = _ready_condition(pod)
    since = condition.last_transition_time if condition is not None else None
    if since is None:
        return False
    return since + timedelta(seconds=min_ready_seconds) < now


def is_created(pod: Pod) -> bool:
    return bool(pod.status.phase)


def is_pending(pod: Pod) -> bool:
    return pod.status.phase == PodPhase.PENDING


def is_failed(pod: Pod) -> bool:
    return pod.status.phase == PodPhase.FAILED


def is_succeeded(pod: Pod) -> bool:
    return pod.status.phase == PodPhase.SUCCEEDED


def is_terminating(pod: Pod) -> bool:
    return pod.metadata.deletion_timestamp is not None


def is_healthy(pod: Pod) -> bool:
    return is_running_and_ready(pod) and not is_terminating(pod)