"""Creating, deleting and patching pods on behalf of a controlling object."""

from __future__ import annotations

import copy
import logging
import re
import threading
from dataclasses import dataclass
from typing import Any, Optional

from .apiclient import ApiError, InMemoryClient, NotFoundError
from .objects import ObjectMeta, OwnerReference, Pod, PodTemplateSpec

logger = logging.getLogger(__name__)

EVENT_TYPE_NORMAL = "Normal"
EVENT_TYPE_WARNING = "Warning"

FAILED_CREATE_POD_REASON = "FailedCreate"
SUCCESSFUL_CREATE_POD_REASON = "SuccessfulCreate"
FAILED_DELETE_POD_REASON = "FailedDelete"
SUCCESSFUL_DELETE_POD_REASON = "SuccessfulDelete"

NAMESPACE_TERMINATING_CAUSE = "NamespaceTerminating"

_DNS1123_SUBDOMAIN = re.compile(
    r"[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*"
)
_DNS1123_SUBDOMAIN_MAX = 253


@dataclass(frozen=True)
class Event:
    """A recorded event about an object."""

    obj: Any
    event_type: str
    reason: str
    message: str


class EventRecorder:
    """Collects events in the order they are recorded."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: list[Event] = []

    def record(self, obj: Any, event_type: str, reason: str, message: str) -> Event:
        event = Event(obj, event_type, reason, message)
        with self._lock:
            self._events.append(event)
        return event

    @property
    def events(self) -> list[Event]:
        with self._lock:
            return list(self._events)


def validate_controller_ref(controller_ref: Optional[OwnerReference]) -> None:
    """Raise ValueError unless the reference is a complete controlling reference."""
    if controller_ref is None:
        raise ValueError("controllerRef is nil")
    if not controller_ref.api_version:
        raise ValueError("controllerRef has empty APIVersion")
    if not controller_ref.kind:
        raise ValueError("controllerRef has empty Kind")
    if not controller_ref.controller:
        raise ValueError("controllerRef.Controller is not nodeset to true")
    if not controller_ref.block_owner_deletion:
        raise ValueError("controllerRef.BlockOwnerDeletion is not nodeset")


def _mask_trailing_dash(name: str) -> str:
    if len(name) > 1 and name.endswith("-"):
        return name[:-2] + "a"
    return name


def _valid_name_prefix(prefix: str) -> bool:
    name = _mask_trailing_dash(prefix)
    return len(name) <= _DNS1123_SUBDOMAIN_MAX and bool(
        _DNS1123_SUBDOMAIN.fullmatch(name)
    )


def pod_name_prefix(controller_name: str) -> str:
    """Return ``name-`` when that is a valid generated-name prefix, else the name."""
    prefix = f"{controller_name}-"
    return prefix if _valid_name_prefix(prefix) else controller_name


def _metadata_of(obj: Any) -> Optional[ObjectMeta]:
    meta = getattr(obj, "metadata", None)
    return meta if isinstance(meta, ObjectMeta) else None


def get_pod_from_template(
    template: PodTemplateSpec, parent: Any, controller_ref: Optional[OwnerReference]
) -> Pod:
    """Build a new pod from ``template``, named after and owned by ``parent``."""
    parent_meta = _metadata_of(parent)
    if parent_meta is None:
        raise ValueError("parentObject does not have ObjectMeta")
    meta = ObjectMeta(
        labels=dict(template.metadata.labels),
        annotations=dict(template.metadata.annotations),
        generate_name=pod_name_prefix(parent_meta.name),
        finalizers=list(template.metadata.finalizers),
    )
    if controller_ref is not None:
        meta.owner_references.append(copy.deepcopy(controller_ref))
    return Pod(metadata=meta, spec=copy.deepcopy(template.spec))


class PodControl:
    """Pod operations that report their outcome as events on the parent."""

    def __init__(self, client: InMemoryClient, recorder: EventRecorder) -> None:
        self._client = client
        self._recorder = recorder

    def create_pods(
        self,
        namespace: str,
        template: PodTemplateSpec,
        parent: Any,
        controller_ref: Optional[OwnerReference],
    ) -> Pod:
        return self.create_pods_with_generate_name(
            namespace, template, parent, controller_ref, ""
        )

    def create_pods_with_generate_name(
        self,
        namespace: str,
        template: PodTemplateSpec,
        parent: Any,
        controller_ref: Optional[OwnerReference],
        generate_name: str,
    ) -> Pod:
        """Create a pod from ``template`` in ``namespace`` and return it."""
        validate_controller_ref(controller_ref)
        pod = get_pod_from_template(template, parent, controller_ref)
        pod.metadata.namespace = namespace
        if generate_name:
            pod.metadata.generate_name = generate_name
        return self._create(pod, parent)

    def _create(self, pod: Pod, parent: Any) -> Pod:
        if not pod.metadata.labels:
            raise ValueError("unable to create pods, no labels")
        try:
            created = self._client.create(pod)
        except ApiError as exc:
            if NAMESPACE_TERMINATING_CAUSE not in getattr(exc, "causes", ()):
                self._recorder.record(
                    parent,
                    EVENT_TYPE_WARNING,
                    FAILED_CREATE_POD_REASON,
                    f"Error creating: {exc}",
                )
            raise
        parent_meta = _metadata_of(parent)
        if parent_meta is None:
            logger.error("parentObject does not have ObjectMeta")
            return created
        logger.debug(
            "Controller %s created pod %s/%s",
            parent_meta.name,
            created.metadata.namespace,
            created.metadata.name,
        )
        self._recorder.record(
            parent,
            EVENT_TYPE_NORMAL,
            SUCCESSFUL_CREATE_POD_REASON,
            f"Created pod: {created.metadata.name}",
        )
        return created

    def create_this_pod(self, pod: Optional[Pod], parent: Any) -> Pod:
        """Create exactly the given pod on behalf of ``parent``."""
        if pod is None:
            raise ValueError("pod cannot be nil")
        return self._create(pod, parent)

    def delete_pod(self, namespace: str, pod_name: str, parent: Any) -> None:
        """Delete a pod; NotFoundError passes through, other failures are wrapped."""
        parent_meta = _metadata_of(parent)
        if parent_meta is None:
            raise ValueError("object does not have ObjectMeta")
        logger.debug(
            "Controller %s deleting pod %s/%s", parent_meta.name, namespace, pod_name
        )
        pod = Pod(metadata=ObjectMeta(namespace=namespace, name=pod_name))
        try:
            self._client.delete(pod)
        except NotFoundError:
            logger.debug("Pod %s/%s has already been deleted.", namespace, pod_name)
            raise
        except ApiError as exc:
            self._recorder.record(
                parent,
                EVENT_TYPE_WARNING,
                FAILED_DELETE_POD_REASON,
                f"Error deleting: {exc}",
            )
            raise ApiError(f"unable to delete pods: {exc}") from exc
        self._recorder.record(
            parent,
            EVENT_TYPE_NORMAL,
            SUCCESSFUL_DELETE_POD_REASON,
            f"Deleted pod: {pod_name}",
        )

    def patch_pod(self, namespace: str, name: str, data: bytes | str) -> Pod:
        """Apply a merge patch to the named pod and return the result."""
        pod = Pod(metadata=ObjectMeta(namespace=namespace, name=name))
        return self._client.patch(pod, data)