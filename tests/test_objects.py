from datetime import datetime, timedelta, timezone

import pytest

from slurmops.objects import (
    CONDITION_FALSE,
    CONDITION_TRUE,
    POD_READY,
    GroupVersionKind,
    NamespacedName,
    ObjectMeta,
    OwnerReference,
    Pod,
    PodCondition,
    PodPhase,
    get_controller_of,
    is_created,
    is_failed,
    is_healthy,
    is_pending,
    is_running_and_available,
    is_running_and_ready,
    is_succeeded,
    is_terminating,
    key_func,
)


def _pod(phase=None, conditions=(), deleted=False):
    pod = Pod()
    pod.status.phase = phase
    pod.status.conditions = list(conditions)
    if deleted:
        pod.metadata.deletion_timestamp = datetime.now(timezone.utc)
    return pod


def _ready(status=CONDITION_TRUE, when=None):
    return PodCondition(type=POD_READY, status=status, last_transition_time=when)


def test_key_func_no_namespace():
    assert key_func(Pod()) == "/"


def test_key_func_with_namespace():
    pod = Pod(metadata=ObjectMeta(name="nodeSetTest", namespace="slurm"))
    assert key_func(pod) == "slurm/nodeSetTest"


def test_namespaced_name_str():
    assert str(NamespacedName(namespace="default", name="foo")) == "default/foo"


def test_group_version_kind_api_version():
    gvk = GroupVersionKind.from_api_version_and_kind("foo/v1", "Foo")
    assert gvk.api_version() == "foo/v1"
    assert (gvk.group, gvk.version, gvk.kind) == ("foo", "v1", "Foo")


def test_group_version_kind_core_group():
    gvk = GroupVersionKind.from_api_version_and_kind("v1", "Pod")
    assert gvk.group == ""
    assert gvk.api_version() == "v1"


def test_get_controller_of():
    owner = OwnerReference(name="b", controller=True)
    pod = Pod(metadata=ObjectMeta(owner_references=[OwnerReference(name="a"), owner]))
    assert get_controller_of(pod) is owner
    assert get_controller_of(Pod()) is None


def test_is_running_and_ready():
    pod_a = _pod(PodPhase.RUNNING, [_ready()])
    pod_b = _pod(PodPhase.FAILED, [_ready(), _ready(CONDITION_FALSE)])
    assert is_running_and_ready(pod_a) is True
    assert is_running_and_ready(pod_b) is False


@pytest.mark.parametrize(
    "ready, before, min_ready, want",
    [
        (False, 0, 0, False),
        (True, 0, 1, False),
        (True, 0, 0, True),
        (True, 51, 50, True),
    ],
)
def test_is_running_and_available(ready, before, min_ready, want):
    now = datetime.now(timezone.utc)
    status = CONDITION_TRUE if ready else CONDITION_FALSE
    pod = _pod(conditions=[_ready(status, now - timedelta(seconds=before))])
    assert is_running_and_available(pod, min_ready, now) is want


def test_is_running_and_available_default_now():
    then = datetime.now(timezone.utc) - timedelta(seconds=51)
    pod = _pod(conditions=[_ready(when=then)])
    assert is_running_and_available(pod, 50) is True


def test_is_created():
    assert is_created(_pod(PodPhase.RUNNING)) is True
    assert is_created(_pod()) is False


def test_is_pending():
    assert is_pending(_pod(PodPhase.PENDING)) is True
    assert is_pending(_pod()) is False


def test_is_failed():
    assert is_failed(_pod(PodPhase.FAILED)) is True
    assert is_failed(_pod()) is False


def test_is_succeeded():
    assert is_succeeded(_pod(PodPhase.SUCCEEDED)) is True
    assert is_succeeded(_pod()) is False


def test_is_terminating():
    assert is_terminating(_pod(deleted=True)) is True
    assert is_terminating(_pod()) is False


def test_is_healthy():
    pod_a = _pod(PodPhase.RUNNING, [_ready()])
    pod_b = _pod(PodPhase.FAILED, [_ready()])
    pod_c = _pod(PodPhase.FAILED, [_ready()], deleted=True)
    assert is_healthy(pod_a) is True
    assert is_healthy(pod_b) is False
    assert is_healthy(pod_c) is False


def test_object_meta_metadata_is_itself():
    meta = ObjectMeta(name="x")
    assert meta.metadata is meta
    assert key_func(meta) == "/x"