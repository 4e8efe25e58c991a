import copy

import pytest

from slurmops.apiclient import InMemoryClient, NotFoundError
from slurmops.historycontrol import (
    CONTROLLER_REVISION_HASH_LABEL,
    HistoryControl,
    controller_revision_name,
    get_revision,
    hash_controller_revision,
    set_revision,
)
from slurmops.objects import (
    ControllerRevision,
    GroupVersionKind,
    ObjectMeta,
    OwnerReference,
)


def _parent():
    return ObjectMeta(namespace="default", name="foo", labels={"foo": "bar"})


def _revision(data=b""):
    return ControllerRevision(
        metadata=ObjectMeta(namespace="default", name="foo", labels={"foo": "bar"}),
        data=data,
        revision=1,
    )


def test_hash_pinned_value():
    assert hash_controller_revision(ControllerRevision(), 0) == "d8bfb7bc"


def test_hash_depends_on_collision_count_and_data():
    revision = _revision(b"payload")
    assert hash_controller_revision(revision, 0) == hash_controller_revision(revision, 0)
    assert hash_controller_revision(revision, 0) != hash_controller_revision(revision, 1)
    assert hash_controller_revision(revision, None) != hash_controller_revision(
        _revision(b"other"), None
    )
    assert set(hash_controller_revision(revision, 3)) <= set("bcdfghjklmnpqrstvwxz2456789")


def test_controller_revision_name():
    assert controller_revision_name("foo", "abc") == "foo-abc"
    assert controller_revision_name("x" * 300, "abc") == "x" * 223 + "-abc"


def test_set_revision_none_empty():
    assert set_revision(None, "") == {}


def test_set_revision_empty_map():
    labels = {}
    set_revision(labels, "")
    assert labels == {}


def test_set_revision_hash():
    labels = {}
    set_revision(labels, "00000")
    assert labels == {CONTROLLER_REVISION_HASH_LABEL: "00000"}


@pytest.mark.parametrize(
    "labels, want",
    [
        (None, ""),
        ({}, ""),
        ({CONTROLLER_REVISION_HASH_LABEL: "00000"}, "00000"),
    ],
)
def test_get_revision(labels, want):
    assert get_revision(labels) == want


def test_list_empty():
    control = HistoryControl(InMemoryClient())
    assert control.list_controller_revisions(_parent(), {"foo": "bar"}) == []


def test_list_revisions():
    revision = _revision()
    control = HistoryControl(InMemoryClient(revision))
    got = control.list_controller_revisions(_parent(), {"foo": "bar"})
    assert [(r.metadata.name, r.revision) for r in got] == [("foo", 1)]
    assert got[0].metadata.resource_version == "999"


def test_list_excludes_revisions_of_other_controllers():
    owned = _revision()
    foreign = _revision()
    foreign.metadata.name = "other"
    foreign.metadata.owner_references = [
        OwnerReference(api_version="v1", kind="Foo", name="x", uid="1234", controller=True)
    ]
    control = HistoryControl(InMemoryClient(owned, foreign))
    got = control.list_controller_revisions(_parent(), {"foo": "bar"})
    assert [r.metadata.name for r in got] == ["foo"]


def test_create_revision():
    client = InMemoryClient()
    revision = _revision()
    created, count = HistoryControl(client).create_controller_revision(
        _parent(), revision, 0
    )
    assert count == 0
    assert created.metadata.name == controller_revision_name(
        "foo", hash_controller_revision(revision, 0)
    )
    assert created.metadata.resource_version == "1"
    assert client.get(ControllerRevision, "default", created.metadata.name).revision == 1


def test_create_requires_collision_count():
    with pytest.raises(ValueError):
        HistoryControl(InMemoryClient()).create_controller_revision(
            _parent(), _revision(), None
        )


def test_create_collision_bumps_count():
    revision = _revision(b"mine")
    clash = _revision(b"other")
    clash.metadata.name = controller_revision_name(
        "foo", hash_controller_revision(revision, 0)
    )
    control = HistoryControl(InMemoryClient(clash))
    created, count = control.create_controller_revision(_parent(), revision, 0)
    assert count == 1
    assert created.metadata.name == controller_revision_name(
        "foo", hash_controller_revision(revision, 1)
    )


def test_create_identical_existing_is_returned():
    revision = _revision(b"mine")
    existing = _revision(b"mine")
    existing.metadata.name = controller_revision_name(
        "foo", hash_controller_revision(revision, 0)
    )
    control = HistoryControl(InMemoryClient(existing))
    got, count = control.create_controller_revision(_parent(), revision, 0)
    assert count == 0
    assert got.metadata.resource_version == "999"


def test_update_revision():
    revision = _revision()
    client = InMemoryClient(revision)
    got = HistoryControl(client).update_controller_revision(copy.deepcopy(revision), 2)
    assert got.revision == 2
    assert got.metadata.resource_version == "1000"
    assert client.get(ControllerRevision, "default", "foo").revision == 2


def test_update_same_revision_does_nothing():
    revision = _revision()
    client = InMemoryClient(revision)
    got = HistoryControl(client).update_controller_revision(copy.deepcopy(revision), 1)
    assert got.revision == 1
    assert client.get(ControllerRevision, "default", "foo").metadata.resource_version == "999"


def test_delete_not_found():
    revision = ControllerRevision(metadata=ObjectMeta(namespace="default", name="foo"))
    with pytest.raises(NotFoundError):
        HistoryControl(InMemoryClient()).delete_controller_revision(revision)


def test_delete_found():
    revision = ControllerRevision(metadata=ObjectMeta(namespace="default", name="foo"))
    client = InMemoryClient(revision)
    HistoryControl(client).delete_controller_revision(copy.deepcopy(revision))
    with pytest.raises(NotFoundError):
        client.get(ControllerRevision, "default", "foo")


def test_adopt_match():
    revision = ControllerRevision(metadata=ObjectMeta(namespace="default", name="foo"))
    control = HistoryControl(InMemoryClient(revision))
    parent = ObjectMeta(namespace="default", name="FooResource", uid="00000")
    got = control.adopt_controller_revision(
        parent,
        GroupVersionKind.from_api_version_and_kind("foo/v1", "Foo"),
        copy.deepcopy(revision),
    )
    assert got == ControllerRevision(
        metadata=ObjectMeta(
            namespace="default",
            name="foo",
            resource_version="1000",
            owner_references=[
                OwnerReference(
                    api_version="foo/v1",
                    kind="Foo",
                    name="FooResource",
                    uid="00000",
                    controller=True,
                    block_owner_deletion=True,
                )
            ],
        )
    )


def test_adopt_already_owned():
    revision = ControllerRevision(
        metadata=ObjectMeta(
            namespace="default",
            name="foo",
            owner_references=[OwnerReference(uid="other", controller=True)],
        )
    )
    control = HistoryControl(InMemoryClient(revision))
    with pytest.raises(ValueError, match="attempt to adopt"):
        control.adopt_controller_revision(
            ObjectMeta(name="FooResource", uid="00000"),
            GroupVersionKind.from_api_version_and_kind("foo/v1", "Foo"),
            copy.deepcopy(revision),
        )


def test_release_found():
    revision = ControllerRevision(
        metadata=ObjectMeta(namespace="default", name="foo", resource_version="1000")
    )
    control = HistoryControl(InMemoryClient(revision))
    parent = ObjectMeta(namespace="default", name="FooResource", uid="00000")
    got = control.release_controller_revision(parent, copy.deepcopy(revision))
    assert got == ControllerRevision(
        metadata=ObjectMeta(namespace="default", name="foo", resource_version="1001")
    )


def test_release_drops_parent_references():
    revision = ControllerRevision(
        metadata=ObjectMeta(
            namespace="default",
            name="foo",
            owner_references=[
                OwnerReference(uid="00000"),
                OwnerReference(uid="11111"),
            ],
        )
    )
    control = HistoryControl(InMemoryClient(revision))
    got = control.release_controller_revision(
        ObjectMeta(uid="00000"), copy.deepcopy(revision)
    )
    assert [ref.uid for ref in got.metadata.owner_references] == ["11111"]


def test_release_missing_revision_returns_none():
    revision = ControllerRevision(metadata=ObjectMeta(namespace="default", name="foo"))
    control = HistoryControl(InMemoryClient())
    assert control.release_controller_revision(ObjectMeta(uid="00000"), revision) is None