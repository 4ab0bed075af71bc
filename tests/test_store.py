"""Unit tests for FamilyTreeStore. In-memory persistence and a static admin user."""

import pytest

from famitree.application import CurrentUser, FamilyTreeStore
from famitree.domain import (
    UNNAMED_PLACEHOLDER,
    Gender,
    ParentChildSubtype,
    Person,
    RelationshipType,
    ValidationError,
)
from famitree.infrastructure import InMemoryPersistence, JsonStateCodec, StaticUserProvider

ADMIN = CurrentUser(id="admin", is_privileged=True)
VIEWER = CurrentUser(id="viewer", is_privileged=False)


def _store(user: CurrentUser | None = ADMIN, persistence=None) -> FamilyTreeStore:
    return FamilyTreeStore(
        persistence if persistence is not None else InMemoryPersistence(),
        StaticUserProvider(user),
        JsonStateCodec(),
    )


def test_add_person_assigns_id_and_appends() -> None:
    store = _store()
    an = store.add_person("  An  ", gender="male")
    assert an is not None
    assert an.id
    assert an.name == "An"
    assert an.gender is Gender.MALE
    assert store.state.people == (an,)


def test_add_person_blank_name_raises_and_changes_nothing() -> None:
    store = _store()
    with pytest.raises(ValidationError):
        store.add_person("   ")
    assert store.state.people == ()


def test_add_person_ignores_caller_supplied_id() -> None:
    store = _store()
    p = store.add_person("An", id="fixed")
    assert p.id != "fixed"


def test_update_person_partial_replace() -> None:
    store = _store()
    p = store.add_person("An", notes="first")
    store.update_person(p.id, title="Elder", notes=None)
    updated = store.state.people[0]
    assert updated.name == "An"
    assert updated.title == "Elder"
    assert updated.notes is None


def test_update_person_blank_name_rejected() -> None:
    store = _store()
    p = store.add_person("An")
    with pytest.raises(ValidationError):
        store.update_person(p.id, name="  ")
    assert store.state.people[0].name == "An"


def test_update_person_normalizes_name() -> None:
    store = _store()
    p = store.add_person("An")
    store.update_person(p.id, name="  Binh ")
    assert store.state.people[0].name == "Binh"


def test_update_unknown_person_is_noop() -> None:
    store = _store()
    store.add_person("An")
    before = store.state
    store.update_person("missing", name="X")
    assert store.state is before


def test_update_person_cannot_change_id() -> None:
    store = _store()
    p = store.add_person("An")
    with pytest.raises(ValidationError):
        store.update_person(p.id, id="other")


def test_delete_person_cascades_relationships() -> None:
    store = _store()
    a = store.add_person("A")
    b = store.add_person("B")
    c = store.add_person("C")
    store.add_parent_child(a.id, b.id)
    store.add_spouse(b.id, c.id)
    store.add_parent_child(b.id, a.id, ParentChildSubtype.ADOPT)

    store.delete_person(b.id)

    assert [p.id for p in store.state.people] == [a.id, c.id]
    assert all(not r.involves(b.id) for r in store.state.relationships)
    assert store.state.relationships == ()


def test_delete_unknown_person_is_noop() -> None:
    store = _store()
    store.add_person("A")
    before = store.state
    store.delete_person("missing")
    assert store.state is before


def test_add_spouse_twice_either_order_creates_one_edge() -> None:
    store = _store()
    a = store.add_person("A")
    b = store.add_person("B")
    store.add_spouse(a.id, b.id)
    store.add_spouse(a.id, b.id)
    store.add_spouse(b.id, a.id)
    spouse_edges = [r for r in store.state.relationships if r.type is RelationshipType.SPOUSE]
    assert len(spouse_edges) == 1
    assert (spouse_edges[0].person_id, spouse_edges[0].related_id) == (a.id, b.id)


def test_self_edges_rejected() -> None:
    store = _store()
    a = store.add_person("A")
    store.add_parent_child(a.id, a.id)
    store.add_spouse(a.id, a.id)
    assert store.state.relationships == ()


def test_parent_child_duplicate_checked_in_both_directions() -> None:
    store = _store()
    a = store.add_person("A")
    b = store.add_person("B")
    store.add_parent_child(a.id, b.id)
    store.add_parent_child(b.id, a.id)
    store.add_parent_child(a.id, b.id)
    assert len(store.state.relationships) == 1


def test_parent_child_dedup_is_per_subtype() -> None:
    store = _store()
    a = store.add_person("A")
    b = store.add_person("B")
    store.add_parent_child(a.id, b.id)
    store.add_parent_child(a.id, b.id, ParentChildSubtype.IN_LAW)
    store.add_parent_child(a.id, b.id, ParentChildSubtype.IN_LAW)
    store.add_parent_child(a.id, b.id, "adopt")
    types = [r.type for r in store.state.relationships]
    assert types == [
        RelationshipType.PARENT_CHILD,
        RelationshipType.PARENT_CHILD_IN_LAW,
        RelationshipType.PARENT_CHILD_ADOPT,
    ]


def test_edges_to_unknown_people_are_skipped() -> None:
    store = _store()
    a = store.add_person("A")
    store.add_parent_child(a.id, "ghost")
    store.add_spouse("ghost", a.id)
    assert store.state.relationships == ()


def test_remove_relationship() -> None:
    store = _store()
    a = store.add_person("A")
    b = store.add_person("B")
    store.add_spouse(a.id, b.id)
    edge = store.state.relationships[0]
    store.remove_relationship("missing")
    assert len(store.state.relationships) == 1
    store.remove_relationship(edge.id)
    assert store.state.relationships == ()


def test_import_person_upserts_by_id() -> None:
    store = _store()
    store.import_person(Person(id="p1", name="Old"))
    store.import_person(Person(id="p2", name="Other"))
    store.import_person(Person(id="p1", name="New", notes="restored"))
    assert [(p.id, p.name) for p in store.state.people] == [("p1", "New"), ("p2", "Other")]
    assert store.state.people[0].notes == "restored"


def test_import_person_keeps_relationships() -> None:
    store = _store()
    a = store.add_person("A")
    b = store.add_person("B")
    store.add_parent_child(a.id, b.id)
    store.import_person(Person(id=a.id, name=UNNAMED_PLACEHOLDER))
    assert len(store.state.relationships) == 1
    assert store.state.people[0].name == UNNAMED_PLACEHOLDER


def test_non_privileged_writes_are_silent_noops() -> None:
    admin_store = _store()
    a = admin_store.add_person("A")
    raw = admin_store.export_snapshot()

    store = _store(user=VIEWER, persistence=InMemoryPersistence(raw))
    store.load()
    before = store.state

    assert store.add_person("B") is None
    store.update_person(a.id, name="Changed")
    store.delete_person(a.id)
    store.add_spouse(a.id, a.id)
    store.import_person(Person(id="x", name="X"))
    store.restore_snapshot(b'{"people": [], "relationships": []}')

    assert store.state is before


def test_anonymous_writes_are_silent_noops() -> None:
    store = _store(user=None)
    assert store.add_person("A") is None
    assert store.state.people == ()


def test_state_replaced_on_every_write() -> None:
    store = _store()
    s0 = store.state
    store.add_person("A")
    s1 = store.state
    assert s1 is not s0
    assert s0.people == ()


def test_subscribers_notified_in_order_and_unsubscribe() -> None:
    store = _store()
    calls = []
    store.subscribe(lambda: calls.append("first"))
    unsubscribe = store.subscribe(lambda: calls.append("second"))
    store.add_person("A")
    assert calls == ["first", "second"]

    unsubscribe()
    store.add_person("B")
    assert calls == ["first", "second", "first"]


def test_noop_writes_do_not_notify() -> None:
    store = _store()
    a = store.add_person("A")
    calls = []
    store.subscribe(lambda: calls.append(1))
    store.add_spouse(a.id, a.id)
    store.delete_person("missing")
    store.remove_relationship("missing")
    assert calls == []


def test_listener_mutation_is_applied_and_notification_queued() -> None:
    store = _store()
    seen_counts = []

    def listener() -> None:
        seen_counts.append(len(store.state.people))
        if len(store.state.people) == 1:
            store.add_person("Added by listener")

    store.subscribe(listener)
    store.add_person("A")
    assert seen_counts == [1, 2]
    assert len(store.state.people) == 2


def test_failing_listener_does_not_block_others() -> None:
    store = _store()
    calls = []

    def broken() -> None:
        raise RuntimeError("boom")

    store.subscribe(broken)
    store.subscribe(lambda: calls.append(1))
    store.add_person("A")
    assert calls == [1]


def test_mutation_persists_snapshot() -> None:
    persistence = InMemoryPersistence()
    store = _store(persistence=persistence)
    a = store.add_person("A")
    store.drain()
    assert persistence.save_count == 1
    assert JsonStateCodec().decode(persistence.data).people == (a,)
    store.close()


class _BrokenPersistence:
    def load_initial(self) -> bytes | None:
        return None

    def save(self, raw: bytes) -> None:
        raise OSError("disk full")


def test_persistence_failure_is_logged_not_raised(caplog) -> None:
    store = _store(persistence=_BrokenPersistence())
    a = store.add_person("A")
    store.drain()
    store.close()
    assert store.state.people == (a,)
    assert "Failed to persist family tree" in caplog.text


def test_load_hydrates_state_and_notifies() -> None:
    source = _store()
    a = source.add_person("A")
    b = source.add_person("B")
    source.add_parent_child(a.id, b.id)

    target = _store(persistence=InMemoryPersistence(source.export_snapshot()))
    calls = []
    target.subscribe(lambda: calls.append(1))
    target.load()
    assert target.state == source.state
    assert calls == [1]


def test_load_without_saved_data_starts_empty() -> None:
    store = _store()
    store.load()
    assert store.state.people == ()
    assert store.state.relationships == ()


def test_restore_snapshot_replaces_state() -> None:
    source = _store()
    source.add_person("Restored")
    store = _store()
    store.add_person("Discarded")
    store.restore_snapshot(source.export_snapshot())
    assert [p.name for p in store.state.people] == ["Restored"]


def test_restore_invalid_snapshot_raises() -> None:
    store = _store()
    store.add_person("Kept")
    with pytest.raises(ValidationError):
        store.restore_snapshot(b"not json")
    assert [p.name for p in store.state.people] == ["Kept"]


def test_write_after_close_is_kept_in_memory_and_notified(caplog) -> None:
    persistence = InMemoryPersistence()
    store = _store(persistence=persistence)
    store.add_person("Before")
    store.close()
    calls = []
    store.subscribe(lambda: calls.append(1))

    after = store.add_person("After")

    assert after is not None
    assert [p.name for p in store.state.people] == ["Before", "After"]
    assert calls == [1]
    assert persistence.save_count == 1
    assert "kept in memory only" in caplog.text
    store.drain()


def test_unknown_person_fields_raise_validation_error() -> None:
    store = _store()
    a = store.add_person("A")
    with pytest.raises(ValidationError, match="bogus"):
        store.update_person(a.id, bogus=1)
    with pytest.raises(ValidationError, match="bogus"):
        store.add_person("B", bogus=1)
    assert store.state.people == (a,)


def test_default_branch_per_user() -> None:
    users = StaticUserProvider(VIEWER)
    store = FamilyTreeStore(InMemoryPersistence(), users, JsonStateCodec())
    users.set_user(ADMIN)
    root = store.add_person("Root")
    other = store.add_person("Other")

    users.set_user(VIEWER)
    store.set_default_branch(root.id)
    users.set_user(ADMIN)
    store.set_default_branch(other.id)
    assert store.get_default_branch(VIEWER.id) == root.id
    assert store.get_default_branch(ADMIN.id) == other.id

    store.set_default_branch("missing")
    assert store.get_default_branch(ADMIN.id) == other.id
    store.set_default_branch(None)
    assert store.get_default_branch(ADMIN.id) is None

    store.delete_person(root.id)
    assert store.get_default_branch(VIEWER.id) is None
    assert store.state.default_branches == ()


def test_anonymous_caller_cannot_keep_default_branch() -> None:
    users = StaticUserProvider(ADMIN)
    store = FamilyTreeStore(InMemoryPersistence(), users, JsonStateCodec())
    root = store.add_person("Root")
    users.set_user(None)
    store.set_default_branch(root.id)
    assert store.state.default_branches == ()
