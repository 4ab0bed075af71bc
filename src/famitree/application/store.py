"""Family tree store: single owner of people and relationships. All writes go through it."""

import dataclasses
import logging
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace

from famitree.application.ports import CurrentUserProvider, PersistenceBackend, StateCodec
from famitree.domain import (
    FamilyTreeState,
    ParentChildSubtype,
    Person,
    Relationship,
    RelationshipType,
    ValidationError,
    safe_person_name,
)

logger = logging.getLogger(__name__)

Listener = Callable[[], None]

_PERSON_FIELDS = frozenset(f.name for f in dataclasses.fields(Person))


def _check_person_fields(names) -> None:
    unknown = sorted(set(names) - _PERSON_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown person field(s): {', '.join(unknown)}.")


class FamilyTreeStore:
    """Owns the FamilyTreeState. Mutators are admin-only, persist in the background and notify subscribers.

    Non-privileged callers get a silent no-op; unknown ids are no-ops; only
    ValidationError is raised to the caller.
    """

    def __init__(
        self,
        persistence: PersistenceBackend,
        users: CurrentUserProvider,
        codec: StateCodec,
    ) -> None:
        self._persistence = persistence
        self._users = users
        self._codec = codec
        self._state = FamilyTreeState()
        self._listeners: list[Listener] = []
        self._emitting = False
        self._emit_pending = False
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="famitree-flush")
        self._last_flush: Future | None = None
        self._closed = False

    @property
    def state(self) -> FamilyTreeState:
        return self._state

    # --- lifecycle ---

    def load(self) -> None:
        """Hydrate state from the persistence backend. Call once at startup."""
        raw = self._persistence.load_initial()
        if raw is None:
            logger.info("No saved family tree found, starting empty")
            self._state = FamilyTreeState()
        else:
            self._state = self._codec.decode(raw)
            logger.info(
                "Loaded family tree: %d people, %d relationships",
                len(self._state.people),
                len(self._state.relationships),
            )
        self._emit()

    def drain(self) -> None:
        """Block until queued persistence flushes have finished."""
        if self._last_flush is not None:
            self._last_flush.exception()

    def close(self) -> None:
        """Wait for pending flushes and stop the flush worker. Later writes stay in memory only."""
        self._closed = True
        self._executor.shutdown(wait=True)

    # --- subscriptions ---

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a no-argument change listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # --- people ---

    def add_person(self, name: str, **fields) -> Person | None:
        """Create a person with a fresh id. Returns it, or None when the caller may not write."""
        if not self._can_write("add_person"):
            return None
        fields.pop("id", None)
        _check_person_fields(fields)
        person = Person(name=name, **fields)
        self._commit(replace(self._state, people=self._state.people + (person,)))
        return person

    def update_person(self, person_id: str, **changes) -> None:
        """Replace the given fields of a person. Blank names are rejected."""
        if not self._can_write("update_person"):
            return
        if "id" in changes and changes["id"] != person_id:
            raise ValidationError("Person id cannot be changed.")
        changes.pop("id", None)
        _check_person_fields(changes)
        current = self._find_person(person_id)
        if current is None:
            return
        updated = replace(current, **changes)
        people = tuple(updated if p.id == person_id else p for p in self._state.people)
        self._commit(replace(self._state, people=people))

    def delete_person(self, person_id: str) -> None:
        """Remove a person and every relationship that references them."""
        if not self._can_write("delete_person"):
            return
        if self._find_person(person_id) is None:
            return
        self._commit(
            FamilyTreeState(
                people=tuple(p for p in self._state.people if p.id != person_id),
                relationships=tuple(
                    r for r in self._state.relationships if not r.involves(person_id)
                ),
                default_branches=tuple(
                    (user_id, root_id)
                    for user_id, root_id in self._state.default_branches
                    if root_id != person_id
                ),
            )
        )

    def import_person(self, person: Person) -> None:
        """Insert or fully replace a person by id (bulk restore). Relationships are untouched."""
        if not self._can_write("import_person"):
            return
        imported = replace(person, name=safe_person_name(person.name))
        if self._find_person(person.id) is None:
            people = self._state.people + (imported,)
        else:
            people = tuple(imported if p.id == person.id else p for p in self._state.people)
        self._commit(replace(self._state, people=people))

    # --- per-user preferences ---

    def get_default_branch(self, user_id: str) -> str | None:
        for owner_id, root_id in self._state.default_branches:
            if owner_id == user_id:
                return root_id
        return None

    def set_default_branch(self, person_id: str | None) -> None:
        """Set the current user's default branch root, or clear it with None.

        Any signed-in user may keep a preference; anonymous callers get a no-op.
        Unknown person ids are ignored.
        """
        user = self._users.current_user()
        if user is None:
            logger.debug("Denied set_default_branch for anonymous caller")
            return
        if person_id is not None and self._find_person(person_id) is None:
            return
        branches = tuple(
            (owner_id, root_id)
            for owner_id, root_id in self._state.default_branches
            if owner_id != user.id
        )
        if person_id is not None:
            branches += ((user.id, person_id),)
        if branches == self._state.default_branches:
            return
        self._commit(replace(self._state, default_branches=branches))

    # --- relationships ---

    def add_parent_child(
        self,
        parent_id: str,
        child_id: str,
        subtype: ParentChildSubtype = ParentChildSubtype.PLAIN,
    ) -> None:
        """Link parent -> child. Duplicates are checked per stored type, in either direction."""
        if not self._can_write("add_parent_child"):
            return
        rel_type = ParentChildSubtype(subtype).relationship_type
        self._add_edge(rel_type, parent_id, child_id)

    def add_spouse(self, person_id: str, spouse_id: str) -> None:
        if not self._can_write("add_spouse"):
            return
        self._add_edge(RelationshipType.SPOUSE, person_id, spouse_id)

    def remove_relationship(self, relationship_id: str) -> None:
        if not self._can_write("remove_relationship"):
            return
        remaining = tuple(r for r in self._state.relationships if r.id != relationship_id)
        if len(remaining) == len(self._state.relationships):
            return
        self._commit(replace(self._state, relationships=remaining))

    # --- snapshots ---

    def export_snapshot(self) -> bytes:
        """Current state encoded with the store's codec (e.g. for download)."""
        return self._codec.encode(self._state)

    def restore_snapshot(self, raw: bytes) -> None:
        """Replace the whole state with a decoded snapshot. Admin only."""
        if not self._can_write("restore_snapshot"):
            return
        state = self._codec.decode(raw)
        logger.info(
            "Restoring snapshot: %d people, %d relationships",
            len(state.people),
            len(state.relationships),
        )
        self._commit(state)

    # --- internals ---

    def _can_write(self, operation: str) -> bool:
        user = self._users.current_user()
        if user is None or not user.is_privileged:
            logger.debug("Denied %s for user %s", operation, user.id if user else None)
            return False
        return True

    def _find_person(self, person_id: str) -> Person | None:
        for person in self._state.people:
            if person.id == person_id:
                return person
        return None

    def _add_edge(self, rel_type: RelationshipType, person_id: str, related_id: str) -> None:
        if person_id == related_id:
            return
        if self._find_person(person_id) is None or self._find_person(related_id) is None:
            return
        for r in self._state.relationships:
            if r.type is rel_type and r.connects(person_id, related_id):
                return
        edge = Relationship(type=rel_type, person_id=person_id, related_id=related_id)
        self._commit(replace(self._state, relationships=self._state.relationships + (edge,)))

    def _commit(self, state: FamilyTreeState) -> None:
        self._state = state
        self._flush(state)
        self._emit()

    def _flush(self, state: FamilyTreeState) -> None:
        if self._closed:
            logger.warning("Store is closed, family tree change kept in memory only")
            return
        raw = self._codec.encode(state)
        try:
            self._last_flush = self._executor.submit(self._save, raw)
        except RuntimeError:
            logger.exception("Could not schedule family tree save")

    def _save(self, raw: bytes) -> None:
        try:
            self._persistence.save(raw)
        except Exception:
            logger.exception("Failed to persist family tree")

    def _emit(self) -> None:
        # A listener that mutates the store gets its notification queued behind the current pass.
        if self._emitting:
            self._emit_pending = True
            return
        self._emitting = True
        try:
            while True:
                self._emit_pending = False
                for listener in list(self._listeners):
                    try:
                        listener()
                    except Exception:
                        logger.exception("Change listener %r failed", listener)
                if not self._emit_pending:
                    break
        finally:
            self._emitting = False
