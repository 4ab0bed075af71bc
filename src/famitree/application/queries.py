"""Read-only graph queries over the store's current state."""

from famitree.application.dto import ParentChildLink, SpouseLink
from famitree.application.store import FamilyTreeStore
from famitree.domain import (
    Gender,
    MemberRole,
    ParentChildSubtype,
    Person,
    Relationship,
    RelationshipType,
)


class FamilyGraph:
    """Parents, children and spouses of a person. Every call reads the store's current state."""

    def __init__(self, store: FamilyTreeStore) -> None:
        self._store = store

    @property
    def people(self) -> tuple[Person, ...]:
        return self._store.state.people

    @property
    def relationships(self) -> tuple[Relationship, ...]:
        return self._store.state.relationships

    def get_person(self, person_id: str) -> Person | None:
        for person in self._store.state.people:
            if person.id == person_id:
                return person
        return None

    def get_children_ids(self, parent_id: str) -> list[str]:
        """Children over any parent-child subtype, in edge-list order."""
        return [r.related_id for r in self._parent_child_edges() if r.person_id == parent_id]

    def get_parent_ids(self, child_id: str) -> list[str]:
        return [r.person_id for r in self._parent_child_edges() if r.related_id == child_id]

    def get_spouse_ids(self, person_id: str) -> list[str]:
        """Spouses in edge-list order; position + 1 is the display index."""
        return [r.other(person_id) for r in self._spouse_edges(person_id)]

    def get_child_ids_with_any_parent(self) -> set[str]:
        """Every id that is the child side of some parent-child edge."""
        return {r.related_id for r in self._parent_child_edges()}

    def get_parent_relationships(self, child_id: str) -> list[ParentChildLink]:
        out = []
        for r in self._parent_child_edges():
            if r.related_id != child_id:
                continue
            parent = self.get_person(r.person_id)
            if parent is not None:
                out.append(ParentChildLink(r.id, parent, ParentChildSubtype.from_relationship_type(r.type)))
        return out

    def get_child_relationships(self, parent_id: str) -> list[ParentChildLink]:
        out = []
        for r in self._parent_child_edges():
            if r.person_id != parent_id:
                continue
            child = self.get_person(r.related_id)
            if child is not None:
                out.append(ParentChildLink(r.id, child, ParentChildSubtype.from_relationship_type(r.type)))
        return out

    def get_spouse_relationships(self, person_id: str) -> list[SpouseLink]:
        out = []
        for index, r in enumerate(self._spouse_edges(person_id), start=1):
            spouse = self.get_person(r.other(person_id))
            if spouse is not None:
                out.append(SpouseLink(r.id, spouse, index))
        return out

    def get_spouses(self, person_id: str) -> list[Person]:
        return [link.person for link in self.get_spouse_relationships(person_id)]

    def _parent_child_edges(self) -> list[Relationship]:
        return [r for r in self._store.state.relationships if r.type.is_parent_child]

    def _spouse_edges(self, person_id: str) -> list[Relationship]:
        return [
            r
            for r in self._store.state.relationships
            if r.type is RelationshipType.SPOUSE and r.involves(person_id)
        ]


def get_spouse_label(spouse: Person) -> str:
    """Label key for drawing a spouse next to a main member."""
    if spouse.member_role is MemberRole.DAUGHTER_IN_LAW:
        return "daughter-in-law"
    if spouse.member_role is MemberRole.SON_IN_LAW:
        return "son-in-law"
    if spouse.gender is Gender.MALE:
        return "husband"
    if spouse.gender is Gender.FEMALE:
        return "wife"
    return "spouse"
