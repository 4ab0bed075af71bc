"""Domain entities: Person, Relationship, and FamilyTreeState."""

import uuid
from dataclasses import dataclass, field
from enum import Enum

from famitree.domain.errors import ValidationError

# Stored in place of a blank name by bulk import paths.
UNNAMED_PLACEHOLDER = "(Unnamed)"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class MemberRole(str, Enum):
    """Role in the family. In-law roles only select a display label for spouses."""

    MAIN = "main"
    DAUGHTER_IN_LAW = "daughter-in-law"
    SON_IN_LAW = "son-in-law"


class RelationshipType(str, Enum):
    PARENT_CHILD = "parent-child"
    PARENT_CHILD_IN_LAW = "parent-child-in-law"
    PARENT_CHILD_ADOPT = "parent-child-adopt"
    SPOUSE = "spouse"

    @property
    def is_parent_child(self) -> bool:
        return self is not RelationshipType.SPOUSE


class ParentChildSubtype(str, Enum):
    """Flavour of a parent-child edge. Affects labels only, never traversal."""

    PLAIN = "plain"
    IN_LAW = "in-law"
    ADOPT = "adopt"

    @property
    def relationship_type(self) -> RelationshipType:
        return _SUBTYPE_TO_TYPE[self]

    @classmethod
    def from_relationship_type(cls, rel_type: RelationshipType) -> "ParentChildSubtype":
        for subtype, mapped in _SUBTYPE_TO_TYPE.items():
            if mapped is rel_type:
                return subtype
        raise ValidationError(f"{rel_type.value} is not a parent-child relationship type.")


_SUBTYPE_TO_TYPE = {
    ParentChildSubtype.PLAIN: RelationshipType.PARENT_CHILD,
    ParentChildSubtype.IN_LAW: RelationshipType.PARENT_CHILD_IN_LAW,
    ParentChildSubtype.ADOPT: RelationshipType.PARENT_CHILD_ADOPT,
}


def safe_person_name(value: object) -> str:
    """Return the stripped name, or the placeholder when it is missing or blank."""
    if value is None:
        return UNNAMED_PLACEHOLDER
    return str(value).strip() or UNNAMED_PLACEHOLDER


def _coerce_enum(enum_cls, value, field_name: str):
    if value is None or isinstance(value, enum_cls):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return enum_cls(text)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Person {field_name} must be one of: {allowed}.") from None


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    return value if value.strip() else None


@dataclass(frozen=True)
class Person:
    """
    A member of the family tree.
    Dates are kept verbatim (full, year-only, month-day or opaque lunar markers);
    see famitree.domain.dates for the forms that can be interpreted.
    """

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    title: str | None = None
    address: str | None = None
    birth_place: str | None = None
    birth_date: str | None = None
    death_date: str | None = None
    buried_at: str | None = None
    gender: Gender | None = None
    notes: str | None = None
    avatar: str | None = None
    member_role: MemberRole = MemberRole.MAIN

    def __post_init__(self):
        name = (self.name or "").strip()
        if not name:
            raise ValidationError("Person name is required.")
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "gender", _coerce_enum(Gender, self.gender, "gender"))
        role = _coerce_enum(MemberRole, self.member_role, "member_role")
        object.__setattr__(self, "member_role", role or MemberRole.MAIN)
        for date_field in ("birth_date", "death_date"):
            object.__setattr__(self, date_field, _blank_to_none(getattr(self, date_field)))


@dataclass(frozen=True)
class Relationship:
    """
    A typed edge between two people.
    For parent-child types person_id is the parent and related_id the child;
    for spouse the pair is unordered.
    """

    type: RelationshipType
    person_id: str
    related_id: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        object.__setattr__(self, "type", RelationshipType(self.type))
        if not self.person_id or not self.related_id:
            raise ValidationError("Relationship endpoints must be non-empty.")

    def involves(self, person_id: str) -> bool:
        return self.person_id == person_id or self.related_id == person_id

    def connects(self, a: str, b: str) -> bool:
        """True when the edge joins a and b, in either direction."""
        return (self.person_id == a and self.related_id == b) or (
            self.person_id == b and self.related_id == a
        )

    def other(self, person_id: str) -> str:
        return self.related_id if self.person_id == person_id else self.person_id


@dataclass(frozen=True)
class FamilyTreeState:
    """Snapshot of all people and relationships. Replaced, never mutated, on every write.

    default_branches holds (user id, branch root person id) pairs, one per user.
    """

    people: tuple[Person, ...] = ()
    relationships: tuple[Relationship, ...] = ()
    default_branches: tuple[tuple[str, str], ...] = ()
