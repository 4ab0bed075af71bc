"""Domain layer: entities and value objects. No dependencies on outer layers."""

from famitree.domain.entities import (
    UNNAMED_PLACEHOLDER,
    FamilyTreeState,
    Gender,
    MemberRole,
    ParentChildSubtype,
    Person,
    Relationship,
    RelationshipType,
    safe_person_name,
)
from famitree.domain.errors import ValidationError

__all__ = [
    "UNNAMED_PLACEHOLDER",
    "FamilyTreeState",
    "Gender",
    "MemberRole",
    "ParentChildSubtype",
    "Person",
    "Relationship",
    "RelationshipType",
    "ValidationError",
    "safe_person_name",
]
