"""JSON snapshot codec for FamilyTreeState, validated with pydantic."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from famitree.domain import (
    FamilyTreeState,
    Gender,
    MemberRole,
    Person,
    Relationship,
    RelationshipType,
    ValidationError,
)

SNAPSHOT_VERSION = 1


class PersonRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    title: str | None = None
    address: str | None = None
    birth_place: str | None = Field(default=None, alias="birthPlace")
    birth_date: str | None = Field(default=None, alias="birthDate")
    death_date: str | None = Field(default=None, alias="deathDate")
    buried_at: str | None = Field(default=None, alias="buriedAt")
    gender: Gender | None = None
    notes: str | None = None
    avatar: str | None = None
    member_role: MemberRole = Field(default=MemberRole.MAIN, alias="memberRole")

    @classmethod
    def from_person(cls, person: Person) -> "PersonRecord":
        return cls(
            id=person.id,
            name=person.name,
            title=person.title,
            address=person.address,
            birth_place=person.birth_place,
            birth_date=person.birth_date,
            death_date=person.death_date,
            buried_at=person.buried_at,
            gender=person.gender,
            notes=person.notes,
            avatar=person.avatar,
            member_role=person.member_role,
        )

    def to_person(self) -> Person:
        return Person(**self.model_dump())


class RelationshipRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    type: RelationshipType
    person_id: str = Field(alias="personId")
    related_id: str = Field(alias="relatedId")


class StateSnapshot(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    version: int = SNAPSHOT_VERSION
    people: list[PersonRecord] = Field(default_factory=list)
    relationships: list[RelationshipRecord] = Field(default_factory=list)
    # user id -> branch root person id
    default_branches: dict[str, str] = Field(default_factory=dict, alias="defaultBranches")


class JsonStateCodec:
    """Encodes the state as UTF-8 JSON using the camelCase field names of the web client."""

    def encode(self, state: FamilyTreeState) -> bytes:
        snapshot = StateSnapshot(
            people=[PersonRecord.from_person(p) for p in state.people],
            relationships=[
                RelationshipRecord(
                    id=r.id, type=r.type, person_id=r.person_id, related_id=r.related_id
                )
                for r in state.relationships
            ],
            default_branches=dict(state.default_branches),
        )
        return snapshot.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")

    def decode(self, raw: bytes) -> FamilyTreeState:
        try:
            snapshot = StateSnapshot.model_validate_json(raw)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid family tree snapshot: {e}") from e
        if snapshot.version != SNAPSHOT_VERSION:
            raise ValidationError(f"Unsupported snapshot version {snapshot.version}.")
        people = tuple(record.to_person() for record in snapshot.people)
        relationships = tuple(
            Relationship(id=r.id, type=r.type, person_id=r.person_id, related_id=r.related_id)
            for r in snapshot.relationships
        )
        _check_unique_ids(people, "person")
        _check_unique_ids(relationships, "relationship")
        return FamilyTreeState(
            people=people,
            relationships=relationships,
            default_branches=tuple(snapshot.default_branches.items()),
        )


def _check_unique_ids(items, kind: str) -> None:
    seen = set()
    for item in items:
        if item.id in seen:
            raise ValidationError(f"Duplicate {kind} id {item.id!r} in snapshot.")
        seen.add(item.id)
