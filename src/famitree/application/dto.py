"""Application DTOs: values returned by queries and tree derivations."""

from dataclasses import dataclass, field
from datetime import date

from famitree.domain import ParentChildSubtype, Person


@dataclass(frozen=True)
class CurrentUser:
    id: str
    is_privileged: bool = False


@dataclass(frozen=True)
class ParentChildLink:
    """A parent-child edge seen from one side: edge id, the person at the other end, subtype."""

    edge_id: str
    person: Person
    subtype: ParentChildSubtype


@dataclass(frozen=True)
class SpouseLink:
    """A spouse edge seen from one side. index is 1-based in edge-list order."""

    edge_id: str
    person: Person
    index: int


@dataclass(frozen=True)
class TreeNode:
    """
    One person placed in a built tree, with their spouses and child nodes.
    Nodes are snapshots: valid until the next store mutation, never edited in place.
    """

    person: Person
    children: tuple["TreeNode", ...] = ()
    spouses: tuple[Person, ...] = ()

    @property
    def spouse(self) -> Person | None:
        """First spouse, for callers that only show one."""
        return self.spouses[0] if self.spouses else None


@dataclass(frozen=True)
class BranchStats:
    total: int = 0
    living: int = 0
    deceased: int = 0
    male: int = 0
    female: int = 0
    male_deceased_60_plus: int = 0
    age_bands: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class UpcomingEvent:
    """A birthday or death anniversary falling on next_date, days_until from today."""

    person: Person
    next_date: date
    days_until: int
    age: int | None = None
