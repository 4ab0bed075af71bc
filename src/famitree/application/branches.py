"""Branch membership: a root person, their descendants, and the spouses of all of them."""

from datetime import date

from famitree.application.dto import TreeNode
from famitree.application.queries import FamilyGraph
from famitree.domain import Gender, Person
from famitree.domain.dates import current_age

# Living men head a branch only once they are older than this and have children.
BRANCH_HEAD_MIN_AGE = 60


def get_person_ids_in_branch(graph: FamilyGraph, root_id: str) -> set[str]:
    """root_id and all of its descendants. Spouses are not included."""
    ids: set[str] = set()
    stack = [root_id]
    while stack:
        person_id = stack.pop()
        if person_id in ids:
            continue
        ids.add(person_id)
        stack.extend(graph.get_children_ids(person_id))
    return ids


def get_branch_person_ids(graph: FamilyGraph, root_id: str) -> set[str]:
    """Branch closure plus every spouse of every member (spouses' other marriages are not followed)."""
    ids = get_person_ids_in_branch(graph, root_id)
    with_spouses = set(ids)
    for person_id in ids:
        with_spouses.update(graph.get_spouse_ids(person_id))
    return with_spouses


def get_branch_candidates(graph: FamilyGraph, today: date | None = None) -> list[Person]:
    """Men who can be picked as a branch head, sorted by name.

    Deceased men always qualify; living men need children and an age over
    BRANCH_HEAD_MIN_AGE.
    """
    out = []
    for person in graph.people:
        if person.gender is not Gender.MALE:
            continue
        if person.death_date:
            out.append(person)
            continue
        age = current_age(person.birth_date, None, today)
        if graph.get_children_ids(person.id) and age is not None and age > BRANCH_HEAD_MIN_AGE:
            out.append(person)
    return sorted(out, key=lambda p: p.name.casefold())


def get_branch_label(node: TreeNode) -> str:
    """Couple label with the husband first, whichever side the node's person is on."""
    spouse = node.spouse
    if spouse is None:
        return node.person.name
    if spouse.gender is Gender.MALE:
        return f"{spouse.name} – {node.person.name}"
    return f"{node.person.name} – {spouse.name}"
