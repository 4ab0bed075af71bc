"""Builds display trees from the flat people/relationship graph.

The parent-child graph may contain cycles, so every walk carries a visited set.
"""

from collections.abc import Iterable

from famitree.application.dto import TreeNode
from famitree.application.queries import FamilyGraph
from famitree.domain import Gender, Person


class TreeBuilder:
    """Forest, rooted-tree, ancestor and generation-level views over a FamilyGraph."""

    def __init__(self, graph: FamilyGraph) -> None:
        self._graph = graph

    def build_tree(self) -> list[TreeNode]:
        """Full forest rooted at everyone who is nobody's child.

        One seen set is shared by the whole pass: a person reached a second
        time (shared descendant or cycle) becomes a bare leaf. When nobody
        qualifies as a root but people exist, every person becomes a childless
        node of its own.
        """
        people = self._graph.people
        child_ids = self._graph.get_child_ids_with_any_parent()
        roots = [p for p in people if p.id not in child_ids]
        if not roots and people:
            return [
                TreeNode(person=p, spouses=tuple(self._graph.get_spouses(p.id)))
                for p in people
            ]
        seen: set[str] = set()
        return [self._build_node(p, seen) for p in roots]

    def build_tree_rooted_at(self, person_id: str) -> list[TreeNode]:
        """One tree starting at person_id, whether or not they are a root. [] if unknown."""
        person = self._graph.get_person(person_id)
        if person is None:
            return []
        return [self._build_node(person, set())]

    def build_tree_male_roots_only(self) -> list[TreeNode]:
        """Male roots of the full forest, each rebuilt with its own seen set.

        A descendant shared by two male branches is expanded under both.
        """
        return [
            self._build_node(node.person, set())
            for node in self.build_tree()
            if node.person.gender is Gender.MALE
        ]

    def get_ancestor_levels(self, person_id: str, max_levels: int) -> list[list[Person]]:
        """Generations of ancestors, oldest first, at most max_levels deep."""
        if self._graph.get_person(person_id) is None:
            return []
        levels: list[list[Person]] = []
        current = [person_id]
        for _ in range(max_levels):
            level_ids: list[str] = []
            for pid in current:
                for parent_id in self._graph.get_parent_ids(pid):
                    if parent_id not in level_ids:
                        level_ids.append(parent_id)
            level = [p for p in map(self._graph.get_person, level_ids) if p is not None]
            if not level:
                break
            levels.append(level)
            current = [p.id for p in level]
        levels.reverse()
        return levels

    def get_person_level(self, person_id: str, cache: dict[str, int] | None = None) -> int | None:
        """Generation number by shortest path: no parents -> 1, else 1 + min(parent levels).

        cache memoises levels across calls for the same state; pass a fresh dict
        per query context. None for an unknown id.
        """
        if self._graph.get_person(person_id) is None:
            return None
        cache = {} if cache is None else cache
        return self._level(person_id, cache, set(), None, None)[0]

    def get_person_level_in_branch(
        self,
        person_id: str,
        branch_root_id: str,
        branch_ids: Iterable[str],
        cache: dict[str, int] | None = None,
    ) -> int | None:
        """Like get_person_level, counting only parents inside branch_ids.

        The branch root is level 1 whatever its real parents. A cache must not be
        shared between different branch roots.
        """
        if self._graph.get_person(person_id) is None:
            return None
        cache = {} if cache is None else cache
        return self._level(person_id, cache, set(), branch_root_id, set(branch_ids))[0]

    def _level(
        self,
        person_id: str,
        cache: dict[str, int],
        visiting: set[str],
        branch_root_id: str | None,
        branch_ids: set[str] | None,
    ) -> tuple[int, bool]:
        """Return (level, final). A level is final, and cached, only when no parent
        on the way was skipped for being mid-computation (a cycle)."""
        if person_id in cache:
            return cache[person_id], True
        if person_id == branch_root_id:
            cache[person_id] = 1
            return 1, True
        visiting.add(person_id)
        parent_levels = []
        final = True
        for parent_id in self._graph.get_parent_ids(person_id):
            if branch_ids is not None and parent_id not in branch_ids:
                continue
            if parent_id in visiting:
                final = False
                continue
            parent_level, parent_final = self._level(
                parent_id, cache, visiting, branch_root_id, branch_ids
            )
            parent_levels.append(parent_level)
            final = final and parent_final
        visiting.discard(person_id)
        level = 1 + min(parent_levels) if parent_levels else 1
        if final:
            cache[person_id] = level
        return level, final

    def _build_node(self, person: Person, seen: set[str]) -> TreeNode:
        if person.id in seen:
            return TreeNode(person=person)
        seen.add(person.id)
        children = []
        for child_id in self._graph.get_children_ids(person.id):
            child = self._graph.get_person(child_id)
            if child is not None:
                children.append(self._build_node(child, seen))
        return TreeNode(
            person=person,
            children=tuple(children),
            spouses=tuple(self._graph.get_spouses(person.id)),
        )


def get_main_person_ids(nodes: Iterable[TreeNode]) -> set[str]:
    """Ids drawn as a node somewhere in the forest (spouses not included)."""
    ids: set[str] = set()
    stack = list(nodes)
    while stack:
        node = stack.pop()
        ids.add(node.person.id)
        stack.extend(node.children)
    return ids


def get_person_level_from_nodes(nodes: Iterable[TreeNode]) -> dict[str, int]:
    """Depth of each node as rendered: roots are 1. First placement wins."""
    levels: dict[str, int] = {}

    def walk(level_nodes: Iterable[TreeNode], level: int) -> None:
        for node in level_nodes:
            levels.setdefault(node.person.id, level)
            walk(node.children, level + 1)

    walk(nodes, 1)
    return levels
