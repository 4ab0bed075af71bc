"""Application layer: store, graph queries, tree derivations, ports and DTOs. Depends only on domain."""

from famitree.application.branches import (
    get_branch_candidates,
    get_branch_label,
    get_branch_person_ids,
    get_person_ids_in_branch,
)
from famitree.application.dto import (
    BranchStats,
    CurrentUser,
    ParentChildLink,
    SpouseLink,
    TreeNode,
    UpcomingEvent,
)
from famitree.application.ports import (
    CurrentUserProvider,
    PersistenceBackend,
    PersistenceError,
    StateCodec,
)
from famitree.application.queries import FamilyGraph, get_spouse_label
from famitree.application.store import FamilyTreeStore
from famitree.application.summary import (
    branch_stats,
    upcoming_birthdays,
    upcoming_death_anniversaries,
)
from famitree.application.tree_builder import (
    TreeBuilder,
    get_main_person_ids,
    get_person_level_from_nodes,
)
from famitree.application.tree_filter import filter_tree_by_query

__all__ = [
    "BranchStats",
    "CurrentUser",
    "CurrentUserProvider",
    "FamilyGraph",
    "FamilyTreeStore",
    "ParentChildLink",
    "PersistenceBackend",
    "PersistenceError",
    "SpouseLink",
    "StateCodec",
    "TreeBuilder",
    "TreeNode",
    "UpcomingEvent",
    "branch_stats",
    "filter_tree_by_query",
    "get_branch_candidates",
    "get_branch_label",
    "get_branch_person_ids",
    "get_main_person_ids",
    "get_person_ids_in_branch",
    "get_person_level_from_nodes",
    "get_spouse_label",
    "upcoming_birthdays",
    "upcoming_death_anniversaries",
]
