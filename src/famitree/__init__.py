"""
Famitree core: clean-architecture layout.

- domain: entities (Person, Relationship, FamilyTreeState), partial dates. No outer dependencies.
- application: FamilyTreeStore, FamilyGraph queries, TreeBuilder, filters, ports, DTOs.
- infrastructure: adapters (InMemoryPersistence, FilePersistence, JsonStateCodec, user providers, CSV backup).
"""

from famitree.application import (
    CurrentUser,
    FamilyGraph,
    FamilyTreeStore,
    TreeBuilder,
    TreeNode,
    filter_tree_by_query,
    get_branch_person_ids,
    get_person_ids_in_branch,
)
from famitree.domain import (
    FamilyTreeState,
    Gender,
    MemberRole,
    ParentChildSubtype,
    Person,
    Relationship,
    RelationshipType,
    ValidationError,
)
from famitree.infrastructure import (
    ContextUserProvider,
    FilePersistence,
    InMemoryPersistence,
    JsonStateCodec,
    StaticUserProvider,
)

__all__ = [
    "ContextUserProvider",
    "CurrentUser",
    "FamilyGraph",
    "FamilyTreeState",
    "FamilyTreeStore",
    "FilePersistence",
    "Gender",
    "InMemoryPersistence",
    "JsonStateCodec",
    "MemberRole",
    "ParentChildSubtype",
    "Person",
    "Relationship",
    "RelationshipType",
    "StaticUserProvider",
    "TreeBuilder",
    "TreeNode",
    "ValidationError",
    "filter_tree_by_query",
    "get_branch_person_ids",
    "get_person_ids_in_branch",
]
