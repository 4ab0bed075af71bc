"""Prune a built forest to the nodes matching a name query."""

from dataclasses import replace

from famitree.application.dto import TreeNode


def _name_matches(name: str, needle: str) -> bool:
    return needle in name.strip().lower()


def filter_tree_by_query(nodes: list[TreeNode], query: str) -> list[TreeNode]:
    """Keep nodes whose name or a spouse's name contains query, plus their ancestors.

    Case-insensitive. Surviving nodes keep all their spouses and only their
    surviving children. A blank query returns nodes as given.
    """
    needle = (query or "").strip().lower()
    if not needle:
        return nodes
    out = []
    for node in nodes:
        kept = _filter_node(node, needle)
        if kept is not None:
            out.append(kept)
    return out


def _filter_node(node: TreeNode, needle: str) -> TreeNode | None:
    children = tuple(
        kept for kept in (_filter_node(child, needle) for child in node.children) if kept is not None
    )
    matches = _name_matches(node.person.name, needle) or any(
        _name_matches(spouse.name, needle) for spouse in node.spouses
    )
    if matches or children:
        return replace(node, children=children)
    return None
