"""Pure projections between the flat parent_id collection and nested trees.

The flat list is the canonical storage shape. Nothing here mutates its input.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator

from triage_hub.core.model import FeatureNode


@dataclass(frozen=True)
class TreeNode:
    node: FeatureNode
    children: list["TreeNode"] = field(default_factory=list)


def children_index(nodes: Iterable[FeatureNode]) -> tuple[list[FeatureNode], dict[str, list[FeatureNode]]]:
    """Split nodes into (roots, parent_id -> children), both in insertion order.

    A node whose parent_id is missing, unresolved or itself is a root.
    """
    node_list = list(nodes)
    ids = {n.id for n in node_list}
    roots: list[FeatureNode] = []
    kids: dict[str, list[FeatureNode]] = {}
    for n in node_list:
        if n.parent_id and n.parent_id in ids and n.parent_id != n.id:
            kids.setdefault(n.parent_id, []).append(n)
        else:
            roots.append(n)
    return roots, kids


def build_hierarchy(nodes: Iterable[FeatureNode]) -> list[TreeNode]:
    node_list = list(nodes)
    roots, kids = children_index(node_list)
    seen: set[str] = set()

    def grow(top: FeatureNode) -> TreeNode:
        seen.add(top.id)
        root = TreeNode(node=top)
        # (subtree, children not yet visited)
        stack = [(root, iter(kids.get(top.id, [])))]
        while stack:
            parent, pending = stack[-1]
            child = next((c for c in pending if c.id not in seen), None)
            if child is None:
                stack.pop()
                continue
            seen.add(child.id)
            sub = TreeNode(node=child)
            parent.children.append(sub)
            stack.append((sub, iter(kids.get(child.id, []))))
        return root

    forest = [grow(r) for r in roots]

    # Members of a parent cycle are unreachable from any root; surface them as roots
    # so the projection never drops a stored node.
    for n in node_list:
        if n.id not in seen:
            forest.append(grow(n))
    return forest


def flatten_hierarchy(forest: Iterable[TreeNode]) -> list[FeatureNode]:
    """Pre-order walk: each parent before its children, siblings in order."""
    out: list[FeatureNode] = []
    stack = list(reversed(list(forest)))
    while stack:
        t = stack.pop()
        out.append(t.node)
        stack.extend(reversed(t.children))
    return out


def walk_hierarchy(forest: Iterable[TreeNode]) -> Iterator[tuple[TreeNode, int]]:
    """Yield (subtree, depth) pairs in pre-order."""
    stack = [(t, 0) for t in reversed(list(forest))]
    while stack:
        t, depth = stack.pop()
        yield t, depth
        stack.extend((c, depth + 1) for c in reversed(t.children))


def descendant_ids(nodes: Iterable[FeatureNode], node_id: str) -> list[str]:
    """Ids of every node below `node_id`, breadth-first."""
    _, kids = children_index(nodes)
    out: list[str] = []
    seen = {node_id}
    queue = [node_id]
    while queue:
        cur = queue.pop(0)
        for c in kids.get(cur, []):
            if c.id not in seen:
                seen.add(c.id)
                out.append(c.id)
                queue.append(c.id)
    return out
