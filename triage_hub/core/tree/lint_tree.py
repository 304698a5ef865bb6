from __future__ import annotations

from collections import Counter
from typing import Iterable

from triage_hub.core.errors import ValidationFailedError
from triage_hub.core.model import FeatureNode, KanbanCard


# Feature tree integrity rules:
# - L_DUPLICATE_ID: two nodes share an id
# - L_EMPTY_TITLE: node title is blank
# - L_UNRESOLVED_PARENT: parent_id does not resolve inside the project
# - L_PARENT_CYCLE: following parent_id loops back
# - L_UNKNOWN_DEPENDENCY: depends_on references an id not in the tree
# - L_DEPENDENCY_CYCLE: depends_on edges form a cycle
# - L_DANGLING_FEATURE_LINK: a card links to a feature that no longer exists


def lint_tree(
    nodes: Iterable[FeatureNode], cards: Iterable[KanbanCard] = ()
) -> list[ValidationFailedError]:
    """Lint a project's tree (and optionally its cards).

    Best effort on already-broken data: every rule runs independently.
    """

    node_list = list(nodes)
    errors: list[ValidationFailedError] = []

    counts = Counter(n.id for n in node_list)
    for nid, count in sorted(counts.items()):
        if count > 1:
            errors.append(_err("L_DUPLICATE_ID", f"duplicate node id: {nid} (count={count})", nid))

    by_id: dict[str, FeatureNode] = {}
    for n in node_list:
        by_id.setdefault(n.id, n)

    for n in by_id.values():
        if not n.title.strip():
            errors.append(_err("L_EMPTY_TITLE", "node title must be non-empty", n.id))
        if n.parent_id and n.parent_id not in by_id:
            errors.append(
                _err("L_UNRESOLVED_PARENT", f"parent_id references unknown id: {n.parent_id}", n.id)
            )
        for dep in n.depends_on:
            if dep not in by_id:
                errors.append(
                    _err("L_UNKNOWN_DEPENDENCY", f"depends_on references unknown id: {dep}", n.id)
                )

    parent_edges = {
        nid: [n.parent_id] if n.parent_id and n.parent_id in by_id else []
        for nid, n in by_id.items()
    }
    for nid, msg in _detect_cycles(parent_edges, "parent cycle detected"):
        errors.append(_err("L_PARENT_CYCLE", msg, nid))

    dep_edges = {nid: [d for d in n.depends_on if d in by_id] for nid, n in by_id.items()}
    for nid, msg in _detect_cycles(dep_edges, "dependency cycle detected"):
        errors.append(_err("L_DEPENDENCY_CYCLE", msg, nid))

    for c in cards:
        if c.feature_id and c.feature_id not in by_id:
            errors.append(
                ValidationFailedError(
                    code="L_DANGLING_FEATURE_LINK",
                    message=f"card links to missing feature: {c.feature_id}",
                    entity="card",
                    ref=c.id,
                )
            )

    return sorted(errors, key=lambda e: (e.entity or "", e.ref or "", e.code))


def _err(code: str, message: str, node_id: str) -> ValidationFailedError:
    return ValidationFailedError(code=code, message=message, entity="node", ref=node_id)


def _detect_cycles(edges: dict[str, list[str]], label: str) -> list[tuple[str, str]]:
    WHITE, GRAY, BLACK = 0, 1, 2
    state: dict[str, int] = {nid: WHITE for nid in edges}
    emitted: set[frozenset[str]] = set()
    out: list[tuple[str, str]] = []

    for start in list(state.keys()):
        if state[start] != WHITE:
            continue
        state[start] = GRAY
        path: list[str] = [start]
        pending = [iter(edges.get(start, []))]
        while pending:
            u = path[-1]
            v = next(pending[-1], None)
            if v is None:
                pending.pop()
                path.pop()
                state[u] = BLACK
                continue
            if v not in state:
                continue
            if state[v] == GRAY:
                idx = path.index(v)
                cycle = path[idx:] + [v]
                key = frozenset(cycle)
                if key not in emitted:
                    emitted.add(key)
                    out.append((u, f"{label}: " + " -> ".join(cycle)))
            elif state[v] == WHITE:
                state[v] = GRAY
                path.append(v)
                pending.append(iter(edges.get(v, [])))
    return out
