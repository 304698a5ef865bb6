from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, Literal, Optional

from triage_hub.core.errors import already_exists, not_found, validation_failed
from triage_hub.core.ids import make_unique_id, now_iso
from triage_hub.core.model import (
    CITATION_KINDS,
    Citation,
    FeatureIntake,
    FeatureNode,
    NodeCreate,
    NodePatch,
    clean_list,
    parse_feature_status,
    parse_priority,
    require_title,
)
from triage_hub.core.tree.hierarchy import TreeNode, build_hierarchy, children_index, descendant_ids

logger = logging.getLogger(__name__)

DeleteMode = Literal["orphan", "cascade"]
DELETE_MODES: tuple[str, ...] = ("orphan", "cascade")


class FeatureTreeStore:
    """CRUD over one project's feature nodes.

    Nodes live in a flat list with parent_id references; list order is insertion order
    and therefore sibling order. The list and the per-node intake mapping are owned by
    the caller (a project arena) and mutated in place.
    """

    def __init__(
        self,
        nodes: list[FeatureNode],
        intakes: Optional[dict[str, FeatureIntake]] = None,
    ) -> None:
        self.nodes = nodes
        self.intakes = intakes if intakes is not None else {}

    # ---- reads ----

    def list_nodes(self) -> list[FeatureNode]:
        return list(self.nodes)

    def find_node(self, node_id: str) -> Optional[FeatureNode]:
        return next((n for n in self.nodes if n.id == node_id), None)

    def get_node(self, node_id: str) -> FeatureNode:
        node = self.find_node(node_id)
        if node is None:
            raise not_found("node", node_id)
        return node

    def get_hierarchy(self) -> list[TreeNode]:
        return build_hierarchy(self.nodes)

    # ---- writes ----

    def create_node(self, create: NodeCreate) -> FeatureNode:
        title = require_title(create.title, entity="node")
        ids = {n.id for n in self.nodes}
        if create.id is not None:
            nid = create.id.strip()
            if not nid:
                raise validation_failed("node", "explicit id must be non-empty")
            if nid in ids:
                raise already_exists("node", nid)
        else:
            nid = make_unique_id("feat", ids)

        parent_id = create.parent_id or None
        if parent_id is not None and parent_id not in ids:
            raise not_found("node", parent_id)

        at = now_iso()
        node = FeatureNode(
            id=nid,
            title=title,
            parent_id=parent_id,
            description=_opt_text(create.description),
            status=parse_feature_status(create.status) if create.status else "draft",
            priority=parse_priority(create.priority, entity="node") if create.priority else "P2",
            owner=_opt_text(create.owner),
            tags=clean_list(create.tags),
            acceptance_criteria=clean_list(create.acceptance_criteria),
            depends_on=self._check_depends_on(nid, create.depends_on or [], ids),
            sources=_check_sources(create.sources or []),
            created_at=at,
            updated_at=at,
        )
        self.nodes.append(node)
        logger.debug("created node %s (parent=%s)", node.id, node.parent_id)
        return node

    def insert_nodes(self, nodes: Iterable[FeatureNode]) -> list[FeatureNode]:
        """Append already-built nodes (e.g. a synthesized seed tree) as one batch.

        Parents must precede their children or already exist in the store.
        """
        batch = list(nodes)
        ids = {n.id for n in self.nodes}
        for n in batch:
            if n.id in ids:
                raise already_exists("node", n.id)
            if n.parent_id is not None and n.parent_id not in ids:
                raise not_found("node", n.parent_id)
            ids.add(n.id)
        self.nodes.extend(batch)
        return batch

    def update_node(self, patch: NodePatch) -> FeatureNode:
        idx, current = self._locate(patch.id)
        ids = {n.id for n in self.nodes}

        def invalid(message: str):
            return validation_failed("node", message, ref=current.id, committed=current)

        changes: dict = {}
        if patch.title is not None:
            title = patch.title.strip()
            if not title:
                raise invalid("title is required and must be a non-empty string")
            changes["title"] = title
        if patch.parent_id is not None:
            # An empty string moves the node to the root level.
            changes["parent_id"] = self._check_parent(current, patch.parent_id or None, invalid)
        if patch.description is not None:
            changes["description"] = _opt_text(patch.description)
        if patch.status is not None:
            changes["status"] = parse_feature_status(patch.status)
        if patch.priority is not None:
            changes["priority"] = parse_priority(patch.priority, entity="node")
        if patch.owner is not None:
            changes["owner"] = _opt_text(patch.owner)
        if patch.tags is not None:
            changes["tags"] = clean_list(patch.tags)
        if patch.acceptance_criteria is not None:
            changes["acceptance_criteria"] = clean_list(patch.acceptance_criteria)
        if patch.depends_on is not None:
            changes["depends_on"] = self._check_depends_on(current.id, patch.depends_on, ids)
        if patch.sources is not None:
            changes["sources"] = _check_sources(patch.sources)

        updated = replace(current, **changes, updated_at=now_iso())
        self.nodes[idx] = updated
        return updated

    def move_node(self, node_id: str, new_parent_id: Optional[str]) -> FeatureNode:
        """Reparent a node; it becomes the last child of its new parent."""
        idx, current = self._locate(node_id)

        def invalid(message: str):
            return validation_failed("node", message, ref=current.id, committed=current)

        parent_id = self._check_parent(current, new_parent_id or None, invalid)
        moved = replace(current, parent_id=parent_id, updated_at=now_iso())
        del self.nodes[idx]
        self.nodes.append(moved)
        logger.debug("moved node %s under %s", node_id, parent_id or "<root>")
        return moved

    def reorder_children(self, parent_id: Optional[str], ordered_ids: list[str]) -> list[FeatureNode]:
        """Rewrite sibling order under `parent_id` (None for the root level)."""
        if parent_id is not None:
            self.get_node(parent_id)
        roots, kids = children_index(self.nodes)
        siblings = roots if parent_id is None else kids.get(parent_id, [])
        current_ids = [n.id for n in siblings]
        if sorted(current_ids) != sorted(ordered_ids):
            raise validation_failed(
                "node",
                "ordered ids must list exactly the current children",
                ref=parent_id,
                committed=siblings,
            )

        sibling_ids = set(current_ids)
        slots = [i for i, n in enumerate(self.nodes) if n.id in sibling_ids]
        by_id = {n.id: n for n in siblings}
        for slot, nid in zip(slots, ordered_ids):
            self.nodes[slot] = by_id[nid]
        return [by_id[nid] for nid in ordered_ids]

    def delete_node(self, node_id: str, mode: DeleteMode = "orphan") -> list[str]:
        """Delete a node and return the ids actually removed.

        orphan: direct children become roots. cascade: the whole subtree goes.
        Either way depends_on edges into removed nodes are detached and the removed
        nodes' feature intakes are dropped.
        """
        if mode not in DELETE_MODES:
            raise validation_failed("node", f"delete mode must be one of {list(DELETE_MODES)}")
        self._locate(node_id)

        removed = [node_id]
        if mode == "cascade":
            removed += descendant_ids(self.nodes, node_id)
        gone = set(removed)

        at = now_iso()
        kept: list[FeatureNode] = []
        for n in self.nodes:
            if n.id in gone:
                continue
            changes: dict = {}
            if n.parent_id in gone:
                changes["parent_id"] = None
            if any(d in gone for d in n.depends_on):
                changes["depends_on"] = [d for d in n.depends_on if d not in gone]
            kept.append(replace(n, **changes, updated_at=at) if changes else n)
        self.nodes[:] = kept

        for nid in removed:
            self.intakes.pop(nid, None)
        logger.info("deleted %d node(s) from %s (mode=%s)", len(removed), node_id, mode)
        return removed

    # ---- feature intake ----

    def get_feature_intake(self, node_id: str) -> Optional[FeatureIntake]:
        self.get_node(node_id)
        return self.intakes.get(node_id)

    def set_feature_intake(self, node_id: str, intake: FeatureIntake) -> FeatureIntake:
        self.get_node(node_id)
        self.intakes[node_id] = intake
        return intake

    # ---- helpers ----

    def _locate(self, node_id: str) -> tuple[int, FeatureNode]:
        for i, n in enumerate(self.nodes):
            if n.id == node_id:
                return i, n
        raise not_found("node", node_id)

    def _check_parent(self, node: FeatureNode, parent_id: Optional[str], invalid) -> Optional[str]:
        if parent_id is None:
            return None
        if parent_id == node.id:
            raise invalid("a node cannot be its own parent")
        if self.find_node(parent_id) is None:
            raise invalid(f"parent_id references unknown id: {parent_id}")
        if parent_id in descendant_ids(self.nodes, node.id):
            raise invalid(f"moving under {parent_id} would create a parent cycle")
        return parent_id

    @staticmethod
    def _check_depends_on(node_id: str, depends_on: list[str], ids: set[str]) -> list[str]:
        deps = clean_list(depends_on)
        for d in deps:
            if d == node_id:
                raise validation_failed("node", "a node cannot depend on itself", ref=node_id)
            if d not in ids:
                raise validation_failed("node", f"depends_on references unknown id: {d}", ref=node_id)
        return deps


def _check_sources(sources: list[Citation]) -> list[Citation]:
    out: list[Citation] = []
    for c in sources:
        if c.kind not in CITATION_KINDS or not c.id:
            raise validation_failed("node", f"invalid source citation: {c.kind}:{c.id}")
        if c not in out:
            out.append(c)
    return out


def _opt_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    s = value.strip()
    return s or None
