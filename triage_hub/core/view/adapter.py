"""Display-side vocabulary and the denormalized project aggregate.

Everything here is a pure function of its arguments. Edits coming back from the display
are turned into canonical patch objects; applying them is the backend's job.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from triage_hub.core.errors import validation_failed
from triage_hub.core.io.codec import node_from_dict, to_dict
from triage_hub.core.model import (
    ActivityEntry,
    CardPatch,
    FeatureIntake,
    FeatureNode,
    IntakeRecord,
    KanbanCard,
    Lane,
    NodePatch,
    Priority,
    Project,
    parse_lane,
    parse_priority,
)
from triage_hub.core.tree.feature_intake import derive_intake_status, intake_progress_label
from triage_hub.core.tree.hierarchy import TreeNode, build_hierarchy

COLUMNS: tuple[str, ...] = ("todo", "in_progress", "blocked", "done")
COLUMN_LABELS: dict[str, str] = {
    "todo": "To do",
    "in_progress": "In progress",
    "blocked": "Blocked",
    "done": "Done",
}
DEFAULT_REVIEW_BUCKET = "in_progress"
NO_FEATURE_LINK = "no feature link"

_LANE_TO_COLUMN: dict[str, str] = {
    "proposed": "todo",
    "queued": "todo",
    "development": "in_progress",
    "blocked": "blocked",
    "done": "done",
}
_COLUMN_TO_LANE: dict[str, Lane] = {
    "todo": "proposed",
    "in_progress": "development",
    "blocked": "blocked",
    "done": "done",
}


# ---- vocabulary ----


def lane_to_column(lane: str, *, review_bucket: str = DEFAULT_REVIEW_BUCKET) -> str:
    if review_bucket not in COLUMNS:
        raise validation_failed("view", f"review bucket must be one of {list(COLUMNS)}")
    if lane == "review":
        return review_bucket
    try:
        return _LANE_TO_COLUMN[lane]
    except KeyError:
        raise validation_failed("view", f"unknown lane: {lane!r}") from None


def column_to_lane(column: str) -> Lane:
    """Map a display column back to a lane. Lane names are accepted unchanged."""
    key = column.strip().lower() if isinstance(column, str) else ""
    if key in _COLUMN_TO_LANE:
        return _COLUMN_TO_LANE[key]
    return parse_lane(key, entity="view")


def priority_to_view(priority: str) -> str:
    return priority.lower()


def priority_from_view(value: str) -> Priority:
    return parse_priority(value, entity="view")


# ---- flat <-> tree ----


def nodes_to_view_tree(
    nodes: Iterable[FeatureNode],
    *,
    intakes: Optional[Mapping[str, FeatureIntake]] = None,
    cards: Iterable[KanbanCard] = (),
) -> list[dict[str, Any]]:
    card_counts: dict[str, int] = {}
    for c in cards:
        if c.feature_id:
            card_counts[c.feature_id] = card_counts.get(c.feature_id, 0) + 1

    out: list[dict[str, Any]] = []
    # (subtree, list its rendered dict goes into)
    stack: list[tuple[TreeNode, list[dict[str, Any]]]] = [(t, out) for t in reversed(build_hierarchy(nodes))]
    while stack:
        t, siblings = stack.pop()
        d = to_dict(t.node)
        d["priority"] = priority_to_view(t.node.priority)
        d["intake"] = intake_progress_label((intakes or {}).get(t.node.id))
        d["card_count"] = card_counts.get(t.node.id, 0)
        d["children"] = []
        siblings.append(d)
        stack.extend((c, d["children"]) for c in reversed(t.children))
    return out


def view_tree_to_nodes(view_tree: Iterable[Mapping[str, Any]]) -> list[FeatureNode]:
    """Flatten a nested display tree; nesting wins over any stored parent_id."""
    out: list[FeatureNode] = []
    stack: list[tuple[Mapping[str, Any], Optional[str]]] = [(item, None) for item in reversed(list(view_tree))]
    while stack:
        item, parent_id = stack.pop()
        data = {k: v for k, v in item.items() if k not in ("children", "intake", "card_count")}
        data["parent_id"] = parent_id
        if isinstance(data.get("priority"), str):
            data["priority"] = priority_from_view(data["priority"])
        node = node_from_dict(data)
        out.append(node)
        stack.extend((child, node.id) for child in reversed(item.get("children") or []))
    return out


# ---- lookups ----


def feature_link(card: KanbanCard, nodes: Iterable[FeatureNode]) -> Optional[FeatureNode]:
    """The linked feature, or None when the card has no link or the link dangles."""
    if not card.feature_id:
        return None
    return next((n for n in nodes if n.id == card.feature_id), None)


def feature_intake_progress(intake: Optional[FeatureIntake]) -> tuple[str, str]:
    if intake is None:
        return "not_started", intake_progress_label(None)
    status, _, _ = derive_intake_status(intake)
    return status, intake_progress_label(intake)


# ---- aggregate ----


@dataclass(frozen=True)
class ProjectView:
    project: dict[str, Any]
    tree: list[dict[str, Any]]
    columns: dict[str, list[dict[str, Any]]]
    intake: dict[str, Any]
    stats: dict[str, Any]
    activity: list[dict[str, Any]] = field(default_factory=list)


def card_to_view(
    card: KanbanCard, nodes: list[FeatureNode], *, review_bucket: str = DEFAULT_REVIEW_BUCKET
) -> dict[str, Any]:
    d = to_dict(card)
    linked = feature_link(card, nodes)
    d["column"] = lane_to_column(card.lane, review_bucket=review_bucket)
    d["priority"] = priority_to_view(card.priority)
    d["feature_title"] = linked.title if linked else None
    d["feature_label"] = linked.title if linked else NO_FEATURE_LINK
    return d


def intake_summary(record: IntakeRecord) -> dict[str, Any]:
    idea = record.ideas[-1] if record.ideas else None
    analysis = record.analyses[-1] if record.analyses else None
    answered = sum(1 for q in record.questions if q.answer)
    return {
        "idea": idea.text if idea else None,
        "idea_versions": len(record.ideas),
        "type": analysis.type if analysis else None,
        "summary": analysis.summary if analysis else None,
        "tags": list(analysis.tags) if analysis else [],
        "risks": list(analysis.risks) if analysis else [],
        "questions_answered": answered,
        "questions_total": len(record.questions),
        "required_open": sum(1 for q in record.questions if q.required and not q.answer),
        "requirements": len(record.requirements),
    }


def build_project_view(
    project: Project,
    nodes: list[FeatureNode],
    cards: list[KanbanCard],
    intake: IntakeRecord,
    *,
    feature_intakes: Optional[Mapping[str, FeatureIntake]] = None,
    activity: Iterable[ActivityEntry] = (),
    review_bucket: str = DEFAULT_REVIEW_BUCKET,
) -> ProjectView:
    columns: dict[str, list[dict[str, Any]]] = {col: [] for col in COLUMNS}
    for c in cards:
        view = card_to_view(c, nodes, review_bucket=review_bucket)
        columns[view["column"]].append(view)

    done = sum(1 for n in nodes if n.status == "done")
    stats = {
        "features": len(nodes),
        "features_done": done,
        "features_blocked": sum(1 for n in nodes if n.status == "blocked"),
        "progress_pct": round(100 * done / len(nodes)) if nodes else 0,
        "cards": len(cards),
        "cards_by_column": {col: len(columns[col]) for col in COLUMNS},
        "dangling_links": sum(1 for c in cards if c.feature_id and feature_link(c, nodes) is None),
    }

    return ProjectView(
        project=to_dict(project),
        tree=nodes_to_view_tree(nodes, intakes=feature_intakes, cards=cards),
        columns=columns,
        intake=intake_summary(intake),
        stats=stats,
        activity=[to_dict(a) for a in activity],
    )


# ---- reverse mapping ----


def card_edit_to_patch(
    card: KanbanCard, edit: Mapping[str, Any], *, review_bucket: str = DEFAULT_REVIEW_BUCKET
) -> CardPatch:
    """Turn a display edit of a card into a CardPatch.

    Dropping a card into the column it already shows in is not a lane change, so a
    card in review stays in review when its bucket is re-selected.
    """
    lane: Optional[str] = None
    column = edit.get("column")
    if column is not None and column != lane_to_column(card.lane, review_bucket=review_bucket):
        lane = column_to_lane(column)
    elif edit.get("lane") is not None:
        lane = parse_lane(edit["lane"], entity="card")

    priority = edit.get("priority")
    return CardPatch(
        id=card.id,
        title=edit.get("title"),
        feature_id=edit.get("feature_id"),
        lane=lane,
        priority=priority_from_view(priority) if priority is not None else None,
        owner=edit.get("owner"),
        description=edit.get("description"),
        note=edit.get("note"),
    )


def node_edit_to_patch(node_id: str, edit: Mapping[str, Any]) -> NodePatch:
    priority = edit.get("priority")
    return NodePatch(
        id=node_id,
        title=edit.get("title"),
        parent_id=edit.get("parent_id"),
        description=edit.get("description"),
        status=edit.get("status"),
        priority=priority_from_view(priority) if priority is not None else None,
        owner=edit.get("owner"),
        tags=edit.get("tags"),
        acceptance_criteria=edit.get("acceptance_criteria"),
        depends_on=edit.get("depends_on"),
    )
