import pytest

from triage_hub.core.errors import ValidationFailedError
from triage_hub.core.model import (
    ActivityEntry,
    FeatureIntake,
    FeatureNode,
    FeatureQuestion,
    IntakeRecord,
    KanbanCard,
    Project,
)
from triage_hub.core.view.adapter import (
    NO_FEATURE_LINK,
    build_project_view,
    card_edit_to_patch,
    column_to_lane,
    feature_link,
    lane_to_column,
    node_edit_to_patch,
    nodes_to_view_tree,
    priority_from_view,
    priority_to_view,
    view_tree_to_nodes,
)

NODES = [
    FeatureNode(id="a", title="A", status="done"),
    FeatureNode(id="a1", title="A1", parent_id="a", priority="P0"),
    FeatureNode(id="b", title="B", status="blocked"),
]


def test_lane_column_vocabulary():
    assert lane_to_column("proposed") == "todo"
    assert lane_to_column("queued") == "todo"
    assert lane_to_column("development") == "in_progress"
    assert lane_to_column("review") == "in_progress"
    assert lane_to_column("review", review_bucket="todo") == "todo"
    assert lane_to_column("blocked") == "blocked"
    assert lane_to_column("done") == "done"
    assert column_to_lane("todo") == "proposed"
    assert column_to_lane("in_progress") == "development"
    assert column_to_lane("review") == "review"
    with pytest.raises(ValidationFailedError):
        column_to_lane("archive")


def test_priority_casing():
    assert priority_to_view("P0") == "p0"
    assert priority_from_view("p2") == "P2"
    with pytest.raises(ValidationFailedError):
        priority_from_view("p9")


def test_view_tree_round_trip():
    view = nodes_to_view_tree(NODES)
    assert view[0]["priority"] == "p2"
    assert view[0]["children"][0]["id"] == "a1"
    back = view_tree_to_nodes(view)
    assert {n.id: n.parent_id for n in back} == {n.id: n.parent_id for n in NODES}
    assert next(n for n in back if n.id == "a1").priority == "P0"


def test_dangling_feature_link_resolves_to_none():
    card = KanbanCard(id="c1", title="T", feature_id="deleted")
    assert feature_link(card, NODES) is None
    assert feature_link(KanbanCard(id="c2", title="T", feature_id="a"), NODES).title == "A"


def test_build_project_view_aggregate():
    project = Project(id="p", name="P")
    cards = [
        KanbanCard(id="c1", title="One", lane="review", feature_id="a"),
        KanbanCard(id="c2", title="Two", lane="proposed", feature_id="deleted"),
    ]
    intake = FeatureIntake(questions=[FeatureQuestion(id="q", category="goal", prompt="?", answer="x")])
    view = build_project_view(
        project,
        NODES,
        cards,
        IntakeRecord(),
        feature_intakes={"a": intake},
        activity=[ActivityEntry(id="e", at="2024-01-01T00:00:00.000Z", actor="op", text="hi")],
    )
    assert [c["id"] for c in view.columns["in_progress"]] == ["c1"]
    todo = view.columns["todo"][0]
    assert todo["feature_title"] is None
    assert todo["feature_label"] == NO_FEATURE_LINK
    assert view.stats["features"] == 3
    assert view.stats["features_done"] == 1
    assert view.stats["progress_pct"] == 33
    assert view.stats["dangling_links"] == 1
    assert view.tree[0]["intake"] == "complete"
    assert view.tree[0]["card_count"] == 1
    assert view.intake["questions_total"] == 0
    assert view.activity[0]["text"] == "hi"


def test_card_edit_to_patch_maps_columns():
    card = KanbanCard(id="c1", title="T", lane="proposed")
    patch = card_edit_to_patch(card, {"column": "in_progress", "priority": "p1"})
    assert patch.lane == "development"
    assert patch.priority == "P1"
    assert patch.title is None


def test_card_in_review_stays_put_in_its_bucket():
    card = KanbanCard(id="c1", title="T", lane="review")
    assert card_edit_to_patch(card, {"column": "in_progress"}).lane is None
    assert card_edit_to_patch(card, {"column": "done"}).lane == "done"


def test_node_edit_to_patch():
    patch = node_edit_to_patch("a", {"title": "New", "priority": "p3"})
    assert (patch.id, patch.title, patch.priority, patch.status) == ("a", "New", "P3", None)
