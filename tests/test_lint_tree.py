from triage_hub.core.model import FeatureNode, KanbanCard
from triage_hub.core.tree.lint_tree import lint_tree


def _codes(errors):
    return {e.code for e in errors}


def test_clean_tree_has_no_findings():
    nodes = [
        FeatureNode(id="a", title="A"),
        FeatureNode(id="b", title="B", parent_id="a", depends_on=["a"]),
    ]
    assert lint_tree(nodes) == []


def test_reports_structural_problems():
    nodes = [
        FeatureNode(id="a", title="A", parent_id="b"),
        FeatureNode(id="b", title="B", parent_id="a"),
        FeatureNode(id="c", title="C", parent_id="gone", depends_on=["d", "missing"]),
        FeatureNode(id="d", title="D", depends_on=["c"]),
        FeatureNode(id="d", title=" "),
    ]
    codes = _codes(lint_tree(nodes))
    assert {
        "L_PARENT_CYCLE",
        "L_UNRESOLVED_PARENT",
        "L_UNKNOWN_DEPENDENCY",
        "L_DEPENDENCY_CYCLE",
        "L_DUPLICATE_ID",
    } <= codes


def test_dangling_card_link_reported_not_raised():
    nodes = [FeatureNode(id="a", title="A")]
    cards = [KanbanCard(id="card-1", title="T", feature_id="deleted")]
    errors = lint_tree(nodes, cards)
    assert [(e.code, e.entity, e.ref) for e in errors] == [("L_DANGLING_FEATURE_LINK", "card", "card-1")]


def test_findings_are_sorted():
    nodes = [
        FeatureNode(id="z", title="Z", parent_id="nope"),
        FeatureNode(id="a", title="A", parent_id="nope"),
    ]
    assert [e.ref for e in lint_tree(nodes)] == ["a", "z"]
