import pytest

from triage_hub.core.errors import AlreadyExistsError, NotFoundError, ValidationFailedError
from triage_hub.core.model import Citation, FeatureIntake, NodeCreate, NodePatch
from triage_hub.core.tree.store import FeatureTreeStore


def _store():
    store = FeatureTreeStore([])
    store.create_node(NodeCreate(title="Root", id="root"))
    store.create_node(NodeCreate(title="Child", id="child", parent_id="root"))
    store.create_node(NodeCreate(title="Grandchild", id="grand", parent_id="child"))
    store.create_node(NodeCreate(title="Other", id="other", depends_on=["grand"]))
    return store


def test_create_applies_defaults():
    store = FeatureTreeStore([])
    n = store.create_node(NodeCreate(title="  Search  "))
    assert n.id.startswith("feat-")
    assert n.title == "Search"
    assert n.status == "draft"
    assert n.priority == "P2"
    assert n.tags == [] and n.acceptance_criteria == [] and n.depends_on == [] and n.sources == []
    assert n.created_at == n.updated_at


def test_create_accepts_status_aliases_and_priority_case():
    n = FeatureTreeStore([]).create_node(NodeCreate(title="X", status="planned", priority="p1"))
    assert n.status == "draft"
    assert n.priority == "P1"


def test_create_errors():
    store = _store()
    with pytest.raises(ValidationFailedError):
        store.create_node(NodeCreate(title="   "))
    with pytest.raises(AlreadyExistsError):
        store.create_node(NodeCreate(title="Dup", id="root"))
    with pytest.raises(NotFoundError):
        store.create_node(NodeCreate(title="Lost", parent_id="nope"))
    with pytest.raises(ValidationFailedError):
        store.create_node(NodeCreate(title="Bad dep", depends_on=["nope"]))
    with pytest.raises(ValidationFailedError):
        store.create_node(NodeCreate(title="Bad src", sources=[Citation(kind="ticket", id="1")]))  # type: ignore[arg-type]


def test_update_is_partial_and_bumps_updated_at():
    store = _store()
    before = store.get_node("child")
    after = store.update_node(NodePatch(id="child", status="in-progress", tags=["ux", "ux"]))
    assert after.status == "in_progress"
    assert after.tags == ["ux"]
    assert after.title == before.title
    assert after.updated_at >= before.updated_at


def test_update_missing_node_is_not_found():
    with pytest.raises(NotFoundError):
        _store().update_node(NodePatch(id="ghost", title="x"))


def test_reparent_into_own_subtree_is_rejected():
    store = _store()
    with pytest.raises(ValidationFailedError) as exc:
        store.update_node(NodePatch(id="root", parent_id="grand"))
    assert exc.value.committed == store.get_node("root")
    assert store.get_node("root").parent_id is None


def test_move_node_to_root_and_back():
    store = _store()
    moved = store.move_node("grand", None)
    assert moved.parent_id is None
    assert [t.node.id for t in store.get_hierarchy()] == ["root", "other", "grand"]
    store.move_node("grand", "other")
    assert store.get_node("grand").parent_id == "other"


def test_reorder_children():
    store = FeatureTreeStore([])
    store.create_node(NodeCreate(title="P", id="p"))
    for cid in ("c1", "c2", "c3"):
        store.create_node(NodeCreate(title=cid, id=cid, parent_id="p"))
    store.reorder_children("p", ["c3", "c1", "c2"])
    assert [c.node.id for c in store.get_hierarchy()[0].children] == ["c3", "c1", "c2"]
    with pytest.raises(ValidationFailedError):
        store.reorder_children("p", ["c1", "c2"])


def test_delete_orphans_children_by_default():
    store = _store()
    removed = store.delete_node("child")
    assert removed == ["child"]
    assert store.get_node("grand").parent_id is None
    assert {n.id for n in store.list_nodes()} == {"root", "grand", "other"}


def test_delete_cascade_removes_subtree_and_detaches_dependencies():
    store = _store()
    store.set_feature_intake("grand", FeatureIntake())
    removed = store.delete_node("root", mode="cascade")
    assert sorted(removed) == ["child", "grand", "root"]
    assert [n.id for n in store.list_nodes()] == ["other"]
    assert store.get_node("other").depends_on == []
    assert "grand" not in store.intakes


def test_delete_unknown_mode_rejected():
    with pytest.raises(ValidationFailedError):
        _store().delete_node("root", mode="tombstone")  # type: ignore[arg-type]
