import json

import pytest

from triage_hub.core.backends.memory import MemoryBackend
from triage_hub.core.errors import AlreadyExistsError, StoreLoadError, ValidationFailedError
from triage_hub.core.intake.wizard import run_intake
from triage_hub.core.model import CardPatch, ProjectCreate


def _project():
    backend = MemoryBackend()
    result = run_intake(
        backend,
        "Trips App",
        "A mobile app with auth and maps for planning family trips",
        answers={"Outcome": "Plan a trip in ten minutes"},
    )
    return backend, result


def test_json_export_has_the_four_sections():
    backend, result = _project()
    data = backend.export_project_json(result.project.id)
    assert set(data) == {"project", "tree", "cards", "intake"}
    assert data["project"]["name"] == "Trips App"
    assert len(data["tree"]) == len(result.tree)
    assert data["intake"]["ideas"][0]["text"].startswith("A mobile app")
    assert all(n["sources"] for n in data["tree"])


def test_markdown_export_is_readable():
    backend, result = _project()
    card = result.cards[0]
    backend.update_card(result.project.id, CardPatch(id=card.id, lane="blocked"))
    md = backend.export_project_markdown(result.project.id)
    assert md.startswith("# Trips App")
    assert "## Feature tree" in md
    assert "**Foundation**" in md
    assert "### Blocked" in md
    assert f"`{card.id}`" in md
    assert "### Questions" in md
    assert "Plan a trip in ten minutes" in md
    assert "### Requirements" in md


def test_markdown_export_of_empty_project():
    backend = MemoryBackend()
    p = backend.create_project(ProjectCreate(name="Empty"))
    md = backend.export_project_markdown(p.id)
    assert "_No features yet._" in md
    assert "## Intake" not in md


def test_json_export_imports_into_a_fresh_backend():
    backend, result = _project()
    pid = result.project.id
    data = json.loads(json.dumps(backend.export_project_json(pid)))

    fresh = MemoryBackend()
    project = fresh.import_project_json(data)
    assert project == backend.get_project(pid)
    assert fresh.get_tree(pid) == backend.get_tree(pid)
    assert fresh.list_cards(pid) == backend.list_cards(pid)
    assert fresh.export_project_json(pid) == data


def test_import_rejects_an_existing_project_id():
    backend, result = _project()
    data = backend.export_project_json(result.project.id)
    with pytest.raises(AlreadyExistsError):
        backend.import_project_json(data)
    assert len(backend.list_projects()) == 1


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"project": {"id": "p", "name": "P"}, "tree": []},
        {"project": {"id": "p", "name": "P"}, "tree": {}, "cards": [], "intake": {}},
        {"project": {"id": "p", "name": "P"}, "tree": [{"title": "no id"}], "cards": [], "intake": {}},
        {"project": "p", "tree": [], "cards": [], "intake": {}},
    ],
)
def test_import_rejects_bad_shapes(payload):
    backend = MemoryBackend()
    with pytest.raises(StoreLoadError) as exc:
        backend.import_project_json(payload)
    assert exc.value.code == "E_INVALID_SHAPE"
    assert backend.list_projects() == []


def test_import_lints_the_tree_before_storing():
    payload = {
        "project": {"id": "p", "name": "P"},
        "tree": [
            {"id": "a", "title": "A", "parent_id": "b"},
            {"id": "b", "title": "B", "parent_id": "a"},
        ],
        "cards": [{"id": "card-1", "title": "Old", "feature_id": "gone"}],
        "intake": {},
    }
    backend = MemoryBackend()
    with pytest.raises(ValidationFailedError) as exc:
        backend.import_project_json(payload)
    assert exc.value.code == "E_IMPORT_LINT"
    assert "L_PARENT_CYCLE" in exc.value.message
    assert backend.list_projects() == []

    payload["tree"] = [{"id": "a", "title": "A"}]
    backend.import_project_json(payload)
    assert backend.list_cards("p")[0].feature_id == "gone"
