import json
from pathlib import Path

from typer.testing import CliRunner

from triage_hub.cli import app

runner = CliRunner()

IDEA = "A mobile app with auth and maps for planning trips"


def _hub(store: Path, *args: str):
    return runner.invoke(app, ["--store", str(store), *args])


def _new_project(store: Path) -> dict:
    r = _hub(store, "new", "Trips App", "--idea", IDEA, "--answer", "Outcome=Plan faster", "--format", "json")
    assert r.exit_code == 0, r.stdout + r.stderr
    return json.loads(r.stdout)


def test_classify_json():
    r = runner.invoke(app, ["classify", "building a mobile app with an API and auth", "--format", "json"])
    assert r.exit_code == 0
    payload = json.loads(r.stdout)
    assert payload["tool"] == "hub"
    assert payload["command"] == "classify"
    assert payload["type"] == "software"
    assert {"software", "mobile", "api"} <= set(payload["tags"])


def test_classify_text():
    r = runner.invoke(app, ["classify", "weekly warehouse checklist"])
    assert r.exit_code == 0
    assert r.stdout.startswith("Classified as ops")


def test_unknown_format_is_rejected():
    r = runner.invoke(app, ["classify", "x", "--format", "xml"])
    assert r.exit_code == 2
    assert "E_UNKNOWN_FORMAT" in r.stderr


def test_questions_for_type():
    r = runner.invoke(app, ["questions", "ops"])
    assert r.exit_code == 0
    lines = r.stdout.strip().splitlines()
    assert len(lines) == 10
    assert "[Outcome]" in lines[0]

    r = runner.invoke(app, ["questions", "firmware"])
    assert r.exit_code == 2
    assert "E_UNKNOWN_TYPE" in r.stderr


def test_templates_lists_roots():
    r = runner.invoke(app, ["templates"])
    assert r.exit_code == 0
    assert "- software: Foundation, Backend, App sections" in r.stdout


def test_templates_missing_file():
    r = runner.invoke(app, ["templates", "--template-file", "does-not-exist.yaml"])
    assert r.exit_code == 1
    assert "E_TEMPLATE_FILE_NOT_FOUND" in r.stderr


def test_new_persists_project(tmp_path: Path):
    store = tmp_path / "hub.json"
    payload = _new_project(store)
    assert payload["ok"] is True
    assert payload["degraded"] is False
    assert payload["project"]["id"] == "trips-app"
    assert payload["classification"]["type"] == "software"
    assert payload["question_count"] == 10
    assert len(payload["cards"]) == 3

    r = _hub(store, "list", "--format", "json")
    assert r.exit_code == 0
    assert [p["id"] for p in json.loads(r.stdout)["projects"]] == ["trips-app"]


def test_show_json_aggregate(tmp_path: Path):
    store = tmp_path / "hub.json"
    _new_project(store)
    r = _hub(store, "show", "trips-app", "--format", "json")
    assert r.exit_code == 0, r.stdout + r.stderr
    view = json.loads(r.stdout)
    assert view["intake"]["type"] == "software"
    assert view["intake"]["questions_answered"] == 1
    assert len(view["columns"]["todo"]) == 3
    assert view["stats"]["features"] > 3


def test_show_unknown_project(tmp_path: Path):
    r = _hub(tmp_path / "hub.json", "show", "nope")
    assert r.exit_code == 2
    assert "E_NOT_FOUND" in r.stderr


def test_card_move_records_history(tmp_path: Path):
    store = tmp_path / "hub.json"
    card_id = _new_project(store)["cards"][0]["id"]

    r = _hub(store, "card-move", "trips-app", card_id, "in_progress")
    assert r.exit_code == 0, r.stdout + r.stderr
    assert f"OK: {card_id} in development (1 lane change(s))" in r.stdout

    data = json.loads(_hub(store, "export", "trips-app").stdout)
    card = next(c for c in data["cards"] if c["id"] == card_id)
    assert [(h["from_lane"], h["to_lane"]) for h in card["history"]] == [("proposed", "development")]


def test_card_move_bad_lane(tmp_path: Path):
    store = tmp_path / "hub.json"
    card_id = _new_project(store)["cards"][0]["id"]
    r = _hub(store, "card-move", "trips-app", card_id, "limbo")
    assert r.exit_code == 2
    assert "E_VALIDATION" in r.stderr


def test_node_commands_and_lint(tmp_path: Path):
    store = tmp_path / "hub.json"
    _new_project(store)

    r = _hub(store, "node-add", "trips-app", "Trip sharing", "--id", "sharing", "--parent", "feat-app-sections")
    assert r.exit_code == 0, r.stdout + r.stderr

    r = _hub(store, "node-move", "trips-app", "feat-app-sections", "--parent", "sharing")
    assert r.exit_code == 2
    assert "parent cycle" in r.stderr

    r = _hub(store, "node-delete", "trips-app", "feat-app-sections", "--mode", "cascade")
    assert r.exit_code == 0
    assert "sharing" in r.stdout

    # the triage card for the deleted root now dangles
    r = _hub(store, "lint", "trips-app", "--format", "json")
    assert r.exit_code == 2
    payload = json.loads(r.stdout)
    assert payload["ok"] is False
    assert {e["code"] for e in payload["errors"]} == {"L_DANGLING_FEATURE_LINK"}

    r = _hub(store, "show", "trips-app", "--format", "json")
    assert r.exit_code == 0
    assert json.loads(r.stdout)["stats"]["dangling_links"] == 1


def test_lint_clean_project(tmp_path: Path):
    store = tmp_path / "hub.json"
    _new_project(store)
    r = _hub(store, "lint", "trips-app")
    assert r.exit_code == 0
    assert "OK: lint passed" in r.stdout


def test_answer_and_derive(tmp_path: Path):
    store = tmp_path / "hub.json"
    _new_project(store)
    data = json.loads(_hub(store, "export", "trips-app").stdout)
    scope = next(q for q in data["intake"]["questions"] if q["category"] == "Scope")

    r = _hub(store, "answer", "trips-app", scope["id"], "No hotel booking")
    assert r.exit_code == 0
    r = _hub(store, "derive-requirements", "trips-app")
    assert r.exit_code == 0
    assert "OK: derived 2 requirement(s)" in r.stdout

    r = _hub(store, "answer", "trips-app", "q-missing", "x")
    assert r.exit_code == 2
    assert "E_NOT_FOUND" in r.stderr


def test_feature_intake_command(tmp_path: Path):
    store = tmp_path / "hub.json"
    _new_project(store)
    r = _hub(store, "feature-intake", "trips-app", "feat-backend", "--answer", "q-goal=Store trips", "--format", "json")
    assert r.exit_code == 0, r.stdout + r.stderr
    intake = json.loads(r.stdout)["intake"]
    assert intake["status"] == "in_progress"
    assert any(q["id"] == "q-api" for q in intake["questions"])


def test_activity_add_and_list(tmp_path: Path):
    store = tmp_path / "hub.json"
    _new_project(store)
    r = _hub(store, "activity", "trips-app", "--add", "Reviewed seed tree", "--actor", "sam")
    assert r.exit_code == 0
    r = _hub(store, "activity", "trips-app", "--format", "json")
    entries = json.loads(r.stdout)["activity"]
    assert entries[0]["text"] == "Reviewed seed tree"
    assert entries[0]["actor"] == "sam"


def test_export_markdown_to_file(tmp_path: Path):
    store = tmp_path / "hub.json"
    _new_project(store)
    out = tmp_path / "out" / "trips.md"
    r = _hub(store, "export", "trips-app", "--format", "md", "--out", str(out))
    assert r.exit_code == 0
    assert out.read_text(encoding="utf-8").startswith("# Trips App")


def test_task_board(tmp_path: Path):
    store = tmp_path / "hub.json"
    r = _hub(store, "task-add", "Rotate API keys", "--priority", "p1", "--acceptance", "old keys revoked")
    assert r.exit_code == 0, r.stdout + r.stderr
    task_id = r.stdout.split()[2]

    r = _hub(store, "task-move", task_id, "review", "--note", "needs second pair of eyes")
    assert r.exit_code == 0
    assert "(2 status entries)" in r.stdout

    tasks = json.loads(_hub(store, "tasks", "--format", "json").stdout)["tasks"]
    assert tasks[0]["priority"] == "P1"
    assert [h["note"] for h in tasks[0]["status_history"]] == ["created", "needs second pair of eyes"]


def test_corrupt_store_is_a_load_error(tmp_path: Path):
    store = tmp_path / "hub.json"
    store.write_text("{broken", encoding="utf-8")
    r = _hub(store, "list")
    assert r.exit_code == 1
    assert "E_JSON_PARSE" in r.stderr


def test_memory_backend_flag_does_not_touch_disk(tmp_path: Path):
    store = tmp_path / "hub.json"
    r = runner.invoke(app, ["--backend", "memory", "--store", str(store), "new", "P", "--idea", "ops checklist"])
    assert r.exit_code == 0, r.stdout + r.stderr
    assert not store.exists()


def test_config_file_supplies_templates(tmp_path: Path):
    tpl = tmp_path / "tpl.yaml"
    tpl.write_text("ops:\n  - title: Runbook\n    cites: [SOP]\n", encoding="utf-8")
    cfg = tmp_path / "hub.yaml"
    cfg.write_text(f"backend: memory\ntemplates: {tpl}\n", encoding="utf-8")

    r = runner.invoke(app, ["--config", str(cfg), "templates"])
    assert r.exit_code == 0, r.stdout + r.stderr
    assert "- ops: Runbook" in r.stdout


def test_unknown_backend_flag_is_a_config_error(tmp_path: Path):
    r = runner.invoke(app, ["--backend", "cloud", "--store", str(tmp_path / "hub.json"), "list", "--format", "json"])
    assert r.exit_code == 2
    assert "E_CONFIG_INVALID" in r.stderr
    assert "choose one of: memory, file" in r.stderr


def test_export_then_import_into_another_store(tmp_path: Path):
    store = tmp_path / "hub.json"
    _new_project(store)
    out = tmp_path / "trips.json"
    assert _hub(store, "export", "trips-app", "--out", str(out)).exit_code == 0

    other = tmp_path / "other.json"
    r = _hub(other, "import", str(out), "--format", "json")
    assert r.exit_code == 0, r.stdout + r.stderr
    assert json.loads(r.stdout)["project"]["id"] == "trips-app"
    shown = json.loads(_hub(other, "show", "trips-app", "--format", "json").stdout)
    assert shown["project"]["name"] == "Trips App"

    r = _hub(other, "import", str(out))
    assert r.exit_code == 2
    assert "E_ALREADY_EXISTS" in r.stderr


def test_tree_renders_nested_features(tmp_path: Path):
    store = tmp_path / "hub.json"
    _new_project(store)
    r = _hub(store, "tree", "trips-app")
    assert r.exit_code == 0, r.stdout + r.stderr
    lines = r.stdout.splitlines()
    assert lines[0] == "Trips App [trips-app]"
    foundation = next(i for i, line in enumerate(lines) if "Foundation" in line)
    assert "Success metrics" in lines[foundation + 1]
