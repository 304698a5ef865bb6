from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from triage_hub.core.backends.base import BACKEND_KINDS, Backend
from triage_hub.core.backends.factory import open_backend
from triage_hub.core.config import ConfigError, HubConfig, load_config
from triage_hub.core.errors import (
    BackendUnavailableError,
    HubError,
    StoreLoadError,
    ValidationFailedError,
)
from triage_hub.core.intake.classify import classify_idea, summarize_classification
from triage_hub.core.intake.questions import generate_questions
from triage_hub.core.intake.wizard import run_intake
from triage_hub.core.io.codec import to_dict
from triage_hub.core.model import PROJECT_TYPES, CardCreate, CardPatch, NodeCreate, TaskCreate, TaskPatch
from triage_hub.core.synth.template_config import TemplateConfigError, seed_templates
from triage_hub.core.tree.hierarchy import TreeNode
from triage_hub.core.tree.lint_tree import lint_tree
from triage_hub.core.view.adapter import COLUMN_LABELS, COLUMNS, build_project_view

app = typer.Typer(add_completion=False, no_args_is_help=True)
console = Console()

TOOL = "hub"


@dataclass
class _State:
    config_file: str | None = None
    store: str | None = None
    backend: str | None = None
    config: HubConfig | None = None


@app.callback()
def _callback(
    ctx: typer.Context,
    config_file: str | None = typer.Option(None, "--config", help="YAML config file"),
    store: str | None = typer.Option(None, "--store", help="Workspace JSON file (file backend)"),
    backend: str | None = typer.Option(None, "--backend", help="Backend: file|memory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr"),
) -> None:
    """Operator triage hub: idea intake, feature trees and lane boards."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s", force=True)
    ctx.obj = _State(config_file=config_file, store=store, backend=backend)


# ---- stateless commands ----


@app.command("classify")
def classify(
    text: str = typer.Argument(..., help="Free-text idea"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Classify an idea into software, ops or hybrid."""
    _check_format(format, ("text", "json"))
    c = classify_idea(text)
    if format == "json":
        _emit_json("classify", {"type": c.type, "tags": sorted(c.tags), "risks": sorted(c.risks)})
    summary, key_points = summarize_classification(c)
    typer.echo(summary)
    for p in key_points:
        typer.echo(f"- {p}")


@app.command("questions")
def questions(
    ptype: str = typer.Argument(..., help="Project type: software|ops|hybrid"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """List the clarifying questions asked for a project type."""
    _check_format(format, ("text", "json"))
    if ptype not in PROJECT_TYPES:
        _fail(
            [
                ValidationFailedError(
                    code="E_UNKNOWN_TYPE",
                    message=f"unknown project type: {ptype} (choose one of: {', '.join(PROJECT_TYPES)})",
                    entity="type",
                )
            ],
            2,
        )
    qs = generate_questions(ptype)
    if format == "json":
        _emit_json("questions", {"type": ptype, "questions": to_dict(qs)})
    for q in qs:
        marker = "*" if q.required else " "
        typer.echo(f"{q.id} {marker} [{q.category}] {q.prompt}")


@app.command("templates")
def templates(
    ctx: typer.Context,
    template_file: str | None = typer.Option(
        None,
        "--template-file",
        help="Optional YAML file to add/override seed templates",
    ),
) -> None:
    """List the seed-tree templates per project type."""
    templates_map = _load_templates(template_file or _config(ctx).templates)
    typer.echo("Templates:")
    for name in sorted(templates_map.keys()):
        typer.echo(f"- {name}: {', '.join(t['title'] for t in templates_map[name])}")


# ---- projects ----


@app.command("new")
def new(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Project name"),
    idea: str = typer.Option(..., "--idea", help="Idea text"),
    answer: list[str] | None = typer.Option(
        None, "--answer", help="Answer by category, repeatable: --answer 'Outcome=Ship v1'"
    ),
    owner: str | None = typer.Option(None, "--owner"),
    cards: bool = typer.Option(True, "--cards/--no-cards", help="Seed one triage card per root feature"),
    template_file: str | None = typer.Option(None, "--template-file"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Create a project from an idea: classify, ask, seed tree and cards."""
    _check_format(format, ("text", "json"))
    answers = _parse_pairs(answer or [], "answer")
    cfg = _config(ctx)
    template_file = template_file or cfg.templates
    templates_map = _load_templates(template_file) if template_file else None
    backend = _backend(ctx)

    try:
        result = run_intake(
            backend,
            name,
            idea,
            answers=answers,
            owner=owner or cfg.owner,
            templates=templates_map,
            seed_cards=cards,
        )
    except HubError as e:
        _fail([e], _exit_code(e))

    for w in result.warnings:
        typer.echo(f"WARN: {w}", err=True)

    if format == "json":
        _emit_json(
            "new",
            {
                "degraded": result.degraded,
                "project": to_dict(result.project),
                "classification": to_dict(result.classification),
                "question_count": len(result.questions),
                "tree": to_dict(result.tree),
                "cards": to_dict(result.cards),
            },
        )
    typer.echo(f"OK: created {result.project.id} ({result.classification.type})")
    typer.echo(f"questions: {len(result.questions)}  features: {len(result.tree)}  cards: {len(result.cards)}")
    if result.degraded:
        typer.echo("NOTE: project exists only in this session (local fallback)")


@app.command("list")
def list_projects(
    ctx: typer.Context,
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """List projects, most recently updated first."""
    _check_format(format, ("text", "json"))
    projects = _backend(ctx).list_projects()
    if format == "json":
        _emit_json("list", {"projects": to_dict(projects)})
    if not projects:
        typer.echo("No projects.")
        return
    table = Table(title="Projects")
    table.add_column("Id", no_wrap=True)
    table.add_column("Name")
    table.add_column("Status")
    table.add_column("Updated", no_wrap=True)
    for p in projects:
        table.add_row(p.id, p.name, p.status, p.updated_at)
    console.print(table)


@app.command("show")
def show(
    ctx: typer.Context,
    project_id: str = typer.Argument(...),
    activity: int = typer.Option(5, "--activity", help="Number of activity entries to include"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Show the project aggregate: intake summary, board and progress."""
    _check_format(format, ("text", "json"))
    backend = _backend(ctx)
    try:
        view = build_project_view(
            backend.get_project(project_id),
            backend.get_tree(project_id),
            backend.list_cards(project_id),
            backend.get_intake(project_id),
            feature_intakes={
                n.id: fi
                for n in backend.get_tree(project_id)
                if (fi := backend.get_feature_intake(project_id, n.id)) is not None
            },
            activity=backend.list_activity(project_id, activity),
            review_bucket=_config(ctx).review_bucket,
        )
    except HubError as e:
        _fail([e], _exit_code(e))

    if format == "json":
        _emit_json("show", to_dict(view))

    p, intake, stats = view.project, view.intake, view.stats
    typer.echo(f"{p['name']} [{p['id']}] · {p['status']} · owner {p['owner']}")
    if intake["type"]:
        typer.echo(f"type: {intake['type']}  tags: {', '.join(intake['tags']) or '-'}  risks: {', '.join(intake['risks']) or '-'}")
    typer.echo(
        f"questions: {intake['questions_answered']}/{intake['questions_total']} answered"
        f"  requirements: {intake['requirements']}"
    )
    typer.echo(f"features: {stats['features_done']}/{stats['features']} done ({stats['progress_pct']}%)")

    table = Table(title="Board")
    for col in COLUMNS:
        table.add_column(f"{COLUMN_LABELS[col]} ({stats['cards_by_column'][col]})")
    depth = max((len(view.columns[c]) for c in COLUMNS), default=0)
    for i in range(depth):
        row = []
        for col in COLUMNS:
            cards_in = view.columns[col]
            row.append(f"{cards_in[i]['title']} ({cards_in[i]['priority']})" if i < len(cards_in) else "")
        table.add_row(*row)
    console.print(table)

    for a in view.activity:
        typer.echo(f"{a['at']} {a['actor']}: {a['text']}")


@app.command("tree")
def tree(
    ctx: typer.Context,
    project_id: str = typer.Argument(...),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Render the feature tree."""
    _check_format(format, ("text", "json"))
    backend = _backend(ctx)
    try:
        project = backend.get_project(project_id)
        forest = backend.get_hierarchy(project_id)
    except HubError as e:
        _fail([e], _exit_code(e))

    if format == "json":
        _emit_json("tree", {"project": project.id, "tree": to_dict(forest)})

    root = Tree(escape(f"{project.name} [{project.id}]"))
    stack: list[tuple[TreeNode, Tree]] = [(t, root) for t in reversed(forest)]
    while stack:
        t, branch = stack.pop()
        n = t.node
        sub = branch.add(escape(f"{n.title} `{n.id}` · {n.status} · {n.priority}"))
        stack.extend((c, sub) for c in reversed(t.children))
    console.print(root)


@app.command("lint")
def lint(
    ctx: typer.Context,
    project_id: str = typer.Argument(...),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Check tree integrity: cycles, unresolved parents, dangling links."""
    _check_format(format, ("text", "json"))
    backend = _backend(ctx)
    try:
        errors: list[HubError] = list(lint_tree(backend.get_tree(project_id), backend.list_cards(project_id)))
    except HubError as e:
        _fail([e], _exit_code(e))

    if format == "json":
        payload = {
            "tool": TOOL,
            "command": "lint",
            "ok": not errors,
            "error_count": len(errors),
            "errors": [_to_item(e) for e in errors],
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        raise typer.Exit(code=2 if errors else 0)

    if errors:
        _print_errors(errors)
        raise typer.Exit(code=2)
    typer.echo("OK: lint passed")


# ---- intake ----


@app.command("answer")
def answer(
    ctx: typer.Context,
    project_id: str = typer.Argument(...),
    question_id: str = typer.Argument(...),
    text: str = typer.Argument(..., help="Answer text; empty clears the answer"),
) -> None:
    """Answer one clarifying question."""
    backend = _backend(ctx)
    try:
        q = backend.answer_question(project_id, question_id, text)
    except HubError as e:
        _fail([e], _exit_code(e))
    typer.echo(f"OK: {q.id} {'answered' if q.answer else 'cleared'}")


@app.command("derive-requirements")
def derive_requirements(
    ctx: typer.Context,
    project_id: str = typer.Argument(...),
) -> None:
    """Rebuild goal/constraint/non-goal requirements from answered questions."""
    backend = _backend(ctx)
    try:
        reqs = backend.derive_requirements(project_id)
    except HubError as e:
        _fail([e], _exit_code(e))
    typer.echo(f"OK: derived {len(reqs)} requirement(s)")
    for r in reqs:
        typer.echo(f"- {r.kind}: {r.text}")


@app.command("feature-intake")
def feature_intake(
    ctx: typer.Context,
    project_id: str = typer.Argument(...),
    node_id: str = typer.Argument(...),
    answer: list[str] | None = typer.Option(
        None, "--answer", help="Answer by question id, repeatable: --answer 'q-goal=...'"
    ),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Start or continue the clarifying interview for one feature."""
    _check_format(format, ("text", "json"))
    backend = _backend(ctx)
    pairs = _parse_pairs(answer or [], "answer")
    try:
        intake = backend.start_feature_intake(project_id, node_id)
        for qid, text in pairs.items():
            intake = backend.answer_feature_question(project_id, node_id, qid, text)
    except HubError as e:
        _fail([e], _exit_code(e))

    if format == "json":
        _emit_json("feature-intake", {"node": node_id, "intake": to_dict(intake)})
    answered = sum(1 for q in intake.questions if q.answer)
    typer.echo(f"{node_id}: {intake.status} ({answered}/{len(intake.questions)} answered)")
    for q in intake.questions:
        typer.echo(f"{'x' if q.answer else ' '} {q.id} [{q.category}] {q.prompt}")


# ---- tree edits ----


@app.command("node-add")
def node_add(
    ctx: typer.Context,
    project_id: str = typer.Argument(...),
    title: str = typer.Argument(...),
    parent: str | None = typer.Option(None, "--parent"),
    node_id: str | None = typer.Option(None, "--id"),
    priority: str | None = typer.Option(None, "--priority"),
    status: str | None = typer.Option(None, "--status"),
    description: str | None = typer.Option(None, "--description"),
    depends_on: list[str] | None = typer.Option(None, "--depends-on"),
) -> None:
    """Add a feature node."""
    backend = _backend(ctx)
    try:
        node = backend.create_tree_node(
            project_id,
            NodeCreate(
                title=title,
                id=node_id,
                parent_id=parent,
                priority=priority,
                status=status,
                description=description,
                depends_on=depends_on,
            ),
        )
    except HubError as e:
        _fail([e], _exit_code(e))
    typer.echo(f"OK: added {node.id}")


@app.command("node-move")
def node_move(
    ctx: typer.Context,
    project_id: str = typer.Argument(...),
    node_id: str = typer.Argument(...),
    parent: str | None = typer.Option(None, "--parent", help="New parent id; omit to make it a root"),
) -> None:
    """Reparent a feature node."""
    backend = _backend(ctx)
    try:
        node = backend.move_tree_node(project_id, node_id, parent)
    except HubError as e:
        _fail([e], _exit_code(e))
    typer.echo(f"OK: moved {node.id} under {node.parent_id or '<root>'}")


@app.command("node-delete")
def node_delete(
    ctx: typer.Context,
    project_id: str = typer.Argument(...),
    node_id: str = typer.Argument(...),
    mode: str = typer.Option("orphan", "--mode", help="orphan (children become roots) or cascade"),
) -> None:
    """Delete a feature node."""
    backend = _backend(ctx)
    try:
        removed = backend.delete_tree_node(project_id, node_id, mode)
    except HubError as e:
        _fail([e], _exit_code(e))
    typer.echo(f"OK: deleted {len(removed)} node(s): {', '.join(removed)}")


# ---- cards ----


@app.command("card-add")
def card_add(
    ctx: typer.Context,
    project_id: str = typer.Argument(...),
    title: str = typer.Argument(...),
    feature: str | None = typer.Option(None, "--feature", help="Linked feature node id"),
    lane: str | None = typer.Option(None, "--lane"),
    priority: str | None = typer.Option(None, "--priority"),
    owner: str | None = typer.Option(None, "--owner"),
) -> None:
    """Add a Kanban card."""
    backend = _backend(ctx)
    try:
        if feature:
            # soft link, but reject typos at creation time
            if feature not in {n.id for n in backend.get_tree(project_id)}:
                raise ValidationFailedError(
                    code="E_UNKNOWN_FEATURE",
                    message=f"--feature references unknown id: {feature}",
                    entity="card",
                )
        card = backend.create_card(
            project_id, CardCreate(title=title, feature_id=feature, lane=lane, priority=priority, owner=owner)
        )
    except HubError as e:
        _fail([e], _exit_code(e))
    typer.echo(f"OK: added {card.id} ({card.lane})")


@app.command("card-move")
def card_move(
    ctx: typer.Context,
    project_id: str = typer.Argument(...),
    card_id: str = typer.Argument(...),
    lane: str = typer.Argument(..., help="proposed|queued|development|review|blocked|done"),
    note: str | None = typer.Option(None, "--note"),
) -> None:
    """Move a card to another lane."""
    backend = _backend(ctx)
    try:
        card = backend.update_card(project_id, CardPatch(id=card_id, lane=lane, note=note))
    except HubError as e:
        _fail([e], _exit_code(e))
    typer.echo(f"OK: {card.id} in {card.lane} ({len(card.history)} lane change(s))")


# ---- activity / export ----


@app.command("activity")
def activity(
    ctx: typer.Context,
    project_id: str = typer.Argument(...),
    limit: int = typer.Option(20, "--limit"),
    add: str | None = typer.Option(None, "--add", help="Append an entry instead of listing"),
    actor: str = typer.Option("operator", "--actor"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """List (newest first) or append project activity."""
    _check_format(format, ("text", "json"))
    backend = _backend(ctx)
    try:
        if add is not None:
            entry = backend.add_activity(project_id, actor, add)
            typer.echo(f"OK: logged {entry.id}")
            return
        entries = backend.list_activity(project_id, limit)
    except HubError as e:
        _fail([e], _exit_code(e))

    if format == "json":
        _emit_json("activity", {"project": project_id, "activity": to_dict(entries)})
    for a in entries:
        typer.echo(f"{a.at} {a.actor}: {a.text}")


@app.command("export")
def export(
    ctx: typer.Context,
    project_id: str = typer.Argument(...),
    format: str = typer.Option("json", "--format", help="Export format: json|md"),
    out: str | None = typer.Option(None, "--out", help="Write to this file instead of stdout"),
) -> None:
    """Export a project as JSON or Markdown."""
    _check_format(format, ("json", "md"))
    backend = _backend(ctx)
    try:
        if format == "json":
            body = json.dumps(backend.export_project_json(project_id), indent=2, sort_keys=True)
        else:
            body = backend.export_project_markdown(project_id)
    except HubError as e:
        _fail([e], _exit_code(e))

    if out is None:
        typer.echo(body)
        return
    p = Path(out)
    if str(p.parent) not in (".", ""):
        p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(body + "\n", encoding="utf-8")
    typer.echo(f"OK: wrote {out}")


@app.command("import")
def import_project(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="JSON file written by `hub export --format json`"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Import a project from an exported JSON file."""
    _check_format(format, ("text", "json"))
    p = Path(path)
    try:
        payload = json.loads(p.read_text(encoding="utf-8"))
    except OSError as e:
        _fail([StoreLoadError(code="E_FILE_READ", message=str(e), entity="import", ref=str(p))], 1)
    except json.JSONDecodeError as e:
        _fail([StoreLoadError(code="E_JSON_PARSE", message=str(e), entity="import", ref=str(p))], 1)

    backend = _backend(ctx)
    try:
        project = backend.import_project_json(payload)
    except HubError as e:
        _fail([e], _exit_code(e))

    if format == "json":
        _emit_json("import", {"project": to_dict(project)})
    typer.echo(f"OK: imported {project.id} ({len(backend.get_tree(project.id))} features)")


# ---- operator task board ----


@app.command("task-add")
def task_add(
    ctx: typer.Context,
    title: str = typer.Argument(...),
    lane: str | None = typer.Option(None, "--lane"),
    priority: str | None = typer.Option(None, "--priority"),
    owner: str | None = typer.Option(None, "--owner"),
    problem: str | None = typer.Option(None, "--problem"),
    scope: str | None = typer.Option(None, "--scope"),
    acceptance: list[str] | None = typer.Option(None, "--acceptance"),
) -> None:
    """Add a task to the operator board."""
    backend = _backend(ctx)
    try:
        task = backend.create_task(
            TaskCreate(
                title=title,
                lane=lane,
                priority=priority,
                owner=owner,
                problem=problem,
                scope=scope,
                acceptance_criteria=acceptance,
            )
        )
    except HubError as e:
        _fail([e], _exit_code(e))
    typer.echo(f"OK: added {task.id} ({task.lane})")


@app.command("task-move")
def task_move(
    ctx: typer.Context,
    task_id: str = typer.Argument(...),
    lane: str = typer.Argument(...),
    note: str | None = typer.Option(None, "--note"),
) -> None:
    """Move an operator task to another lane."""
    backend = _backend(ctx)
    try:
        task = backend.update_task(TaskPatch(id=task_id, lane=lane, note=note))
    except HubError as e:
        _fail([e], _exit_code(e))
    typer.echo(f"OK: {task.id} in {task.lane} ({len(task.status_history)} status entries)")


@app.command("tasks")
def tasks(
    ctx: typer.Context,
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Show the operator board."""
    _check_format(format, ("text", "json"))
    items = _backend(ctx).list_tasks()
    if format == "json":
        _emit_json("tasks", {"tasks": to_dict(items)})
    if not items:
        typer.echo("No tasks.")
        return
    table = Table(title="Operator board")
    table.add_column("Id", no_wrap=True)
    table.add_column("Title")
    table.add_column("Lane")
    table.add_column("Priority")
    table.add_column("Owner")
    for t in items:
        table.add_row(t.id, t.title, t.lane, t.priority, t.owner or "-")
    console.print(table)


# ---- helpers ----


def _config(ctx: typer.Context) -> HubConfig:
    state: _State = ctx.obj or _State()
    if state.config is None:
        try:
            cfg = load_config(state.config_file)
        except ConfigError as e:
            _fail([ValidationFailedError(code="E_CONFIG_INVALID", message=str(e), entity="config")], 2)
        overrides: dict[str, Any] = {}
        if state.store:
            overrides["store"] = state.store
        if state.backend:
            if state.backend not in BACKEND_KINDS:
                _fail(
                    [
                        ValidationFailedError(
                            code="E_CONFIG_INVALID",
                            message=f"unknown backend: {state.backend} (choose one of: {', '.join(BACKEND_KINDS)})",
                            entity="config",
                        )
                    ],
                    2,
                )
            overrides["backend"] = state.backend
        state.config = cfg.model_copy(update=overrides)
        ctx.obj = state
    return state.config


def _backend(ctx: typer.Context) -> Backend:
    cfg = _config(ctx)
    try:
        return open_backend(cfg)
    except StoreLoadError as e:
        _fail([e], 1)
    except ConfigError as e:
        _fail([ValidationFailedError(code="E_CONFIG_INVALID", message=str(e), entity="config")], 2)


def _load_templates(template_file: str | None) -> dict[str, Any]:
    try:
        return seed_templates(template_file)
    except FileNotFoundError:
        _fail(
            [
                StoreLoadError(
                    code="E_TEMPLATE_FILE_NOT_FOUND",
                    message=f"template file not found: {template_file}",
                    entity="template_file",
                )
            ],
            1,
        )
    except TemplateConfigError as e:
        _fail(
            [ValidationFailedError(code="E_TEMPLATE_FILE_INVALID", message=str(e), entity="template_file")],
            2,
        )


def _parse_pairs(values: list[str], option: str) -> dict[str, str]:
    out: dict[str, str] = {}
    for v in values:
        key, sep, text = v.partition("=")
        if not sep or not key.strip():
            _fail(
                [
                    ValidationFailedError(
                        code="E_BAD_OPTION",
                        message=f"--{option} expects KEY=TEXT, got {v!r}",
                        entity=option,
                    )
                ],
                2,
            )
        out[key.strip()] = text.strip()
    return out


def _check_format(format: str, allowed: tuple[str, ...]) -> None:
    if format not in allowed:
        _fail(
            [
                ValidationFailedError(
                    code="E_UNKNOWN_FORMAT",
                    message=f"unknown format: {format} (choose one of: {', '.join(allowed)})",
                    entity="format",
                )
            ],
            2,
        )


def _exit_code(e: HubError) -> int:
    return 1 if isinstance(e, (StoreLoadError, BackendUnavailableError)) else 2


def _to_item(e: HubError) -> dict:
    return {
        "code": e.code,
        "message": e.message,
        "entity": e.entity,
        "ref": e.ref,
        "severity": "error",
        "source": "lint" if e.code.startswith("L_") else "hub",
    }


def _emit_json(command: str, body: dict[str, Any]) -> NoReturn:
    payload = {"tool": TOOL, "command": command, "ok": True, "error_count": 0, "errors": [], **body}
    typer.echo(json.dumps(payload, indent=2, sort_keys=True))
    raise typer.Exit(code=0)


def _fail(errors: list[HubError], code: int) -> NoReturn:
    _print_errors(errors)
    raise typer.Exit(code=code)


def _print_errors(errors: list[HubError]) -> None:
    errors_sorted = sorted(errors, key=lambda e: (e.entity or "", e.ref or "", e.code))
    for e in errors_sorted:
        typer.echo(str(e), err=True)


def main() -> None:
    app(prog_name=TOOL)


cli = typer.main.get_command(app)

if __name__ == "__main__":
    main()
