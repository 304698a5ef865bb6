from __future__ import annotations

import dataclasses
import logging
from typing import Any, Callable, Optional, TypeVar

from triage_hub.core.activity import DEFAULT_ACTIVITY_LIMIT, ActivityLedger
from triage_hub.core.backends.base import BackendKind, HubArena, ProjectArena
from triage_hub.core.board.cards import CardBoard
from triage_hub.core.board.tasks import TaskBoard
from triage_hub.core.errors import (
    BackendUnavailableError,
    HubError,
    StoreLoadError,
    ValidationFailedError,
    already_exists,
    not_found,
    validation_failed,
)
from triage_hub.core.ids import make_id, now_iso, unique_slug
from triage_hub.core.intake.classify import classify_idea, summarize_classification
from triage_hub.core.intake.ledger import IntakeLedger
from triage_hub.core.intake.questions import generate_questions
from triage_hub.core.io.codec import card_from_dict, intake_from_dict, node_from_dict, project_from_dict, to_dict
from triage_hub.core.model import (
    ActivityEntry,
    Analysis,
    CardCreate,
    CardPatch,
    Citation,
    Classification,
    FeatureIntake,
    FeatureNode,
    IdeaVersion,
    IntakeRecord,
    KanbanCard,
    NodeCreate,
    NodePatch,
    Project,
    ProjectCreate,
    ProjectPatch,
    Question,
    Requirement,
    Task,
    TaskCreate,
    TaskPatch,
    clean_list,
    parse_project_status,
    require_title,
)
from triage_hub.core.tree.feature_intake import (
    answer_feature_question,
    normalize_feature_intake,
    start_feature_intake,
)
from triage_hub.core.tree.hierarchy import TreeNode, build_hierarchy
from triage_hub.core.tree.lint_tree import lint_tree
from triage_hub.core.tree.store import FeatureTreeStore
from triage_hub.core.view.markdown import project_to_markdown

logger = logging.getLogger(__name__)

R = TypeVar("R")
Committed = Callable[[HubArena], Any]


def _in_project(project_id: str, collection: str, ref: str) -> Committed:
    def lookup(arena: HubArena) -> Any:
        pa = arena.projects.get(project_id)
        if pa is None:
            return None
        return next((x for x in getattr(pa, collection) if x.id == ref), None)

    return lookup


class MemoryBackend:
    """Backend holding the whole hub arena in this instance.

    Every mutation runs against a snapshot: on any failure the arena is put back and
    the error carries the last committed entity where one exists.
    """

    kind: BackendKind = "memory"

    def __init__(
        self,
        arena: Optional[HubArena] = None,
        *,
        activity_limit: int = DEFAULT_ACTIVITY_LIMIT,
        owner: str = "unknown",
    ) -> None:
        self.arena = arena or HubArena()
        self.activity_limit = activity_limit
        self.owner = owner

    # ---- plumbing ----

    def _persist(self) -> None:
        """Hook for durable variants; called after each successful mutation."""

    def _project(self, project_id: str) -> ProjectArena:
        pa = self.arena.projects.get(project_id)
        if pa is None:
            raise not_found("project", project_id)
        return pa

    def _apply(
        self,
        fn: Callable[[], R],
        *,
        project_id: Optional[str] = None,
        committed: Optional[Committed] = None,
    ) -> R:
        snapshot = self.arena.copy()
        try:
            result = fn()
            if project_id is not None and project_id in self.arena.projects:
                pa = self.arena.projects[project_id]
                pa.project = dataclasses.replace(pa.project, updated_at=now_iso())
            self._persist()
        except HubError as e:
            self.arena = snapshot
            if e.committed is None and committed is not None:
                raise dataclasses.replace(e, committed=committed(snapshot)) from e
            raise
        except OSError as e:
            self.arena = snapshot
            logger.warning("%s backend could not persist: %s", self.kind, e)
            raise BackendUnavailableError(
                code="E_BACKEND_UNAVAILABLE",
                message=str(e),
                entity="backend",
                ref=self.kind,
                committed=committed(snapshot) if committed is not None else None,
            ) from e
        return result

    def _tree(self, project_id: str) -> FeatureTreeStore:
        pa = self._project(project_id)
        return FeatureTreeStore(pa.tree, pa.feature_intakes)

    def _ledger_op(self, project_id: str, op: Callable[[IntakeLedger], R]) -> R:
        def run() -> R:
            pa = self._project(project_id)
            ledger = IntakeLedger(pa.intake)
            out = op(ledger)
            pa.intake = ledger.snapshot()
            return out

        return self._apply(run, project_id=project_id)

    # ---- projects ----

    def list_projects(self) -> list[Project]:
        return sorted(
            (pa.project for pa in self.arena.projects.values()),
            key=lambda p: p.updated_at,
            reverse=True,
        )

    def get_project(self, project_id: str) -> Project:
        return self._project(project_id).project

    def create_project(self, create: ProjectCreate) -> Project:
        def run() -> Project:
            name = require_title(create.name, entity="project")
            existing = self.arena.projects.keys()
            if create.id is not None:
                pid = create.id.strip()
                if not pid:
                    raise validation_failed("project", "explicit id must be non-empty")
                if pid in existing:
                    raise already_exists("project", pid)
            else:
                pid = unique_slug(name, existing, fallback_prefix="proj")
            at = now_iso()
            project = Project(
                id=pid,
                name=name,
                summary=(create.summary or "").strip(),
                status=parse_project_status(create.status) if create.status else "active",
                tags=clean_list(create.tags),
                owner=(create.owner or "").strip() or self.owner,
                links=list(create.links or []),
                created_at=at,
                updated_at=at,
            )
            self.arena.projects[pid] = ProjectArena(project=project)
            logger.info("created project %s", pid)
            return project

        return self._apply(run)

    def update_project(self, patch: ProjectPatch) -> Project:
        def run() -> Project:
            pa = self._project(patch.id)
            changes: dict = {}
            if patch.name is not None:
                changes["name"] = require_title(patch.name, entity="project")
            if patch.summary is not None:
                changes["summary"] = patch.summary.strip()
            if patch.status is not None:
                changes["status"] = parse_project_status(patch.status)
            if patch.tags is not None:
                changes["tags"] = clean_list(patch.tags)
            if patch.owner is not None:
                changes["owner"] = patch.owner.strip() or pa.project.owner
            if patch.links is not None:
                changes["links"] = list(patch.links)
            pa.project = dataclasses.replace(pa.project, **changes)
            return pa.project

        def committed(arena: HubArena) -> Optional[Project]:
            pa = arena.projects.get(patch.id)
            return pa.project if pa else None

        self._apply(run, project_id=patch.id, committed=committed)
        return self.get_project(patch.id)

    def delete_project(self, project_id: str) -> None:
        def run() -> None:
            self._project(project_id)
            pa = self.arena.projects.pop(project_id)
            logger.info(
                "deleted project %s (%d nodes, %d cards, %d activity entries)",
                project_id,
                len(pa.tree),
                len(pa.cards),
                len(pa.activity),
            )

        self._apply(run)

    # ---- feature tree ----

    def get_tree(self, project_id: str) -> list[FeatureNode]:
        return list(self._project(project_id).tree)

    def get_hierarchy(self, project_id: str) -> list[TreeNode]:
        return build_hierarchy(self._project(project_id).tree)

    def create_tree_node(self, project_id: str, create: NodeCreate) -> FeatureNode:
        return self._apply(lambda: self._tree(project_id).create_node(create), project_id=project_id)

    def insert_tree_nodes(self, project_id: str, nodes: list[FeatureNode]) -> list[FeatureNode]:
        return self._apply(lambda: self._tree(project_id).insert_nodes(nodes), project_id=project_id)

    def update_tree_node(self, project_id: str, patch: NodePatch) -> FeatureNode:
        return self._apply(
            lambda: self._tree(project_id).update_node(patch),
            project_id=project_id,
            committed=_in_project(project_id, "tree", patch.id),
        )

    def delete_tree_node(self, project_id: str, node_id: str, mode: str = "orphan") -> list[str]:
        return self._apply(
            lambda: self._tree(project_id).delete_node(node_id, mode),  # type: ignore[arg-type]
            project_id=project_id,
        )

    def move_tree_node(self, project_id: str, node_id: str, new_parent_id: Optional[str]) -> FeatureNode:
        return self._apply(
            lambda: self._tree(project_id).move_node(node_id, new_parent_id),
            project_id=project_id,
            committed=_in_project(project_id, "tree", node_id),
        )

    def reorder_tree_children(
        self, project_id: str, parent_id: Optional[str], ordered_ids: list[str]
    ) -> list[FeatureNode]:
        return self._apply(
            lambda: self._tree(project_id).reorder_children(parent_id, ordered_ids),
            project_id=project_id,
        )

    # ---- feature intake ----

    def get_feature_intake(self, project_id: str, node_id: str) -> Optional[FeatureIntake]:
        return self._tree(project_id).get_feature_intake(node_id)

    def start_feature_intake(self, project_id: str, node_id: str) -> FeatureIntake:
        """Return the node's interview, generating its questions on first use."""

        def run() -> FeatureIntake:
            store = self._tree(project_id)
            existing = store.get_feature_intake(node_id)
            if existing is not None:
                return existing
            return store.set_feature_intake(node_id, start_feature_intake(store.get_node(node_id)))

        return self._apply(run, project_id=project_id)

    def set_feature_intake(self, project_id: str, node_id: str, intake: FeatureIntake) -> FeatureIntake:
        return self._apply(
            lambda: self._tree(project_id).set_feature_intake(node_id, normalize_feature_intake(intake)),
            project_id=project_id,
        )

    def answer_feature_question(
        self, project_id: str, node_id: str, question_id: str, answer: str
    ) -> FeatureIntake:
        def run() -> FeatureIntake:
            store = self._tree(project_id)
            current = store.get_feature_intake(node_id)
            if current is None:
                current = start_feature_intake(store.get_node(node_id))
            return store.set_feature_intake(node_id, answer_feature_question(current, question_id, answer))

        def committed(arena: HubArena) -> Optional[FeatureIntake]:
            pa = arena.projects.get(project_id)
            return pa.feature_intakes.get(node_id) if pa else None

        return self._apply(run, project_id=project_id, committed=committed)

    # ---- cards ----

    def list_cards(self, project_id: str) -> list[KanbanCard]:
        return CardBoard(self._project(project_id).cards).list_cards()

    def create_card(self, project_id: str, create: CardCreate) -> KanbanCard:
        return self._apply(
            lambda: CardBoard(self._project(project_id).cards).create_card(create),
            project_id=project_id,
        )

    def update_card(self, project_id: str, patch: CardPatch) -> KanbanCard:
        return self._apply(
            lambda: CardBoard(self._project(project_id).cards).update_card(patch),
            project_id=project_id,
            committed=_in_project(project_id, "cards", patch.id),
        )

    def delete_card(self, project_id: str, card_id: str) -> None:
        self._apply(
            lambda: CardBoard(self._project(project_id).cards).delete_card(card_id),
            project_id=project_id,
        )

    # ---- intake ----

    def get_intake(self, project_id: str) -> IntakeRecord:
        return self._project(project_id).intake

    def set_intake(self, project_id: str, record: IntakeRecord) -> IntakeRecord:
        def run() -> IntakeRecord:
            pa = self._project(project_id)
            ledger = IntakeLedger(record)
            ledger.set_questions(record.questions)
            pa.intake = ledger.snapshot()
            return pa.intake

        return self._apply(run, project_id=project_id)

    def add_idea_version(self, project_id: str, text: str, author: str = "human") -> IdeaVersion:
        return self._ledger_op(project_id, lambda ledger: ledger.add_idea_version(text, author=author))

    def add_analysis(
        self,
        project_id: str,
        summary: str,
        key_points: list[str],
        classification: Optional[Classification] = None,
    ) -> Analysis:
        return self._ledger_op(
            project_id,
            lambda ledger: ledger.add_analysis(summary, key_points, classification=classification),
        )

    def analyze_latest_idea(self, project_id: str) -> Classification:
        """Classify the newest idea version and record the result as an analysis."""

        def op(ledger: IntakeLedger) -> Classification:
            idea = ledger.latest_idea()
            if idea is None:
                raise validation_failed("intake", "add an idea before analysing", ref=project_id)
            classification = classify_idea(idea.text)
            summary, key_points = summarize_classification(classification)
            ledger.add_analysis(summary, key_points, classification=classification)
            return classification

        return self._ledger_op(project_id, op)

    def generate_questions(self, project_id: str) -> IntakeRecord:
        """Replace the question set using the latest analysis' project type."""

        def op(ledger: IntakeLedger) -> IntakeRecord:
            analysis = ledger.latest_analysis()
            if analysis is not None and analysis.type is not None:
                ptype = analysis.type
            else:
                idea = ledger.latest_idea()
                if idea is None:
                    raise validation_failed("intake", "add an idea before generating questions", ref=project_id)
                ptype = classify_idea(idea.text).type
            ledger.set_questions(generate_questions(ptype, id_prefix=make_id("q")))
            return ledger.snapshot()

        return self._ledger_op(project_id, op)

    def answer_question(self, project_id: str, question_id: str, answer: str) -> Question:
        def committed(arena: HubArena) -> Optional[Question]:
            pa = arena.projects.get(project_id)
            if pa is None:
                return None
            return next((q for q in pa.intake.questions if q.id == question_id), None)

        def run() -> Question:
            pa = self._project(project_id)
            ledger = IntakeLedger(pa.intake)
            out = ledger.answer_question(question_id, answer)
            pa.intake = ledger.snapshot()
            return out

        return self._apply(run, project_id=project_id, committed=committed)

    def add_requirement(
        self,
        project_id: str,
        kind: str,
        text: str,
        source: str = "human",
        citations: Optional[list[Citation]] = None,
    ) -> Requirement:
        return self._ledger_op(
            project_id,
            lambda ledger: ledger.add_requirement(kind, text, source=source, citations=citations),
        )

    def derive_requirements(self, project_id: str) -> list[Requirement]:
        return self._ledger_op(project_id, lambda ledger: ledger.derive_requirements())

    # ---- activity ----

    def list_activity(self, project_id: str, limit: Optional[int] = None) -> list[ActivityEntry]:
        pa = self._project(project_id)
        return ActivityLedger(pa.activity, limit=self.activity_limit).list(limit)

    def add_activity(self, project_id: str, actor: str, text: str) -> ActivityEntry:
        return self._apply(
            lambda: ActivityLedger(self._project(project_id).activity, limit=self.activity_limit).append(
                actor, text
            ),
            project_id=project_id,
        )

    # ---- operator task board ----

    def list_tasks(self) -> list[Task]:
        return TaskBoard(self.arena.tasks).list_tasks()

    def create_task(self, create: TaskCreate) -> Task:
        return self._apply(lambda: TaskBoard(self.arena.tasks).create_task(create))

    def update_task(self, patch: TaskPatch) -> Task:
        def committed(arena: HubArena) -> Optional[Task]:
            return next((t for t in arena.tasks if t.id == patch.id), None)

        return self._apply(lambda: TaskBoard(self.arena.tasks).update_task(patch), committed=committed)

    # ---- export ----

    def export_project_json(self, project_id: str) -> dict[str, Any]:
        pa = self._project(project_id)
        return {
            "project": to_dict(pa.project),
            "tree": to_dict(pa.tree),
            "cards": to_dict(pa.cards),
            "intake": to_dict(pa.intake),
        }

    def export_project_markdown(self, project_id: str) -> str:
        pa = self._project(project_id)
        return project_to_markdown(pa.project, pa.tree, pa.cards, pa.intake)

    # ---- import ----

    def import_project_json(self, payload: Any) -> Project:
        """Add a project from an `export_project_json` payload under its exported id.

        The tree must lint clean before anything is stored; cards may still point at
        features that no longer exist.
        """

        def run() -> Project:
            pa = _arena_from_export(payload)
            pid = pa.project.id
            if pid in self.arena.projects:
                raise already_exists("project", pid)
            problems = [e for e in lint_tree(pa.tree, pa.cards) if e.code != "L_DANGLING_FEATURE_LINK"]
            if problems:
                first = problems[0]
                raise ValidationFailedError(
                    code="E_IMPORT_LINT",
                    message=f"{len(problems)} tree problem(s); first: {first.code} at {first.ref}: {first.message}",
                    entity="import",
                    ref=pid,
                )
            card_ids = [c.id for c in pa.cards]
            if len(set(card_ids)) != len(card_ids):
                raise validation_failed("import", "card ids must be unique", ref=pid)
            ledger = IntakeLedger(pa.intake)
            ledger.set_questions(pa.intake.questions)
            pa.intake = ledger.snapshot()
            self.arena.projects[pid] = pa
            logger.info("imported project %s (%d nodes, %d cards)", pid, len(pa.tree), len(pa.cards))
            return pa.project

        return self._apply(run)


def _arena_from_export(payload: Any) -> ProjectArena:
    if not isinstance(payload, dict):
        raise StoreLoadError(
            code="E_INVALID_SHAPE", message="import payload must be a JSON object", entity="import"
        )
    missing = [k for k in ("project", "tree", "cards", "intake") if k not in payload]
    if missing:
        raise StoreLoadError(
            code="E_INVALID_SHAPE",
            message=f"import payload is missing: {', '.join(missing)}",
            entity="import",
        )
    try:
        project = project_from_dict(payload["project"])
        tree = [node_from_dict(n) for n in _list_of(payload["tree"], "tree")]
        cards = [card_from_dict(c) for c in _list_of(payload["cards"], "cards")]
        intake = intake_from_dict(payload["intake"])
    except (TypeError, ValueError) as e:
        raise StoreLoadError(code="E_INVALID_SHAPE", message=str(e), entity="import") from e
    if not isinstance(project.id, str) or not project.id.strip():
        raise validation_failed("import", "project id must be a non-empty string")
    project = dataclasses.replace(
        project,
        name=require_title(project.name, entity="project"),
        status=parse_project_status(project.status),
    )
    return ProjectArena(project=project, tree=tree, cards=cards, intake=intake)


def _list_of(value: Any, key: str) -> list:
    if not isinstance(value, list):
        raise TypeError(f"{key} must be a list, got {type(value).__name__}")
    return value
