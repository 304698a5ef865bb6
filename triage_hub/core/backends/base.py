from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional, Protocol

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
)
from triage_hub.core.tree.hierarchy import TreeNode

BackendKind = Literal["memory", "file"]
BACKEND_KINDS: tuple[str, ...] = ("memory", "file")


@dataclass
class ProjectArena:
    """Everything a project owns. Entities are frozen; only the containers change."""

    project: Project
    tree: list[FeatureNode] = field(default_factory=list)
    cards: list[KanbanCard] = field(default_factory=list)
    intake: IntakeRecord = field(default_factory=IntakeRecord)
    feature_intakes: dict[str, FeatureIntake] = field(default_factory=dict)
    activity: list[ActivityEntry] = field(default_factory=list)

    def copy(self) -> "ProjectArena":
        return ProjectArena(
            project=self.project,
            tree=list(self.tree),
            cards=list(self.cards),
            intake=self.intake,
            feature_intakes=dict(self.feature_intakes),
            activity=list(self.activity),
        )


@dataclass
class HubArena:
    projects: dict[str, ProjectArena] = field(default_factory=dict)
    tasks: list[Task] = field(default_factory=list)

    def copy(self) -> "HubArena":
        return HubArena(
            projects={pid: pa.copy() for pid, pa in self.projects.items()},
            tasks=list(self.tasks),
        )


class Backend(Protocol):
    """Capability set every storage variant implements.

    Each mutating call either commits completely or raises a HubError and leaves the
    stored state as it was. Ids the caller does not supply are generated here.
    """

    kind: BackendKind

    # projects
    def list_projects(self) -> list[Project]: ...
    def get_project(self, project_id: str) -> Project: ...
    def create_project(self, create: ProjectCreate) -> Project: ...
    def update_project(self, patch: ProjectPatch) -> Project: ...
    def delete_project(self, project_id: str) -> None: ...

    # feature tree
    def get_tree(self, project_id: str) -> list[FeatureNode]: ...
    def get_hierarchy(self, project_id: str) -> list[TreeNode]: ...
    def create_tree_node(self, project_id: str, create: NodeCreate) -> FeatureNode: ...
    def insert_tree_nodes(self, project_id: str, nodes: list[FeatureNode]) -> list[FeatureNode]: ...
    def update_tree_node(self, project_id: str, patch: NodePatch) -> FeatureNode: ...
    def delete_tree_node(self, project_id: str, node_id: str, mode: str = "orphan") -> list[str]: ...
    def move_tree_node(self, project_id: str, node_id: str, new_parent_id: Optional[str]) -> FeatureNode: ...
    def reorder_tree_children(
        self, project_id: str, parent_id: Optional[str], ordered_ids: list[str]
    ) -> list[FeatureNode]: ...

    # feature intake
    def get_feature_intake(self, project_id: str, node_id: str) -> Optional[FeatureIntake]: ...
    def start_feature_intake(self, project_id: str, node_id: str) -> FeatureIntake: ...
    def set_feature_intake(self, project_id: str, node_id: str, intake: FeatureIntake) -> FeatureIntake: ...
    def answer_feature_question(
        self, project_id: str, node_id: str, question_id: str, answer: str
    ) -> FeatureIntake: ...

    # cards
    def list_cards(self, project_id: str) -> list[KanbanCard]: ...
    def create_card(self, project_id: str, create: CardCreate) -> KanbanCard: ...
    def update_card(self, project_id: str, patch: CardPatch) -> KanbanCard: ...
    def delete_card(self, project_id: str, card_id: str) -> None: ...

    # intake
    def get_intake(self, project_id: str) -> IntakeRecord: ...
    def set_intake(self, project_id: str, record: IntakeRecord) -> IntakeRecord: ...
    def add_idea_version(self, project_id: str, text: str, author: str = "human") -> IdeaVersion: ...
    def add_analysis(
        self,
        project_id: str,
        summary: str,
        key_points: list[str],
        classification: Optional[Classification] = None,
    ) -> Analysis: ...
    def analyze_latest_idea(self, project_id: str) -> Classification: ...
    def generate_questions(self, project_id: str) -> IntakeRecord: ...
    def answer_question(self, project_id: str, question_id: str, answer: str) -> Question: ...
    def add_requirement(
        self,
        project_id: str,
        kind: str,
        text: str,
        source: str = "human",
        citations: Optional[list[Citation]] = None,
    ) -> Requirement: ...
    def derive_requirements(self, project_id: str) -> list[Requirement]: ...

    # activity
    def list_activity(self, project_id: str, limit: Optional[int] = None) -> list[ActivityEntry]: ...
    def add_activity(self, project_id: str, actor: str, text: str) -> ActivityEntry: ...

    # operator task board
    def list_tasks(self) -> list[Task]: ...
    def create_task(self, create: TaskCreate) -> Task: ...
    def update_task(self, patch: TaskPatch) -> Task: ...

    # export
    def export_project_json(self, project_id: str) -> dict[str, Any]: ...
    def export_project_markdown(self, project_id: str) -> str: ...

    # import
    def import_project_json(self, payload: Any) -> Project: ...
