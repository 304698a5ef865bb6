from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

from triage_hub.core.errors import validation_failed


ProjectStatus = Literal["active", "paused", "completed", "archived"]
ProjectType = Literal["software", "ops", "hybrid"]
FeatureStatus = Literal["draft", "in_progress", "blocked", "done"]
FeatureIntakeStatus = Literal["not_started", "in_progress", "complete"]
Lane = Literal["proposed", "queued", "development", "review", "blocked", "done"]
Priority = Literal["P0", "P1", "P2", "P3"]
CitationKind = Literal["idea", "question", "requirement"]
RequirementKind = Literal["goal", "constraint", "non_goal"]
Author = Literal["human", "ai"]


PROJECT_STATUSES: tuple[str, ...] = ("active", "paused", "completed", "archived")
PROJECT_TYPES: tuple[str, ...] = ("software", "ops", "hybrid")
FEATURE_STATUSES: tuple[str, ...] = ("draft", "in_progress", "blocked", "done")
FEATURE_STATUS_ALIASES: dict[str, str] = {
    "planned": "draft",
    "ready": "done",
    "in-progress": "in_progress",
}
LANES: tuple[str, ...] = ("proposed", "queued", "development", "review", "blocked", "done")
LANE_ALIASES: dict[str, str] = {"in_progress": "development", "in-progress": "development"}
PRIORITIES: tuple[str, ...] = ("P0", "P1", "P2", "P3")
CITATION_KINDS: tuple[str, ...] = ("idea", "question", "requirement")
REQUIREMENT_KINDS: tuple[str, ...] = ("goal", "constraint", "non_goal")
AUTHORS: tuple[str, ...] = ("human", "ai")


@dataclass(frozen=True)
class Link:
    label: str
    url: str


@dataclass(frozen=True)
class Citation:
    kind: CitationKind
    id: str


@dataclass(frozen=True)
class Project:
    id: str
    name: str
    summary: str = ""
    status: ProjectStatus = "active"
    tags: list[str] = field(default_factory=list)
    owner: str = "unknown"
    links: list[Link] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""


@dataclass(frozen=True)
class Classification:
    type: ProjectType
    tags: frozenset[str]
    risks: frozenset[str]


@dataclass(frozen=True)
class IdeaVersion:
    id: str
    text: str
    created_at: str
    author: Author = "human"


@dataclass(frozen=True)
class Analysis:
    id: str
    summary: str
    key_points: list[str]
    created_at: str

    # Present when the analysis came from the classifier.
    type: Optional[ProjectType] = None
    tags: list[str] = field(default_factory=list)
    risks: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Question:
    id: str
    category: str
    prompt: str
    required: bool = False
    answer: Optional[str] = None
    answered_at: Optional[str] = None


@dataclass(frozen=True)
class Requirement:
    id: str
    kind: RequirementKind
    text: str
    source: Author = "human"
    citations: list[Citation] = field(default_factory=list)
    created_at: str = ""


@dataclass(frozen=True)
class IntakeRecord:
    ideas: list[IdeaVersion] = field(default_factory=list)
    analyses: list[Analysis] = field(default_factory=list)
    questions: list[Question] = field(default_factory=list)
    requirements: list[Requirement] = field(default_factory=list)


@dataclass(frozen=True)
class FeatureNode:
    id: str
    title: str
    parent_id: Optional[str] = None
    description: Optional[str] = None
    status: FeatureStatus = "draft"
    priority: Priority = "P2"
    owner: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    acceptance_criteria: list[str] = field(default_factory=list)
    depends_on: list[str] = field(default_factory=list)
    sources: list[Citation] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""


@dataclass(frozen=True)
class FeatureQuestion:
    id: str
    category: str
    prompt: str
    hint: Optional[str] = None
    answer: Optional[str] = None
    answered_at: Optional[str] = None


@dataclass(frozen=True)
class FeatureIntake:
    status: FeatureIntakeStatus = "not_started"
    questions: list[FeatureQuestion] = field(default_factory=list)
    current_question_index: int = 0
    started_at: Optional[str] = None
    completed_at: Optional[str] = None


@dataclass(frozen=True)
class LaneChange:
    at: str
    to_lane: Lane
    from_lane: Optional[Lane] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class KanbanCard:
    id: str
    title: str
    lane: Lane = "proposed"
    priority: Priority = "P2"
    feature_id: Optional[str] = None
    owner: Optional[str] = None
    description: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
    history: list[LaneChange] = field(default_factory=list)


@dataclass(frozen=True)
class ActivityEntry:
    id: str
    at: str
    actor: str
    text: str


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    lane: Lane = "queued"
    priority: Priority = "P2"
    owner: Optional[str] = None
    problem: Optional[str] = None
    scope: Optional[str] = None
    acceptance_criteria: list[str] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""
    status_history: list[LaneChange] = field(default_factory=list)


# ---- create / patch shapes ----
# Patch fields left as None are not touched.


@dataclass(frozen=True)
class ProjectCreate:
    name: str
    id: Optional[str] = None
    summary: str = ""
    status: Optional[str] = None
    tags: Optional[list[str]] = None
    owner: Optional[str] = None
    links: Optional[list[Link]] = None


@dataclass(frozen=True)
class ProjectPatch:
    id: str
    name: Optional[str] = None
    summary: Optional[str] = None
    status: Optional[str] = None
    tags: Optional[list[str]] = None
    owner: Optional[str] = None
    links: Optional[list[Link]] = None


@dataclass(frozen=True)
class NodeCreate:
    title: str
    id: Optional[str] = None
    parent_id: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    owner: Optional[str] = None
    tags: Optional[list[str]] = None
    acceptance_criteria: Optional[list[str]] = None
    depends_on: Optional[list[str]] = None
    sources: Optional[list[Citation]] = None


@dataclass(frozen=True)
class NodePatch:
    id: str
    title: Optional[str] = None
    parent_id: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    owner: Optional[str] = None
    tags: Optional[list[str]] = None
    acceptance_criteria: Optional[list[str]] = None
    depends_on: Optional[list[str]] = None
    sources: Optional[list[Citation]] = None


@dataclass(frozen=True)
class CardCreate:
    title: str
    id: Optional[str] = None
    feature_id: Optional[str] = None
    lane: Optional[str] = None
    priority: Optional[str] = None
    owner: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class CardPatch:
    id: str
    title: Optional[str] = None
    feature_id: Optional[str] = None
    lane: Optional[str] = None
    priority: Optional[str] = None
    owner: Optional[str] = None
    description: Optional[str] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class TaskCreate:
    title: str
    id: Optional[str] = None
    lane: Optional[str] = None
    priority: Optional[str] = None
    owner: Optional[str] = None
    problem: Optional[str] = None
    scope: Optional[str] = None
    acceptance_criteria: Optional[list[str]] = None


@dataclass(frozen=True)
class TaskPatch:
    id: str
    title: Optional[str] = None
    lane: Optional[str] = None
    priority: Optional[str] = None
    owner: Optional[str] = None
    problem: Optional[str] = None
    scope: Optional[str] = None
    acceptance_criteria: Optional[list[str]] = None
    note: Optional[str] = None


# ---- enum parsing ----


def parse_priority(value: Any, *, entity: str) -> Priority:
    v = value.strip().upper() if isinstance(value, str) else ""
    if v not in PRIORITIES:
        raise validation_failed(entity, f"priority must be one of {list(PRIORITIES)}, got {value!r}")
    return v  # type: ignore[return-value]


def parse_lane(value: Any, *, entity: str) -> Lane:
    v = value.strip().lower() if isinstance(value, str) else ""
    v = LANE_ALIASES.get(v, v)
    if v not in LANES:
        raise validation_failed(entity, f"lane must be one of {list(LANES)}, got {value!r}")
    return v  # type: ignore[return-value]


def parse_feature_status(value: Any, *, entity: str = "node") -> FeatureStatus:
    v = value.strip().lower() if isinstance(value, str) else ""
    v = FEATURE_STATUS_ALIASES.get(v, v)
    if v not in FEATURE_STATUSES:
        raise validation_failed(entity, f"status must be one of {list(FEATURE_STATUSES)}, got {value!r}")
    return v  # type: ignore[return-value]


def parse_project_status(value: Any) -> ProjectStatus:
    v = value.strip().lower() if isinstance(value, str) else ""
    if v not in PROJECT_STATUSES:
        raise validation_failed(
            "project", f"status must be one of {list(PROJECT_STATUSES)}, got {value!r}"
        )
    return v  # type: ignore[return-value]


def clean_list(values: Optional[list[Any]]) -> list[str]:
    """Trimmed, non-empty, de-duplicated strings in first-seen order."""
    out: list[str] = []
    seen: set[str] = set()
    for v in values or []:
        if not isinstance(v, str):
            continue
        s = v.strip()
        if s and s not in seen:
            out.append(s)
            seen.add(s)
    return out


def require_title(value: Any, *, entity: str) -> str:
    title = value.strip() if isinstance(value, str) else ""
    if not title:
        raise validation_failed(entity, "title is required and must be a non-empty string")
    return title
