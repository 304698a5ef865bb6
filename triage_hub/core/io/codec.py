"""Plain-dict conversion for the persisted and exported shapes.

Field names on the wire are the dataclass field names. Unknown keys are ignored on the
way in so older workspaces keep loading.
"""
from __future__ import annotations

import dataclasses
from typing import Any, Callable, Optional, TypeVar

from triage_hub.core.model import (
    ActivityEntry,
    Analysis,
    Citation,
    FeatureIntake,
    FeatureNode,
    FeatureQuestion,
    IdeaVersion,
    IntakeRecord,
    KanbanCard,
    LaneChange,
    Link,
    Project,
    Question,
    Requirement,
    Task,
)

T = TypeVar("T")


def to_dict(obj: Any) -> Any:
    """Recursively turn dataclasses (and frozensets) into JSON-ready values."""
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_dict(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, (frozenset, set)):
        return sorted(to_dict(x) for x in obj)
    if isinstance(obj, (list, tuple)):
        return [to_dict(x) for x in obj]
    if isinstance(obj, dict):
        return {str(k): to_dict(v) for k, v in obj.items()}
    return obj


def _build(cls: type[T], data: Any, nested: Optional[dict[str, Callable[[Any], Any]]] = None) -> T:
    if not isinstance(data, dict):
        raise TypeError(f"{cls.__name__} must be an object, got {type(data).__name__}")
    names = {f.name for f in dataclasses.fields(cls)}  # type: ignore[arg-type]
    kwargs: dict[str, Any] = {}
    for k, v in data.items():
        if k not in names:
            continue
        conv = (nested or {}).get(k)
        kwargs[k] = conv(v) if conv is not None and v is not None else v
    return cls(**kwargs)


def _many(fn: Callable[[Any], T]) -> Callable[[Any], list[T]]:
    def conv(values: Any) -> list[T]:
        if not isinstance(values, list):
            raise TypeError(f"expected a list, got {type(values).__name__}")
        return [fn(v) for v in values]

    return conv


def citation_from_dict(data: Any) -> Citation:
    return _build(Citation, data)


def lane_change_from_dict(data: Any) -> LaneChange:
    return _build(LaneChange, data)


def project_from_dict(data: Any) -> Project:
    return _build(Project, data, {"links": _many(lambda d: _build(Link, d))})


def node_from_dict(data: Any) -> FeatureNode:
    return _build(FeatureNode, data, {"sources": _many(citation_from_dict)})


def card_from_dict(data: Any) -> KanbanCard:
    return _build(KanbanCard, data, {"history": _many(lane_change_from_dict)})


def task_from_dict(data: Any) -> Task:
    return _build(Task, data, {"status_history": _many(lane_change_from_dict)})


def activity_from_dict(data: Any) -> ActivityEntry:
    return _build(ActivityEntry, data)


def feature_intake_from_dict(data: Any) -> FeatureIntake:
    return _build(FeatureIntake, data, {"questions": _many(lambda d: _build(FeatureQuestion, d))})


def intake_from_dict(data: Any) -> IntakeRecord:
    return _build(
        IntakeRecord,
        data,
        {
            "ideas": _many(lambda d: _build(IdeaVersion, d)),
            "analyses": _many(lambda d: _build(Analysis, d)),
            "questions": _many(lambda d: _build(Question, d)),
            "requirements": _many(
                lambda d: _build(Requirement, d, {"citations": _many(citation_from_dict)})
            ),
        },
    )
