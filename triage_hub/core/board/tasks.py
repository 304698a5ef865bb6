from __future__ import annotations

from dataclasses import replace

from triage_hub.core.board.lanes import DEFAULT_MOVE_NOTE, record_lane_change
from triage_hub.core.errors import already_exists, not_found, validation_failed
from triage_hub.core.ids import make_unique_id, now_iso
from triage_hub.core.model import (
    Task,
    TaskCreate,
    TaskPatch,
    clean_list,
    parse_lane,
    parse_priority,
    require_title,
)


class TaskBoard:
    """The flat operator board. Not scoped to a project."""

    def __init__(self, tasks: list[Task]) -> None:
        self.tasks = tasks

    def list_tasks(self) -> list[Task]:
        return list(self.tasks)

    def create_task(self, create: TaskCreate) -> Task:
        title = require_title(create.title, entity="task")
        ids = {t.id for t in self.tasks}
        if create.id is not None:
            tid = create.id.strip()
            if not tid:
                raise validation_failed("task", "explicit id must be non-empty")
            if tid in ids:
                raise already_exists("task", tid)
        else:
            tid = make_unique_id("task", ids)

        lane = parse_lane(create.lane, entity="task") if create.lane else "queued"
        at = now_iso()
        task = Task(
            id=tid,
            title=title,
            lane=lane,
            priority=parse_priority(create.priority, entity="task") if create.priority else "P2",
            owner=(create.owner or "").strip() or None,
            problem=(create.problem or "").strip() or None,
            scope=(create.scope or "").strip() or None,
            acceptance_criteria=clean_list(create.acceptance_criteria),
            created_at=at,
            updated_at=at,
            status_history=record_lane_change([], None, lane, note="created"),
        )
        self.tasks.append(task)
        return task

    def update_task(self, patch: TaskPatch) -> Task:
        idx, current = self._locate(patch.id)

        changes: dict = {}
        if patch.title is not None:
            title = patch.title.strip()
            if not title:
                raise validation_failed(
                    "task", "title is required and must be a non-empty string", ref=current.id, committed=current
                )
            changes["title"] = title
        if patch.priority is not None:
            changes["priority"] = parse_priority(patch.priority, entity="task")
        for name in ("owner", "problem", "scope"):
            value = getattr(patch, name)
            if value is not None:
                changes[name] = value.strip() or None
        if patch.acceptance_criteria is not None:
            changes["acceptance_criteria"] = clean_list(patch.acceptance_criteria)
        if patch.lane is not None:
            lane = parse_lane(patch.lane, entity="task")
            if lane != current.lane:
                changes["lane"] = lane
                changes["status_history"] = record_lane_change(
                    current.status_history,
                    current.lane,
                    lane,
                    note=patch.note or DEFAULT_MOVE_NOTE,
                    ref=current.id,
                )

        updated = replace(current, **changes, updated_at=now_iso())
        self.tasks[idx] = updated
        return updated

    def _locate(self, task_id: str) -> tuple[int, Task]:
        for i, t in enumerate(self.tasks):
            if t.id == task_id:
                return i, t
        raise not_found("task", task_id)
