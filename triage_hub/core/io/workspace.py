from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from triage_hub.core.backends.base import HubArena, ProjectArena
from triage_hub.core.errors import StoreLoadError
from triage_hub.core.io.codec import (
    activity_from_dict,
    card_from_dict,
    feature_intake_from_dict,
    intake_from_dict,
    node_from_dict,
    project_from_dict,
    task_from_dict,
    to_dict,
)

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "0.1"


def arena_to_dict(arena: HubArena) -> dict[str, Any]:
    return {
        "schema_version": SCHEMA_VERSION,
        "projects": [
            {
                "project": to_dict(pa.project),
                "tree": to_dict(pa.tree),
                "cards": to_dict(pa.cards),
                "intake": to_dict(pa.intake),
                "feature_intakes": to_dict(pa.feature_intakes),
                "activity": to_dict(pa.activity),
            }
            for pa in arena.projects.values()
        ],
        "tasks": to_dict(arena.tasks),
    }


def arena_from_dict(data: dict[str, Any]) -> HubArena:
    arena = HubArena()
    for raw in data.get("projects") or []:
        if not isinstance(raw, dict):
            raise TypeError("each project entry must be an object")
        project = project_from_dict(raw.get("project"))
        arena.projects[project.id] = ProjectArena(
            project=project,
            tree=[node_from_dict(n) for n in raw.get("tree") or []],
            cards=[card_from_dict(c) for c in raw.get("cards") or []],
            intake=intake_from_dict(raw.get("intake") or {}),
            feature_intakes={
                str(k): feature_intake_from_dict(v) for k, v in (raw.get("feature_intakes") or {}).items()
            },
            activity=[activity_from_dict(a) for a in raw.get("activity") or []],
        )
    arena.tasks = [task_from_dict(t) for t in data.get("tasks") or []]
    return arena


def load_workspace(path: str | Path) -> HubArena:
    """Load a JSON workspace file. A missing file is an empty workspace."""

    p = Path(path)
    if not p.exists():
        logger.debug("workspace %s does not exist yet; starting empty", p)
        return HubArena()

    try:
        raw_text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise StoreLoadError(code="E_FILE_READ", message=str(e), entity="workspace", ref=str(p)) from e

    if not raw_text.strip():
        return HubArena()

    try:
        data = json.loads(raw_text)
    except json.JSONDecodeError as e:
        raise StoreLoadError(code="E_JSON_PARSE", message=str(e), entity="workspace", ref=str(p)) from e

    if not isinstance(data, dict):
        raise StoreLoadError(
            code="E_INVALID_TOP_LEVEL",
            message="top-level document must be an object",
            entity="workspace",
            ref=str(p),
        )

    try:
        return arena_from_dict(data)
    except (TypeError, ValueError, AttributeError) as e:
        raise StoreLoadError(code="E_INVALID_SHAPE", message=str(e), entity="workspace", ref=str(p)) from e


def save_workspace(path: str | Path, arena: HubArena) -> None:
    """Write the workspace atomically. OSError propagates to the caller."""

    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(arena_to_dict(arena), indent=2, sort_keys=False)
    fd, tmp = tempfile.mkstemp(prefix=f".{p.name}.", suffix=".tmp", dir=str(p.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(payload + "\n")
        os.replace(tmp, p)
    except OSError:
        Path(tmp).unlink(missing_ok=True)
        raise
