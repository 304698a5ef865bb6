from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from triage_hub.core.model import PRIORITIES, PROJECT_TYPES


SeedSpec = dict[str, Any]


def _seed(
    title: str,
    *,
    cites: list[str],
    description: str = "",
    priority: str = "P2",
    acceptance_criteria: list[str] | None = None,
    children: list[SeedSpec] | None = None,
) -> SeedSpec:
    return {
        "title": title,
        "description": description,
        "priority": priority,
        "cites": cites,
        "acceptance_criteria": acceptance_criteria or [],
        "children": children or [],
    }


_FOUNDATION = _seed(
    "Foundation",
    cites=["Outcome", "Constraints"],
    description="Shared groundwork every other section builds on.",
    priority="P0",
    acceptance_criteria=["Outcome and constraints are written down and agreed."],
    children=[
        _seed("Success metrics", cites=["Outcome"], priority="P0"),
        _seed("Constraints & risks register", cites=["Constraints", "Risks"], priority="P1"),
    ],
)

_APP_SECTIONS = _seed(
    "App sections",
    cites=["Workflow", "Users", "Platform"],
    description="User-facing screens that carry the primary workflow.",
    priority="P1",
    children=[
        _seed("Primary workflow screens", cites=["Workflow"], priority="P1"),
        _seed("Account & settings", cites=["Users", "Permissions"], priority="P2"),
    ],
)

_OPS_SOP = _seed(
    "Process SOP",
    cites=["Workflow", "SOP"],
    description="The written procedure operators follow.",
    priority="P0",
    children=[
        _seed("Standard operating procedure", cites=["SOP", "Workflow"], priority="P0"),
        _seed("Checklists & handoffs", cites=["Workflow", "Assets"], priority="P1"),
    ],
)


# Phase-independent baseline; keep stable for tests.
DEFAULT_SEED_TEMPLATES: dict[str, list[SeedSpec]] = {
    "software": [
        _FOUNDATION,
        _seed(
            "Backend",
            cites=["Data", "Integrations"],
            description="Data model, persistence and service surface.",
            priority="P0",
            children=[
                _seed("Data model", cites=["Data"], priority="P0"),
                _seed("API surface", cites=["Integrations", "Workflow"], priority="P1"),
            ],
        ),
        _APP_SECTIONS,
    ],
    "ops": [
        _FOUNDATION,
        _OPS_SOP,
        _seed(
            "Scheduling",
            cites=["Schedule"],
            description="Cadence, ownership and escalation.",
            priority="P1",
            children=[
                _seed("Cadence & calendar", cites=["Schedule"], priority="P1"),
                _seed("Escalation path", cites=["Safety", "Risks"], priority="P2"),
            ],
        ),
    ],
    "hybrid": [
        _FOUNDATION,
        _seed(
            "Backend automation",
            cites=["Data", "Workflow"],
            description="Automations that remove manual steps from the process.",
            priority="P1",
            children=[
                _seed("Data model", cites=["Data"], priority="P1"),
                _seed("Automated steps", cites=["Workflow", "SOP"], priority="P1"),
            ],
        ),
        _APP_SECTIONS,
        _seed(
            "Ops SOP",
            cites=["SOP", "Assets"],
            description="Manual procedure around the tooling.",
            priority="P1",
            children=[
                _seed("Standard operating procedure", cites=["SOP"], priority="P1"),
            ],
        ),
    ],
}


class TemplateConfigError(ValueError):
    pass


def _validate_seed(raw: Any, where: str) -> SeedSpec:
    if not isinstance(raw, dict):
        raise TemplateConfigError(f"{where} must be a mapping")
    title = raw.get("title")
    if not isinstance(title, str) or not title.strip():
        raise TemplateConfigError(f"{where}.title must be a non-empty string")

    priority = raw.get("priority", "P2")
    if not isinstance(priority, str) or priority.upper() not in PRIORITIES:
        raise TemplateConfigError(f"{where}.priority must be one of {list(PRIORITIES)}")

    def _str_list(key: str) -> list[str]:
        v = raw.get(key, [])
        if v is None:
            return []
        if not isinstance(v, list) or any(not isinstance(x, str) or not x.strip() for x in v):
            raise TemplateConfigError(f"{where}.{key} must be a list of non-empty strings")
        return [x.strip() for x in v]

    children_raw = raw.get("children", [])
    if children_raw is None:
        children_raw = []
    if not isinstance(children_raw, list):
        raise TemplateConfigError(f"{where}.children must be a list")

    description = raw.get("description", "")
    return {
        "title": title.strip(),
        "description": description if isinstance(description, str) else "",
        "priority": priority.upper(),
        "cites": _str_list("cites"),
        "acceptance_criteria": _str_list("acceptance_criteria"),
        "children": [_validate_seed(c, f"{where}.children[{i}]") for i, c in enumerate(children_raw)],
    }


def load_template_file(path: str | Path) -> dict[str, list[SeedSpec]]:
    """Load seed templates from a YAML file.

    Format:
      <type>:
        - title: Foundation
          priority: P0
          cites: [Outcome]
          children: [...]

    Returns a mapping of project type -> list of root seed specs.
    """
    p = Path(path)
    raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise TemplateConfigError("template file must be a mapping of type -> list of seeds")

    out: dict[str, list[SeedSpec]] = {}
    for k, v in raw.items():
        if not isinstance(k, str) or k.strip() not in PROJECT_TYPES:
            raise TemplateConfigError(f"template keys must be one of {list(PROJECT_TYPES)}")
        if not isinstance(v, list) or not v:
            raise TemplateConfigError(f"template '{k}' must be a non-empty list")
        out[k.strip()] = [_validate_seed(item, f"{k}[{i}]") for i, item in enumerate(v)]
    return out


def seed_templates(template_file: str | Path | None = None) -> dict[str, list[SeedSpec]]:
    """Seed forests per project type, with a project type's forest from `template_file` taking its place."""
    forests = {ptype: list(DEFAULT_SEED_TEMPLATES[ptype]) for ptype in PROJECT_TYPES}
    if template_file:
        forests.update(load_template_file(template_file))
    return forests
