"""Deterministic seed-tree synthesis.

Turns a classification into a small feature forest. Every node cites the idea it came
from plus the clarifying questions its template names, so provenance survives later
human edits. The intake ledger is only read here, never written.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from triage_hub.core.errors import validation_failed
from triage_hub.core.ids import now_iso, slugify_id, unique_slug
from triage_hub.core.model import PROJECT_TYPES, Citation, FeatureNode, Question
from triage_hub.core.synth.template_config import DEFAULT_SEED_TEMPLATES, SeedSpec

logger = logging.getLogger(__name__)


# tag/risk -> (candidate root titles, child title, cited categories)
TAG_EXTRAS: dict[str, tuple[tuple[str, ...], str, list[str]]] = {
    "mobile": (("App sections",), "Mobile shell", ["Platform"]),
    "web": (("App sections",), "Web client", ["Platform"]),
    "api": (("Backend", "Backend automation"), "Public API", ["Integrations"]),
    "local-first": (("Backend", "Backend automation"), "Offline sync", ["Data"]),
}

RISK_EXTRAS: dict[str, tuple[tuple[str, ...], str, list[str]]] = {
    "payments": (("Backend", "Backend automation"), "Payments", ["Constraints", "Risks"]),
    "notifications": (("Backend", "Backend automation", "Scheduling"), "Notifications", ["Workflow"]),
    "pii-privacy": (("Foundation",), "Privacy & data protection", ["Constraints", "Risks"]),
    "multi-user": (("App sections", "Foundation"), "Roles & sharing", ["Users", "Permissions"]),
}


def synthesize_seed_tree(
    ptype: str,
    *,
    idea_id: str,
    questions: Iterable[Question] = (),
    tags: Iterable[str] = (),
    risks: Iterable[str] = (),
    existing_ids: Iterable[str] = (),
    templates: Optional[dict[str, list[SeedSpec]]] = None,
) -> list[FeatureNode]:
    """Return seed FeatureNodes as a flat list, each parent before its children."""

    if ptype not in PROJECT_TYPES:
        raise validation_failed("seed", f"unknown project type: {ptype}")
    if not isinstance(idea_id, str) or not idea_id.strip():
        raise validation_failed("seed", "an idea id is required to cite seed features")

    tpl_map = templates or DEFAULT_SEED_TEMPLATES
    roots = tpl_map.get(ptype, DEFAULT_SEED_TEMPLATES[ptype])

    questions_by_category: dict[str, list[str]] = {}
    for q in questions:
        questions_by_category.setdefault(q.category, []).append(q.id)

    taken: set[str] = set(existing_ids)
    at = now_iso()
    out: list[FeatureNode] = []

    def sources_for(cites: list[str]) -> list[Citation]:
        srcs = [Citation(kind="idea", id=idea_id)]
        for category in cites:
            for qid in questions_by_category.get(category, []):
                c = Citation(kind="question", id=qid)
                if c not in srcs:
                    srcs.append(c)
        return srcs

    def emit(spec: SeedSpec, parent: Optional[FeatureNode]) -> FeatureNode:
        base = f"{parent.id}-{slugify_id(spec['title'])}" if parent else f"feat-{spec['title']}"
        nid = unique_slug(base, taken, fallback_prefix="feat")
        taken.add(nid)
        node = FeatureNode(
            id=nid,
            title=spec["title"],
            parent_id=parent.id if parent else None,
            description=spec.get("description") or None,
            priority=spec.get("priority", "P2"),
            acceptance_criteria=list(spec.get("acceptance_criteria", [])),
            sources=sources_for(list(spec.get("cites", []))),
            created_at=at,
            updated_at=at,
        )
        out.append(node)
        for child in spec.get("children", []):
            emit(child, node)
        return node

    root_nodes = [emit(spec, None) for spec in roots]
    by_title = {n.title: n for n in root_nodes}

    extras: list[tuple[tuple[str, ...], str, list[str]]] = []
    extras += [TAG_EXTRAS[t] for t in sorted(set(tags)) if t in TAG_EXTRAS]
    extras += [RISK_EXTRAS[r] for r in sorted(set(risks)) if r in RISK_EXTRAS]

    for parents, title, cites in extras:
        parent = next((by_title[p] for p in parents if p in by_title), None)
        if parent is None:
            logger.debug("no seed root for extra feature %r (type=%s)", title, ptype)
            continue
        emit(
            {"title": title, "description": "", "priority": "P2", "cites": cites, "children": []},
            parent,
        )

    logger.info("synthesized %d seed features (%d roots) for type=%s", len(out), len(root_nodes), ptype)
    return out
