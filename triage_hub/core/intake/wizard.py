"""Idea-to-project intake flow.

classify -> questions -> answers -> derived requirements -> seed tree -> triage cards.
If the primary backend is unreachable the whole flow is replayed against a local
in-memory backend so the operator still gets a project to work with.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional

from triage_hub.core.backends.base import Backend
from triage_hub.core.backends.memory import MemoryBackend
from triage_hub.core.board.cards import triage_card_for
from triage_hub.core.errors import BackendUnavailableError, validation_failed
from triage_hub.core.model import (
    Classification,
    FeatureNode,
    KanbanCard,
    Project,
    ProjectCreate,
    ProjectPatch,
    Question,
)
from triage_hub.core.synth.seed_tree import synthesize_seed_tree
from triage_hub.core.synth.template_config import SeedSpec

logger = logging.getLogger(__name__)

WIZARD_ACTOR = "intake-wizard"


@dataclass(frozen=True)
class IntakeResult:
    project: Project
    classification: Classification
    questions: list[Question]
    tree: list[FeatureNode]
    cards: list[KanbanCard]
    backend: Backend
    degraded: bool = False
    warnings: list[str] = field(default_factory=list)


def run_intake(
    backend: Backend,
    name: str,
    idea: str,
    *,
    answers: Optional[Mapping[str, str]] = None,
    owner: Optional[str] = None,
    templates: Optional[dict[str, list[SeedSpec]]] = None,
    seed_cards: bool = True,
    fallback: Callable[[], Backend] = MemoryBackend,
) -> IntakeResult:
    """Create a project from an idea. `answers` maps question category -> answer."""

    if not isinstance(name, str) or not name.strip():
        raise validation_failed("project", "project name is required")
    if not isinstance(idea, str) or not idea.strip():
        raise validation_failed("idea", "idea text is required")

    try:
        return _run(backend, name, idea, answers or {}, owner, templates, seed_cards, degraded=False)
    except BackendUnavailableError as e:
        logger.warning("backend %s unavailable (%s); running intake locally", backend.kind, e.message)
        local = fallback()
        result = _run(local, name, idea, answers or {}, owner, templates, seed_cards, degraded=True)
        return IntakeResult(
            project=result.project,
            classification=result.classification,
            questions=result.questions,
            tree=result.tree,
            cards=result.cards,
            backend=local,
            degraded=True,
            warnings=[f"{backend.kind} backend unavailable: {e.message}"],
        )


def _run(
    backend: Backend,
    name: str,
    idea: str,
    answers: Mapping[str, str],
    owner: Optional[str],
    templates: Optional[dict[str, list[SeedSpec]]],
    seed_cards: bool,
    *,
    degraded: bool,
) -> IntakeResult:
    summary = idea.strip().splitlines()[0][:200]
    project = backend.create_project(ProjectCreate(name=name, summary=summary, owner=owner))
    pid = project.id

    idea_version = backend.add_idea_version(pid, idea)
    classification = backend.analyze_latest_idea(pid)
    questions = backend.generate_questions(pid).questions

    answered = 0
    for q in questions:
        text = answers.get(q.category)
        if text and text.strip():
            backend.answer_question(pid, q.id, text)
            answered += 1
    if answered:
        backend.derive_requirements(pid)

    seed = synthesize_seed_tree(
        classification.type,
        idea_id=idea_version.id,
        questions=backend.get_intake(pid).questions,
        tags=classification.tags,
        risks=classification.risks,
        existing_ids=[n.id for n in backend.get_tree(pid)],
        templates=templates,
    )
    tree = backend.insert_tree_nodes(pid, seed)

    cards: list[KanbanCard] = []
    if seed_cards:
        for root in (n for n in tree if n.parent_id is None):
            cards.append(backend.create_card(pid, triage_card_for(root.id, root.title, owner=owner)))

    backend.update_project(ProjectPatch(id=pid, tags=sorted(classification.tags)))
    backend.add_activity(
        pid,
        WIZARD_ACTOR,
        f"Created from idea {idea_version.id}: {classification.type} "
        f"({len(questions)} questions, {answered} answered)",
    )
    backend.add_activity(pid, WIZARD_ACTOR, f"Seeded {len(tree)} features and {len(cards)} triage cards")
    if degraded:
        backend.add_activity(pid, WIZARD_ACTOR, "Created locally while the primary backend was unavailable")

    logger.info("intake for %s: type=%s features=%d cards=%d", pid, classification.type, len(tree), len(cards))
    return IntakeResult(
        project=backend.get_project(pid),
        classification=classification,
        questions=backend.get_intake(pid).questions,
        tree=tree,
        cards=cards,
        backend=backend,
        degraded=degraded,
    )
