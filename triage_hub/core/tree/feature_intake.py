"""Per-feature clarifying interview.

Each feature node can carry its own small question/answer ledger. Questions are fixed
prompts plus a few that only apply when the node's text mentions a matching topic.
"""
from __future__ import annotations

import re
from dataclasses import replace
from typing import Optional

from triage_hub.core.errors import not_found
from triage_hub.core.ids import now_iso
from triage_hub.core.model import FeatureIntake, FeatureIntakeStatus, FeatureNode, FeatureQuestion


_BASE: list[FeatureQuestion] = [
    FeatureQuestion(
        id="q-goal",
        category="goal",
        prompt="What is the user trying to accomplish with {title}?",
        hint="Think about the end goal, not the steps.",
    ),
    FeatureQuestion(
        id="q-trigger",
        category="trigger",
        prompt="What action or event triggers this feature?",
        hint='e.g. "user clicks export", "webhook received", "timer fires at midnight"',
    ),
    FeatureQuestion(
        id="q-flow",
        category="flow",
        prompt="Walk through the main flow step by step.",
        hint="From trigger to completion, including user actions and system responses.",
    ),
    FeatureQuestion(
        id="q-edge",
        category="edge_cases",
        prompt="What could go wrong? Which edge cases must be handled?",
        hint="Errors, empty states, permissions, network failures, invalid input.",
    ),
    FeatureQuestion(
        id="q-success",
        category="success",
        prompt="How do you know this feature is working correctly?",
        hint="What would you test? What does success look like to the user?",
    ),
]

# (pattern over title/description/tags, question)
_CONTEXTUAL: list[tuple[re.Pattern[str], FeatureQuestion]] = [
    (
        re.compile(r"auth|login|permission|role|access"),
        FeatureQuestion(
            id="q-auth",
            category="constraints",
            prompt="What permissions or roles are involved?",
            hint="Who can do what? Are there different access levels?",
        ),
    ),
    (
        re.compile(r"api|endpoint|backend|server"),
        FeatureQuestion(
            id="q-api",
            category="constraints",
            prompt="What data does this feature need, and what does it return?",
            hint="Inputs, outputs and data shape.",
        ),
    ),
    (
        re.compile(r"\bui\b|page|screen|form|button|modal"),
        FeatureQuestion(
            id="q-ui",
            category="flow",
            prompt="Describe the layout and key interactions.",
            hint="What does the user see, and what can they click, tap or type?",
        ),
    ),
    (
        re.compile(r"schedul|cron|timer|recurring|daily|weekly"),
        FeatureQuestion(
            id="q-schedule",
            category="trigger",
            prompt="When and how often does this run?",
            hint="Schedule, timezone, and what happens after a missed run.",
        ),
    ),
    (
        re.compile(r"integration|sync|import|export|webhook"),
        FeatureQuestion(
            id="q-integration",
            category="constraints",
            prompt="Which external systems are involved, and how are their failures handled?",
            hint="Retries, timeouts, data format, rate limits.",
        ),
    ),
]

_TAIL: list[FeatureQuestion] = [
    FeatureQuestion(
        id="q-deps",
        category="dependencies",
        prompt="Does this feature depend on other features being done first?",
        hint='List blockers or prerequisites. "None" is a valid answer.',
    ),
    FeatureQuestion(
        id="q-priority",
        category="priority",
        prompt="How critical is this feature for launch?",
        hint="Must-have for v1, nice-to-have, or simplified for the first release?",
    ),
]


def generate_feature_questions(node: FeatureNode) -> list[FeatureQuestion]:
    context = " ".join([node.title, node.description or "", *node.tags]).lower()
    out = [replace(q, prompt=q.prompt.format(title=f'"{node.title}"')) for q in _BASE]
    out += [q for rx, q in _CONTEXTUAL if rx.search(context)]
    out += list(_TAIL)
    return out


def start_feature_intake(node: FeatureNode) -> FeatureIntake:
    return FeatureIntake(
        status="not_started",
        questions=generate_feature_questions(node),
        current_question_index=0,
        started_at=now_iso(),
    )


def derive_intake_status(intake: FeatureIntake) -> tuple[FeatureIntakeStatus, int, int]:
    """(status, answered, total) computed from the answers alone."""
    total = len(intake.questions)
    answered = sum(1 for q in intake.questions if q.answer)
    if answered == 0:
        return "not_started", answered, total
    if answered < total:
        return "in_progress", answered, total
    return "complete", answered, total


def intake_progress_label(intake: Optional[FeatureIntake]) -> str:
    if intake is None:
        return "not started"
    status, answered, total = derive_intake_status(intake)
    if status == "in_progress":
        return f"{answered}/{total} answered"
    return "complete" if status == "complete" else "not started"


def normalize_feature_intake(intake: FeatureIntake) -> FeatureIntake:
    """Bring the stored status and completed_at in line with the answers."""
    status, _, total = derive_intake_status(intake)
    completed_at = intake.completed_at if status == "complete" else None
    if status == "complete" and completed_at is None:
        completed_at = now_iso()
    index = min(max(intake.current_question_index, 0), max(total - 1, 0))
    return replace(intake, status=status, completed_at=completed_at, current_question_index=index)


def answer_feature_question(intake: FeatureIntake, question_id: str, text: str) -> FeatureIntake:
    for i, q in enumerate(intake.questions):
        if q.id != question_id:
            continue
        answer = text.strip() if isinstance(text, str) else ""
        questions = list(intake.questions)
        questions[i] = replace(q, answer=answer or None, answered_at=now_iso() if answer else None)
        nxt = _next_unanswered(questions, i)
        return normalize_feature_intake(
            replace(
                intake,
                questions=questions,
                current_question_index=nxt,
                started_at=intake.started_at or now_iso(),
            )
        )
    raise not_found("feature_question", question_id)


def _next_unanswered(questions: list[FeatureQuestion], after: int) -> int:
    n = len(questions)
    for step in range(1, n + 1):
        j = (after + step) % n
        if not questions[j].answer:
            return j
    return after
