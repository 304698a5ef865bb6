from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from triage_hub.core.errors import not_found, validation_failed
from triage_hub.core.ids import make_id, make_unique_id, now_iso
from triage_hub.core.model import (
    AUTHORS,
    REQUIREMENT_KINDS,
    Analysis,
    Citation,
    Classification,
    IdeaVersion,
    IntakeRecord,
    Question,
    Requirement,
)

logger = logging.getLogger(__name__)


# Question category -> requirement kind produced from its answer.
DERIVED_KINDS: dict[str, str] = {
    "Outcome": "goal",
    "Constraints": "constraint",
    "Scope": "non_goal",
}


class IntakeLedger:
    """Append-only idea/analysis history plus the current question set.

    Ideas and analyses are only ever appended. Questions are replaced as a whole
    when regenerated. Answers are last-write-wins.
    """

    def __init__(self, record: Optional[IntakeRecord] = None) -> None:
        self.record = record or IntakeRecord()

    def snapshot(self) -> IntakeRecord:
        return self.record

    def add_idea_version(self, text: str, *, author: str = "human") -> IdeaVersion:
        body = text.strip() if isinstance(text, str) else ""
        if not body:
            raise validation_failed("idea", "idea text is required")
        if author not in AUTHORS:
            raise validation_failed("idea", f"author must be one of {list(AUTHORS)}")
        idea = IdeaVersion(
            id=make_unique_id("idea", (i.id for i in self.record.ideas)),
            text=body,
            created_at=now_iso(),
            author=author,  # type: ignore[arg-type]
        )
        self.record = replace(self.record, ideas=self.record.ideas + [idea])
        return idea

    def add_analysis(
        self,
        summary: str,
        key_points: list[str],
        *,
        classification: Optional[Classification] = None,
    ) -> Analysis:
        analysis = Analysis(
            id=make_unique_id("analysis", (a.id for a in self.record.analyses)),
            summary=summary or "",
            key_points=[p for p in key_points if isinstance(p, str)],
            created_at=now_iso(),
            type=classification.type if classification else None,
            tags=sorted(classification.tags) if classification else [],
            risks=sorted(classification.risks) if classification else [],
        )
        self.record = replace(self.record, analyses=self.record.analyses + [analysis])
        return analysis

    def set_questions(self, questions: list[Question]) -> list[Question]:
        ids = [q.id for q in questions]
        if len(set(ids)) != len(ids):
            raise validation_failed("question", "question ids must be unique")
        self.record = replace(self.record, questions=list(questions))
        return self.record.questions

    def answer_question(self, question_id: str, text: str) -> Question:
        for i, q in enumerate(self.record.questions):
            if q.id != question_id:
                continue
            answer = text.strip() if isinstance(text, str) else ""
            answered = replace(q, answer=answer or None, answered_at=now_iso() if answer else None)
            questions = list(self.record.questions)
            questions[i] = answered
            self.record = replace(self.record, questions=questions)
            return answered
        raise not_found("question", question_id)

    def add_requirement(
        self,
        kind: str,
        text: str,
        *,
        source: str = "human",
        citations: Optional[list[Citation]] = None,
    ) -> Requirement:
        if kind not in REQUIREMENT_KINDS:
            raise validation_failed("requirement", f"kind must be one of {list(REQUIREMENT_KINDS)}")
        if source not in AUTHORS:
            raise validation_failed("requirement", f"source must be one of {list(AUTHORS)}")
        body = text.strip() if isinstance(text, str) else ""
        if not body:
            raise validation_failed("requirement", "requirement text is required")
        req = Requirement(
            id=make_id("req"),
            kind=kind,  # type: ignore[arg-type]
            text=body,
            source=source,  # type: ignore[arg-type]
            citations=list(citations or []),
            created_at=now_iso(),
        )
        self.record = replace(self.record, requirements=self.record.requirements + [req])
        return req

    def derive_requirements(self) -> list[Requirement]:
        """Rebuild machine-derived requirements from answered questions.

        Human-entered requirements are kept untouched.
        """
        idea = self.latest_idea()
        at = now_iso()
        derived: list[Requirement] = []
        for q in self.record.questions:
            kind = DERIVED_KINDS.get(q.category)
            if kind is None or not q.answer:
                continue
            citations = [Citation(kind="question", id=q.id)]
            if idea is not None:
                citations.append(Citation(kind="idea", id=idea.id))
            derived.append(
                Requirement(
                    id=f"req-{q.id}",
                    kind=kind,  # type: ignore[arg-type]
                    text=q.answer,
                    source="ai",
                    citations=citations,
                    created_at=at,
                )
            )

        kept = [r for r in self.record.requirements if r.source != "ai"]
        self.record = replace(self.record, requirements=kept + derived)
        logger.debug("derived %d requirements (%d kept)", len(derived), len(kept))
        return derived

    def latest_idea(self) -> Optional[IdeaVersion]:
        return self.record.ideas[-1] if self.record.ideas else None

    def latest_analysis(self) -> Optional[Analysis]:
        return self.record.analyses[-1] if self.record.analyses else None

    def answered_count(self) -> int:
        return sum(1 for q in self.record.questions if q.answer)
