import pytest

from triage_hub.core.errors import NotFoundError, ValidationFailedError
from triage_hub.core.intake.classify import classify_idea
from triage_hub.core.intake.ledger import IntakeLedger
from triage_hub.core.intake.questions import generate_questions


def test_ideas_and_analyses_are_append_only():
    ledger = IntakeLedger()
    first = ledger.add_idea_version("first draft")
    second = ledger.add_idea_version("second draft")
    assert [i.id for i in ledger.snapshot().ideas] == [first.id, second.id]
    assert ledger.latest_idea() == second

    ledger.add_analysis("a1", ["x"])
    a2 = ledger.add_analysis("a2", ["y"], classification=classify_idea("mobile app"))
    assert len(ledger.snapshot().analyses) == 2
    assert ledger.latest_analysis() == a2
    assert a2.type == "software"


def test_empty_idea_rejected():
    with pytest.raises(ValidationFailedError):
        IntakeLedger().add_idea_version("   ")


def test_set_questions_replaces_whole_set():
    ledger = IntakeLedger()
    ledger.set_questions(generate_questions("software", id_prefix="a"))
    ledger.set_questions(generate_questions("ops", id_prefix="b"))
    assert all(q.id.startswith("b-") for q in ledger.snapshot().questions)


def test_set_questions_rejects_duplicate_ids():
    qs = generate_questions("ops")
    with pytest.raises(ValidationFailedError):
        IntakeLedger().set_questions(qs + qs[:1])


def test_answer_question_last_write_wins():
    ledger = IntakeLedger()
    ledger.set_questions(generate_questions("software"))
    ledger.answer_question("q-1", "first")
    q = ledger.answer_question("q-1", "second")
    assert q.answer == "second"
    assert q.answered_at is not None
    assert ledger.answered_count() == 1


def test_answer_unknown_question_is_not_found():
    ledger = IntakeLedger()
    ledger.set_questions(generate_questions("software"))
    with pytest.raises(NotFoundError) as exc:
        ledger.answer_question("q-99", "nope")
    assert exc.value.code == "E_NOT_FOUND"


def test_derive_requirements_cites_question_and_idea():
    ledger = IntakeLedger()
    idea = ledger.add_idea_version("trip planner")
    ledger.set_questions(generate_questions("software"))
    ledger.answer_question("q-1", "Families can plan a trip in 10 minutes")  # Outcome
    ledger.answer_question("q-4", "No booking engine")  # Scope

    derived = ledger.derive_requirements()
    kinds = {r.kind: r for r in derived}
    assert set(kinds) == {"goal", "non_goal"}
    goal = kinds["goal"]
    assert goal.source == "ai"
    assert {(c.kind, c.id) for c in goal.citations} == {("question", "q-1"), ("idea", idea.id)}


def test_rederive_keeps_human_requirements():
    ledger = IntakeLedger()
    ledger.add_idea_version("trip planner")
    ledger.set_questions(generate_questions("software"))
    ledger.answer_question("q-5", "Launch before summer")  # Constraints
    ledger.derive_requirements()
    human = ledger.add_requirement("goal", "Works offline")

    ledger.answer_question("q-5", "")
    ledger.derive_requirements()

    reqs = ledger.snapshot().requirements
    assert reqs == [human]


def test_add_requirement_validates_kind():
    with pytest.raises(ValidationFailedError):
        IntakeLedger().add_requirement("wish", "something")
