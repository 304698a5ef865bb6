import pytest

from triage_hub.core.errors import NotFoundError
from triage_hub.core.model import FeatureIntake, FeatureNode, FeatureQuestion
from triage_hub.core.tree.feature_intake import (
    answer_feature_question,
    derive_intake_status,
    generate_feature_questions,
    intake_progress_label,
    start_feature_intake,
)
from triage_hub.core.view.adapter import feature_intake_progress


def _intake(answers):
    return FeatureIntake(
        questions=[
            FeatureQuestion(id=f"q{i}", category="goal", prompt="?", answer=a) for i, a in enumerate(answers)
        ]
    )


def test_zero_answered_is_not_started():
    status, answered, total = derive_intake_status(_intake([None, None, None]))
    assert (status, answered, total) == ("not_started", 0, 3)


def test_partial_is_in_progress_with_label():
    intake = _intake(["yes", None, None])
    assert derive_intake_status(intake)[0] == "in_progress"
    assert intake_progress_label(intake) == "1/3 answered"
    assert feature_intake_progress(intake) == ("in_progress", "1/3 answered")


def test_all_answered_is_complete():
    assert derive_intake_status(_intake(["a", "b"]))[0] == "complete"


def test_empty_intake_is_not_started():
    assert derive_intake_status(FeatureIntake())[0] == "not_started"
    assert feature_intake_progress(None)[0] == "not_started"


def test_contextual_questions_follow_node_text():
    node = FeatureNode(id="f", title="Login screen")
    ids = [q.id for q in generate_feature_questions(node)]
    assert ids[:5] == ["q-goal", "q-trigger", "q-flow", "q-edge", "q-success"]
    assert "q-auth" in ids and "q-ui" in ids
    assert "q-schedule" not in ids
    assert ids[-2:] == ["q-deps", "q-priority"]
    assert '"Login screen"' in generate_feature_questions(node)[0].prompt


def test_answering_advances_and_completes():
    intake = start_feature_intake(FeatureNode(id="f", title="Plain"))
    total = len(intake.questions)
    for i, q in enumerate(intake.questions):
        intake = answer_feature_question(intake, q.id, f"answer {i}")
        if i < total - 1:
            assert intake.status == "in_progress"
    assert intake.status == "complete"
    assert intake.completed_at is not None


def test_clearing_an_answer_reopens_intake():
    intake = _intake(["a", "b"])
    intake = answer_feature_question(intake, "q1", "")
    assert intake.status == "in_progress"
    assert intake.completed_at is None


def test_unknown_feature_question():
    with pytest.raises(NotFoundError):
        answer_feature_question(_intake([None]), "q-nope", "x")
