import logging

import pytest

from triage_hub.core.board.cards import CardBoard
from triage_hub.core.board.lanes import is_nominal
from triage_hub.core.board.tasks import TaskBoard
from triage_hub.core.errors import AlreadyExistsError, NotFoundError, ValidationFailedError
from triage_hub.core.model import CardCreate, CardPatch, TaskCreate, TaskPatch


def test_card_defaults():
    card = CardBoard([]).create_card(CardCreate(title="Triage: Foundation"))
    assert card.lane == "proposed"
    assert card.priority == "P2"
    assert card.history == []
    assert card.id.startswith("card-")


def test_card_create_errors():
    board = CardBoard([])
    board.create_card(CardCreate(title="A", id="card-a"))
    with pytest.raises(AlreadyExistsError):
        board.create_card(CardCreate(title="B", id="card-a"))
    with pytest.raises(ValidationFailedError):
        board.create_card(CardCreate(title=""))
    with pytest.raises(ValidationFailedError):
        board.create_card(CardCreate(title="C", lane="limbo"))


def test_history_counts_only_lane_changes():
    board = CardBoard([])
    card = board.create_card(CardCreate(title="A"))
    steps = [
        CardPatch(id=card.id, lane="queued"),
        CardPatch(id=card.id, title="A (renamed)"),
        CardPatch(id=card.id, lane="queued"),
        CardPatch(id=card.id, lane="in_progress"),
        CardPatch(id=card.id, priority="p0"),
        CardPatch(id=card.id, lane="review", note="ready for eyes"),
    ]
    for patch in steps:
        card = board.update_card(patch)

    assert len(card.history) == 3
    assert [(h.from_lane, h.to_lane) for h in card.history] == [
        ("proposed", "queued"),
        ("queued", "development"),
        ("development", "review"),
    ]
    assert [h.note for h in card.history] == ["moved", "moved", "ready for eyes"]
    assert card.priority == "P0"


def test_history_is_never_rewritten():
    board = CardBoard([])
    card = board.create_card(CardCreate(title="A"))
    first = board.update_card(CardPatch(id=card.id, lane="queued")).history[0]
    later = board.update_card(CardPatch(id=card.id, lane="done"))
    assert later.history[0] == first


def test_operator_override_is_allowed_and_logged(caplog):
    caplog.set_level(logging.INFO, logger="triage_hub.core.board.lanes")
    board = CardBoard([])
    card = board.create_card(CardCreate(title="A"))
    card = board.update_card(CardPatch(id=card.id, lane="done"))
    assert card.lane == "done"
    assert "operator override" in caplog.text


def test_nominal_transitions():
    assert is_nominal("proposed", "queued")
    assert is_nominal("review", "done")
    assert is_nominal("blocked", "queued")
    assert not is_nominal("proposed", "done")


def test_dangling_feature_id_is_stored_as_is():
    board = CardBoard([])
    card = board.create_card(CardCreate(title="A", feature_id="feat-gone"))
    assert board.get_card(card.id).feature_id == "feat-gone"


def test_delete_card():
    board = CardBoard([])
    card = board.create_card(CardCreate(title="A"))
    board.delete_card(card.id)
    with pytest.raises(NotFoundError):
        board.get_card(card.id)


def test_task_status_history_starts_with_created():
    board = TaskBoard([])
    task = board.create_task(TaskCreate(title="Rotate keys", acceptance_criteria=["done", "done", " "]))
    assert task.lane == "queued"
    assert task.acceptance_criteria == ["done"]
    assert len(task.status_history) == 1
    assert task.status_history[0].from_lane is None
    assert task.status_history[0].note == "created"

    task = board.update_task(TaskPatch(id=task.id, lane="development", note="picked up"))
    task = board.update_task(TaskPatch(id=task.id, owner="sam"))
    assert [(h.from_lane, h.to_lane) for h in task.status_history] == [
        (None, "queued"),
        ("queued", "development"),
    ]
    assert task.owner == "sam"
