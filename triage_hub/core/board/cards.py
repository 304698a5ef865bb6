from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from triage_hub.core.board.lanes import DEFAULT_MOVE_NOTE, record_lane_change
from triage_hub.core.errors import already_exists, not_found, validation_failed
from triage_hub.core.ids import make_unique_id, now_iso
from triage_hub.core.model import CardCreate, CardPatch, KanbanCard, parse_lane, parse_priority, require_title

logger = logging.getLogger(__name__)


class CardBoard:
    """Kanban cards of one project.

    feature_id is stored as given; it is a soft link and may dangle after the feature
    is deleted.
    """

    def __init__(self, cards: list[KanbanCard]) -> None:
        self.cards = cards

    def list_cards(self) -> list[KanbanCard]:
        return list(self.cards)

    def get_card(self, card_id: str) -> KanbanCard:
        return self._locate(card_id)[1]

    def create_card(self, create: CardCreate) -> KanbanCard:
        title = require_title(create.title, entity="card")
        ids = {c.id for c in self.cards}
        if create.id is not None:
            cid = create.id.strip()
            if not cid:
                raise validation_failed("card", "explicit id must be non-empty")
            if cid in ids:
                raise already_exists("card", cid)
        else:
            cid = make_unique_id("card", ids)

        at = now_iso()
        card = KanbanCard(
            id=cid,
            title=title,
            lane=parse_lane(create.lane, entity="card") if create.lane else "proposed",
            priority=parse_priority(create.priority, entity="card") if create.priority else "P2",
            feature_id=create.feature_id or None,
            owner=(create.owner or "").strip() or None,
            description=(create.description or "").strip() or None,
            created_at=at,
            updated_at=at,
        )
        self.cards.append(card)
        return card

    def update_card(self, patch: CardPatch) -> KanbanCard:
        idx, current = self._locate(patch.id)

        changes: dict = {}
        if patch.title is not None:
            title = patch.title.strip()
            if not title:
                raise validation_failed(
                    "card", "title is required and must be a non-empty string", ref=current.id, committed=current
                )
            changes["title"] = title
        if patch.priority is not None:
            changes["priority"] = parse_priority(patch.priority, entity="card")
        if patch.feature_id is not None:
            # An empty string clears the link.
            changes["feature_id"] = patch.feature_id or None
        if patch.owner is not None:
            changes["owner"] = patch.owner.strip() or None
        if patch.description is not None:
            changes["description"] = patch.description.strip() or None
        if patch.lane is not None:
            lane = parse_lane(patch.lane, entity="card")
            if lane != current.lane:
                changes["lane"] = lane
                changes["history"] = record_lane_change(
                    current.history,
                    current.lane,
                    lane,
                    note=patch.note or DEFAULT_MOVE_NOTE,
                    ref=current.id,
                )

        updated = replace(current, **changes, updated_at=now_iso())
        self.cards[idx] = updated
        return updated

    def delete_card(self, card_id: str) -> KanbanCard:
        idx, current = self._locate(card_id)
        del self.cards[idx]
        logger.debug("deleted card %s", card_id)
        return current

    def _locate(self, card_id: str) -> tuple[int, KanbanCard]:
        for i, c in enumerate(self.cards):
            if c.id == card_id:
                return i, c
        raise not_found("card", card_id)


def triage_card_for(feature_id: str, title: str, *, owner: Optional[str] = None) -> CardCreate:
    return CardCreate(title=f"Triage: {title}", feature_id=feature_id, owner=owner)
