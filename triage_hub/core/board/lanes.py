from __future__ import annotations

import logging
from typing import Optional

from triage_hub.core.ids import now_iso
from triage_hub.core.model import LANES, Lane, LaneChange

logger = logging.getLogger(__name__)


# Nominal pipeline. Anything outside it is an operator override: allowed, but logged.
NOMINAL_TRANSITIONS: dict[str, frozenset[str]] = {
    "proposed": frozenset({"queued", "blocked"}),
    "queued": frozenset({"development", "blocked"}),
    "development": frozenset({"review", "blocked"}),
    "review": frozenset({"done", "blocked", "development"}),
    "blocked": frozenset(lane for lane in LANES if lane not in ("blocked", "done")),
    "done": frozenset(),
}

DEFAULT_MOVE_NOTE = "moved"


def is_nominal(from_lane: Optional[str], to_lane: str) -> bool:
    if from_lane is None:
        return True
    return to_lane in NOMINAL_TRANSITIONS.get(from_lane, frozenset())


def record_lane_change(
    history: list[LaneChange],
    from_lane: Optional[Lane],
    to_lane: Lane,
    *,
    note: Optional[str] = None,
    ref: str = "",
) -> list[LaneChange]:
    """Return `history` with one more entry. The input list is not modified."""
    if from_lane is not None and not is_nominal(from_lane, to_lane):
        logger.info("operator override on %s: %s -> %s", ref or "<item>", from_lane, to_lane)
    entry = LaneChange(at=now_iso(), from_lane=from_lane, to_lane=to_lane, note=note)
    return [*history, entry]
