from __future__ import annotations

from typing import Optional

from triage_hub.core.errors import validation_failed
from triage_hub.core.ids import make_unique_id, now_iso
from triage_hub.core.model import ActivityEntry

DEFAULT_ACTIVITY_LIMIT = 500


class ActivityLedger:
    """Append-only audit trail of one project.

    Entries are never edited. Once `limit` is exceeded the oldest ones fall off.
    """

    def __init__(self, entries: list[ActivityEntry], *, limit: int = DEFAULT_ACTIVITY_LIMIT) -> None:
        self.entries = entries
        self.limit = limit

    def append(self, actor: str, text: str) -> ActivityEntry:
        body = text.strip() if isinstance(text, str) else ""
        if not body:
            raise validation_failed("activity", "activity text is required")
        entry = ActivityEntry(
            id=make_unique_id("act", (e.id for e in self.entries)),
            at=now_iso(),
            actor=(actor or "").strip() or "operator",
            text=body,
        )
        self.entries.append(entry)
        if len(self.entries) > self.limit:
            del self.entries[: len(self.entries) - self.limit]
        return entry

    def list(self, limit: Optional[int] = None) -> list[ActivityEntry]:
        """Newest first; insertion order breaks ties on equal timestamps."""
        ordered = [e for _, e in sorted(enumerate(self.entries), key=lambda p: (p[1].at, p[0]), reverse=True)]
        if limit is not None:
            if limit < 0:
                raise validation_failed("activity", "limit must be >= 0")
            ordered = ordered[:limit]
        return ordered
