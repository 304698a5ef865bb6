from __future__ import annotations

import logging
from pathlib import Path

from triage_hub.core.activity import DEFAULT_ACTIVITY_LIMIT
from triage_hub.core.backends.base import BackendKind
from triage_hub.core.backends.memory import MemoryBackend
from triage_hub.core.io.workspace import load_workspace, save_workspace

logger = logging.getLogger(__name__)


class FileBackend(MemoryBackend):
    """MemoryBackend persisted to a JSON workspace after every committed mutation.

    A failed write rolls the in-memory arena back and surfaces as
    BackendUnavailableError.
    """

    kind: BackendKind = "file"

    def __init__(
        self,
        path: str | Path,
        *,
        activity_limit: int = DEFAULT_ACTIVITY_LIMIT,
        owner: str = "unknown",
    ) -> None:
        self.path = Path(path)
        super().__init__(load_workspace(self.path), activity_limit=activity_limit, owner=owner)
        logger.debug("opened workspace %s (%d projects)", self.path, len(self.arena.projects))

    def _persist(self) -> None:
        save_workspace(self.path, self.arena)
