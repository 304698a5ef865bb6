from __future__ import annotations

from triage_hub.core.backends.base import Backend
from triage_hub.core.backends.file import FileBackend
from triage_hub.core.backends.memory import MemoryBackend
from triage_hub.core.config import ConfigError, HubConfig


def open_backend(config: HubConfig) -> Backend:
    if config.backend == "memory":
        return MemoryBackend(activity_limit=config.activity_limit, owner=config.owner)
    if config.backend == "file":
        return FileBackend(config.store, activity_limit=config.activity_limit, owner=config.owner)
    raise ConfigError(f"unknown backend: {config.backend}")
