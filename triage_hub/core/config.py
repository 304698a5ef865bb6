from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from triage_hub.core.activity import DEFAULT_ACTIVITY_LIMIT
from triage_hub.core.backends.base import BackendKind

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "triage-hub.yaml"
DEFAULT_STORE_FILE = "triage-hub.json"
ENV_PREFIX = "TRIAGE_HUB_"

ReviewBucket = Literal["todo", "in_progress", "blocked", "done"]


class ConfigError(ValueError):
    pass


class HubConfig(BaseSettings):
    """Hub settings.

    Precedence, lowest first: field defaults, the YAML config file, then environment
    variables with the TRIAGE_HUB_ prefix (e.g. TRIAGE_HUB_ACTIVITY_LIMIT=50).
    """

    backend: BackendKind = Field(default="file", description="Storage variant: memory|file")
    store: str = Field(default=DEFAULT_STORE_FILE, min_length=1, description="Workspace JSON file")
    templates: Optional[str] = Field(default=None, min_length=1, description="Seed template YAML file")
    activity_limit: int = Field(default=DEFAULT_ACTIVITY_LIMIT, ge=1, description="Activity entries kept per project")
    owner: str = Field(default="unknown", min_length=1, description="Default owner for new projects")
    review_bucket: ReviewBucket = Field(default="in_progress", description="Board column the review lane shows in")

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_ignore_empty=True,
        extra="forbid",
        frozen=True,
        str_strip_whitespace=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # file values arrive as init kwargs; the environment overrides them
        return env_settings, init_settings


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML config file into a mapping of setting -> value. Values are not validated."""
    p = Path(path)
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"{p}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"{p}: invalid YAML: {e}") from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{p}: config file must be a mapping")
    return {str(k): v for k, v in raw.items() if v is not None}


def load_config(
    config_file: Optional[str | Path] = None,
    *,
    cwd: Optional[str | Path] = None,
) -> HubConfig:
    """Build the settings from defaults, the YAML file and the environment.

    Without an explicit file, `triage-hub.yaml` in `cwd` is used when present.
    """
    path: Optional[Path] = Path(config_file) if config_file else None
    if path is None:
        candidate = Path(cwd or ".") / DEFAULT_CONFIG_FILE
        if candidate.exists():
            path = candidate
    elif not path.exists():
        raise ConfigError(f"{path}: config file does not exist")

    file_values = load_config_file(path) if path is not None else {}
    try:
        cfg = HubConfig(**file_values)
    except ValidationError as e:
        where = f"{path} / {ENV_PREFIX}* environment" if path is not None else f"{ENV_PREFIX}* environment"
        raise ConfigError(f"{where}: {_describe(e)}") from e
    if path is not None:
        logger.debug("loaded config from %s", path)
    return cfg


def _describe(e: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or '<settings>'}: {err['msg']}" for err in e.errors()
    )
