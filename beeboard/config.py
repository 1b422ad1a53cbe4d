# config.py

"""
Settings for BeeBoard.

Resolution order: model defaults, then an optional YAML settings file, then
``BEEBOARD_*`` environment variables (a ``.env`` file in the working
directory is loaded first when present).
"""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, field_validator

from beeboard.board_init import DEFAULT_COLUMN_TITLES
from beeboard.utils import load_yaml

logger = logging.getLogger(__name__)

ENV_PREFIX = "BEEBOARD_"
DEFAULT_SETTINGS_FILE = "beeboard.yaml"


class TaskPositionStrategy(str, Enum):
    # max(existing) + 1
    MAX_PLUS_ONE = "max_plus_one"
    # every new task gets position 0
    ZERO = "zero"


class FailurePolicy(str, Enum):
    # keep the optimistic change and flag the node as unsynced
    MARK_UNSYNCED = "mark_unsynced"
    # put the task back where it was before the mutation
    ROLLBACK = "rollback"


class BoardSettings(BaseModel):
    store_path: Path = Path("beeboard_store.yaml")
    offline_store_path: Path = Path("beeboard_offline.yaml")
    locale: str = "pt-BR"
    task_position_strategy: TaskPositionStrategy = TaskPositionStrategy.MAX_PLUS_ONE
    persist_moves: bool = True
    failure_policy: FailurePolicy = FailurePolicy.MARK_UNSYNCED
    default_organization_name: str = "Minha Organização"
    log_level: str = "INFO"
    log_dir: Optional[Path] = None

    @field_validator("locale")
    @classmethod
    def _known_locale(cls, value: str) -> str:
        if value not in DEFAULT_COLUMN_TITLES:
            raise ValueError(
                f"Unknown locale '{value}'. Known: {', '.join(sorted(DEFAULT_COLUMN_TITLES))}"
            )
        return value


def _env_overrides() -> Dict[str, Any]:
    overrides = {}
    for name in BoardSettings.model_fields:
        value = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
        if value is not None and value != "":
            overrides[name] = value
    return overrides


def load_settings(path: Optional[Path] = None, use_env: bool = True) -> BoardSettings:
    """
    Build BoardSettings from an optional YAML file and the environment.

    Args:
        path: Settings file; defaults to ``beeboard.yaml`` in the working
            directory if that file exists
        use_env: Whether to apply ``.env`` / ``BEEBOARD_*`` overrides
    """
    data: Dict[str, Any] = {}

    settings_path = Path(path) if path else Path(DEFAULT_SETTINGS_FILE)
    if settings_path.exists():
        file_data = load_yaml(settings_path, default={}, use_lock=False) or {}
        file_data.pop("version", None)
        data.update(file_data)
        logger.debug(f"Loaded settings from {settings_path}")
    elif path:
        logger.warning(f"Settings file {settings_path} not found, using defaults")

    if use_env:
        load_dotenv(find_dotenv(usecwd=True))
        data.update(_env_overrides())

    return BoardSettings(**data)
