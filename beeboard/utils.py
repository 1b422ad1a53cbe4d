# utils.py - Shared utilities for BeeBoard

import logging
import shutil
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from beeboard.errors import YAMLError
from beeboard.file_locking import FileLock

logger = logging.getLogger(__name__)

# Current store format version
SCHEMA_VERSION = 1

# Retry configuration
MAX_RETRIES = 3
RETRY_DELAY = 0.1  # seconds


def now_iso():
    """Return current time in ISO format with Z suffix."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def generate_id(prefix: str = "") -> str:
    """Generate a unique row id, optionally prefixed (e.g. ``col-``)."""
    value = uuid.uuid4().hex
    return f"{prefix}-{value}" if prefix else value


def _ensure_version(data: Dict[str, Any], file_path: Path) -> Dict[str, Any]:
    if "version" not in data:
        logger.debug(f"Adding version field to {file_path}")
        data["version"] = SCHEMA_VERSION
    return data


def load_yaml(
    path: Path,
    default=None,
    use_lock: bool = True,
    retry_on_error: bool = True,
) -> Optional[Dict[str, Any]]:
    """
    Load a YAML mapping with error handling and retry logic.

    Args:
        path: Path to YAML file
        default: Default value if file doesn't exist or is empty
        use_lock: Whether to take the file lock while reading
        retry_on_error: Whether to retry on transient errors

    Returns:
        Loaded data or default value

    Raises:
        YAMLError: If the file is corrupted or cannot be loaded
    """
    path = Path(path)
    if not path.exists():
        return default

    def _do_load():
        content = path.read_text(encoding="utf-8")
        if not content.strip():
            logger.warning(f"Empty file {path}, returning default")
            return default

        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            error_msg = (
                f"YAML parsing error in {path}: {e}\n"
                f"File may be corrupted. Consider restoring from the .bak copy."
            )
            logger.error(error_msg)
            raise YAMLError(error_msg) from e

        if data is None:
            return default

        if not isinstance(data, dict):
            error_msg = f"Expected dict in {path}, got {type(data).__name__}"
            logger.error(error_msg)
            raise YAMLError(error_msg)

        return _ensure_version(data, path)

    attempts = MAX_RETRIES if retry_on_error else 1
    for attempt in range(attempts):
        try:
            if use_lock:
                with FileLock(path):
                    return _do_load()
            return _do_load()
        except YAMLError:
            raise
        except Exception as e:
            if attempt < attempts - 1:
                logger.warning(
                    f"Error loading {path} (attempt {attempt + 1}/{attempts}): {e}. "
                    f"Retrying in {RETRY_DELAY}s..."
                )
                time.sleep(RETRY_DELAY)
            else:
                error_msg = f"Failed to load {path} after {attempts} attempts: {e}"
                logger.error(error_msg)
                raise YAMLError(error_msg) from e
    return default


def save_yaml(
    path: Path,
    data: dict,
    use_lock: bool = True,
    retry_on_error: bool = True,
    create_backup: bool = True,
) -> None:
    """
    Save a mapping to a YAML file atomically (temp file + rename).

    Args:
        path: Path to YAML file
        data: Data to save
        use_lock: Whether to take the file lock while writing
        retry_on_error: Whether to retry on transient errors
        create_backup: Whether to keep a ``.bak`` copy of the previous file

    Raises:
        YAMLError: If the save operation fails
    """
    path = Path(path)
    data = _ensure_version(data, path)

    def _do_save():
        if create_backup and path.exists():
            backup_path = path.with_suffix(path.suffix + ".bak")
            try:
                shutil.copy2(path, backup_path)
            except OSError as e:
                logger.warning(f"Failed to create backup: {e}")

        path.parent.mkdir(parents=True, exist_ok=True)

        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            with temp_path.open("w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, sort_keys=False, default_flow_style=False, allow_unicode=True)
            temp_path.replace(path)
            logger.debug(f"Saved {path}")
        except Exception:
            if temp_path.exists():
                temp_path.unlink()
            raise

    attempts = MAX_RETRIES if retry_on_error else 1
    for attempt in range(attempts):
        try:
            if use_lock:
                with FileLock(path):
                    _do_save()
            else:
                _do_save()
            return
        except Exception as e:
            if attempt < attempts - 1:
                logger.warning(
                    f"Error saving {path} (attempt {attempt + 1}/{attempts}): {e}. "
                    f"Retrying in {RETRY_DELAY}s..."
                )
                time.sleep(RETRY_DELAY)
            else:
                error_msg = f"Failed to save {path} after {attempts} attempts: {e}"
                logger.error(error_msg)
                raise YAMLError(error_msg) from e
