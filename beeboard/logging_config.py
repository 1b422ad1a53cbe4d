"""
Logging configuration for BeeBoard.

Sets up Python's native logging with appropriate levels and formatting, plus
the separate board activity log.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

ACTIVITY_LOGGER_NAME = "beeboard.board_activity"


def setup_logging(
    level=logging.INFO,
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None,
) -> None:
    """
    Set up logging configuration for BeeBoard.

    Args:
        level: Logging level (default: INFO)
        log_file: Optional file to write logs to
        format_string: Optional custom format string
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    handlers = [logging.StreamHandler(sys.stderr)]

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format=format_string,
        handlers=handlers,
    )

    logging.getLogger("beeboard").setLevel(level)


def get_activity_logger(log_dir: Optional[Path] = None) -> logging.Logger:
    """
    Get the board activity logger.

    Activity lines look like ``USER:<id> | ACTION:<verb> | ...``. The logger
    does not propagate to the root logger; when ``log_dir`` is given a file
    handler writing ``board_activity.log`` is attached once.
    """
    activity_logger = logging.getLogger(ACTIVITY_LOGGER_NAME)
    activity_logger.setLevel(logging.INFO)
    activity_logger.propagate = False

    if log_dir is not None and not activity_logger.handlers:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / "board_activity.log")
        file_handler.setLevel(logging.INFO)
        # Format: timestamp | logger | level | user | action | details
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(name)s | %(levelname)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        activity_logger.addHandler(file_handler)

    return activity_logger
