"""
User-visible notifications raised by board operations.

The board core only produces them; showing them (toast, status line, log)
is left to whoever subscribes to the Notifier.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List

from beeboard.utils import now_iso

logger = logging.getLogger(__name__)


class Variant(str, Enum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


@dataclass
class Notification:
    title: str
    description: str = ""
    variant: Variant = Variant.DEFAULT
    at: str = field(default_factory=now_iso)

    @property
    def is_error(self) -> bool:
        return self.variant == Variant.DESTRUCTIVE


class Notifier:
    """Keeps a history of notifications and forwards each one to listeners."""

    def __init__(self) -> None:
        self.history: List[Notification] = []
        self._listeners: List[Callable[[Notification], None]] = []

    def add_listener(self, listener: Callable[[Notification], None]) -> None:
        self._listeners.append(listener)

    def publish(self, notification: Notification) -> Notification:
        self.history.append(notification)
        for listener in list(self._listeners):
            try:
                listener(notification)
            except Exception:
                logger.exception("Notification listener raised")
        return notification

    def success(self, title: str, description: str = "") -> Notification:
        return self.publish(Notification(title=title, description=description))

    def error(self, title: str, description: str = "") -> Notification:
        return self.publish(
            Notification(title=title, description=description, variant=Variant.DESTRUCTIVE)
        )
