# board_init.py

import asyncio
import logging
import weakref
from typing import Dict, List, Optional

from beeboard.models import Column
from beeboard.repository import ProjectRepository

logger = logging.getLogger(__name__)


# Default column template, in board order, per locale
DEFAULT_COLUMN_TITLES: Dict[str, List[str]] = {
    "pt-BR": ["Projeto", "Status", "To Do", "Revisão", "Correção", "Aprovação"],
    "en": ["Project", "Status", "To Do", "Review", "Fix", "Approval"],
}


def default_columns(locale: str = "pt-BR") -> List[dict]:
    """Column rows of the default template, ``position`` being the template index."""
    titles = DEFAULT_COLUMN_TITLES[locale]
    return [{"title": title, "position": index} for index, title in enumerate(titles)]


class ColumnBootstrapper:
    """
    Makes sure a project has a non-empty, ordered set of columns.

    The emptiness check and the template insert are one conditional
    repository call, and bootstraps of the same project inside this process
    wait on a per-project lock, so a project ends up with exactly one
    default column set.
    """

    def __init__(self, repository: ProjectRepository, locale: str = "pt-BR") -> None:
        if locale not in DEFAULT_COLUMN_TITLES:
            raise ValueError(f"Unknown locale '{locale}'")
        self.repository = repository
        self.locale = locale
        # entries vanish once no bootstrap of that project holds the lock
        self._locks = weakref.WeakValueDictionary()

    def _lock_for(self, project_id: str) -> asyncio.Lock:
        lock = self._locks.get(project_id)
        if lock is None:
            lock = self._locks[project_id] = asyncio.Lock()
        return lock

    async def ensure_default_columns(self, project_id: str) -> Optional[List[Column]]:
        """
        Insert the default template if the project has no columns.

        Returns the inserted columns, or None when the project already had
        columns. Persistence errors propagate; nothing is retried.
        """
        async with self._lock_for(project_id):
            existing = await self.repository.fetch_columns_with_tasks(project_id)
            if existing:
                logger.debug(f"Project {project_id} already has {len(existing)} columns")
                return None

            inserted = await self.repository.insert_columns_if_empty(
                project_id, default_columns(self.locale)
            )
            if not inserted:
                # another writer bootstrapped between our read and the insert
                logger.info(f"Default columns for project {project_id} were created elsewhere")
                return None

            logger.info(f"Created {len(inserted)} default columns for project {project_id}")
            return inserted
