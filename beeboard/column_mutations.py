# column_mutations.py

import logging

from beeboard.board_store import BoardStateStore
from beeboard.errors import NotFoundError, ValidationError
from beeboard.logging_config import get_activity_logger
from beeboard.models import Column
from beeboard.repository import ProjectRepository
from beeboard.session import SessionContext

logger = logging.getLogger(__name__)


class ColumnMutationController:
    """Adds and removes columns on a loaded board. Writes go to the repository first."""

    def __init__(self, store: BoardStateStore, repository: ProjectRepository) -> None:
        self.store = store
        self.repository = repository
        self.activity_logger = get_activity_logger()

    async def create_column(self, ctx: SessionContext, project_id: str, title: str) -> Column:
        """
        Append a new, empty column at ``position = current column count``.

        Two columns created concurrently can end up with the same position;
        the board keeps both, in creation order.
        """
        if not title or not title.strip():
            raise ValidationError("Column title is required")
        user_id = ctx.require_user()
        tree = self.store.require_tree()
        if tree.project.id != project_id:
            raise NotFoundError(f"Project '{project_id}' is not the loaded board")

        column = await self.repository.insert_column(
            {
                "title": title.strip(),
                "project_id": project_id,
                "position": len(tree.columns),
            }
        )
        column.tasks = []
        self.store.append_column(column)

        logger.debug(f"Created column {column.id} at position {column.position}")
        self.activity_logger.info(
            f"USER:{user_id} | ACTION:create_column | COLUMN:{column.id} | TITLE:{column.title[:50]}"
        )
        return column

    async def delete_column(self, ctx: SessionContext, column_id: str) -> None:
        """
        Delete the column row, then drop the node (and its tasks) from the board.

        Tasks are not moved elsewhere; what happens to their rows is up to the
        repository's cascade rules.
        """
        user_id = ctx.require_user()
        column = self.store.get_column(column_id)

        await self.repository.delete_column(column_id)
        self.store.remove_column(column_id)

        logger.debug(f"Deleted column {column_id} with {len(column.tasks)} tasks")
        self.activity_logger.info(
            f"USER:{user_id} | ACTION:delete_column | COLUMN:{column_id} | TASKS:{len(column.tasks)}"
        )
