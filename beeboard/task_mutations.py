# task_mutations.py

import logging
from typing import Optional

from beeboard.board_store import BoardStateStore
from beeboard.config import TaskPositionStrategy
from beeboard.errors import ValidationError
from beeboard.logging_config import get_activity_logger
from beeboard.models import Priority, Task, parse_due_date
from beeboard.repository import ProjectRepository
from beeboard.session import SessionContext

logger = logging.getLogger(__name__)


def _parse_priority(priority) -> Priority:
    if isinstance(priority, Priority):
        return priority
    try:
        return Priority(str(priority).strip().lower())
    except ValueError:
        allowed = ", ".join(p.value for p in Priority)
        raise ValidationError(f"Priority '{priority}' not allowed. Allowed: {allowed}")


class TaskMutationController:
    """
    Creates tasks on a loaded board.

    The task row is written first; the store is only touched once the
    repository has confirmed it, so a failed insert leaves the board as it
    was. There is no delete: tasks leave a column by being dragged away or
    together with their column.
    """

    def __init__(
        self,
        store: BoardStateStore,
        repository: ProjectRepository,
        position_strategy: TaskPositionStrategy = TaskPositionStrategy.MAX_PLUS_ONE,
    ) -> None:
        self.store = store
        self.repository = repository
        self.position_strategy = TaskPositionStrategy(position_strategy)
        self.activity_logger = get_activity_logger()

    def _position_for(self, column) -> int:
        if self.position_strategy == TaskPositionStrategy.ZERO:
            return 0
        return column.next_task_position()

    async def create_task(
        self,
        ctx: SessionContext,
        column_id: str,
        title: str,
        description: str = "",
        priority="medium",
        assigned_to: Optional[str] = None,
        due_date: Optional[str] = None,
    ) -> Task:
        """
        Create a task in ``column_id`` and put it at the front of that column.

        Raises:
            ValidationError: empty title, unknown priority, unparseable due
                date or no user. Nothing is sent to the repository.
            NotFoundError: the column is not on the loaded board.
            PersistenceError: the insert failed; the board is unchanged.
        """
        if not title or not title.strip():
            raise ValidationError("Task title is required")
        user_id = ctx.require_user()
        priority = _parse_priority(priority)
        try:
            due_date = parse_due_date(due_date)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        column = self.store.get_column(column_id)

        values = {
            "title": title.strip(),
            "description": description or "",
            "priority": priority.value,
            "column_id": column_id,
            "created_by": user_id,
            "position": self._position_for(column),
            "assigned_to": assigned_to,
            "due_date": due_date,
        }
        task = await self.repository.insert_task(values)

        # the column may have been deleted while the insert was in flight
        if self.store.tree is None or self.store.tree.find_column(column_id) is None:
            logger.warning(f"Column {column_id} left the board before task {task.id} was confirmed")
            return task

        self.store.prepend_task(column_id, task)
        logger.debug(f"Created task {task.id} in column {column_id} at position {task.position}")
        self.activity_logger.info(
            f"USER:{user_id} | ACTION:create_task | TASK:{task.id} | TITLE:{task.title[:50]} | COLUMN:{column_id}"
        )
        return task
