# board_store.py

"""
In-memory board tree (Project -> Column[] -> Task[]) for one board view.

BoardStateStore is the single source of truth the view renders from. It is
filled by ``load()`` and afterwards changed only through the node-path
mutations below, which the mutation controllers and the drag-and-drop
protocol call. Every change is pushed to subscribers.
"""

import logging
from typing import Callable, List, Optional, Tuple

from beeboard.board_init import ColumnBootstrapper
from beeboard.errors import BoardError, NotFoundError
from beeboard.models import BoardTree, Column, SyncState, Task
from beeboard.repository import ProjectRepository

logger = logging.getLogger(__name__)

Subscriber = Callable[[Optional[BoardTree]], None]


class BoardStateStore:
    def __init__(self, repository: ProjectRepository, bootstrapper: ColumnBootstrapper) -> None:
        self.repository = repository
        self.bootstrapper = bootstrapper
        self.tree: Optional[BoardTree] = None
        self.last_error: Optional[BoardError] = None
        self._subscribers: List[Subscriber] = []

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback(tree)``; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            try:
                callback(self.tree)
            except Exception:
                # a broken view must not break the board
                logger.exception("Board subscriber raised")

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self, project_id: str) -> BoardTree:
        """
        Fetch the project and its columns with nested tasks.

        An empty column set triggers one bootstrap and exactly one re-read;
        a second empty result is kept as is. On failure the store holds no
        tree and the error is re-raised.
        """
        self.tree = None
        self.last_error = None
        try:
            project = await self.repository.fetch_project(project_id)
            if project is None:
                raise NotFoundError(f"Project '{project_id}' not found")

            columns = await self.repository.fetch_columns_with_tasks(project_id)
            if not columns:
                logger.info(f"Project {project_id} has no columns, bootstrapping defaults")
                await self.bootstrapper.ensure_default_columns(project_id)
                columns = await self.repository.fetch_columns_with_tasks(project_id)
                if not columns:
                    logger.warning(f"Project {project_id} still has no columns after bootstrap")
        except BoardError as e:
            self.last_error = e
            logger.warning(f"Failed to load board for project {project_id}: {e}")
            self._notify()
            raise

        self.tree = BoardTree(project=project, columns=columns)
        logger.debug(
            f"Loaded project {project_id}: {len(columns)} columns, {self.tree.task_count()} tasks"
        )
        self._notify()
        return self.tree

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def require_tree(self) -> BoardTree:
        if self.tree is None:
            raise NotFoundError("No board loaded")
        return self.tree

    def get_column(self, column_id: str) -> Column:
        column = self.require_tree().find_column(column_id)
        if column is None:
            raise NotFoundError(f"Column '{column_id}' not found on this board")
        return column

    def find_task(self, task_id: str) -> Optional[Tuple[Column, Task]]:
        if self.tree is None:
            return None
        for column in self.tree.columns:
            task = column.find_task(task_id)
            if task is not None:
                return column, task
        return None

    # ------------------------------------------------------------------
    # Node-path mutations
    # ------------------------------------------------------------------

    def prepend_task(self, column_id: str, task: Task) -> None:
        self.get_column(column_id).tasks.insert(0, task)
        self._notify()

    def append_column(self, column: Column) -> None:
        self.require_tree().columns.append(column)
        self._notify()

    def remove_column(self, column_id: str) -> Optional[Column]:
        """Drop the column node and, with it, its nested tasks."""
        tree = self.require_tree()
        for index, column in enumerate(tree.columns):
            if column.id == column_id:
                removed = tree.columns.pop(index)
                self._notify()
                return removed
        return None

    def move_task(
        self,
        task_id: str,
        source_column_id: str,
        target_column_id: str,
        position: Optional[int] = None,
    ) -> Optional[Task]:
        """
        Move a task from its source column to the end of the target column.

        Returns None (and changes nothing) when either column is missing or
        the task is no longer in the source column.
        """
        if self.tree is None:
            return None
        source = self.tree.find_column(source_column_id)
        target = self.tree.find_column(target_column_id)
        if source is None or target is None:
            return None
        task = source.find_task(task_id)
        if task is None:
            return None

        source.tasks.remove(task)
        task.column_id = target.id
        if position is not None:
            task.position = position
        target.tasks.append(task)
        self._notify()
        return task

    def mark_task(self, task_id: str, state: SyncState) -> None:
        found = self.find_task(task_id)
        if found is None:
            return
        found[1].sync_state = state
        self._notify()

    def replace_task(self, task: Task) -> None:
        """Swap in the persisted version of a task, keeping its place in the list."""
        found = self.find_task(task.id)
        if found is None:
            return
        column, current = found
        column.tasks[column.tasks.index(current)] = task
        self._notify()

    def return_task(
        self,
        task_id: str,
        column_id: str,
        index: int,
        position: int,
        state: SyncState = SyncState.SYNCED,
    ) -> Optional[Task]:
        """Put a moved task back at ``index`` of ``column_id`` (undoing a failed move)."""
        found = self.find_task(task_id)
        if found is None:
            return None
        current_column, task = found
        column = self.require_tree().find_column(column_id)
        if column is None:
            return None

        current_column.tasks.remove(task)
        task.column_id = column_id
        task.position = position
        task.sync_state = state
        column.tasks.insert(min(index, len(column.tasks)), task)
        self._notify()
        return task
