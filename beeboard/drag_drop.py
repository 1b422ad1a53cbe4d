# drag_drop.py

"""
Drag-and-drop task transfer between columns.

A gesture is a drag start (the task id and its source column travel as the
transfer payload) followed by a drop on a target column. On drop the task is
looked up in the source column as it is *now*; if it is gone the drop is
silently ignored.

With ``persist_moves`` on, the move is applied to the board first (task
marked ``pending``) and then written with a single ``update_task`` carrying
the new ``column_id`` and ``position``. Re-sending the same update is
harmless, so a retry by the caller cannot corrupt the row. On failure the
``failure_policy`` decides between flagging the task ``unsynced`` and putting
it back where it came from.

With ``persist_moves`` off the move only exists on this board: the task is
flagged ``unsynced`` and the next load shows it in its old column again.

When a task is dropped again before the update of its previous move
returns, only the latest move decides what the board shows; the outcome of
the earlier one is logged and otherwise ignored.
"""

import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from beeboard.board_store import BoardStateStore
from beeboard.config import FailurePolicy
from beeboard.errors import PersistenceError
from beeboard.logging_config import get_activity_logger
from beeboard.models import SyncState, Task
from beeboard.repository import ProjectRepository
from beeboard.session import SessionContext

logger = logging.getLogger(__name__)


class DragState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    DROPPED = "dropped"


@dataclass(frozen=True)
class DragPayload:
    task_id: str
    source_column_id: str


class DragDropMoveProtocol:
    def __init__(
        self,
        store: BoardStateStore,
        repository: ProjectRepository,
        persist_moves: bool = True,
        failure_policy: FailurePolicy = FailurePolicy.MARK_UNSYNCED,
    ) -> None:
        self.store = store
        self.repository = repository
        self.persist_moves = persist_moves
        self.failure_policy = FailurePolicy(failure_policy)
        self.state = DragState.IDLE
        self.payload: Optional[DragPayload] = None
        # task id -> ticket of its latest persisted move
        self._moves: Dict[str, int] = {}
        self._tickets = itertools.count(1)
        self.activity_logger = get_activity_logger()

    def begin_drag(self, task_id: str, source_column_id: str) -> DragPayload:
        self.payload = DragPayload(task_id=task_id, source_column_id=source_column_id)
        self.state = DragState.DRAGGING
        logger.debug(f"Dragging task {task_id} from column {source_column_id}")
        return self.payload

    def cancel_drag(self) -> None:
        self.payload = None
        self.state = DragState.IDLE

    async def drop(
        self,
        ctx: SessionContext,
        target_column_id: str,
        payload: Optional[DragPayload] = None,
    ) -> Optional[Task]:
        """
        Finish a gesture on ``target_column_id``.

        Uses ``payload`` if given, else the payload of the current drag.
        Returns the moved task, or None when the drop was a no-op (no drag,
        self-drop, unknown target, task no longer in the source column).

        Raises:
            PersistenceError: the update failed (the board reflects
                ``failure_policy``).
        """
        payload = payload or self.payload
        self.payload = None
        self.state = DragState.DROPPED if payload else DragState.IDLE
        if payload is None:
            return None

        if payload.source_column_id == target_column_id:
            return None

        tree = self.store.tree
        if tree is None:
            return None
        source = tree.find_column(payload.source_column_id)
        target = tree.find_column(target_column_id)
        if source is None or target is None:
            logger.debug(f"Drop of task {payload.task_id} ignored: column no longer on the board")
            return None
        task = source.find_task(payload.task_id)
        if task is None:
            logger.debug(
                f"Drop of task {payload.task_id} ignored: not in column {payload.source_column_id}"
            )
            return None

        original_index = source.tasks.index(task)
        original_position = task.position
        original_state = task.sync_state
        new_position = target.next_task_position() if self.persist_moves else None

        moved = self.store.move_task(task.id, source.id, target.id, position=new_position)
        self.activity_logger.info(
            f"USER:{ctx.user_id} | ACTION:move_task | TASK:{moved.id} | {source.id} -> {target.id}"
        )

        if not self.persist_moves:
            self.store.mark_task(moved.id, SyncState.UNSYNCED)
            return moved

        ticket = next(self._tickets)
        self._moves[moved.id] = ticket
        self.store.mark_task(moved.id, SyncState.PENDING)
        try:
            saved = await self.repository.update_task(
                moved.id, {"column_id": target.id, "position": new_position}
            )
        except PersistenceError:
            if not self._settle(moved, ticket, target.id):
                logger.warning(f"Move of task {moved.id} failed after a later move took over")
            elif self.failure_policy == FailurePolicy.ROLLBACK:
                logger.warning(f"Move of task {moved.id} failed, returning it to {source.id}")
                # an earlier move of this task may not have reached the store
                state = SyncState.SYNCED if original_state == SyncState.SYNCED else SyncState.UNSYNCED
                if self.store.return_task(
                    moved.id, source.id, original_index, original_position, state
                ) is None:
                    self.store.mark_task(moved.id, SyncState.UNSYNCED)
            else:
                logger.warning(f"Move of task {moved.id} failed, marking it unsynced")
                self.store.mark_task(moved.id, SyncState.UNSYNCED)
            raise

        if self._settle(moved, ticket, target.id):
            self.store.replace_task(saved)
        return saved

    def _settle(self, moved: Task, ticket: int, target_column_id: str) -> bool:
        """
        Whether the outcome of move ``ticket`` may still be applied to the board.

        Only the latest move of a task owns its node, and only while that node
        is still the one it moved and still sits in the column it was dropped on.
        """
        if self._moves.get(moved.id) != ticket:
            return False
        del self._moves[moved.id]
        found = self.store.find_task(moved.id)
        return found is not None and found[0].id == target_column_id and found[1] is moved
