"""
Status propagation across the task tree.

Statuses form a small lattice for propagation purposes:
IN PROGRESS < DONE < COMPLETE. Any other status is passed through untouched.

- A task set to DONE whose children are all COMPLETE is upgraded to COMPLETE.
- When every child of a parent is DONE or COMPLETE, the DONE children and the
  parent become COMPLETE, and the check repeats one level up.
- A task set to IN PROGRESS reverts COMPLETE ancestors to DONE, stopping at the
  first ancestor that is not COMPLETE. Nothing is ever forced below DONE.

The engine only computes update intents; callers persist them.
"""
from typing import Dict, List, Optional, Set

from taskcascade.logs import get_logger
from taskcascade.models import StatusUpdate, TaskStatus
from .index import TaskSource, TreeIndex, as_index

log = get_logger("hierarchy.propagate")

IN_PROGRESS = TaskStatus.IN_PROGRESS.value
DONE = TaskStatus.DONE.value
COMPLETE = TaskStatus.COMPLETE.value

class UpdateQueue:
    """Ordered status intents, at most one per task id."""

    def __init__(self):
        self._statuses: Dict[int, str] = {}

    def __len__(self) -> int:
        return len(self._statuses)

    def __contains__(self, task_id) -> bool:
        return task_id in self._statuses

    def get(self, task_id: int) -> Optional[str]:
        return self._statuses.get(task_id)

    def put(self, task_id: int, status: str):
        """Queue a status, overwriting an earlier entry in place."""
        self._statuses[task_id] = status

    def to_list(self) -> List[StatusUpdate]:
        return [StatusUpdate(id=task_id, status=status) for task_id, status in self._statuses.items()]

class StatusPropagator:
    """Computes the cascade caused by one status change on one snapshot."""

    def __init__(self, tasks: TaskSource):
        self.index: TreeIndex = as_index(tasks)
        self.queue = UpdateQueue()

    def effective_status(self, task_id: int) -> Optional[str]:
        """Stored status with any queued update applied over it."""
        queued = self.queue.get(task_id)
        if queued is not None:
            return queued
        task = self.index.get(task_id)
        return task.status if task else None

    def propagate(self, task_id: int, new_status: str) -> List[StatusUpdate]:
        task = self.index.get(task_id)
        if task is None:
            log.debug(f"Task {task_id} is not in the snapshot, nothing to propagate")
            return []

        self.queue.put(task_id, new_status)

        if new_status == DONE:
            children = self.index.children_of(task_id)
            if children and all(self.effective_status(c.id) == COMPLETE for c in children):
                log.debug(f"Task {task_id} upgraded to COMPLETE, all {len(children)} dependencies complete")
                new_status = COMPLETE
                self.queue.put(task_id, new_status)

            if task.parent_id is not None:
                self.complete_upwards(task.parent_id)

        elif new_status == COMPLETE and task.parent_id is not None:
            self.complete_upwards(task.parent_id)

        elif new_status == IN_PROGRESS and task.parent_id is not None:
            self.revert_upwards(task.parent_id)

        updates = self.queue.to_list()
        log.debug(f"Status change of task {task_id} to {new_status} produced {len(updates)} update(s)")
        return updates

    def complete_upwards(self, parent_id: int):
        """Mark parents COMPLETE while all of their children are DONE or COMPLETE."""
        visited: Set[int] = set()
        current_id: Optional[int] = parent_id

        while current_id is not None and current_id not in visited:
            visited.add(current_id)
            parent = self.index.get(current_id)
            if parent is None:
                return

            children = self.index.children_of(current_id)
            if not children:
                return

            statuses = {child.id: self.effective_status(child.id) for child in children}
            if not all(status in (DONE, COMPLETE) for status in statuses.values()):
                return

            for child_id, status in statuses.items():
                if status == DONE:
                    self.queue.put(child_id, COMPLETE)

            self.queue.put(current_id, COMPLETE)
            current_id = parent.parent_id

    def revert_upwards(self, parent_id: int):
        """Move COMPLETE ancestors back to DONE, stopping at the first one that is not COMPLETE."""
        visited: Set[int] = set()
        current_id: Optional[int] = parent_id

        while current_id is not None and current_id not in visited:
            visited.add(current_id)
            parent = self.index.get(current_id)
            if parent is None or self.effective_status(current_id) != COMPLETE:
                return

            self.queue.put(current_id, DONE)
            current_id = parent.parent_id

def propagate_status_change(tasks: TaskSource, task_id: int, new_status: str) -> List[StatusUpdate]:
    """
    Compute every status update caused by setting ``task_id`` to ``new_status``.

    Args:
        tasks: All tasks in the system, or a prebuilt TreeIndex
        task_id: The task whose status changed
        new_status: The status it was set to

    Returns:
        Updates in discovery order, the changed task first. Empty if the task
        is not in the snapshot.
    """
    return StatusPropagator(tasks).propagate(task_id, new_status)
