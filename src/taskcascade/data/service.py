"""
TaskService - the caller side of the hierarchy engine.

It loads the full task snapshot from the store, asks the engine whether an
edit is allowed and which statuses follow from it, and writes the results
back. All graph decisions come from ``taskcascade.hierarchy``; this module
only turns them into errors or store writes.
"""
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from taskcascade.hierarchy import (
    TreeIndex,
    get_dependency_counts,
    get_invalid_parent_ids,
    get_task_ancestors,
    propagate_status_change,
    would_create_circular_dependency,
)
from taskcascade.logs import get_logger
from taskcascade.models import (
    DEFAULT_LIMIT, DEFAULT_REVIEWER, DEFAULT_STATUS, DEFAULT_TARGET, DEFAULT_TYPE,
    DependencyCounts, StatusUpdate, Task, TaskPage, TaskStatus,
)
from taskcascade.recovery import (
    CircularDependencyError,
    HasChildrenError,
    InvalidRequestError,
    ParentNotFoundError,
    TaskNotFoundError,
)
from .core import TaskStore
from .io import load_json_file

log = get_logger("data.service")

# Marks a keyword the caller did not pass, as opposed to an explicit None
UNSET: Any = object()

class TaskService:
    """Task operations that keep the tree acyclic and statuses consistent."""

    def __init__(self, store: TaskStore):
        self.store = store

    def _require(self, task_id: int) -> Task:
        task = self.store.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def _check_parent(self, tasks: List[Task], task_id: int, parent_id: int):
        if would_create_circular_dependency(tasks, task_id, parent_id):
            log.warning(f"Rejected parent {parent_id} for task {task_id}: circular dependency")
            raise CircularDependencyError(task_id, parent_id)
        if not any(t.id == parent_id for t in tasks):
            raise ParentNotFoundError(parent_id)

    @staticmethod
    def _clean_status(status: str) -> str:
        if not status or not status.strip():
            raise InvalidRequestError("Status is required")
        return status.strip()

    def get_task(self, task_id: int) -> Task:
        return self._require(task_id)

    def list_tasks(self) -> List[Task]:
        return self.store.get_all_tasks()

    def list_root_tasks(self, page: int, limit: int) -> TaskPage:
        if page < 1 or limit < 1:
            raise InvalidRequestError("Invalid pagination parameters")
        return self.store.get_paginated_root_tasks(page, limit)

    def describe(self, task_id: int) -> Dict[str, Any]:
        """The task together with its ancestors, children and dependency counts."""
        index = TreeIndex(self.store.get_all_tasks())
        task = index.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        ancestors: List[Task] = []
        for ancestor_id in get_task_ancestors(index, task_id):
            ancestor = index.get(ancestor_id)
            if ancestor is None:
                # A dangling parentId ends the chain like a root does
                log.warning(f"Task {task_id} has a missing ancestor {ancestor_id}")
                break
            ancestors.append(ancestor)
        return {
            "task": task,
            "ancestors": ancestors,
            "children": index.children_of(task_id),
            "counts": get_dependency_counts(index, task_id),
        }

    def dependency_counts(self, task_id: int) -> DependencyCounts:
        tasks = self.store.get_all_tasks()
        return get_dependency_counts(tasks, task_id)

    def available_parents(self, task_id: Optional[int] = None) -> List[Task]:
        """Tasks that may be offered as a new parent: not the task, not below it, not COMPLETE."""
        tasks = self.store.get_all_tasks()
        excluded = set(get_invalid_parent_ids(tasks, task_id))
        return [t for t in tasks if t.id not in excluded and t.status != TaskStatus.COMPLETE.value]

    def create_task(
        self,
        header: str,
        *,
        type: Optional[str] = None,
        status: Optional[str] = None,
        target: Optional[str] = None,
        limit: Optional[str] = None,
        reviewer: Optional[str] = None,
        parent_id: Optional[int] = None,
    ) -> Task:
        if not header or not header.strip():
            raise InvalidRequestError("Task name is required")

        if parent_id:
            tasks = self.store.get_all_tasks()
            # The new task has no id yet; use one no stored task can have
            placeholder_id = max((t.id for t in tasks), default=0) + 1
            self._check_parent(tasks, placeholder_id, parent_id)

        task = self.store.create_task(
            header=header.strip(),
            type=type or DEFAULT_TYPE,
            status=self._clean_status(status) if status is not None else DEFAULT_STATUS,
            target=target or DEFAULT_TARGET,
            limit=limit or DEFAULT_LIMIT,
            reviewer=reviewer or DEFAULT_REVIEWER,
            parent_id=parent_id or None,
        )

        if task.parent_id is not None:
            # A new child can change what its parent chain is allowed to claim
            updates = propagate_status_change(self.store.get_all_tasks(), task.id, task.status)
            self.store.apply_status_updates(updates)
            task = self._require(task.id)
        return task

    def update_task(
        self,
        task_id: int,
        *,
        header: Optional[str] = None,
        type: Optional[str] = None,
        status: Optional[str] = None,
        target: Optional[str] = None,
        limit: Optional[str] = None,
        reviewer: Optional[str] = None,
        parent_id: Optional[int] = UNSET,
    ) -> Task:
        """
        Edit task fields. ``status`` is written without propagation;
        use set_status for a propagated change.

        Args:
            parent_id: New parent id, None to make the task a root, or leave
                unset to keep the current parent

        Raises:
            TaskNotFoundError: No task has ``task_id``
            CircularDependencyError: The new parent is the task or one of its descendants
            ParentNotFoundError: The new parent does not exist
            InvalidRequestError: A field value is not acceptable
        """
        existing = self._require(task_id)
        fields: Dict[str, Any] = {
            key: value for key, value in (
                ("header", header.strip() if header is not None else None),
                ("type", type),
                ("status", self._clean_status(status) if status is not None else None),
                ("target", target),
                ("limit", limit),
                ("reviewer", reviewer),
            ) if value is not None
        }

        reparent = parent_id is not UNSET and parent_id != existing.parent_id
        if reparent:
            if parent_id is not None:
                self._check_parent(self.store.get_all_tasks(), task_id, parent_id)
            fields["parent_id"] = parent_id

        updated = self.store.update_task(task_id, **fields)
        if updated is None:
            raise TaskNotFoundError(task_id)

        if reparent:
            self._propagate_reparent(existing, updated)
            updated = self._require(task_id)
        return updated

    def _propagate_reparent(self, before: Task, after: Task):
        """
        Recheck both parent chains after ``before`` moved to ``after.parent_id``.

        The old parent is re-propagated with its own status, which lets it
        complete once the moved task no longer holds it back. The new chain is
        propagated from the moved task with its status, exactly as if it had
        just been set. The old chain is evaluated first and its result is
        applied to the working snapshot before the new chain is evaluated;
        when both chains share an ancestor, the new chain's result wins.
        """
        working: Dict[int, Task] = {t.id: t for t in self.store.get_all_tasks()}
        working[after.id] = after
        merged: Dict[int, str] = {}

        passes = []
        if before.parent_id is not None and before.parent_id in working:
            passes.append((before.parent_id, working[before.parent_id].status))
        if after.parent_id is not None:
            passes.append((after.id, after.status))

        for seed_id, seed_status in passes:
            for update in propagate_status_change(list(working.values()), seed_id, seed_status):
                if update.id in merged and merged[update.id] != update.status:
                    log.warning(f"Re-parent of task {after.id}: task {update.id} is "
                                f"{merged[update.id]} on the old chain and {update.status} on the new chain")
                merged[update.id] = update.status
                working[update.id] = working[update.id].model_copy(update={"status": update.status})

        self.store.apply_status_updates(StatusUpdate(id=k, status=v) for k, v in merged.items())

    def set_status(self, task_id: int, status: str) -> List[Task]:
        """
        Change a task's status and apply the resulting cascade.

        Returns:
            Every task whose stored status changed
        """
        status = self._clean_status(status)
        self._require(task_id)
        updates = propagate_status_change(self.store.get_all_tasks(), task_id, status)
        if len(updates) > 1:
            log.info(f"Status change of task {task_id} cascaded to {len(updates) - 1} other task(s)")
        return self.store.apply_status_updates(updates)

    def toggle_status(self, task_id: int) -> List[Task]:
        """Flip between DONE and IN PROGRESS; COMPLETE counts as done."""
        task = self._require(task_id)
        if task.status in (TaskStatus.DONE.value, TaskStatus.COMPLETE.value):
            new_status = TaskStatus.IN_PROGRESS.value
        else:
            new_status = TaskStatus.DONE.value
        return self.set_status(task_id, new_status)

    def delete_task(self, task_id: int) -> bool:
        if self.store.has_children(task_id):
            raise HasChildrenError(task_id)
        if not self.store.delete_task(task_id):
            raise TaskNotFoundError(task_id)
        return True

    def import_tasks(self, file_path: Union[Path, str]) -> int:
        """
        Import tasks from a JSON file into an empty store.

        The file holds a list of task records, or an object with a "tasks"
        list. Ids, statuses and parent links are kept as given.

        Returns:
            Number of tasks imported; 0 when the store already holds tasks
        """
        existing = self.store.get_all_tasks()
        if existing:
            log.warning(f"Store already contains {len(existing)} tasks, import skipped")
            return 0

        data = load_json_file(file_path)
        if data is None:
            raise InvalidRequestError(f"Import file not found: {file_path}")
        records = data.get("tasks") if isinstance(data, dict) else data
        if not isinstance(records, list):
            raise InvalidRequestError(f"{file_path} does not contain a list of tasks")

        try:
            tasks = [Task.model_validate(record) for record in records]
        except ValidationError as e:
            raise InvalidRequestError(f"Invalid task in {file_path}: {e}") from e

        index = TreeIndex(tasks)
        if len(index) != len(tasks):
            raise InvalidRequestError(f"{file_path} contains duplicate task ids")
        for task in tasks:
            if task.parent_id is None:
                continue
            if not index.exists(task.parent_id):
                raise ParentNotFoundError(task.parent_id)
            if would_create_circular_dependency(index, task.id, task.parent_id):
                raise CircularDependencyError(task.id, task.parent_id)

        return self.store.bulk_insert_tasks(tasks)
