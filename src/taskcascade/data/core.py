"""
TaskStore - YAML-backed persistence for the task tree.

The store owns ids and timestamps. Each public write loads the document,
changes it and saves it back with a single atomic replace, so one call is
one all-or-nothing update of the file.
"""
import math
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from taskcascade.logs import get_logger
from taskcascade.models import StatusUpdate, Task, TaskDocument, TaskPage
from taskcascade.recovery import CorruptionError, InvalidRequestError, RecoverableError
from taskcascade.version import APP_SCHEMA_VERSION
from .io import atomic_write, load_yaml_file, DATA_YAML
from .validate import check_schema_version, validate_document

log = get_logger("data.core")

DATA_DIR_ENV = "TASKCASCADE_DATA_DIR"
DEFAULT_DATA_DIR = Path(".taskcascade")
TASKS_FILENAME = "tasks.yml"

def default_data_dir() -> Path:
    env_dir = os.getenv(DATA_DIR_ENV, '')
    return Path(env_dir) if env_dir else DEFAULT_DATA_DIR

class TaskStore:
    """Task persistence in <data dir>/tasks.yml."""

    def __init__(self, path: Union[Path, str]):
        self.path = Path(path)

    @classmethod
    def from_data_dir(cls, data_dir: Union[Path, str, None] = None) -> 'TaskStore':
        data_dir = Path(data_dir) if data_dir else default_data_dir()
        return cls(data_dir / TASKS_FILENAME)

    @property
    def exists(self) -> bool:
        return self.path.exists()

    def initialize(self) -> Path:
        """Create the data directory and an empty task file."""
        if self.path.exists():
            raise RecoverableError(f"Task file already exists: {self.path}")
        self._save(TaskDocument())
        log.info(f"Initialized task file {self.path}")
        return self.path

    def _load(self) -> TaskDocument:
        data = load_yaml_file(self.path)
        if data is None:
            return TaskDocument()

        validate_document(data, self.path)
        check_schema_version(data.get("schema_version", APP_SCHEMA_VERSION), self.path)
        try:
            return TaskDocument.model_validate(data)
        except ValidationError as e:
            raise CorruptionError(f"{self.path} contains invalid tasks: {e}") from e

    def _save(self, document: TaskDocument):
        document.tasks.sort(key=lambda task: task.id)
        atomic_write(DATA_YAML, self.path, document.model_dump(mode="json", by_alias=True), create_dirs=True)

    @staticmethod
    def _build(fields: Dict[str, Any]) -> Task:
        try:
            return Task.model_validate(fields)
        except ValidationError as e:
            messages = "; ".join(err["msg"] for err in e.errors())
            raise InvalidRequestError(f"Invalid task: {messages}") from e

    def get_all_tasks(self) -> List[Task]:
        return sorted(self._load().tasks, key=lambda task: task.id)

    def get_task(self, task_id: int) -> Optional[Task]:
        return next((t for t in self._load().tasks if t.id == task_id), None)

    def get_tasks_by_parent_id(self, parent_id: Optional[int]) -> List[Task]:
        """Children of ``parent_id``, or root tasks when it is None."""
        return [t for t in self.get_all_tasks() if t.parent_id == parent_id]

    def has_children(self, task_id: int) -> bool:
        return any(t.parent_id == task_id for t in self._load().tasks)

    def create_task(self, **fields) -> Task:
        document = self._load()
        now = datetime.now()
        fields.pop("id", None)
        task = self._build({**fields, "id": document.next_id, "created_at": now, "updated_at": now})

        document.tasks.append(task)
        document.next_id = task.id + 1
        self._save(document)
        log.info(f"Created task {task.id}: {task.header}")
        return task

    def update_task(self, task_id: int, **fields) -> Optional[Task]:
        """
        Replace the given fields of a task and bump its updated_at.

        Returns:
            The updated task, or None if no task has this id
        """
        document = self._load()
        position = next((i for i, t in enumerate(document.tasks) if t.id == task_id), None)
        if position is None:
            return None

        fields.pop("id", None)
        if not fields:
            return document.tasks[position]

        current = document.tasks[position].model_dump()
        updated = self._build({**current, **fields, "updated_at": datetime.now()})
        document.tasks[position] = updated
        self._save(document)
        log.debug(f"Updated task {task_id}: {sorted(fields)}")
        return updated

    def apply_status_updates(self, updates: Iterable[StatusUpdate]) -> List[Task]:
        """
        Write a batch of status updates in one save.

        Updates for unknown ids and updates that do not change the stored
        status are skipped.

        Returns:
            The tasks that changed, in update order
        """
        document = self._load()
        positions = {t.id: i for i, t in enumerate(document.tasks)}
        now = datetime.now()
        changed: List[Task] = []

        for update in updates:
            position = positions.get(update.id)
            if position is None:
                log.warning(f"Skipping status update for missing task {update.id}")
                continue
            task = document.tasks[position]
            if task.status == update.status:
                continue
            task = task.model_copy(update={"status": update.status, "updated_at": now})
            document.tasks[position] = task
            changed.append(task)

        if changed:
            self._save(document)
            log.info(f"Applied {len(changed)} status update(s): "
                     + ", ".join(f"{t.id}={t.status}" for t in changed))
        return changed

    def delete_task(self, task_id: int) -> bool:
        document = self._load()
        remaining = [t for t in document.tasks if t.id != task_id]
        if len(remaining) == len(document.tasks):
            return False
        document.tasks = remaining
        self._save(document)
        log.info(f"Deleted task {task_id}")
        return True

    def get_paginated_root_tasks(self, page: int, limit: int) -> TaskPage:
        roots = self.get_tasks_by_parent_id(None)
        start = (page - 1) * limit
        return TaskPage(
            tasks=roots[start:start + limit],
            total=len(roots),
            page=page,
            limit=limit,
            total_pages=math.ceil(len(roots) / limit),
        )

    def bulk_insert_tasks(self, tasks: Iterable[Task]) -> int:
        """Insert tasks keeping their ids. Returns the number inserted."""
        document = self._load()
        now = datetime.now()
        existing = {t.id for t in document.tasks}
        inserted = 0

        for task in tasks:
            if task.id in existing:
                raise InvalidRequestError(f"Task id {task.id} already exists")
            stamped = task.model_copy(update={
                "created_at": task.created_at or now,
                "updated_at": task.updated_at or now,
            })
            document.tasks.append(stamped)
            existing.add(task.id)
            inserted += 1

        if existing:
            document.next_id = max(document.next_id, max(existing) + 1)
        self._save(document)
        log.info(f"Inserted {inserted} task(s)")
        return inserted
