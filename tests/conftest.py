"""Shared fixtures for taskcascade tests."""

import os
import tempfile

# Logging is configured when the package is imported; keep test logs out of $HOME
os.environ.setdefault("TASKCASCADE_LOG_DIR", tempfile.mkdtemp(prefix="taskcascade-logs-"))

import pytest

from taskcascade.data import TaskService, TaskStore
from taskcascade.models import Task


@pytest.fixture
def make_tasks():
    """Build tasks from (id, parent_id, status) tuples."""
    def build(*rows):
        return [
            Task(id=task_id, header=f"Task {task_id}", parent_id=parent_id, status=status)
            for task_id, parent_id, status in rows
        ]
    return build


@pytest.fixture
def store(tmp_path):
    store = TaskStore.from_data_dir(tmp_path / ".taskcascade")
    store.initialize()
    return store


@pytest.fixture
def service(store):
    return TaskService(store)
