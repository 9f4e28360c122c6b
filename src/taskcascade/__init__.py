"""
taskcascade - hierarchical tasks whose completion status cascades through the tree.

A task set to DONE becomes COMPLETE once all of its children are COMPLETE,
parents complete when all of their children are done, and a task moving back
to IN PROGRESS reverts COMPLETE ancestors to DONE.
"""

from .version import VERSION, APP_SCHEMA_VERSION
from .models import (
    TaskStatus,
    Task,
    StatusUpdate,
    DependencyCounts,
    TaskPage,
    TaskDocument,
)
from .hierarchy import (
    TreeIndex,
    StatusPropagator,
    would_create_circular_dependency,
    get_task_ancestors,
    get_task_descendants,
    get_invalid_parent_ids,
    get_task_children,
    get_dependency_counts,
    are_all_dependencies_complete,
    propagate_status_change,
)
from .data import TaskStore, TaskService

__version__ = VERSION

__all__ = [
    "VERSION",
    "APP_SCHEMA_VERSION",
    "TaskStatus",
    "Task",
    "StatusUpdate",
    "DependencyCounts",
    "TaskPage",
    "TaskDocument",
    "TreeIndex",
    "StatusPropagator",
    "would_create_circular_dependency",
    "get_task_ancestors",
    "get_task_descendants",
    "get_invalid_parent_ids",
    "get_task_children",
    "get_dependency_counts",
    "are_all_dependencies_complete",
    "propagate_status_change",
    "TaskStore",
    "TaskService",
]
