"""
Ancestor and descendant traversal over a task snapshot.
"""
from typing import List, Optional, Set

from taskcascade.logs import get_logger
from taskcascade.models import Task
from .index import TaskSource, as_index

log = get_logger("hierarchy.walker")

def get_task_children(tasks: TaskSource, task_id: Optional[int]) -> List[Task]:
    """Direct children of a task, in snapshot order."""
    return as_index(tasks).children_of(task_id)

def get_task_ancestors(tasks: TaskSource, task_id: Optional[int]) -> List[int]:
    """
    Ids of every ancestor of a task, nearest first.

    Empty for root tasks and for ids not present in the snapshot.
    """
    index = as_index(tasks)
    ancestors: List[int] = []
    seen: Set[int] = {task_id}
    current_id = index.parent_of(task_id) if index.exists(task_id) else None

    while current_id is not None:
        if current_id in seen:
            log.warning(f"Parent chain of task {task_id} loops back to task {current_id}")
            break
        seen.add(current_id)
        ancestors.append(current_id)
        current_id = index.parent_of(current_id)

    return ancestors

def get_task_descendants(tasks: TaskSource, task_id: Optional[int]) -> List[int]:
    """
    Ids of children, grandchildren and so on, in pre-order.

    Each child is followed by its own descendants before its next sibling.
    """
    index = as_index(tasks)
    descendants: List[int] = []
    seen: Set[int] = {task_id}
    stack = list(reversed(index.children_of(task_id)))

    while stack:
        child = stack.pop()
        if child.id in seen:
            continue
        seen.add(child.id)
        descendants.append(child.id)
        stack.extend(reversed(index.children_of(child.id)))

    return descendants

def get_invalid_parent_ids(tasks: TaskSource, task_id: Optional[int]) -> List[int]:
    """
    Ids that must never be offered as the parent of ``task_id``: itself and its descendants.

    A task without an id yet (``None``) has no invalid parents.
    """
    if not task_id:
        return []
    return [task_id, *get_task_descendants(tasks, task_id)]
