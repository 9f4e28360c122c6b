from typing import Optional

from taskcascade.models import DependencyCounts, TaskStatus
from .index import TaskSource, as_index

def get_dependency_counts(tasks: TaskSource, task_id: Optional[int]) -> DependencyCounts:
    """Count the direct children of a task and how many are DONE or COMPLETE."""
    children = as_index(tasks).children_of(task_id)
    return DependencyCounts(
        total=len(children),
        done=sum(1 for child in children if child.status == TaskStatus.DONE.value),
        complete=sum(1 for child in children if child.status == TaskStatus.COMPLETE.value),
    )

def are_all_dependencies_complete(tasks: TaskSource, task_id: Optional[int]) -> bool:
    """True when the task has children and every one of them is COMPLETE."""
    children = as_index(tasks).children_of(task_id)
    if not children:
        return False
    return all(child.status == TaskStatus.COMPLETE.value for child in children)
