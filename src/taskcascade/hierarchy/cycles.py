from typing import Optional, Set

from taskcascade.logs import get_logger
from .index import TaskSource, as_index

log = get_logger("hierarchy.cycles")

def would_create_circular_dependency(tasks: TaskSource, task_id: Optional[int], parent_id: Optional[int]) -> bool:
    """
    Check whether making ``parent_id`` the parent of ``task_id`` would close a cycle.

    New tasks have no id yet; callers pass a placeholder id that no stored
    task uses.

    Args:
        tasks: All tasks in the system, or a prebuilt TreeIndex
        task_id: The task being edited or created
        parent_id: The proposed parent task id

    Returns:
        True if the assignment would create a cycle, False otherwise
    """
    if not parent_id or not task_id:
        return False
    if task_id == parent_id:
        return True

    index = as_index(tasks)
    current_id = parent_id
    visited: Set[int] = set()

    while current_id is not None:
        if current_id == task_id:
            return True

        if current_id in visited:
            # The existing data already loops; this edit is not what closed it
            log.warning(f"Existing cycle found above task {parent_id} at task {current_id}")
            break

        visited.add(current_id)
        current_id = index.parent_of(current_id)

    return False
