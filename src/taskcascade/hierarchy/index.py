"""
Read-only id lookup over a task snapshot.
"""
from typing import Dict, Iterable, List, Optional, Union

from taskcascade.models import Task

class TreeIndex:
    """Maps task ids to tasks and parent ids to children for one snapshot."""

    def __init__(self, tasks: Iterable[Task]):
        self.tasks: List[Task] = list(tasks)
        self._by_id: Dict[int, Task] = {}
        self._children: Dict[int, List[Task]] = {}
        for task in self.tasks:
            self._by_id[task.id] = task
            if task.parent_id is not None:
                self._children.setdefault(task.parent_id, []).append(task)

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, task_id) -> bool:
        return self.exists(task_id)

    def exists(self, task_id: Optional[int]) -> bool:
        return task_id is not None and task_id in self._by_id

    def get(self, task_id: Optional[int]) -> Optional[Task]:
        if task_id is None:
            return None
        return self._by_id.get(task_id)

    def parent_of(self, task_id: int) -> Optional[int]:
        task = self._by_id.get(task_id)
        return task.parent_id if task else None

    def children_of(self, task_id: Optional[int]) -> List[Task]:
        """Direct children in snapshot order."""
        return list(self._children.get(task_id, ()))

TaskSource = Union[TreeIndex, Iterable[Task]]

def as_index(tasks: TaskSource) -> TreeIndex:
    """Reuse an existing index or build one for a plain task sequence."""
    if isinstance(tasks, TreeIndex):
        return tasks
    return TreeIndex(tasks)
