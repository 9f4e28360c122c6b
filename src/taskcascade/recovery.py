class TaskCascadeError(Exception):
    """Base exception for all taskcascade errors."""
    pass

class RecoverableError(TaskCascadeError):
    """An error that can be recovered from without data loss."""
    pass

class FatalError(TaskCascadeError):
    """An error that requires application termination or major intervention."""
    pass

class CorruptionError(FatalError):
    """Corrupted Data Error - from syntax errors in data formats, to just unknown data"""
    pass

class FileOperationError(RecoverableError):
    """File operation failed but can be retried."""
    pass

class MigrationNeededError(RecoverableError):
    """ Data is valid, but was written by an older schema version """
    pass

class InvalidRequestError(RecoverableError):
    """The caller supplied values the task layer cannot accept."""
    pass

class TaskNotFoundError(RecoverableError):
    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(f"Task not found: {task_id}")

class ParentNotFoundError(RecoverableError):
    def __init__(self, parent_id: int):
        self.parent_id = parent_id
        super().__init__(f"Parent task not found: {parent_id}")

class CircularDependencyError(RecoverableError):
    def __init__(self, task_id: int, parent_id: int):
        self.task_id = task_id
        self.parent_id = parent_id
        super().__init__(
            f"Making task {parent_id} the parent of task {task_id} would create a circular dependency"
        )

class HasChildrenError(RecoverableError):
    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(
            f"Cannot delete task {task_id} with child tasks. Delete or reassign children first."
        )
