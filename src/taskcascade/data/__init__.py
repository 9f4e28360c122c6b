"""
Data management submodule: the task file store and the task service built on it.
"""

from .core import TaskStore
from .service import TaskService

__all__ = [
    'TaskStore',
    'TaskService',
]
