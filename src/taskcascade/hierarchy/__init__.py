"""
Hierarchy integrity and status propagation over an in-memory task snapshot.

Every function is pure: it reads the tasks it is given and returns results,
never touching storage.
"""

from .index import TreeIndex
from .cycles import would_create_circular_dependency
from .walker import (
    get_task_ancestors,
    get_task_descendants,
    get_invalid_parent_ids,
    get_task_children,
)
from .counts import get_dependency_counts, are_all_dependencies_complete
from .propagate import StatusPropagator, propagate_status_change

__all__ = [
    'TreeIndex',
    'StatusPropagator',
    'would_create_circular_dependency',
    'get_task_ancestors',
    'get_task_descendants',
    'get_invalid_parent_ids',
    'get_task_children',
    'get_dependency_counts',
    'are_all_dependencies_complete',
    'propagate_status_change',
]
