from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from datetime import datetime
from enum import Enum
from typing import Optional, List
import yaml

from .version import APP_SCHEMA_VERSION

class TaskStatus(Enum):
    """Statuses the propagation engine understands. Any other string passes through."""
    IN_PROGRESS = "IN PROGRESS"
    DONE = "DONE"
    COMPLETE = "COMPLETE"

DEFAULT_TYPE = "Narrative"
DEFAULT_STATUS = TaskStatus.IN_PROGRESS.value
DEFAULT_TARGET = "0"
DEFAULT_LIMIT = "0"
DEFAULT_REVIEWER = "Assign reviewer"

class BaseYAMLModel(BaseModel):
    """Pydantic model that round-trips through YAML text."""

    def to_yaml(self) -> str:
        return yaml.safe_dump(
            self.model_dump(mode="json", by_alias=True),
            default_flow_style=False, sort_keys=False, indent=2, allow_unicode=True
        )

    @classmethod
    def from_yaml(cls, text: str):
        return cls.model_validate(yaml.safe_load(text) or {})

class Task(BaseModel):
    """A single node of the task tree."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int = Field(gt=0, description="Unique identifier assigned by the store")
    header: str = Field(description="Display name of the task")
    type: str = Field(default=DEFAULT_TYPE, description="Free-form task type")
    status: str = Field(default=DEFAULT_STATUS, description="Status token; IN PROGRESS, DONE and COMPLETE drive propagation")
    target: str = Field(default=DEFAULT_TARGET, description="Free-form target value")
    limit: str = Field(default=DEFAULT_LIMIT, description="Free-form limit value")
    reviewer: str = Field(default=DEFAULT_REVIEWER, description="Who reviews the task")
    parent_id: Optional[int] = Field(default=None, alias="parentId", description="Id of the parent task, null for a root task")
    created_at: Optional[datetime] = Field(default=None, description="When the task was stored")
    updated_at: Optional[datetime] = Field(default=None, description="When the task was last written")

    @field_validator('header')
    @classmethod
    def validate_header(cls, v):
        if not v or not v.strip():
            raise ValueError("Task name is required")
        return v

    @model_validator(mode='after')
    def validate_parent(self):
        if self.parent_id is not None and self.parent_id == self.id:
            raise ValueError("A task cannot be its own parent")
        return self

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

class StatusUpdate(BaseModel):
    """An update intent produced by the propagation engine."""
    id: int = Field(description="Id of the task to update")
    status: str = Field(description="Status the task should be written with")

class DependencyCounts(BaseModel):
    total: int = Field(default=0, description="Number of direct children")
    done: int = Field(default=0, description="Children with status exactly DONE")
    complete: int = Field(default=0, description="Children with status exactly COMPLETE")

class TaskPage(BaseModel):
    """One page of root tasks."""
    tasks: List[Task] = Field(default_factory=list, description="Root tasks on this page")
    total: int = Field(description="Number of root tasks overall")
    page: int = Field(description="1-based page number")
    limit: int = Field(description="Page size")
    total_pages: int = Field(description="Number of pages for this page size")

class TaskDocument(BaseYAMLModel):
    """The stored task file."""

    schema_version: str = Field(default=APP_SCHEMA_VERSION, description="Schema version the file was written with")
    next_id: int = Field(default=1, gt=0, description="Id the next created task receives")
    tasks: List[Task] = Field(
        default_factory=list,
        description="Every task, in ascending id order"
    )

    @model_validator(mode='after')
    def validate_ids(self):
        seen = set()
        for task in self.tasks:
            if task.id in seen:
                raise ValueError(f"Duplicate task id: {task.id}")
            seen.add(task.id)
        if seen and self.next_id <= max(seen):
            raise ValueError("next_id must be greater than every task id")
        return self
