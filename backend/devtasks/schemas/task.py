"""
Task request/response models.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from devtasks.models.task import TaskPriority, TaskStatus
from devtasks.schemas.common import CamelModel


class TaskCreate(CamelModel):
    title: str
    description: str
    priority: TaskPriority = TaskPriority.MEDIUM
    project: str
    assigned_to: str
    estimated_hours: float = Field(ge=0)
    start_date: Optional[datetime] = None
    due_date: datetime
    tags: List[str] = Field(default_factory=list)


class TaskResponse(CamelModel):
    id: str
    title: str
    description: str
    status: TaskStatus
    priority: TaskPriority
    project_id: Optional[str] = Field(default=None, serialization_alias="project")
    assigned_to_id: str = Field(serialization_alias="assignedTo")
    assigned_by_id: Optional[str] = Field(default=None, serialization_alias="assignedBy")
    estimated_hours: float
    actual_hours: float
    start_date: Optional[datetime] = None
    due_date: datetime
    completed_date: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
