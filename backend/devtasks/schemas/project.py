"""
Project request/response models.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from devtasks.models.project import ProjectStatus
from devtasks.schemas.common import CamelModel


class ProjectCreate(CamelModel):
    name: str
    description: str
    project_manager: str
    assistant_project_manager: Optional[str] = None
    team_leader: Optional[str] = None
    team_members: List[str] = Field(default_factory=list)
    start_date: datetime
    end_date: Optional[datetime] = None
    estimated_hours: float = Field(ge=0)
    budget: Optional[float] = Field(default=None, ge=0)

    @field_validator("end_date")
    @classmethod
    def end_after_start(cls, v: Optional[datetime], info) -> Optional[datetime]:
        start = info.data.get("start_date")
        if v is None or start is None:
            return v
        if (v.tzinfo is None) == (start.tzinfo is None) and v < start:
            raise ValueError("endDate must not be before startDate")
        return v


class ProjectResponse(CamelModel):
    id: str
    name: str
    description: str
    status: ProjectStatus
    pm_id: str = Field(serialization_alias="projectManager")
    apm_id: Optional[str] = Field(default=None, serialization_alias="assistantProjectManager")
    team_lead_id: Optional[str] = Field(default=None, serialization_alias="teamLeader")
    team_member_ids: List[str] = Field(default_factory=list, serialization_alias="teamMembers")
    start_date: datetime
    end_date: Optional[datetime] = None
    estimated_hours: float
    actual_hours: float
    progress: int
    budget: Optional[float] = None
    created_at: datetime
    updated_at: datetime
