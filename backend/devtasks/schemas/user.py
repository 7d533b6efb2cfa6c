"""
User request/response models.

UserPublic never carries the password hash.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from devtasks.auth.principal import Role
from devtasks.schemas.common import CamelModel


class UserCreate(CamelModel):
    email: str
    password: str = Field(min_length=8)
    first_name: str
    last_name: str
    role: Role = Role.SOFTWARE_ENGINEER
    department: str
    reports_to: Optional[str] = None


class UserPublic(CamelModel):
    id: str
    email: str
    first_name: str
    last_name: str
    role: Role
    department: str
    reports_to_id: Optional[str] = Field(default=None, serialization_alias="reportsTo")
    is_active: bool
    profile_image: Optional[str] = None
    created_at: datetime
    updated_at: datetime
