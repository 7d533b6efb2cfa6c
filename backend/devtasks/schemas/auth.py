"""
Login request and authentication response models.
"""

from devtasks.schemas.common import CamelModel
from devtasks.schemas.user import UserPublic


class LoginRequest(CamelModel):
    email: str
    password: str


class AuthResponse(CamelModel):
    success: bool = True
    message: str = "Login successful"
    token: str
    user: UserPublic
