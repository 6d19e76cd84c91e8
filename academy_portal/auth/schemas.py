from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from academy_portal.core.enums import CallerRole


class CurrentUser(BaseModel):
    """Resolved caller. Passed explicitly into every service call; never stored globally."""

    id: UUID
    academy_id: UUID
    role: CallerRole

    @property
    def is_admin(self) -> bool:
        return self.role == CallerRole.ADMIN

    @property
    def is_teacher(self) -> bool:
        return self.role == CallerRole.TEACHER


class LoginRequest(BaseModel):
    academy_name: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: UUID
    academy_id: UUID
    role: CallerRole
    name: str
    issued_at: datetime
