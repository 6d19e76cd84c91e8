"""Login for admins and teachers. Academy registration is handled outside this service."""

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from academy_portal.auth.models import Admin
from academy_portal.auth.schemas import LoginRequest, LoginResponse
from academy_portal.auth.security import create_access_token, verify_password
from academy_portal.core.enums import CallerRole
from academy_portal.core.exceptions import AuthorizationError
from academy_portal.core.models import Academy, Teacher

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


async def login_user(db: AsyncSession, payload: LoginRequest) -> LoginResponse:
    """Academy name and username match case-insensitively. Admin accounts win over teachers."""
    academy = (
        await db.execute(
            select(Academy).where(func.lower(Academy.name) == payload.academy_name.strip().lower())
        )
    ).scalar_one_or_none()
    if academy is None:
        logger.info("Rejected login for unknown academy %r", payload.academy_name)
        raise AuthorizationError(INVALID_CREDENTIALS, 401)

    username = payload.username.strip().lower()
    admin = (
        await db.execute(
            select(Admin).where(
                Admin.academy_id == academy.id,
                func.lower(Admin.username) == username,
            )
        )
    ).scalar_one_or_none()
    if admin is not None:
        if not verify_password(payload.password, admin.password_hash):
            raise AuthorizationError(INVALID_CREDENTIALS, 401)
        return _issue(admin.id, academy.id, CallerRole.ADMIN, admin.name)

    teacher = (
        await db.execute(
            select(Teacher).where(
                Teacher.academy_id == academy.id,
                Teacher.username == username,
            )
        )
    ).scalar_one_or_none()
    if teacher is None or not verify_password(payload.password, teacher.password_hash):
        logger.info("Rejected login for %s at academy %s", username, academy.id)
        raise AuthorizationError(INVALID_CREDENTIALS, 401)
    return _issue(teacher.id, academy.id, CallerRole.TEACHER, teacher.name)


def _issue(user_id, academy_id, role: CallerRole, name: str) -> LoginResponse:
    token = create_access_token(user_id=user_id, academy_id=academy_id, role=role)
    return LoginResponse(
        access_token=token,
        user_id=user_id,
        academy_id=academy_id,
        role=role,
        name=name,
        issued_at=datetime.now(timezone.utc),
    )
