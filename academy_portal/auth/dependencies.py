from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from academy_portal.auth.schemas import CurrentUser
from academy_portal.auth.security import decode_access_token
from academy_portal.core.enums import CallerRole
from academy_portal.core.exceptions import ServiceError
from academy_portal.core.tenant_service import resolve_caller
from academy_portal.db.session import get_db


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login-oauth")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """Resolve the authenticated admin/teacher and their academy from the access token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_access_token(token)
    except JWTError:
        raise credentials_exception

    user_id_str = payload.get("user_id") or payload.get("sub")
    academy_id_str = payload.get("academy_id")
    role_name = payload.get("role")
    if not user_id_str or not role_name:
        raise credentials_exception

    try:
        user_id = UUID(user_id_str)
        academy_id = UUID(academy_id_str) if academy_id_str else None
        role = CallerRole(role_name)
    except ValueError:
        raise credentials_exception

    try:
        return await resolve_caller(db, user_id, role, academy_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
