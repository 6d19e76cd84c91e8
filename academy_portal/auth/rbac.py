from fastapi import Depends, HTTPException, status

from academy_portal.auth.dependencies import get_current_user
from academy_portal.auth.schemas import CurrentUser
from academy_portal.core.enums import CallerRole


def require_role(*roles: CallerRole):
    """
    Dependency factory restricting an endpoint to the given caller roles.

    Example:
        Depends(require_role(CallerRole.ADMIN))
    """

    async def _checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return current_user

    return _checker


require_admin = require_role(CallerRole.ADMIN)
