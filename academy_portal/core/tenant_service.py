"""
Tenant scope guard.

- Every caller resolves to exactly one academy (CurrentUser.academy_id).
- Every read/write on batches, students, teachers, fees and attendance is filtered by
  that academy id. A row from another academy is reported as "not found", never as
  "forbidden", so existence is not revealed across tenants.
"""
from typing import Iterable, List, Optional, Sequence, Type, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academy_portal.auth.models import Admin
from academy_portal.auth.schemas import CurrentUser
from academy_portal.core.enums import CallerRole
from academy_portal.core.exceptions import (
    AuthorizationError,
    ConfigurationError,
    NotFoundError,
    ValidationError,
)
from academy_portal.core.models import Academy, Teacher

ModelT = TypeVar("ModelT")

INVALID_CALLER = "Could not validate caller"


def parse_id(value, label: str = "id") -> UUID:
    """Coerce an id to UUID; malformed ids are a validation error, not a lookup miss."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {label} format")


def unique_ids(values: Optional[Iterable]) -> List[UUID]:
    """Parse and de-duplicate ids, keeping first-seen order."""
    seen: List[UUID] = []
    for v in values or []:
        uid = parse_id(v)
        if uid not in seen:
            seen.append(uid)
    return seen


async def resolve_caller(
    db: AsyncSession,
    user_id: UUID,
    role: CallerRole,
    claimed_academy_id: Optional[UUID] = None,
) -> CurrentUser:
    """Load the admin/teacher behind a token and pin it to its academy."""
    if role == CallerRole.ADMIN:
        caller = await db.get(Admin, user_id)
    else:
        caller = await db.get(Teacher, user_id)
    if caller is None:
        raise AuthorizationError(INVALID_CALLER, 401)

    if caller.academy_id is None:
        raise ConfigurationError(f"{role.value.title()} has no academy assigned")
    if claimed_academy_id is not None and claimed_academy_id != caller.academy_id:
        raise AuthorizationError(INVALID_CALLER, 401)

    academy = await db.get(Academy, caller.academy_id)
    if academy is None:
        raise ConfigurationError("Academy for this account no longer exists")

    return CurrentUser(id=caller.id, academy_id=caller.academy_id, role=role)


def require_admin(ctx: CurrentUser) -> None:
    if not ctx.is_admin:
        raise AuthorizationError("Only academy admins can perform this action")


async def get_scoped(
    db: AsyncSession,
    model: Type[ModelT],
    entity_id,
    academy_id: UUID,
    label: str,
) -> ModelT:
    """Fetch one row of `model` inside the academy or raise NotFoundError."""
    uid = parse_id(entity_id, f"{label.lower()} id")
    result = await db.execute(
        select(model).where(model.id == uid, model.academy_id == academy_id)
    )
    obj = result.scalar_one_or_none()
    if obj is None:
        raise NotFoundError(f"{label} not found")
    return obj


async def get_many_scoped(
    db: AsyncSession,
    model: Type[ModelT],
    ids: Sequence[UUID],
    academy_id: UUID,
    label: str,
) -> List[ModelT]:
    """Fetch rows in the order of `ids`; any id missing from the academy raises NotFoundError."""
    if not ids:
        return []
    result = await db.execute(
        select(model).where(model.id.in_(ids), model.academy_id == academy_id)
    )
    found = {row.id: row for row in result.scalars().all()}
    missing = [str(i) for i in ids if i not in found]
    if missing:
        raise NotFoundError(f"{label} not found: {', '.join(missing)}")
    return [found[i] for i in ids]
