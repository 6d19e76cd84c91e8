"""Teacher router."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from academy_portal.auth.dependencies import get_current_user
from academy_portal.auth.rbac import require_admin, require_role
from academy_portal.auth.schemas import CurrentUser
from academy_portal.core.enums import CallerRole
from academy_portal.core.exceptions import ServiceError
from academy_portal.db.session import get_db

from . import service
from .schemas import TeacherBatchItem, TeacherCreate, TeacherResponse, TeacherUpdate

router = APIRouter(prefix="/api/v1/teachers", tags=["teachers"])


@router.post(
    "",
    response_model=TeacherResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_teacher(
    payload: TeacherCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> TeacherResponse:
    try:
        return await service.create_teacher(db, current_user, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.get(
    "",
    response_model=List[TeacherResponse],
)
async def list_teachers(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> List[TeacherResponse]:
    return await service.list_teachers(db, current_user)


@router.get(
    "/me/batches",
    response_model=List[TeacherBatchItem],
)
async def my_batches(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_role(CallerRole.TEACHER)),
) -> List[TeacherBatchItem]:
    try:
        return await service.get_my_batches(db, current_user)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.get(
    "/{teacher_id}",
    response_model=TeacherResponse,
)
async def get_teacher(
    teacher_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> TeacherResponse:
    try:
        return await service.get_teacher(db, current_user, teacher_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.put(
    "/{teacher_id}",
    response_model=TeacherResponse,
)
async def update_teacher(
    teacher_id: UUID,
    payload: TeacherUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> TeacherResponse:
    try:
        return await service.update_teacher(db, current_user, teacher_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.delete(
    "/{teacher_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_teacher(
    teacher_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> None:
    try:
        await service.delete_teacher(db, current_user, teacher_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
