"""Fees router: ledger listing, month dropdown, manual entries and payment updates."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from academy_portal.auth.rbac import require_admin
from academy_portal.auth.schemas import CurrentUser
from academy_portal.core.enums import FeeStatus
from academy_portal.core.exceptions import ServiceError
from academy_portal.db.session import get_db

from . import service
from .schemas import FeeRecordCreate, FeeRecordResponse, FeeRecordUpdate

router = APIRouter(prefix="/api/v1/fees", tags=["fees"])


@router.get(
    "",
    response_model=List[FeeRecordResponse],
)
async def list_fees(
    status_filter: Optional[FeeStatus] = Query(None, alias="status"),
    batch_id: Optional[UUID] = Query(None),
    month: Optional[str] = Query(None, description='Month label, e.g. "June 2025"'),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> List[FeeRecordResponse]:
    try:
        return await service.list_fees(
            db,
            current_user,
            status=status_filter,
            batch_id=batch_id,
            month=month,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.get(
    "/months",
    response_model=List[str],
)
async def list_fee_months(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> List[str]:
    return await service.list_fee_months(db, current_user)


@router.get(
    "/student/{student_id}",
    response_model=List[FeeRecordResponse],
)
async def get_student_fees(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> List[FeeRecordResponse]:
    try:
        return await service.get_student_fees(db, current_user, student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.post(
    "",
    response_model=FeeRecordResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_fee(
    payload: FeeRecordCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> FeeRecordResponse:
    try:
        return await service.create_fee(db, current_user, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.put(
    "/{fee_id}",
    response_model=FeeRecordResponse,
)
async def update_fee(
    fee_id: UUID,
    payload: FeeRecordUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> FeeRecordResponse:
    try:
        return await service.update_fee(db, current_user, fee_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.delete(
    "/{fee_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_fee(
    fee_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> None:
    try:
        await service.delete_fee(db, current_user, fee_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
