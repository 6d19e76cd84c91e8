"""Batch router: CRUD, session grid and the missing-fee repair pass."""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from academy_portal.api.v1.fees import service as fee_service
from academy_portal.auth.dependencies import get_current_user
from academy_portal.auth.rbac import require_admin
from academy_portal.auth.schemas import CurrentUser
from academy_portal.core.exceptions import ServiceError
from academy_portal.db.session import get_db

from . import service
from .schemas import (
    BatchCreate,
    BatchDetailResponse,
    BatchResponse,
    BatchUpdate,
    GenerateMissingFeesResponse,
    SessionDatesResponse,
)

router = APIRouter(prefix="/api/v1/batches", tags=["batches"])


@router.post(
    "",
    response_model=BatchResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_batch(
    payload: BatchCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> BatchResponse:
    """Create a batch; links teachers/students and creates their monthly fee records."""
    try:
        return await service.create_batch(db, current_user, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.get(
    "",
    response_model=List[BatchResponse],
)
async def list_batches(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> List[BatchResponse]:
    return await service.list_batches(db, current_user)


@router.post(
    "/generate-missing-fees",
    response_model=GenerateMissingFeesResponse,
)
async def generate_missing_fees(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> GenerateMissingFeesResponse:
    """Repair pass: create every fee record the batches' rosters and date ranges call for."""
    try:
        created = await fee_service.generate_missing_fees(db, current_user)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    return GenerateMissingFeesResponse(created=created, message=f"{created} missing fee records created.")


@router.get(
    "/{batch_id}",
    response_model=BatchDetailResponse,
)
async def get_batch(
    batch_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> BatchDetailResponse:
    try:
        return await service.get_batch(db, current_user, batch_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.put(
    "/{batch_id}",
    response_model=BatchResponse,
)
async def update_batch(
    batch_id: UUID,
    payload: BatchUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> BatchResponse:
    """Update a batch; roster changes and fee/date changes are reflected in fee records."""
    try:
        return await service.update_batch(db, current_user, batch_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.delete(
    "/{batch_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_batch(
    batch_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> None:
    try:
        await service.delete_batch(db, current_user, batch_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.get(
    "/{batch_id}/session-dates",
    response_model=SessionDatesResponse,
)
async def get_session_dates(
    batch_id: UUID,
    today: Optional[date] = Query(None, description="Upper bound of the grid; defaults to the current date"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> SessionDatesResponse:
    try:
        return await service.get_session_dates(db, current_user, batch_id, today)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
