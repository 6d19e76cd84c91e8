"""Attendance API router."""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from academy_portal.auth.dependencies import get_current_user
from academy_portal.auth.schemas import CurrentUser
from academy_portal.core.exceptions import ServiceError
from academy_portal.db.session import get_db

from . import service
from .schemas import (
    AttendanceDayResponse,
    AttendancePercentage,
    AttendanceRecordResponse,
    AttendanceSubmitRequest,
)

router = APIRouter(prefix="/api/v1/attendance", tags=["attendance"])


@router.post(
    "/{batch_id}",
    response_model=AttendanceRecordResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_attendance(
    batch_id: UUID,
    payload: AttendanceSubmitRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Record one session for a batch. Only once per batch per day, whichever teacher submits."""
    try:
        return await service.submit_attendance(db, current_user, batch_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.get(
    "/{batch_id}/day",
    response_model=AttendanceDayResponse,
)
async def get_attendance_day(
    batch_id: UUID,
    att_date: date,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Session state (recorded / unrecorded) and the record, if any, for one date."""
    try:
        return await service.get_attendance_day(db, current_user, batch_id, att_date)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.get(
    "/{batch_id}/history",
    response_model=List[AttendanceRecordResponse],
)
async def list_attendance_history(
    batch_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """All sessions of a batch, oldest first."""
    try:
        return await service.list_attendance_history(db, current_user, batch_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.get(
    "/{batch_id}/percentages",
    response_model=List[AttendancePercentage],
)
async def get_attendance_percentages(
    batch_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    try:
        return await service.get_attendance_percentages(db, current_user, batch_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.get(
    "/{batch_id}/{att_date}",
    response_model=Optional[AttendanceRecordResponse],
)
async def get_attendance_for_date(
    batch_id: UUID,
    att_date: date = Path(..., description="Session date (YYYY-MM-DD)"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """The record for one date, or null when the session has not been recorded."""
    try:
        return await service.get_attendance_for_date(db, current_user, batch_id, att_date)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
