"""Batch service: CRUD with roster cross-references and fee ledger kept in step."""

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academy_portal.api.v1.attendance.service import purge_batch_attendance
from academy_portal.auth.schemas import CurrentUser
from academy_portal.core import fee_ledger_service, roster_service
from academy_portal.core.config import settings
from academy_portal.core.exceptions import ConflictError, ValidationError
from academy_portal.core.models import Batch, Student, Teacher
from academy_portal.core.schedule import session_dates
from academy_portal.core.tenant_service import (
    get_many_scoped,
    get_scoped,
    require_admin,
    unique_ids,
)
from academy_portal.db.transaction import SyncTransaction

from .schemas import (
    BatchCreate,
    BatchDetailResponse,
    BatchResponse,
    BatchUpdate,
    RosterMember,
    SessionDatesResponse,
)

logger = logging.getLogger(__name__)

DUPLICATE_BATCH = "Batch with this name already exists in your academy"


def _validate_date_range(start_date: date, end_date: date) -> None:
    if start_date > end_date:
        raise ValidationError("Start date must be on or before end date")


async def _ensure_name_free(
    db: AsyncSession,
    academy_id: UUID,
    name: str,
    exclude_id: Optional[UUID] = None,
) -> None:
    stmt = select(Batch.id).where(Batch.academy_id == academy_id, Batch.name == name)
    if exclude_id is not None:
        stmt = stmt.where(Batch.id != exclude_id)
    if (await db.execute(stmt)).first() is not None:
        raise ConflictError(DUPLICATE_BATCH)


async def _batch_to_response(db: AsyncSession, batch: Batch) -> BatchResponse:
    return BatchResponse(
        id=batch.id,
        academy_id=batch.academy_id,
        name=batch.name,
        start_date=batch.start_date,
        end_date=batch.end_date,
        days=list(batch.days or []),
        time_slot=batch.time_slot,
        location=batch.location,
        fee=batch.fee,
        teachers=await roster_service.batch_teacher_ids(db, batch.id),
        students=await roster_service.batch_student_ids(db, batch.id),
        created_at=batch.created_at,
        updated_at=batch.updated_at,
    )


async def create_batch(
    db: AsyncSession,
    ctx: CurrentUser,
    payload: BatchCreate,
) -> BatchResponse:
    """Create a batch, link its roster and bill every student for every month of the range."""
    require_admin(ctx)
    name = payload.name.strip()
    if not name:
        raise ValidationError("Batch name is required")
    _validate_date_range(payload.start_date, payload.end_date)

    teacher_ids = unique_ids(payload.teachers)
    student_ids = unique_ids(payload.students)
    await get_many_scoped(db, Teacher, teacher_ids, ctx.academy_id, "Teacher")
    await get_many_scoped(db, Student, student_ids, ctx.academy_id, "Student")
    await _ensure_name_free(db, ctx.academy_id, name)

    async with SyncTransaction(db, "create batch", conflict_message=DUPLICATE_BATCH):
        batch = Batch(
            academy_id=ctx.academy_id,
            name=name,
            start_date=payload.start_date,
            end_date=payload.end_date,
            days=payload.days,
            time_slot=payload.time_slot,
            location=payload.location,
            fee=payload.fee if payload.fee is not None else Decimal(settings.default_batch_fee),
        )
        db.add(batch)
        await db.flush()
        await roster_service.add_teachers_to_batch(db, batch.id, teacher_ids)
        await roster_service.add_students_to_batch(db, batch.id, student_ids)
        await fee_ledger_service.sync_batch_created(db, batch, student_ids)

    logger.info("Created batch %s (%s) in academy %s", batch.id, name, ctx.academy_id)
    return await _batch_to_response(db, batch)


async def update_batch(
    db: AsyncSession,
    ctx: CurrentUser,
    batch_id: UUID,
    payload: BatchUpdate,
) -> BatchResponse:
    """
    Apply a partial update, then reconcile roster links and the fee ledger against the
    roster and billing basis captured before the update.
    """
    require_admin(ctx)
    batch = await get_scoped(db, Batch, batch_id, ctx.academy_id, "Batch")
    old_students = await roster_service.batch_student_ids(db, batch.id)
    before = fee_ledger_service.BatchSnapshot.of(batch, old_students)

    data = payload.model_dump(exclude_unset=True)
    name = (data.get("name") or batch.name).strip()
    if not name:
        raise ValidationError("Batch name is required")
    start_date = data.get("start_date") or batch.start_date
    end_date = data.get("end_date") or batch.end_date
    _validate_date_range(start_date, end_date)

    teacher_ids = unique_ids(data["teachers"]) if data.get("teachers") is not None else None
    student_ids = unique_ids(data["students"]) if data.get("students") is not None else None
    if teacher_ids is not None:
        await get_many_scoped(db, Teacher, teacher_ids, ctx.academy_id, "Teacher")
    if student_ids is not None:
        await get_many_scoped(db, Student, student_ids, ctx.academy_id, "Student")
    await _ensure_name_free(db, ctx.academy_id, name, exclude_id=batch.id)

    async with SyncTransaction(db, "update batch", conflict_message=DUPLICATE_BATCH):
        batch.name = name
        batch.start_date = start_date
        batch.end_date = end_date
        if data.get("days") is not None:
            batch.days = data["days"]
        if "time_slot" in data:
            batch.time_slot = data["time_slot"]
        if "location" in data:
            batch.location = data["location"]
        if data.get("fee") is not None:
            batch.fee = data["fee"]
        await db.flush()

        if teacher_ids is not None:
            await roster_service.set_batch_teachers(db, batch.id, teacher_ids)
        roster = old_students
        if student_ids is not None:
            await roster_service.set_batch_students(db, batch.id, student_ids)
            roster = student_ids
        await fee_ledger_service.sync_batch_updated(db, batch, before, roster)

    logger.info("Updated batch %s in academy %s", batch.id, ctx.academy_id)
    return await _batch_to_response(db, batch)


async def delete_batch(
    db: AsyncSession,
    ctx: CurrentUser,
    batch_id: UUID,
) -> None:
    """Delete a batch, its roster links, its fee records and its attendance history."""
    require_admin(ctx)
    batch = await get_scoped(db, Batch, batch_id, ctx.academy_id, "Batch")
    async with SyncTransaction(db, "delete batch"):
        await roster_service.unlink_batch(db, batch.id)
        await fee_ledger_service.delete_batch_fees(db, batch.id)
        await purge_batch_attendance(db, batch.id)
        await db.delete(batch)
    logger.info("Deleted batch %s in academy %s", batch_id, ctx.academy_id)


async def list_batches(db: AsyncSession, ctx: CurrentUser) -> List[BatchResponse]:
    result = await db.execute(
        select(Batch).where(Batch.academy_id == ctx.academy_id).order_by(Batch.start_date, Batch.name)
    )
    return [await _batch_to_response(db, b) for b in result.scalars().all()]


async def get_batch(db: AsyncSession, ctx: CurrentUser, batch_id: UUID) -> BatchDetailResponse:
    batch = await get_scoped(db, Batch, batch_id, ctx.academy_id, "Batch")
    base = await _batch_to_response(db, batch)
    teachers = await get_many_scoped(db, Teacher, base.teachers, ctx.academy_id, "Teacher")
    students = await get_many_scoped(db, Student, base.students, ctx.academy_id, "Student")
    return BatchDetailResponse(
        **base.model_dump(),
        teacher_details=[RosterMember(id=t.id, name=t.name) for t in teachers],
        student_details=[RosterMember(id=s.id, name=s.name) for s in students],
    )


async def get_session_dates(
    db: AsyncSession,
    ctx: CurrentUser,
    batch_id: UUID,
    today: Optional[date] = None,
) -> SessionDatesResponse:
    """Expected session grid of a batch up to `today` (defaults to the current date)."""
    batch = await get_scoped(db, Batch, batch_id, ctx.academy_id, "Batch")
    today = today or date.today()
    return SessionDatesResponse(
        batch_id=batch.id,
        today=today,
        dates=session_dates(batch.start_date, batch.end_date, batch.days or [], today),
    )
