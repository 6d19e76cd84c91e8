"""
Attendance recorder and aggregator.

A (batch, date) pair is either unrecorded or recorded; once a record exists it is final.
There is no edit or delete path for a single session.
"""

import logging
from datetime import date
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from academy_portal.auth.schemas import CurrentUser
from academy_portal.core import roster_service
from academy_portal.core.enums import AttendanceState
from academy_portal.core.exceptions import AuthorizationError, ConflictError, ValidationError
from academy_portal.core.models import AttendanceEntry, AttendanceRecord, Batch, Student, Teacher
from academy_portal.core.schedule import normalize_date, weekday_name
from academy_portal.core.tenant_service import get_scoped
from academy_portal.db.transaction import SyncTransaction

from .schemas import (
    AttendanceDayResponse,
    AttendanceEntryResponse,
    AttendancePercentage,
    AttendanceRecordResponse,
    AttendanceSubmitRequest,
)

logger = logging.getLogger(__name__)

ALREADY_SUBMITTED = "Attendance already submitted for this batch on this date"


def format_percentage(present: int, total: int) -> str:
    return f"{present / total * 100:.2f}%"


def _resolve_submitting_teacher(ctx: CurrentUser, payload: AttendanceSubmitRequest) -> UUID:
    if ctx.is_teacher:
        if payload.teacher_id is not None and payload.teacher_id != ctx.id:
            raise AuthorizationError("Teachers can only submit attendance as themselves")
        return ctx.id
    if payload.teacher_id is None:
        raise ValidationError("teacher_id is required when an admin submits attendance")
    return payload.teacher_id


def _validate_session_date(batch: Batch, att_date: date, today: date) -> None:
    """Session must be today or earlier, inside the batch range, on a scheduled weekday."""
    if att_date > today:
        raise ValidationError("Cannot record attendance for a future date")
    if att_date < batch.start_date or att_date > batch.end_date:
        raise ValidationError(
            f"Date {att_date} is outside the batch duration ({batch.start_date} to {batch.end_date})"
        )
    days = batch.days or []
    if days and weekday_name(att_date) not in days:
        raise ValidationError(
            f"Attendance is not allowed on {weekday_name(att_date)}. Batch runs only on: {', '.join(days)}"
        )


async def _find_record(db: AsyncSession, academy_id: UUID, batch_id: UUID, att_date: date) -> Optional[AttendanceRecord]:
    result = await db.execute(
        select(AttendanceRecord).where(
            AttendanceRecord.batch_id == batch_id,
            AttendanceRecord.date == att_date,
            AttendanceRecord.academy_id == academy_id,
        )
    )
    return result.scalar_one_or_none()


async def _record_to_response(db: AsyncSession, record: AttendanceRecord) -> AttendanceRecordResponse:
    rows = await db.execute(
        select(AttendanceEntry, Student.name)
        .outerjoin(Student, Student.id == AttendanceEntry.student_id)
        .where(AttendanceEntry.record_id == record.id)
        .order_by(AttendanceEntry.position)
    )
    teacher = await db.get(Teacher, record.teacher_id) if record.teacher_id else None
    return AttendanceRecordResponse(
        id=record.id,
        academy_id=record.academy_id,
        batch_id=record.batch_id,
        teacher_id=record.teacher_id,
        teacher_username=teacher.username if teacher else None,
        date=record.date,
        notes=record.notes,
        attendance=[
            AttendanceEntryResponse(student_id=e.student_id, student_name=name, present=e.present)
            for e, name in rows.all()
        ],
        created_at=record.created_at,
    )


async def submit_attendance(
    db: AsyncSession,
    ctx: CurrentUser,
    batch_id: UUID,
    payload: AttendanceSubmitRequest,
    today: Optional[date] = None,
) -> AttendanceRecordResponse:
    """
    Record one session. Checks run in order and the first failure wins:
    batch in academy, teacher on the batch, students on the roster, session date,
    no record yet for (batch, date). The unique (batch_id, date) constraint closes the
    race between two simultaneous submissions.
    """
    batch = await get_scoped(db, Batch, batch_id, ctx.academy_id, "Batch")
    teacher_id = _resolve_submitting_teacher(ctx, payload)

    if teacher_id not in await roster_service.batch_teacher_ids(db, batch.id):
        logger.info("Rejected attendance for batch %s: teacher %s not assigned", batch.id, teacher_id)
        raise AuthorizationError("Teacher is not assigned to this batch")

    roster = set(await roster_service.batch_student_ids(db, batch.id))
    invalid = [str(m.student_id) for m in payload.attendance if m.student_id not in roster]
    if invalid:
        raise ValidationError(
            "One or more students do not belong to this batch",
            details={"invalid_student_ids": invalid},
        )
    listed = [m.student_id for m in payload.attendance]
    if len(set(listed)) != len(listed):
        raise ValidationError("A student is listed more than once")

    notes = (payload.notes or "").strip()
    if not notes:
        raise ValidationError("Notes are required")
    att_date = normalize_date(payload.date)
    _validate_session_date(batch, att_date, today or date.today())

    if await _find_record(db, ctx.academy_id, batch.id, att_date) is not None:
        raise ConflictError(ALREADY_SUBMITTED)

    async with SyncTransaction(db, "submit attendance", conflict_message=ALREADY_SUBMITTED):
        record = AttendanceRecord(
            academy_id=ctx.academy_id,
            batch_id=batch.id,
            teacher_id=teacher_id,
            date=att_date,
            notes=notes,
        )
        db.add(record)
        await db.flush()
        db.add_all(
            [
                AttendanceEntry(record_id=record.id, student_id=m.student_id, present=m.present, position=i)
                for i, m in enumerate(payload.attendance)
            ]
        )
        await db.flush()

    logger.info("Recorded attendance for batch %s on %s (%d students)", batch.id, att_date, len(listed))
    return await _record_to_response(db, record)


async def get_attendance_for_date(
    db: AsyncSession,
    ctx: CurrentUser,
    batch_id: UUID,
    att_date,
) -> Optional[AttendanceRecordResponse]:
    batch = await get_scoped(db, Batch, batch_id, ctx.academy_id, "Batch")
    record = await _find_record(db, ctx.academy_id, batch.id, normalize_date(att_date))
    return await _record_to_response(db, record) if record else None


async def get_attendance_day(
    db: AsyncSession,
    ctx: CurrentUser,
    batch_id: UUID,
    att_date,
) -> AttendanceDayResponse:
    """Same lookup as get_attendance_for_date, with the session state spelled out."""
    record = await get_attendance_for_date(db, ctx, batch_id, att_date)
    return AttendanceDayResponse(
        batch_id=batch_id,
        date=normalize_date(att_date),
        state=AttendanceState.recorded if record else AttendanceState.unrecorded,
        record=record,
    )


async def list_attendance_history(
    db: AsyncSession,
    ctx: CurrentUser,
    batch_id: UUID,
) -> List[AttendanceRecordResponse]:
    batch = await get_scoped(db, Batch, batch_id, ctx.academy_id, "Batch")
    result = await db.execute(
        select(AttendanceRecord)
        .where(AttendanceRecord.batch_id == batch.id, AttendanceRecord.academy_id == ctx.academy_id)
        .order_by(AttendanceRecord.date)
    )
    return [await _record_to_response(db, r) for r in result.scalars().all()]


async def get_attendance_percentages(
    db: AsyncSession,
    ctx: CurrentUser,
    batch_id: UUID,
) -> List[AttendancePercentage]:
    """
    present sessions / recorded sessions * 100 for every student listed in at least one
    record of the batch. Students never listed are left out, not reported at 0%.
    """
    batch = await get_scoped(db, Batch, batch_id, ctx.academy_id, "Batch")
    total = (
        await db.execute(
            select(func.count(AttendanceRecord.id)).where(
                AttendanceRecord.batch_id == batch.id,
                AttendanceRecord.academy_id == ctx.academy_id,
            )
        )
    ).scalar_one()
    if not total:
        return []

    rows = await db.execute(
        select(AttendanceEntry.student_id, AttendanceEntry.present)
        .join(AttendanceRecord, AttendanceRecord.id == AttendanceEntry.record_id)
        .where(
            AttendanceRecord.batch_id == batch.id,
            AttendanceRecord.academy_id == ctx.academy_id,
        )
    )
    present_counts: Dict[UUID, int] = {}
    for student_id, present in rows.all():
        present_counts.setdefault(student_id, 0)
        if present:
            present_counts[student_id] += 1
    if not present_counts:
        return []

    students = (
        await db.execute(
            select(Student)
            .where(Student.id.in_(list(present_counts)), Student.academy_id == ctx.academy_id)
            .order_by(Student.name)
        )
    ).scalars().all()
    return [
        AttendancePercentage(
            name=s.name,
            student_id=s.id,
            percentage=format_percentage(present_counts[s.id], total),
        )
        for s in students
    ]


async def purge_batch_attendance(db: AsyncSession, batch_id: UUID) -> int:
    """Remove every session of a batch. Only used when the batch itself is deleted."""
    record_ids = (
        await db.execute(select(AttendanceRecord.id).where(AttendanceRecord.batch_id == batch_id))
    ).scalars().all()
    if record_ids:
        await db.execute(delete(AttendanceEntry).where(AttendanceEntry.record_id.in_(list(record_ids))))
    result = await db.execute(delete(AttendanceRecord).where(AttendanceRecord.batch_id == batch_id))
    return result.rowcount or 0


async def purge_student_attendance(db: AsyncSession, student_id: UUID) -> int:
    """Drop a deleted student's entries; the sessions themselves stay."""
    result = await db.execute(delete(AttendanceEntry).where(AttendanceEntry.student_id == student_id))
    return result.rowcount or 0
