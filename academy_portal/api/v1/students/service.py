"""Student service: CRUD with batch rosters and fee records kept in step with the student's batches."""

import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academy_portal.api.v1.attendance.service import purge_student_attendance
from academy_portal.auth.schemas import CurrentUser
from academy_portal.core import fee_ledger_service, roster_service
from academy_portal.core.exceptions import ConflictError
from academy_portal.core.models import Batch, Student
from academy_portal.core.tenant_service import get_many_scoped, get_scoped, require_admin, unique_ids
from academy_portal.db.transaction import SyncTransaction

from .schemas import StudentCreate, StudentResponse, StudentUpdate

logger = logging.getLogger(__name__)

DUPLICATE_STUDENT = "Student with the same name, parent name and date of birth already exists"


async def _ensure_identity_free(
    db: AsyncSession,
    academy_id: UUID,
    name: str,
    parent_name: str,
    dob: Optional[date],
    exclude_id: Optional[UUID] = None,
) -> None:
    # dob is nullable, so the unique constraint alone does not catch two undated twins
    stmt = select(Student.id).where(
        Student.academy_id == academy_id,
        Student.name == name,
        Student.parent_name == parent_name,
        Student.dob.is_(None) if dob is None else Student.dob == dob,
    )
    if exclude_id is not None:
        stmt = stmt.where(Student.id != exclude_id)
    if (await db.execute(stmt)).first() is not None:
        raise ConflictError(DUPLICATE_STUDENT)


async def _student_to_response(db: AsyncSession, student: Student) -> StudentResponse:
    return StudentResponse(
        id=student.id,
        academy_id=student.academy_id,
        name=student.name,
        dob=student.dob,
        parent_name=student.parent_name,
        parent_phone=student.parent_phone,
        photo=student.photo,
        join_date=student.join_date,
        batches=await roster_service.student_batch_ids(db, student.id),
        created_at=student.created_at,
    )


async def create_student(
    db: AsyncSession,
    ctx: CurrentUser,
    payload: StudentCreate,
) -> StudentResponse:
    """Create a student, put them on the given batch rosters and bill them for those batches."""
    require_admin(ctx)
    name = payload.name.strip()
    parent_name = payload.parent_name.strip()
    batch_ids = unique_ids(payload.batches)
    batches = await get_many_scoped(db, Batch, batch_ids, ctx.academy_id, "Batch")
    await _ensure_identity_free(db, ctx.academy_id, name, parent_name, payload.dob)

    async with SyncTransaction(db, "create student", conflict_message=DUPLICATE_STUDENT):
        student = Student(
            academy_id=ctx.academy_id,
            name=name,
            dob=payload.dob,
            parent_name=parent_name,
            parent_phone=payload.parent_phone.strip(),
            photo=payload.photo,
            join_date=payload.join_date or date.today(),
        )
        db.add(student)
        await db.flush()
        await roster_service.add_student_to_batches(db, student.id, batch_ids)
        await fee_ledger_service.sync_student_batches(db, student.id, batches, [])

    logger.info("Created student %s in academy %s (%d batches)", student.id, ctx.academy_id, len(batch_ids))
    return await _student_to_response(db, student)


async def update_student(
    db: AsyncSession,
    ctx: CurrentUser,
    student_id: UUID,
    payload: StudentUpdate,
) -> StudentResponse:
    """
    Apply a partial update. When `batches` is given, the delta against the current batch
    set is applied to the rosters and the fee ledger: removed batches lose this student's
    fee rows, added batches get a full set of months.
    """
    require_admin(ctx)
    student = await get_scoped(db, Student, student_id, ctx.academy_id, "Student")
    data = payload.model_dump(exclude_unset=True)

    name = (data.get("name") or student.name).strip()
    parent_name = (data.get("parent_name") or student.parent_name).strip()
    dob = data["dob"] if "dob" in data else student.dob
    if (name, parent_name, dob) != (student.name, student.parent_name, student.dob):
        await _ensure_identity_free(db, ctx.academy_id, name, parent_name, dob, exclude_id=student.id)

    added: List[Batch] = []
    removed: List[UUID] = []
    if data.get("batches") is not None:
        new_ids = unique_ids(data["batches"])
        await get_many_scoped(db, Batch, new_ids, ctx.academy_id, "Batch")
        old_ids = await roster_service.student_batch_ids(db, student.id)
        added_ids, removed = roster_service.diff_ids(old_ids, new_ids)
        added = await get_many_scoped(db, Batch, added_ids, ctx.academy_id, "Batch")

    async with SyncTransaction(db, "update student", conflict_message=DUPLICATE_STUDENT):
        student.name = name
        student.parent_name = parent_name
        student.dob = dob
        if data.get("parent_phone") is not None:
            student.parent_phone = data["parent_phone"].strip()
        if "photo" in data:
            student.photo = data["photo"]
        if data.get("join_date") is not None:
            student.join_date = data["join_date"]
        await db.flush()

        if added or removed:
            await roster_service.remove_student_from_batches(db, student.id, removed)
            await roster_service.add_student_to_batches(db, student.id, [b.id for b in added])
            await fee_ledger_service.sync_student_batches(db, student.id, added, removed)

    logger.info(
        "Updated student %s in academy %s (+%d/-%d batches)",
        student.id,
        ctx.academy_id,
        len(added),
        len(removed),
    )
    return await _student_to_response(db, student)


async def delete_student(
    db: AsyncSession,
    ctx: CurrentUser,
    student_id: UUID,
) -> None:
    """Delete a student: off every roster, every fee record purged, attendance entries dropped."""
    require_admin(ctx)
    student = await get_scoped(db, Student, student_id, ctx.academy_id, "Student")
    async with SyncTransaction(db, "delete student"):
        await roster_service.unlink_student(db, student.id)
        await fee_ledger_service.delete_student_fees(db, student.id, ctx.academy_id)
        await purge_student_attendance(db, student.id)
        await db.delete(student)
    logger.info("Deleted student %s in academy %s", student_id, ctx.academy_id)


async def list_students(
    db: AsyncSession,
    ctx: CurrentUser,
    batch_id: Optional[UUID] = None,
) -> List[StudentResponse]:
    stmt = select(Student).where(Student.academy_id == ctx.academy_id)
    if batch_id is not None:
        batch = await get_scoped(db, Batch, batch_id, ctx.academy_id, "Batch")
        roster = await roster_service.batch_student_ids(db, batch.id)
        if not roster:
            return []
        stmt = stmt.where(Student.id.in_(roster))
    result = await db.execute(stmt.order_by(Student.name))
    return [await _student_to_response(db, s) for s in result.scalars().all()]


async def get_student(db: AsyncSession, ctx: CurrentUser, student_id: UUID) -> StudentResponse:
    student = await get_scoped(db, Student, student_id, ctx.academy_id, "Student")
    return await _student_to_response(db, student)
