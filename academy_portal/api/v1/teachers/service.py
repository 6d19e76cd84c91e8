"""Teacher service: accounts plus the batch teacher lists they appear on."""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from academy_portal.auth.schemas import CurrentUser
from academy_portal.auth.security import hash_password
from academy_portal.core import roster_service
from academy_portal.core.exceptions import AuthorizationError, ConflictError
from academy_portal.core.models import AttendanceRecord, Batch, Teacher
from academy_portal.core.tenant_service import get_many_scoped, get_scoped, require_admin, unique_ids
from academy_portal.db.transaction import SyncTransaction

from .schemas import TeacherBatchItem, TeacherCreate, TeacherResponse, TeacherUpdate

logger = logging.getLogger(__name__)

DUPLICATE_USERNAME = "Username already taken in this academy"


async def _ensure_username_free(
    db: AsyncSession,
    academy_id: UUID,
    username: str,
    exclude_id: Optional[UUID] = None,
) -> None:
    stmt = select(Teacher.id).where(Teacher.academy_id == academy_id, Teacher.username == username)
    if exclude_id is not None:
        stmt = stmt.where(Teacher.id != exclude_id)
    if (await db.execute(stmt)).first() is not None:
        raise ConflictError(DUPLICATE_USERNAME)


async def _teacher_to_response(db: AsyncSession, teacher: Teacher) -> TeacherResponse:
    return TeacherResponse(
        id=teacher.id,
        academy_id=teacher.academy_id,
        name=teacher.name,
        username=teacher.username,
        assigned_batches=await roster_service.teacher_batch_ids(db, teacher.id),
        created_at=teacher.created_at,
    )


async def create_teacher(
    db: AsyncSession,
    ctx: CurrentUser,
    payload: TeacherCreate,
) -> TeacherResponse:
    require_admin(ctx)
    username = payload.username.strip().lower()
    batch_ids = unique_ids(payload.assigned_batches)
    await get_many_scoped(db, Batch, batch_ids, ctx.academy_id, "Batch")
    await _ensure_username_free(db, ctx.academy_id, username)

    async with SyncTransaction(db, "create teacher", conflict_message=DUPLICATE_USERNAME):
        teacher = Teacher(
            academy_id=ctx.academy_id,
            name=payload.name.strip(),
            username=username,
            password_hash=hash_password(payload.password),
        )
        db.add(teacher)
        await db.flush()
        await roster_service.add_teacher_to_batches(db, teacher.id, batch_ids)

    logger.info("Created teacher %s (%s) in academy %s", teacher.id, username, ctx.academy_id)
    return await _teacher_to_response(db, teacher)


async def update_teacher(
    db: AsyncSession,
    ctx: CurrentUser,
    teacher_id: UUID,
    payload: TeacherUpdate,
) -> TeacherResponse:
    """Partial update; `assigned_batches`, when given, replaces the teacher's batch set."""
    require_admin(ctx)
    teacher = await get_scoped(db, Teacher, teacher_id, ctx.academy_id, "Teacher")
    data = payload.model_dump(exclude_unset=True)

    username = teacher.username
    if data.get("username") is not None:
        username = data["username"].strip().lower()
        if username != teacher.username:
            await _ensure_username_free(db, ctx.academy_id, username, exclude_id=teacher.id)

    added: List[UUID] = []
    removed: List[UUID] = []
    if data.get("assigned_batches") is not None:
        new_ids = unique_ids(data["assigned_batches"])
        await get_many_scoped(db, Batch, new_ids, ctx.academy_id, "Batch")
        old_ids = await roster_service.teacher_batch_ids(db, teacher.id)
        added, removed = roster_service.diff_ids(old_ids, new_ids)

    async with SyncTransaction(db, "update teacher", conflict_message=DUPLICATE_USERNAME):
        teacher.username = username
        if data.get("name") is not None:
            teacher.name = data["name"].strip()
        if data.get("password"):
            teacher.password_hash = hash_password(data["password"])
        await db.flush()
        await roster_service.remove_teacher_from_batches(db, teacher.id, removed)
        await roster_service.add_teacher_to_batches(db, teacher.id, added)

    logger.info("Updated teacher %s in academy %s", teacher.id, ctx.academy_id)
    return await _teacher_to_response(db, teacher)


async def delete_teacher(
    db: AsyncSession,
    ctx: CurrentUser,
    teacher_id: UUID,
) -> None:
    """Delete a teacher and drop them from every batch teacher list. Recorded attendance stays."""
    require_admin(ctx)
    teacher = await get_scoped(db, Teacher, teacher_id, ctx.academy_id, "Teacher")
    async with SyncTransaction(db, "delete teacher"):
        batches = await roster_service.unlink_teacher(db, teacher.id)
        await db.execute(
            update(AttendanceRecord).where(AttendanceRecord.teacher_id == teacher.id).values(teacher_id=None)
        )
        await db.delete(teacher)
    logger.info("Deleted teacher %s in academy %s (was on %d batches)", teacher_id, ctx.academy_id, len(batches))


async def list_teachers(db: AsyncSession, ctx: CurrentUser) -> List[TeacherResponse]:
    result = await db.execute(
        select(Teacher).where(Teacher.academy_id == ctx.academy_id).order_by(Teacher.name)
    )
    return [await _teacher_to_response(db, t) for t in result.scalars().all()]


async def get_teacher(db: AsyncSession, ctx: CurrentUser, teacher_id: UUID) -> TeacherResponse:
    teacher = await get_scoped(db, Teacher, teacher_id, ctx.academy_id, "Teacher")
    return await _teacher_to_response(db, teacher)


async def get_my_batches(db: AsyncSession, ctx: CurrentUser) -> List[TeacherBatchItem]:
    """Batches the calling teacher is assigned to, earliest start first."""
    if not ctx.is_teacher:
        raise AuthorizationError("Only teachers have assigned batches")
    batch_ids = await roster_service.teacher_batch_ids(db, ctx.id)
    if not batch_ids:
        return []
    result = await db.execute(
        select(Batch)
        .where(Batch.id.in_(batch_ids), Batch.academy_id == ctx.academy_id)
        .order_by(Batch.start_date, Batch.name)
    )
    items: List[TeacherBatchItem] = []
    for batch in result.scalars().all():
        roster = await roster_service.batch_student_ids(db, batch.id)
        items.append(
            TeacherBatchItem(
                id=batch.id,
                name=batch.name,
                start_date=batch.start_date,
                end_date=batch.end_date,
                days=list(batch.days or []),
                time_slot=batch.time_slot,
                location=batch.location,
                student_count=len(roster),
            )
        )
    return items
