"""
Roster cross-references between batches and their teachers/students.

Batch.teachers, Batch.students, Teacher.assignedBatches and Student.batches all read the
same link rows (batch_teachers, batch_students), so keeping both directions in sync is a
matter of adding/removing link rows. Every helper is an idempotent set operation:
add-if-absent, remove-if-present. Callers flush/commit through SyncTransaction.
"""
import logging
from typing import Iterable, List, Sequence, Tuple
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from academy_portal.core.models import BatchStudent, BatchTeacher

logger = logging.getLogger(__name__)


def diff_ids(old: Sequence[UUID], new: Sequence[UUID]) -> Tuple[List[UUID], List[UUID]]:
    """(added, removed), each in the order of the list it comes from."""
    old_set, new_set = set(old), set(new)
    added = [i for i in new if i not in old_set]
    removed = [i for i in old if i not in new_set]
    return added, removed


# ----- Reads -----
async def batch_teacher_ids(db: AsyncSession, batch_id: UUID) -> List[UUID]:
    result = await db.execute(
        select(BatchTeacher.teacher_id)
        .where(BatchTeacher.batch_id == batch_id)
        .order_by(BatchTeacher.position, BatchTeacher.id)
    )
    return list(result.scalars().all())


async def batch_student_ids(db: AsyncSession, batch_id: UUID) -> List[UUID]:
    result = await db.execute(
        select(BatchStudent.student_id)
        .where(BatchStudent.batch_id == batch_id)
        .order_by(BatchStudent.created_at, BatchStudent.id)
    )
    return list(result.scalars().all())


async def teacher_batch_ids(db: AsyncSession, teacher_id: UUID) -> List[UUID]:
    result = await db.execute(select(BatchTeacher.batch_id).where(BatchTeacher.teacher_id == teacher_id))
    return list(result.scalars().all())


async def student_batch_ids(db: AsyncSession, student_id: UUID) -> List[UUID]:
    result = await db.execute(select(BatchStudent.batch_id).where(BatchStudent.student_id == student_id))
    return list(result.scalars().all())


# ----- Teacher links -----
async def add_teachers_to_batch(db: AsyncSession, batch_id: UUID, teacher_ids: Iterable[UUID]) -> List[UUID]:
    """Append teachers not yet on the batch, preserving the given order. Returns those added."""
    existing = set(await batch_teacher_ids(db, batch_id))
    next_pos = (
        await db.execute(
            select(func.max(BatchTeacher.position)).where(BatchTeacher.batch_id == batch_id)
        )
    ).scalar_one_or_none()
    next_pos = 0 if next_pos is None else next_pos + 1
    added: List[UUID] = []
    for tid in teacher_ids:
        if tid in existing:
            continue
        db.add(BatchTeacher(batch_id=batch_id, teacher_id=tid, position=next_pos))
        existing.add(tid)
        added.append(tid)
        next_pos += 1
    if added:
        await db.flush()
    return added


async def remove_teachers_from_batch(db: AsyncSession, batch_id: UUID, teacher_ids: Sequence[UUID]) -> None:
    if not teacher_ids:
        return
    await db.execute(
        delete(BatchTeacher).where(
            BatchTeacher.batch_id == batch_id,
            BatchTeacher.teacher_id.in_(list(teacher_ids)),
        )
    )


async def set_batch_teachers(
    db: AsyncSession, batch_id: UUID, teacher_ids: Sequence[UUID]
) -> Tuple[List[UUID], List[UUID]]:
    """Make the batch's teacher list equal `teacher_ids` (in that order). Returns (added, removed)."""
    old = await batch_teacher_ids(db, batch_id)
    added, removed = diff_ids(old, teacher_ids)
    await remove_teachers_from_batch(db, batch_id, removed)
    await add_teachers_to_batch(db, batch_id, added)
    # Re-sequence so the stored order matches the requested order
    rows = (
        await db.execute(select(BatchTeacher).where(BatchTeacher.batch_id == batch_id))
    ).scalars().all()
    order = {tid: pos for pos, tid in enumerate(teacher_ids)}
    for row in rows:
        row.position = order.get(row.teacher_id, len(order))
    await db.flush()
    return added, removed


async def add_teacher_to_batches(db: AsyncSession, teacher_id: UUID, batch_ids: Iterable[UUID]) -> None:
    for bid in batch_ids:
        await add_teachers_to_batch(db, bid, [teacher_id])


async def remove_teacher_from_batches(db: AsyncSession, teacher_id: UUID, batch_ids: Sequence[UUID]) -> None:
    if not batch_ids:
        return
    await db.execute(
        delete(BatchTeacher).where(
            BatchTeacher.teacher_id == teacher_id,
            BatchTeacher.batch_id.in_(list(batch_ids)),
        )
    )


# ----- Student links -----
async def add_students_to_batch(db: AsyncSession, batch_id: UUID, student_ids: Iterable[UUID]) -> List[UUID]:
    existing = set(await batch_student_ids(db, batch_id))
    added: List[UUID] = []
    for sid in student_ids:
        if sid in existing:
            continue
        db.add(BatchStudent(batch_id=batch_id, student_id=sid))
        existing.add(sid)
        added.append(sid)
    if added:
        await db.flush()
    return added


async def remove_students_from_batch(db: AsyncSession, batch_id: UUID, student_ids: Sequence[UUID]) -> None:
    if not student_ids:
        return
    await db.execute(
        delete(BatchStudent).where(
            BatchStudent.batch_id == batch_id,
            BatchStudent.student_id.in_(list(student_ids)),
        )
    )


async def set_batch_students(
    db: AsyncSession, batch_id: UUID, student_ids: Sequence[UUID]
) -> Tuple[List[UUID], List[UUID]]:
    """Make the batch roster equal `student_ids`. Returns (added, removed)."""
    old = await batch_student_ids(db, batch_id)
    added, removed = diff_ids(old, student_ids)
    await remove_students_from_batch(db, batch_id, removed)
    await add_students_to_batch(db, batch_id, added)
    return added, removed


async def add_student_to_batches(db: AsyncSession, student_id: UUID, batch_ids: Iterable[UUID]) -> None:
    for bid in batch_ids:
        await add_students_to_batch(db, bid, [student_id])


async def remove_student_from_batches(db: AsyncSession, student_id: UUID, batch_ids: Sequence[UUID]) -> None:
    if not batch_ids:
        return
    await db.execute(
        delete(BatchStudent).where(
            BatchStudent.student_id == student_id,
            BatchStudent.batch_id.in_(list(batch_ids)),
        )
    )


# ----- Cascades -----
async def unlink_batch(db: AsyncSession, batch_id: UUID) -> Tuple[List[UUID], List[UUID]]:
    """Drop the batch from every teacher's and student's back-references. Returns (teachers, students)."""
    teachers = await batch_teacher_ids(db, batch_id)
    students = await batch_student_ids(db, batch_id)
    await db.execute(delete(BatchTeacher).where(BatchTeacher.batch_id == batch_id))
    await db.execute(delete(BatchStudent).where(BatchStudent.batch_id == batch_id))
    logger.info(
        "Unlinked batch %s from %d teachers and %d students", batch_id, len(teachers), len(students)
    )
    return teachers, students


async def unlink_teacher(db: AsyncSession, teacher_id: UUID) -> List[UUID]:
    """Remove the teacher from every batch teacher list. Returns the affected batch ids."""
    batches = await teacher_batch_ids(db, teacher_id)
    await db.execute(delete(BatchTeacher).where(BatchTeacher.teacher_id == teacher_id))
    return batches


async def unlink_student(db: AsyncSession, student_id: UUID) -> List[UUID]:
    """Remove the student from every batch roster. Returns the affected batch ids."""
    batches = await student_batch_ids(db, student_id)
    await db.execute(delete(BatchStudent).where(BatchStudent.student_id == student_id))
    return batches
