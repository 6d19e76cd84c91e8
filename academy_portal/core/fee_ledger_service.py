"""
Fee ledger synchronizer.

For every batch the fee records must equal {billing month of [start, end]} x {roster},
one row per (student, batch, month), none stale, none duplicated. The helpers here are
called from batch and student writes inside a SyncTransaction; they only flush.

Rules:
- batch created / student added: create the missing (student, month) rows, pending, at batch.fee
- student removed / student deleted / batch deleted: delete that student's/batch's rows
- batch fee or date range changed: delete every row of the batch and recreate the full
  cross product. Status and paid_on of untouched students are not preserved; the billing
  basis changed, so the previous rows no longer apply.
"""
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Set, Tuple
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from academy_portal.core.enums import FeeStatus
from academy_portal.core.models import Batch, FeeRecord
from academy_portal.core.roster_service import batch_student_ids
from academy_portal.core.schedule import billing_months

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchSnapshot:
    """Billing-relevant state of a batch captured before an update is applied."""

    fee: Decimal
    start_date: date
    end_date: date
    student_ids: Tuple[UUID, ...]

    @classmethod
    def of(cls, batch: Batch, student_ids: Sequence[UUID]) -> "BatchSnapshot":
        return cls(
            fee=_to_decimal(batch.fee),
            start_date=batch.start_date,
            end_date=batch.end_date,
            student_ids=tuple(student_ids),
        )

    def billing_basis_changed(self, batch: Batch) -> bool:
        return (
            self.fee != _to_decimal(batch.fee)
            or self.start_date != batch.start_date
            or self.end_date != batch.end_date
        )


def _to_decimal(val) -> Decimal:
    if val is None:
        return Decimal("0")
    return val if isinstance(val, Decimal) else Decimal(str(val))


async def _existing_months(db: AsyncSession, batch_id: UUID, student_ids: Sequence[UUID]) -> Set[Tuple[UUID, str]]:
    if not student_ids:
        return set()
    result = await db.execute(
        select(FeeRecord.student_id, FeeRecord.month).where(
            FeeRecord.batch_id == batch_id,
            FeeRecord.student_id.in_(list(student_ids)),
        )
    )
    return {(sid, month) for sid, month in result.all()}


async def create_fees_for_students(
    db: AsyncSession,
    batch: Batch,
    student_ids: Iterable[UUID],
) -> int:
    """Create pending rows for every billing month of `batch` x `student_ids`, skipping existing triples."""
    student_ids = list(student_ids)
    months = billing_months(batch.start_date, batch.end_date)
    if not student_ids or not months:
        return 0
    existing = await _existing_months(db, batch.id, student_ids)
    amount = _to_decimal(batch.fee)
    records: List[FeeRecord] = []
    for sid in student_ids:
        for label, period_start in months:
            if (sid, label) in existing:
                continue
            existing.add((sid, label))
            records.append(
                FeeRecord(
                    academy_id=batch.academy_id,
                    student_id=sid,
                    batch_id=batch.id,
                    month=label,
                    period_start=period_start,
                    amount=amount,
                    status=FeeStatus.pending.value,
                )
            )
    if records:
        db.add_all(records)
        await db.flush()
    logger.info("Created %d fee records for batch %s", len(records), batch.id)
    return len(records)


async def delete_fees_for_students(
    db: AsyncSession,
    batch_id: UUID,
    student_ids: Sequence[UUID],
) -> int:
    if not student_ids:
        return 0
    result = await db.execute(
        delete(FeeRecord).where(
            FeeRecord.batch_id == batch_id,
            FeeRecord.student_id.in_(list(student_ids)),
        )
    )
    logger.info("Deleted %d fee records for %d students of batch %s", result.rowcount, len(student_ids), batch_id)
    return result.rowcount or 0


async def delete_batch_fees(db: AsyncSession, batch_id: UUID) -> int:
    result = await db.execute(delete(FeeRecord).where(FeeRecord.batch_id == batch_id))
    logger.info("Deleted %d fee records of batch %s", result.rowcount, batch_id)
    return result.rowcount or 0


async def delete_student_fees(db: AsyncSession, student_id: UUID, academy_id: UUID) -> int:
    result = await db.execute(
        delete(FeeRecord).where(
            FeeRecord.student_id == student_id,
            FeeRecord.academy_id == academy_id,
        )
    )
    logger.info("Deleted %d fee records of student %s", result.rowcount, student_id)
    return result.rowcount or 0


async def sync_batch_created(db: AsyncSession, batch: Batch, student_ids: Sequence[UUID]) -> int:
    return await create_fees_for_students(db, batch, student_ids)


async def sync_batch_updated(
    db: AsyncSession,
    batch: Batch,
    before: BatchSnapshot,
    student_ids: Sequence[UUID],
) -> Tuple[int, int]:
    """
    Reconcile the ledger after `batch` has been updated and its roster set to `student_ids`.
    Returns (deleted, created).
    """
    if before.billing_basis_changed(batch):
        deleted = await delete_batch_fees(db, batch.id)
        created = await create_fees_for_students(db, batch, student_ids)
        logger.info("Rebuilt fee ledger of batch %s (fee or dates changed)", batch.id)
        return deleted, created

    current = set(student_ids)
    previous = set(before.student_ids)
    removed = [sid for sid in before.student_ids if sid not in current]
    added = [sid for sid in student_ids if sid not in previous]
    deleted = await delete_fees_for_students(db, batch.id, removed)
    created = await create_fees_for_students(db, batch, added)
    return deleted, created


async def sync_student_batches(
    db: AsyncSession,
    student_id: UUID,
    added_batches: Sequence[Batch],
    removed_batch_ids: Sequence[UUID],
) -> Tuple[int, int]:
    """Student-side roster edit: same add/remove rule as a roster-only batch edit. Returns (deleted, created)."""
    deleted = 0
    if removed_batch_ids:
        result = await db.execute(
            delete(FeeRecord).where(
                FeeRecord.student_id == student_id,
                FeeRecord.batch_id.in_(list(removed_batch_ids)),
            )
        )
        deleted = result.rowcount or 0
    created = 0
    for batch in added_batches:
        created += await create_fees_for_students(db, batch, [student_id])
    return deleted, created


async def generate_missing_fees(
    db: AsyncSession,
    academy_id: UUID,
    batch_id: Optional[UUID] = None,
) -> int:
    """Repair pass: create every missing (student, batch, month) row in the academy. Idempotent."""
    stmt = select(Batch).where(Batch.academy_id == academy_id)
    if batch_id is not None:
        stmt = stmt.where(Batch.id == batch_id)
    batches = (await db.execute(stmt)).scalars().all()
    created = 0
    for batch in batches:
        roster = await batch_student_ids(db, batch.id)
        created += await create_fees_for_students(db, batch, roster)
    logger.info("Repair pass created %d missing fee records in academy %s", created, academy_id)
    return created
