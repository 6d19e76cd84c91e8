"""Fees service: ledger reads, manual entries, payment updates and the repair pass."""

import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academy_portal.auth.schemas import CurrentUser
from academy_portal.core import fee_ledger_service, roster_service
from academy_portal.core.enums import FeeStatus
from academy_portal.core.exceptions import ConflictError, ValidationError
from academy_portal.core.models import Batch, FeeRecord, Student
from academy_portal.core.schedule import month_labels, parse_month_label
from academy_portal.core.tenant_service import get_scoped, require_admin
from academy_portal.db.transaction import SyncTransaction

from .schemas import FeeRecordCreate, FeeRecordResponse, FeeRecordUpdate

logger = logging.getLogger(__name__)

DUPLICATE_FEE = "Fee record already exists for this student, batch, and month"


def _resolve_paid_on(status: FeeStatus, paid_on: Optional[date], today: date) -> Optional[date]:
    """paid_on only exists for paid records; defaults to today and is never in the future."""
    if status != FeeStatus.paid:
        return None
    if paid_on is None:
        return today
    if paid_on > today:
        raise ValidationError("paid_on date cannot be in the future")
    return paid_on


def _fee_select():
    return (
        select(FeeRecord, Student.name, Batch.name, Batch.time_slot)
        .outerjoin(Student, Student.id == FeeRecord.student_id)
        .outerjoin(Batch, Batch.id == FeeRecord.batch_id)
    )


def _row_to_response(fee: FeeRecord, student_name, batch_name, time_slot) -> FeeRecordResponse:
    return FeeRecordResponse(
        id=fee.id,
        academy_id=fee.academy_id,
        student_id=fee.student_id,
        student_name=student_name,
        batch_id=fee.batch_id,
        batch_name=batch_name,
        time_slot=time_slot,
        month=fee.month,
        period_start=fee.period_start,
        amount=fee.amount,
        status=FeeStatus(fee.status),
        paid_on=fee.paid_on,
        mode=fee.mode,
        remarks=fee.remarks,
        created_at=fee.created_at,
        updated_at=fee.updated_at,
    )


async def _load_response(db: AsyncSession, fee_id: UUID) -> FeeRecordResponse:
    row = (await db.execute(_fee_select().where(FeeRecord.id == fee_id))).one()
    return _row_to_response(*row)


async def list_fees(
    db: AsyncSession,
    ctx: CurrentUser,
    status: Optional[FeeStatus] = None,
    batch_id: Optional[UUID] = None,
    month: Optional[str] = None,
    student_id: Optional[UUID] = None,
) -> List[FeeRecordResponse]:
    """Fee records of the academy, optionally filtered, ordered by month then student."""
    stmt = _fee_select().where(FeeRecord.academy_id == ctx.academy_id)
    if status is not None:
        stmt = stmt.where(FeeRecord.status == status.value)
    if batch_id is not None:
        batch = await get_scoped(db, Batch, batch_id, ctx.academy_id, "Batch")
        stmt = stmt.where(FeeRecord.batch_id == batch.id)
    if month:
        stmt = stmt.where(FeeRecord.month == month.strip())
    if student_id is not None:
        stmt = stmt.where(FeeRecord.student_id == student_id)
    stmt = stmt.order_by(FeeRecord.period_start, Student.name, Batch.name)
    result = await db.execute(stmt)
    return [_row_to_response(*row) for row in result.all()]


async def list_fee_months(db: AsyncSession, ctx: CurrentUser) -> List[str]:
    """Distinct month labels in the academy's ledger, chronological."""
    result = await db.execute(
        select(FeeRecord.month, FeeRecord.period_start)
        .where(FeeRecord.academy_id == ctx.academy_id)
        .distinct()
        .order_by(FeeRecord.period_start)
    )
    months: List[str] = []
    for label, _ in result.all():
        if label not in months:
            months.append(label)
    return months


async def get_student_fees(db: AsyncSession, ctx: CurrentUser, student_id: UUID) -> List[FeeRecordResponse]:
    student = await get_scoped(db, Student, student_id, ctx.academy_id, "Student")
    return await list_fees(db, ctx, student_id=student.id)


async def create_fee(
    db: AsyncSession,
    ctx: CurrentUser,
    payload: FeeRecordCreate,
    today: Optional[date] = None,
) -> FeeRecordResponse:
    """Add a single ledger row by hand; the month must be one the batch actually bills."""
    require_admin(ctx)
    batch = await get_scoped(db, Batch, payload.batch_id, ctx.academy_id, "Batch")
    student = await get_scoped(db, Student, payload.student_id, ctx.academy_id, "Student")

    try:
        period_start = parse_month_label(payload.month)
    except ValueError:
        raise ValidationError("Invalid month format")
    label = payload.month.strip()
    valid = month_labels(batch.start_date, batch.end_date)
    if label not in valid:
        raise ValidationError(
            f"Month must be between {batch.start_date} and {batch.end_date}",
            details={"valid_months": valid},
        )
    if student.id not in await roster_service.batch_student_ids(db, batch.id):
        raise ValidationError("Student not in batch")

    existing = await db.execute(
        select(FeeRecord.id).where(
            FeeRecord.student_id == student.id,
            FeeRecord.batch_id == batch.id,
            FeeRecord.month == label,
        )
    )
    if existing.first() is not None:
        raise ConflictError(DUPLICATE_FEE)

    paid_on = _resolve_paid_on(payload.status, payload.paid_on, today or date.today())
    async with SyncTransaction(db, "create fee", conflict_message=DUPLICATE_FEE):
        fee = FeeRecord(
            academy_id=ctx.academy_id,
            student_id=student.id,
            batch_id=batch.id,
            month=label,
            period_start=period_start,
            amount=payload.amount if payload.amount is not None else batch.fee,
            status=payload.status.value,
            paid_on=paid_on,
            mode=payload.mode,
            remarks=payload.remarks,
        )
        db.add(fee)
        await db.flush()

    logger.info("Created fee %s (%s) for student %s in batch %s", fee.id, label, student.id, batch.id)
    return await _load_response(db, fee.id)


async def update_fee(
    db: AsyncSession,
    ctx: CurrentUser,
    fee_id: UUID,
    payload: FeeRecordUpdate,
    today: Optional[date] = None,
) -> FeeRecordResponse:
    """
    Payment update. Setting status to paid stamps paid_on (today unless given); any other
    status clears it. paid_on alone may be corrected on a paid record.
    """
    require_admin(ctx)
    fee = await get_scoped(db, FeeRecord, fee_id, ctx.academy_id, "Fee")
    data = payload.model_dump(exclude_unset=True)
    today = today or date.today()

    if data.get("status") is not None:
        status = FeeStatus(data["status"])
        paid_on = _resolve_paid_on(status, data.get("paid_on"), today)
    elif data.get("paid_on") is not None:
        status = FeeStatus(fee.status)
        if status != FeeStatus.paid:
            raise ValidationError("paid_on can only be set on a paid fee record")
        paid_on = _resolve_paid_on(status, data["paid_on"], today)
    else:
        status, paid_on = FeeStatus(fee.status), fee.paid_on

    async with SyncTransaction(db, "update fee"):
        if data.get("amount") is not None:
            fee.amount = data["amount"]
        fee.status = status.value
        fee.paid_on = paid_on
        if "mode" in data:
            fee.mode = data["mode"]
        if "remarks" in data:
            fee.remarks = data["remarks"]
        await db.flush()

    logger.info("Updated fee %s: status=%s paid_on=%s", fee.id, fee.status, fee.paid_on)
    return await _load_response(db, fee.id)


async def delete_fee(db: AsyncSession, ctx: CurrentUser, fee_id: UUID) -> None:
    require_admin(ctx)
    fee = await get_scoped(db, FeeRecord, fee_id, ctx.academy_id, "Fee")
    async with SyncTransaction(db, "delete fee"):
        await db.delete(fee)
    logger.info("Deleted fee %s in academy %s", fee_id, ctx.academy_id)


async def generate_missing_fees(
    db: AsyncSession,
    ctx: CurrentUser,
    batch_id: Optional[UUID] = None,
) -> int:
    """Create every fee record the academy's rosters and date ranges call for. Idempotent."""
    require_admin(ctx)
    if batch_id is not None:
        await get_scoped(db, Batch, batch_id, ctx.academy_id, "Batch")
    async with SyncTransaction(db, "generate missing fees", conflict_message=DUPLICATE_FEE):
        created = await fee_ledger_service.generate_missing_fees(db, ctx.academy_id, batch_id)
    return created
