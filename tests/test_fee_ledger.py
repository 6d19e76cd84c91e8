"""Fee ledger synchronization driven by batch and student writes."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academy_portal.api.v1.batches import service as batch_service
from academy_portal.api.v1.batches.schemas import BatchCreate, BatchUpdate
from academy_portal.api.v1.fees import service as fee_service
from academy_portal.api.v1.fees.schemas import FeeRecordUpdate
from academy_portal.api.v1.students import service as student_service
from academy_portal.api.v1.students.schemas import StudentCreate, StudentUpdate
from academy_portal.core.enums import FeeStatus
from academy_portal.core.models import FeeRecord


async def _fees(db: AsyncSession, batch_id, student_id=None):
    stmt = select(FeeRecord).where(FeeRecord.batch_id == batch_id)
    if student_id is not None:
        stmt = stmt.where(FeeRecord.student_id == student_id)
    result = await db.execute(stmt.order_by(FeeRecord.period_start))
    return result.scalars().all()


async def _q1_batch(db, admin, students, fee=Decimal("500")):
    return await batch_service.create_batch(
        db,
        admin,
        BatchCreate(
            name="Salsa Beginners",
            start_date=date(2025, 1, 15),
            end_date=date(2025, 3, 2),
            days=["Monday", "Wednesday"],
            fee=fee,
            students=students,
        ),
    )


@pytest.mark.asyncio
async def test_batch_create_bills_every_student_every_month(db_session, admin, make_student) -> None:
    a = await make_student(admin, "Asha")
    b = await make_student(admin, "Bala")
    batch = await _q1_batch(db_session, admin, [a, b])

    fees = await _fees(db_session, batch.id)
    assert len(fees) == 6
    assert {(f.student_id, f.month) for f in fees} == {
        (sid, month) for sid in (a, b) for month in ("January 2025", "February 2025", "March 2025")
    }
    assert all(f.status == FeeStatus.pending.value for f in fees)
    assert all(f.amount == Decimal("500") for f in fees)
    assert all(f.paid_on is None for f in fees)


@pytest.mark.asyncio
async def test_generate_missing_fees_after_create_is_a_no_op(db_session, admin, make_student) -> None:
    a = await make_student(admin, "Asha")
    b = await make_student(admin, "Bala")
    await _q1_batch(db_session, admin, [a, b])

    assert await fee_service.generate_missing_fees(db_session, admin) == 0


@pytest.mark.asyncio
async def test_generate_missing_fees_repairs_deleted_rows(db_session, admin, make_student) -> None:
    a = await make_student(admin, "Asha")
    batch = await _q1_batch(db_session, admin, [a])
    fees = await _fees(db_session, batch.id)
    await fee_service.delete_fee(db_session, admin, fees[1].id)
    assert len(await _fees(db_session, batch.id)) == 2

    assert await fee_service.generate_missing_fees(db_session, admin, batch_id=batch.id) == 1
    assert [f.month for f in await _fees(db_session, batch.id)] == [
        "January 2025",
        "February 2025",
        "March 2025",
    ]


@pytest.mark.asyncio
async def test_roster_change_only_touches_removed_and_added(db_session, admin, make_student) -> None:
    a = await make_student(admin, "Asha")
    b = await make_student(admin, "Bala")
    c = await make_student(admin, "Chitra")
    d = await make_student(admin, "Dev")
    batch = await _q1_batch(db_session, admin, [a, b, c])

    b_january = (await _fees(db_session, batch.id, b))[0]
    await fee_service.update_fee(
        db_session,
        admin,
        b_january.id,
        FeeRecordUpdate(status=FeeStatus.paid, paid_on=date(2025, 1, 20)),
        today=date(2025, 2, 1),
    )
    untouched_ids = {f.id for sid in (b, c) for f in await _fees(db_session, batch.id, sid)}

    await batch_service.update_batch(db_session, admin, batch.id, BatchUpdate(students=[b, c, d]))

    assert await _fees(db_session, batch.id, a) == []
    assert len(await _fees(db_session, batch.id, d)) == 3
    assert {f.id for sid in (b, c) for f in await _fees(db_session, batch.id, sid)} == untouched_ids
    b_january = (await _fees(db_session, batch.id, b))[0]
    assert b_january.status == FeeStatus.paid.value
    assert b_january.paid_on == date(2025, 1, 20)


@pytest.mark.asyncio
async def test_fee_change_rebuilds_the_whole_batch(db_session, admin, make_student) -> None:
    a = await make_student(admin, "Asha")
    b = await make_student(admin, "Bala")
    batch = await _q1_batch(db_session, admin, [a, b])
    first = (await _fees(db_session, batch.id, a))[0]
    await fee_service.update_fee(
        db_session,
        admin,
        first.id,
        FeeRecordUpdate(status=FeeStatus.paid),
        today=date(2025, 1, 31),
    )
    old_ids = {f.id for f in await _fees(db_session, batch.id)}

    await batch_service.update_batch(db_session, admin, batch.id, BatchUpdate(fee=Decimal("600")))

    fees = await _fees(db_session, batch.id)
    assert len(fees) == 6
    assert not old_ids & {f.id for f in fees}
    assert all(f.amount == Decimal("600") for f in fees)
    assert all(f.status == FeeStatus.pending.value and f.paid_on is None for f in fees)


@pytest.mark.asyncio
async def test_date_change_rebuilds_for_the_new_months(db_session, admin, make_student) -> None:
    a = await make_student(admin, "Asha")
    batch = await _q1_batch(db_session, admin, [a])

    await batch_service.update_batch(
        db_session,
        admin,
        batch.id,
        BatchUpdate(start_date=date(2025, 2, 1), end_date=date(2025, 5, 31)),
    )

    assert [f.month for f in await _fees(db_session, batch.id)] == [
        "February 2025",
        "March 2025",
        "April 2025",
        "May 2025",
    ]


@pytest.mark.asyncio
async def test_metadata_only_update_keeps_rows(db_session, admin, make_student) -> None:
    a = await make_student(admin, "Asha")
    batch = await _q1_batch(db_session, admin, [a])
    before = {f.id for f in await _fees(db_session, batch.id)}

    await batch_service.update_batch(
        db_session, admin, batch.id, BatchUpdate(location="Studio 2", time_slot="6-7 PM")
    )

    assert {f.id for f in await _fees(db_session, batch.id)} == before


@pytest.mark.asyncio
async def test_student_side_batch_edit_syncs_fees(db_session, admin, make_student) -> None:
    a = await make_student(admin, "Asha")
    salsa = await _q1_batch(db_session, admin, [a])
    tango = await batch_service.create_batch(
        db_session,
        admin,
        BatchCreate(
            name="Tango",
            start_date=date(2025, 4, 1),
            end_date=date(2025, 5, 31),
            days=["Friday"],
            fee=Decimal("750"),
        ),
    )

    updated = await student_service.update_student(
        db_session, admin, a, StudentUpdate(batches=[tango.id])
    )

    assert updated.batches == [tango.id]
    assert await _fees(db_session, salsa.id, a) == []
    tango_fees = await _fees(db_session, tango.id, a)
    assert [f.month for f in tango_fees] == ["April 2025", "May 2025"]
    assert all(f.amount == Decimal("750") for f in tango_fees)


@pytest.mark.asyncio
async def test_student_created_into_batch_is_billed(db_session, admin) -> None:
    batch = await _q1_batch(db_session, admin, [])
    student = await student_service.create_student(
        db_session,
        admin,
        StudentCreate(name="Esha", parent_name="Farah", parent_phone="9000000000", batches=[batch.id]),
    )

    assert len(await _fees(db_session, batch.id, student.id)) == 3


@pytest.mark.asyncio
async def test_student_delete_purges_all_fees(db_session, admin, make_student) -> None:
    a = await make_student(admin, "Asha")
    b = await make_student(admin, "Bala")
    batch = await _q1_batch(db_session, admin, [a, b])

    await student_service.delete_student(db_session, admin, a)

    assert await _fees(db_session, batch.id, a) == []
    assert len(await _fees(db_session, batch.id, b)) == 3
    refreshed = await batch_service.get_batch(db_session, admin, batch.id)
    assert refreshed.students == [b]
