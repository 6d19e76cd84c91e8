"""Caller resolution, tenant-scoped lookups and the synchronization transaction."""

from uuid import uuid4

import pytest
from sqlalchemy import func, select

from academy_portal.auth.models import Admin
from academy_portal.core.enums import CallerRole
from academy_portal.core.exceptions import (
    AuthorizationError,
    ConfigurationError,
    ConflictError,
    NotFoundError,
    SynchronizationError,
    ValidationError,
)
from academy_portal.core.models import Teacher
from academy_portal.core.tenant_service import get_many_scoped, get_scoped, parse_id, resolve_caller, unique_ids
from academy_portal.db.transaction import SyncTransaction


async def _teacher_count(db) -> int:
    return (await db.execute(select(func.count(Teacher.id)))).scalar_one()


@pytest.mark.asyncio
async def test_resolve_caller_pins_academy(db_session, admin) -> None:
    ctx = await resolve_caller(db_session, admin.id, CallerRole.ADMIN, admin.academy_id)
    assert ctx.academy_id == admin.academy_id
    assert ctx.is_admin and not ctx.is_teacher


@pytest.mark.asyncio
async def test_resolve_caller_unknown_id(db_session) -> None:
    with pytest.raises(AuthorizationError) as exc:
        await resolve_caller(db_session, uuid4(), CallerRole.TEACHER)
    assert exc.value.status_code == 401


@pytest.mark.asyncio
async def test_resolve_caller_without_academy(db_session) -> None:
    orphan = Admin(
        academy_id=None,
        name="Orphan",
        email="orphan@example.com",
        phone="9000000000",
        username="orphan",
        password_hash="x",
    )
    db_session.add(orphan)
    await db_session.commit()

    with pytest.raises(ConfigurationError):
        await resolve_caller(db_session, orphan.id, CallerRole.ADMIN)


@pytest.mark.asyncio
async def test_scoped_lookup_hides_other_tenants(db_session, admin, other_admin, make_teacher) -> None:
    theirs = await make_teacher(other_admin, "Zoya", "zoya")

    with pytest.raises(NotFoundError):
        await get_scoped(db_session, Teacher, theirs.id, admin.academy_id, "Teacher")
    found = await get_scoped(db_session, Teacher, str(theirs.id), other_admin.academy_id, "Teacher")
    assert found.username == "zoya"


@pytest.mark.asyncio
async def test_get_many_scoped_keeps_order_and_reports_missing(db_session, admin, make_teacher) -> None:
    a = await make_teacher(admin, "Meera", "meera")
    b = await make_teacher(admin, "Ravi", "ravi")

    rows = await get_many_scoped(db_session, Teacher, [b.id, a.id], admin.academy_id, "Teacher")
    assert [r.id for r in rows] == [b.id, a.id]

    missing = uuid4()
    with pytest.raises(NotFoundError) as exc:
        await get_many_scoped(db_session, Teacher, [a.id, missing], admin.academy_id, "Teacher")
    assert str(missing) in exc.value.message


def test_parse_id_rejects_malformed_ids() -> None:
    with pytest.raises(ValidationError):
        parse_id("not-a-uuid", "batch id")


def test_unique_ids_dedupes_in_order() -> None:
    a, b = uuid4(), uuid4()
    assert unique_ids([str(b), a, b, str(a)]) == [b, a]


@pytest.mark.asyncio
async def test_sync_transaction_commits(db_session, admin) -> None:
    async with SyncTransaction(db_session, "create teacher"):
        db_session.add(Teacher(academy_id=admin.academy_id, name="Meera", username="meera", password_hash="x"))
        await db_session.flush()
    assert await _teacher_count(db_session) == 1


@pytest.mark.asyncio
async def test_sync_transaction_turns_unique_violation_into_conflict(db_session, admin) -> None:
    academy_id = admin.academy_id
    with pytest.raises(ConflictError) as exc:
        async with SyncTransaction(db_session, "create teacher", conflict_message="Username taken"):
            db_session.add(Teacher(academy_id=academy_id, name="A", username="same", password_hash="x"))
            db_session.add(Teacher(academy_id=academy_id, name="B", username="same", password_hash="x"))
            await db_session.flush()
    assert exc.value.message == "Username taken"
    assert exc.value.status_code == 409
    assert await _teacher_count(db_session) == 0


@pytest.mark.asyncio
async def test_sync_transaction_rolls_back_partial_work(db_session, admin) -> None:
    academy_id = admin.academy_id
    with pytest.raises(SynchronizationError):
        async with SyncTransaction(db_session, "update batch"):
            db_session.add(Teacher(academy_id=academy_id, name="A", username="a", password_hash="x"))
            await db_session.flush()
            raise RuntimeError("fee rebuild failed")
    assert await _teacher_count(db_session) == 0


@pytest.mark.asyncio
async def test_sync_transaction_passes_domain_errors_through(db_session, admin) -> None:
    academy_id = admin.academy_id
    with pytest.raises(NotFoundError):
        async with SyncTransaction(db_session, "update batch"):
            db_session.add(Teacher(academy_id=academy_id, name="A", username="a", password_hash="x"))
            await db_session.flush()
            raise NotFoundError("Student not found")
    assert await _teacher_count(db_session) == 0
