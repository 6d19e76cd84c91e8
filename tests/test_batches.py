from uuid import UUID, uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academy_portal.core.models import AttendanceRecord, BatchStudent, BatchTeacher, FeeRecord


def _batch_payload(**overrides):
    payload = {
        "name": "Bharatanatyam Juniors",
        "start_date": "2025-06-02",
        "end_date": "2025-08-31",
        "days": ["wednesday", "Monday"],
        "time_slot": "5-6 PM",
        "location": "Hall A",
        "fee": "500",
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_batch_links_roster(
    client: AsyncClient, admin, make_teacher, make_student, auth_headers
) -> None:
    t1 = await make_teacher(admin, "Meera", "meera")
    t2 = await make_teacher(admin, "Ravi", "ravi")
    s1 = await make_student(admin, "Asha")

    response = await client.post(
        "/api/v1/batches",
        json=_batch_payload(teachers=[str(t2.id), str(t1.id)], students=[str(s1)]),
        headers=auth_headers(admin),
    )
    assert response.status_code == 201
    data = response.json()
    assert data["days"] == ["Monday", "Wednesday"]
    assert data["teachers"] == [str(t2.id), str(t1.id)]
    assert data["students"] == [str(s1)]

    teacher = await client.get(f"/api/v1/teachers/{t1.id}", headers=auth_headers(admin))
    assert teacher.json()["assigned_batches"] == [data["id"]]
    student = await client.get(f"/api/v1/students/{s1}", headers=auth_headers(admin))
    assert student.json()["batches"] == [data["id"]]


@pytest.mark.asyncio
async def test_create_batch_defaults_fee(client: AsyncClient, admin, auth_headers) -> None:
    payload = _batch_payload()
    del payload["fee"]
    response = await client.post("/api/v1/batches", json=payload, headers=auth_headers(admin))
    assert response.status_code == 201
    assert float(response.json()["fee"]) == 500


@pytest.mark.asyncio
async def test_duplicate_batch_name_conflicts(client: AsyncClient, admin, other_admin, auth_headers) -> None:
    first = await client.post("/api/v1/batches", json=_batch_payload(), headers=auth_headers(admin))
    assert first.status_code == 201

    again = await client.post("/api/v1/batches", json=_batch_payload(), headers=auth_headers(admin))
    assert again.status_code == 409

    # Names only need to be unique inside one academy
    elsewhere = await client.post("/api/v1/batches", json=_batch_payload(), headers=auth_headers(other_admin))
    assert elsewhere.status_code == 201


@pytest.mark.asyncio
async def test_create_batch_rejects_bad_input(client: AsyncClient, admin, auth_headers) -> None:
    headers = auth_headers(admin)
    inverted = await client.post(
        "/api/v1/batches",
        json=_batch_payload(start_date="2025-09-01", end_date="2025-08-01"),
        headers=headers,
    )
    assert inverted.status_code == 400

    zero_fee = await client.post("/api/v1/batches", json=_batch_payload(fee="0"), headers=headers)
    assert zero_fee.status_code == 422

    bad_day = await client.post("/api/v1/batches", json=_batch_payload(days=["Moonday"]), headers=headers)
    assert bad_day.status_code == 422


@pytest.mark.asyncio
async def test_roster_ids_from_another_academy_are_not_found(
    client: AsyncClient, admin, other_admin, make_student, auth_headers
) -> None:
    foreign = await make_student(other_admin, "Zara")
    response = await client.post(
        "/api/v1/batches",
        json=_batch_payload(students=[str(foreign)]),
        headers=auth_headers(admin),
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_batch_from_another_academy_is_not_found(
    client: AsyncClient, admin, other_admin, auth_headers
) -> None:
    created = await client.post("/api/v1/batches", json=_batch_payload(), headers=auth_headers(other_admin))
    batch_id = created.json()["id"]
    headers = auth_headers(admin)

    assert (await client.get(f"/api/v1/batches/{batch_id}", headers=headers)).status_code == 404
    assert (
        await client.put(f"/api/v1/batches/{batch_id}", json={"name": "Hijack"}, headers=headers)
    ).status_code == 404
    assert (await client.delete(f"/api/v1/batches/{batch_id}", headers=headers)).status_code == 404
    assert (await client.get(f"/api/v1/batches/{uuid4()}", headers=headers)).status_code == 404

    listed = await client.get("/api/v1/batches", headers=headers)
    assert listed.json() == []


@pytest.mark.asyncio
async def test_update_batch_swaps_teachers(
    client: AsyncClient, admin, make_teacher, auth_headers
) -> None:
    t1 = await make_teacher(admin, "Meera", "meera")
    t2 = await make_teacher(admin, "Ravi", "ravi")
    headers = auth_headers(admin)
    created = await client.post(
        "/api/v1/batches", json=_batch_payload(teachers=[str(t1.id)]), headers=headers
    )
    batch_id = created.json()["id"]

    response = await client.put(
        f"/api/v1/batches/{batch_id}", json={"teachers": [str(t2.id)]}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["teachers"] == [str(t2.id)]

    old = await client.get(f"/api/v1/teachers/{t1.id}", headers=headers)
    new = await client.get(f"/api/v1/teachers/{t2.id}", headers=headers)
    assert old.json()["assigned_batches"] == []
    assert new.json()["assigned_batches"] == [batch_id]


@pytest.mark.asyncio
async def test_get_batch_resolves_names(
    client: AsyncClient, admin, make_teacher, make_student, auth_headers
) -> None:
    t1 = await make_teacher(admin, "Meera", "meera")
    s1 = await make_student(admin, "Asha")
    created = await client.post(
        "/api/v1/batches",
        json=_batch_payload(teachers=[str(t1.id)], students=[str(s1)]),
        headers=auth_headers(admin),
    )

    # Teachers may read a batch too
    response = await client.get(f"/api/v1/batches/{created.json()['id']}", headers=auth_headers(t1))
    assert response.status_code == 200
    data = response.json()
    assert data["teacher_details"] == [{"id": str(t1.id), "name": "Meera"}]
    assert data["student_details"] == [{"id": str(s1), "name": "Asha"}]


@pytest.mark.asyncio
async def test_delete_batch_cascades(
    client: AsyncClient,
    db_session: AsyncSession,
    admin,
    make_teacher,
    make_student,
    auth_headers,
) -> None:
    t1 = await make_teacher(admin, "Meera", "meera")
    s1 = await make_student(admin, "Asha")
    s2 = await make_student(admin, "Bala")
    headers = auth_headers(admin)
    created = await client.post(
        "/api/v1/batches",
        json=_batch_payload(teachers=[str(t1.id)], students=[str(s1), str(s2)]),
        headers=headers,
    )
    batch_id = created.json()["id"]
    submitted = await client.post(
        f"/api/v1/attendance/{batch_id}",
        json={
            "date": "2025-06-02",
            "attendance": [{"student_id": str(s1), "present": True}],
            "notes": "First class",
        },
        headers=auth_headers(t1),
    )
    assert submitted.status_code == 201

    response = await client.delete(f"/api/v1/batches/{batch_id}", headers=headers)
    assert response.status_code == 204

    assert (await client.get(f"/api/v1/teachers/{t1.id}", headers=headers)).json()["assigned_batches"] == []
    assert (await client.get(f"/api/v1/students/{s1}", headers=headers)).json()["batches"] == []
    assert (await client.get(f"/api/v1/students/{s2}", headers=headers)).json()["batches"] == []

    for model in (FeeRecord, AttendanceRecord):
        result = await db_session.execute(select(model).where(model.batch_id == UUID(batch_id)))
        assert result.scalars().all() == []
    assert (await db_session.execute(select(BatchTeacher))).scalars().all() == []
    assert (await db_session.execute(select(BatchStudent))).scalars().all() == []


@pytest.mark.asyncio
async def test_session_dates_endpoint(client: AsyncClient, admin, auth_headers) -> None:
    created = await client.post(
        "/api/v1/batches",
        json=_batch_payload(start_date="2025-06-02", end_date="2025-06-30", days=["Monday", "Wednesday"]),
        headers=auth_headers(admin),
    )
    batch_id = created.json()["id"]

    response = await client.get(
        f"/api/v1/batches/{batch_id}/session-dates",
        params={"today": "2025-06-10"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 200
    assert response.json()["dates"] == ["2025-06-02", "2025-06-04", "2025-06-09"]


@pytest.mark.asyncio
async def test_teacher_cannot_manage_batches(client: AsyncClient, admin, make_teacher, auth_headers) -> None:
    teacher = await make_teacher(admin, "Meera", "meera")
    response = await client.post("/api/v1/batches", json=_batch_payload(), headers=auth_headers(teacher))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_missing_token_is_rejected(client: AsyncClient) -> None:
    response = await client.get("/api/v1/batches")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_generate_missing_fees_endpoint(
    client: AsyncClient, admin, make_student, auth_headers
) -> None:
    s1 = await make_student(admin, "Asha")
    await client.post("/api/v1/batches", json=_batch_payload(students=[str(s1)]), headers=auth_headers(admin))

    response = await client.post("/api/v1/batches/generate-missing-fees", headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["created"] == 0
