import os
from typing import AsyncGenerator, Awaitable, Callable, Dict

# Settings are read at import time; point them at an in-memory database before importing the app
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from academy_portal.api.v1.students import service as student_service
from academy_portal.api.v1.students.schemas import StudentCreate
from academy_portal.api.v1.teachers import service as teacher_service
from academy_portal.api.v1.teachers.schemas import TeacherCreate
from academy_portal.auth.models import Admin
from academy_portal.auth.schemas import CurrentUser
from academy_portal.auth.security import create_access_token, hash_password
from academy_portal.core.enums import CallerRole
from academy_portal.core.models import Academy
from academy_portal.db.session import Base, get_db
from academy_portal.main import app


TEST_DATABASE_URL = "sqlite+aiosqlite://"
ADMIN_PASSWORD = "AdminPass123"
TEACHER_PASSWORD = "TeacherPass123"


@pytest.fixture()
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database per test; the app's get_db is overridden to use this session."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.pop(get_db, None)
    await engine.dispose()


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def make_academy(db_session: AsyncSession) -> Callable[[str], Awaitable[CurrentUser]]:
    """Create an academy with one admin (username "admin") and return that admin as a caller."""

    async def _make(name: str) -> CurrentUser:
        slug = name.lower().replace(" ", "")
        academy = Academy(name=name, email=f"office@{slug}.example.com", phone="9000000000")
        db_session.add(academy)
        await db_session.flush()
        admin = Admin(
            academy_id=academy.id,
            name=f"{name} Admin",
            email=f"admin@{slug}.example.com",
            phone="9000000001",
            username="admin",
            password_hash=hash_password(ADMIN_PASSWORD),
        )
        db_session.add(admin)
        await db_session.commit()
        return CurrentUser(id=admin.id, academy_id=academy.id, role=CallerRole.ADMIN)

    return _make


@pytest.fixture()
async def admin(make_academy) -> CurrentUser:
    return await make_academy("Rhythm Academy")


@pytest.fixture()
async def other_admin(make_academy) -> CurrentUser:
    return await make_academy("Tempo Academy")


@pytest.fixture()
def make_teacher(db_session: AsyncSession):
    """Create a teacher through the service; returns the teacher as a caller."""

    async def _make(ctx: CurrentUser, name: str, username: str) -> CurrentUser:
        created = await teacher_service.create_teacher(
            db_session,
            ctx,
            TeacherCreate(name=name, username=username, password=TEACHER_PASSWORD),
        )
        return CurrentUser(id=created.id, academy_id=created.academy_id, role=CallerRole.TEACHER)

    return _make


@pytest.fixture()
def make_student(db_session: AsyncSession):
    """Create a student with no batches; returns the new student's id."""

    async def _make(ctx: CurrentUser, name: str, parent_name: str = "Parent"):
        created = await student_service.create_student(
            db_session,
            ctx,
            StudentCreate(name=name, parent_name=parent_name, parent_phone="9876543210"),
        )
        return created.id

    return _make


@pytest.fixture()
def auth_headers() -> Callable[[CurrentUser], Dict[str, str]]:
    def _headers(user: CurrentUser) -> Dict[str, str]:
        token = create_access_token(user_id=user.id, academy_id=user.academy_id, role=user.role)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture()
def passwords() -> Dict[str, str]:
    """Plain-text passwords given to the admins and teachers created by the fixtures above."""
    return {"admin": ADMIN_PASSWORD, "teacher": TEACHER_PASSWORD}
