"""
NSS Portal - Test Configuration and Fixtures
"""
import os
import tempfile
from datetime import datetime, timedelta
from typing import AsyncGenerator

import pytest
from faker import Faker
from httpx import ASGITransport, AsyncClient
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Set testing environment before the app reads its settings
TEST_DIR = tempfile.mkdtemp(prefix="nss-portal-tests-")
TEST_DATABASE_URL = f"sqlite+aiosqlite:///{os.path.join(TEST_DIR, 'test.db')}"
os.environ["APP_SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["APP_DATABASE_URL"] = TEST_DATABASE_URL
os.environ["APP_STATUS_SWEEP_ENABLED"] = "false"
os.environ["APP_UPLOAD_DIR"] = os.path.join(TEST_DIR, "uploads")
os.environ["APP_LOG_DIR"] = os.path.join(TEST_DIR, "logs")

from nss_portal.asgi import application
from nss_portal.db.base import AbstractSQLModel
from nss_portal.db.core import get_session
from nss_portal.api.auth.service import create_access_refresh_tokens
from nss_portal.api.events.models import EventStatus, Events, RegistrationTypes
from nss_portal.api.users.models import NSSApplicationStatus, UserRoles, Users
from nss_portal.core.auth.authentication import get_password_hash
from nss_portal.core.utils.dates import now_ist
from nss_portal.core.utils.db_fields import IST

fake = Faker()

PASSWORD = "password123"
PASSWORD_HASH = get_password_hash(PASSWORD)

test_engine = create_async_engine(TEST_DATABASE_URL, poolclass=pool.NullPool)
TestSessionLocal = async_sessionmaker(
    bind=test_engine, autoflush=False, expire_on_commit=False
)


@pytest.fixture
def session_factory():
    return TestSessionLocal


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh schema and a session for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(AbstractSQLModel.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(AbstractSQLModel.metadata.drop_all)


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Test client whose requests each get their own session on the test database"""

    async def override_get_session():
        async with TestSessionLocal() as session:
            yield session

    application.dependency_overrides[get_session] = override_get_session

    transport = ASGITransport(app=application)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    application.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session: AsyncSession):
    async def factory(
        role: UserRoles = UserRoles.volunteer,
        nss_status: NSSApplicationStatus = NSSApplicationStatus.not_applied,
        **kwargs,
    ) -> Users:
        user = Users(
            name=kwargs.pop("name", fake.name()[:50]),
            email=kwargs.pop("email", fake.unique.email()),
            password=PASSWORD_HASH,
            role=role,
            phone=kwargs.pop("phone", fake.numerify("9#########")),
            university_roll_no=kwargs.pop("university_roll_no", fake.bothify("NSS####")),
            skills=[],
            is_active=kwargs.pop("is_active", True),
            has_applied_to_nss=nss_status != NSSApplicationStatus.not_applied,
            nss_application_status=nss_status,
            reapplication_count=0,
            **kwargs,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return factory


@pytest.fixture
async def admin_user(make_user) -> Users:
    return await make_user(role=UserRoles.admin)


@pytest.fixture
async def volunteer(make_user) -> Users:
    return await make_user(nss_status=NSSApplicationStatus.approved)


def auth_headers_for(user: Users) -> dict:
    token = create_access_refresh_tokens(user)
    return {"Authorization": f"Bearer {token.access_token}"}


@pytest.fixture
def headers_for():
    """Bearer headers for any user created in a test"""
    return auth_headers_for


@pytest.fixture
def admin_headers(admin_user: Users) -> dict:
    return auth_headers_for(admin_user)


@pytest.fixture
def volunteer_headers(volunteer: Users) -> dict:
    return auth_headers_for(volunteer)


@pytest.fixture
def make_event(db_session: AsyncSession, admin_user: Users):
    """
    Build an event starting at ``start`` (IST, minute precision).

    Defaults to an upcoming internal event three days out.
    """

    async def factory(
        start: datetime | None = None,
        duration: timedelta = timedelta(hours=3),
        max_participants: int = 50,
        registration_type: RegistrationTypes = RegistrationTypes.internal,
        status: EventStatus = EventStatus.upcoming,
        **kwargs,
    ) -> Events:
        start = (start or now_ist() + timedelta(days=3)).astimezone(IST)
        start = start.replace(second=0, microsecond=0)
        end = start + duration
        event = Events(
            title=kwargs.pop("title", fake.sentence(nb_words=4)[:200]),
            description=kwargs.pop("description", fake.paragraph()),
            registration_type=registration_type,
            start_date=start.date(),
            start_time=start.strftime("%H:%M"),
            end_date=end.date(),
            end_time=end.strftime("%H:%M"),
            starts_at=start,
            ends_at=end,
            location=kwargs.pop("location", fake.city()),
            max_participants=max_participants,
            current_participants=kwargs.pop("current_participants", 0),
            status=status,
            created_by_id=kwargs.pop("created_by_id", admin_user.id),
            **kwargs,
        )
        db_session.add(event)
        await db_session.commit()
        return event

    return factory
