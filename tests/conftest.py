"""Shared test fixtures for the CRM API tests.

Uses an in-memory SQLite async engine so tests run without PostgreSQL.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db
from app.main import app
from app.services.auth import create_access_token, hash_password
from app.services.profiles import invalidate_profile

# Import all models to ensure they're registered with Base.metadata
from app.models.organization import Organization
from app.models.role import Role
from app.models.user import User
from app.models.pipeline import Pipeline, PipelineStage  # noqa: F401
from app.models.project import Project
from app.models.property import Property
from app.models.lead import Lead
from app.models.campaign import Campaign
from app.models.call_log import CallLog  # noqa: F401
from app.models.deal import Deal  # noqa: F401
from app.models.audit_log import AuditLog  # noqa: F401
from app.models.payment_transaction import PaymentTransaction  # noqa: F401
from app.models.webhook_retry import WebhookRetry  # noqa: F401


# Use aiosqlite for fast, isolated tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
TestSession = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after."""
    invalidate_profile()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    invalidate_profile()


async def override_get_db():
    async with TestSession() as session:
        yield session


app.dependency_overrides[get_db] = override_get_db


@pytest_asyncio.fixture
async def client():
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def db():
    """Direct DB session for test setup/assertions."""
    async with TestSession() as session:
        yield session


@pytest.fixture
def auth_headers():
    """Build a bearer header for a profile."""
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user)}"}
    return _headers


@pytest_asyncio.fixture
async def org(db):
    organization = Organization(name="Skyline Realty")
    db.add(organization)
    await db.commit()
    return organization


@pytest_asyncio.fixture
async def other_org(db):
    organization = Organization(name="Rival Homes")
    db.add(organization)
    await db.commit()
    return organization


@pytest_asyncio.fixture
async def make_user(db):
    """Factory: create a profile whose role grants ``permissions``."""
    counter = {"n": 0}

    async def _make_user(organization, permissions=(), role_name="Custom", **fields):
        counter["n"] += 1
        role = Role(name=role_name, organization_id=organization.id, permissions=list(permissions))
        db.add(role)
        await db.flush()

        user = User(
            email=fields.pop("email", f"user{counter['n']}@example.com"),
            hashed_password=hash_password(fields.pop("password", "testpass123")),
            full_name=fields.pop("full_name", f"User {counter['n']}"),
            organization_id=organization.id,
            role_id=role.id,
            is_active=fields.pop("is_active", True),
            **fields,
        )
        db.add(user)
        await db.commit()
        return user

    return _make_user


@pytest_asyncio.fixture
async def project(db, org):
    proj = Project(organization_id=org.id, name="Palm Heights")
    db.add(proj)
    await db.commit()
    return proj


@pytest_asyncio.fixture
async def campaign(db, org, project):
    camp = Campaign(organization_id=org.id, project_id=project.id, name="Launch Calls", ai_script="Palm Heights has new 2BHK units.")
    db.add(camp)
    await db.commit()
    return camp


@pytest_asyncio.fixture
async def leads(db, org, project):
    rows = [
        Lead(organization_id=org.id, project_id=project.id, name=name, phone=f"+9199999000{i}")
        for i, name in enumerate(["Asha", "Ravi", "Meera"])
    ]
    db.add_all(rows)
    await db.commit()
    return rows


@pytest_asyncio.fixture
async def available_property(db, org, project):
    prop = Property(organization_id=org.id, project_id=project.id, title="Tower A - 1204", status="available")
    db.add(prop)
    await db.commit()
    return prop
