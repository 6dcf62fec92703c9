"""Service test fixtures: in-memory fakes and a throwaway SQLite database."""

from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Make _helpers importable from test files
sys.path.insert(0, str(Path(__file__).parent))

from _helpers import (  # noqa: E402
    FakeAuthPlatform,
    InMemoryChurchMembersRepo,
    InMemoryMilestonesRepo,
    make_active_member,
    make_session,
)

from shepherd_service.auth.deps import get_auth_context  # noqa: E402
from shepherd_service.auth.models import AuthContext  # noqa: E402
from shepherd_service.db.deps import (  # noqa: E402
    get_church_members_repo,
    get_milestones_repo,
    get_session,
)
from shepherd_service.db.models import Base  # noqa: E402
from shepherd_service.rest.errors import register_error_handlers  # noqa: E402
from shepherd_service.rest.routes.auth import router as auth_router  # noqa: E402
from shepherd_service.rest.routes.health import router as health_router  # noqa: E402
from shepherd_service.rest.routes.members import router as members_router  # noqa: E402
from shepherd_service.rest.routes.organizations import router as organizations_router  # noqa: E402


@pytest_asyncio.fixture
async def db_session():
    """An AsyncSession on a fresh in-memory SQLite database."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def platform() -> FakeAuthPlatform:
    """Signed-in caller whose active organization is already set."""
    member = make_active_member(role="admin")
    return FakeAuthPlatform(
        session=make_session(active_organization_id=member.organization_id),
        active_member=member,
    )


@pytest.fixture
def client(platform: FakeAuthPlatform):
    """Test client with in-memory repos and auth platform (no database needed)."""
    app = FastAPI(title="Shepherd API (test)")
    register_error_handlers(app)

    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router, prefix="/api/v1", tags=["auth"])
    app.include_router(organizations_router, prefix="/api/v1", tags=["organizations"])
    app.include_router(members_router, prefix="/api/v1", tags=["members"])

    members_repo = InMemoryChurchMembersRepo()
    milestones_repo = InMemoryMilestonesRepo()
    fake_session = AsyncMock()

    app.dependency_overrides[get_session] = lambda: fake_session
    app.dependency_overrides[get_church_members_repo] = lambda: members_repo
    app.dependency_overrides[get_milestones_repo] = lambda: milestones_repo
    app.dependency_overrides[get_auth_context] = lambda: AuthContext(auth=platform, headers={})

    return TestClient(app), members_repo, milestones_repo
