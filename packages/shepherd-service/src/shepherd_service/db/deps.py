"""FastAPI dependency injection for database sessions and repositories."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from shepherd_service.db.engine import get_session_factory
from shepherd_service.db.repositories.church_members import ChurchMembersRepo
from shepherd_service.db.repositories.milestones import MilestonesRepo


async def get_session() -> AsyncIterator[AsyncSession]:
    """Yield an async DB session, auto-closing on exit."""
    factory = get_session_factory()
    async with factory() as session:
        yield session


SessionDep = Annotated[AsyncSession, Depends(get_session)]


def get_church_members_repo(session: SessionDep) -> ChurchMembersRepo:
    return ChurchMembersRepo(session)


def get_milestones_repo(session: SessionDep) -> MilestonesRepo:
    return MilestonesRepo(session)


ChurchMembersRepoDep = Annotated[ChurchMembersRepo, Depends(get_church_members_repo)]
MilestonesRepoDep = Annotated[MilestonesRepo, Depends(get_milestones_repo)]
