"""Repository for milestones."""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shepherd_service.db.models import MilestoneModel


class MilestonesRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self, organization_id: UUID, title: str, description: str | None = None
    ) -> MilestoneModel:
        milestone = MilestoneModel(
            organization_id=organization_id, title=title, description=description
        )
        self._session.add(milestone)
        await self._session.flush()
        await self._session.refresh(milestone)
        return milestone

    async def list_by_ids(
        self, organization_id: UUID, milestone_ids: Sequence[UUID]
    ) -> list[MilestoneModel]:
        """Return the tenant's milestones among ``milestone_ids``, in the given order."""
        if not milestone_ids:
            return []
        result = await self._session.execute(
            select(MilestoneModel).where(
                MilestoneModel.organization_id == organization_id,
                MilestoneModel.id.in_(list(milestone_ids)),
            )
        )
        by_id = {m.id: m for m in result.scalars().all()}
        return [by_id[mid] for mid in milestone_ids if mid in by_id]
