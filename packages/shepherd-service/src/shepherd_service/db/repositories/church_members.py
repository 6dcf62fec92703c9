"""Repository for church member profiles."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import case, literal, select
from sqlalchemy.ext.asyncio import AsyncSession

from shepherd_service.db.models import ChurchMemberModel


def search_tokens(term: str) -> list[str]:
    """Split a free-text search term into distinct lowercase tokens."""
    seen: list[str] = []
    for token in term.lower().split():
        if token not in seen:
            seen.append(token)
    return seen


class ChurchMembersRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        organization_id: UUID,
        organization_member_id: UUID,
        name: str,
    ) -> ChurchMemberModel:
        row = ChurchMemberModel(
            organization_id=organization_id,
            organization_member_id=organization_member_id,
            name=name,
            milestones_achieved=[],
        )
        self._session.add(row)
        await self._session.flush()
        await self._session.refresh(row)
        return row

    async def get(self, church_member_id: UUID, organization_id: UUID) -> ChurchMemberModel | None:
        result = await self._session.execute(
            select(ChurchMemberModel).where(
                ChurchMemberModel.id == church_member_id,
                ChurchMemberModel.organization_id == organization_id,
            )
        )
        return result.scalars().first()

    async def get_by_organization_member(
        self, organization_member_id: UUID
    ) -> ChurchMemberModel | None:
        result = await self._session.execute(
            select(ChurchMemberModel).where(
                ChurchMemberModel.organization_member_id == organization_member_id
            )
        )
        return result.scalars().first()

    async def search(
        self,
        organization_id: UUID,
        term: str,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[ChurchMemberModel], bool]:
        """Search a tenant's members by name.

        Rows matching more tokens rank first; ties fall back to creation order.
        An empty term lists every member of the tenant in creation order.
        Returns (rows, is_done).
        """
        tokens = search_tokens(term)
        query = select(ChurchMemberModel).where(
            ChurchMemberModel.organization_id == organization_id
        )
        if tokens:
            rank = sum(
                (case((ChurchMemberModel.name.icontains(t, autoescape=True), 1), else_=0) for t in tokens),
                literal(0),
            )
            query = query.where(rank > 0).order_by(rank.desc())
        query = query.order_by(ChurchMemberModel.created_at, ChurchMemberModel.id)

        result = await self._session.execute(query.offset(offset).limit(limit + 1))
        rows = list(result.scalars().all())
        return rows[:limit], len(rows) <= limit
