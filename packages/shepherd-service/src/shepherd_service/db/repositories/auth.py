"""Repository for auth-related DB operations."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from shepherd_service.db.models import (
    MemberModel,
    OrganizationModel,
    SessionModel,
    UserModel,
    VerificationModel,
)


class AuthRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # -- organizations -----------------------------------------------------

    async def create_org(self, name: str, slug: str) -> OrganizationModel:
        """Create a new organization."""
        org = OrganizationModel(name=name, slug=slug)
        self._session.add(org)
        await self._session.flush()
        await self._session.refresh(org)
        return org

    async def get_org(self, org_id: UUID) -> OrganizationModel | None:
        return await self._session.get(OrganizationModel, org_id)

    async def get_org_by_slug(self, slug: str) -> OrganizationModel | None:
        result = await self._session.execute(
            select(OrganizationModel).where(OrganizationModel.slug == slug)
        )
        return result.scalars().first()

    async def list_orgs_for_user(self, user_id: UUID) -> list[OrganizationModel]:
        result = await self._session.execute(
            select(OrganizationModel)
            .join(MemberModel, MemberModel.organization_id == OrganizationModel.id)
            .where(MemberModel.user_id == user_id)
            .order_by(OrganizationModel.created_at)
        )
        return list(result.scalars().all())

    # -- users -------------------------------------------------------------

    async def create_user(
        self,
        name: str,
        email: str | None = None,
        phone_number: str | None = None,
        phone_number_verified: bool = False,
    ) -> UserModel:
        user = UserModel(
            name=name,
            email=email,
            phone_number=phone_number,
            phone_number_verified=phone_number_verified,
        )
        self._session.add(user)
        await self._session.flush()
        await self._session.refresh(user)
        return user

    async def get_user(self, user_id: UUID) -> UserModel | None:
        return await self._session.get(UserModel, user_id)

    async def get_user_by_phone(self, phone_number: str) -> UserModel | None:
        result = await self._session.execute(
            select(UserModel).where(UserModel.phone_number == phone_number)
        )
        return result.scalars().first()

    # -- members -----------------------------------------------------------

    async def add_member(self, org_id: UUID, user_id: UUID, role: str = "member") -> MemberModel:
        """Add a user as a member of an organization."""
        member = MemberModel(organization_id=org_id, user_id=user_id, role=role)
        self._session.add(member)
        await self._session.flush()
        await self._session.refresh(member)
        return member

    async def get_member(self, org_id: UUID, user_id: UUID) -> MemberModel | None:
        result = await self._session.execute(
            select(MemberModel).where(
                MemberModel.organization_id == org_id,
                MemberModel.user_id == user_id,
            )
        )
        return result.scalars().first()

    async def get_member_with_user(
        self, member_id: UUID, org_id: UUID
    ) -> tuple[MemberModel, UserModel] | None:
        """Fetch a membership and its user, scoped to one organization."""
        result = await self._session.execute(
            select(MemberModel, UserModel)
            .join(UserModel, UserModel.id == MemberModel.user_id)
            .where(MemberModel.id == member_id, MemberModel.organization_id == org_id)
        )
        row = result.first()
        return (row[0], row[1]) if row else None

    # -- sessions ----------------------------------------------------------

    async def create_session(self, user_id: UUID, expires_at: datetime) -> SessionModel:
        row = SessionModel(user_id=user_id, expires_at=expires_at)
        self._session.add(row)
        await self._session.flush()
        await self._session.refresh(row)
        return row

    async def get_session(self, session_id: UUID) -> SessionModel | None:
        return await self._session.get(SessionModel, session_id)

    async def set_active_org(self, session_id: UUID, org_id: UUID | None) -> None:
        row = await self.get_session(session_id)
        if row is not None:
            row.active_organization_id = org_id
            await self._session.flush()

    async def delete_session(self, session_id: UUID) -> None:
        row = await self.get_session(session_id)
        if row is not None:
            await self._session.delete(row)
            await self._session.flush()

    # -- verifications -----------------------------------------------------

    async def replace_verification(
        self, identifier: str, code_hash: str, expires_at: datetime
    ) -> VerificationModel:
        """Store a new verification, discarding any pending one for the identifier."""
        await self.delete_verifications(identifier)
        row = VerificationModel(identifier=identifier, code_hash=code_hash, expires_at=expires_at)
        self._session.add(row)
        await self._session.flush()
        return row

    async def get_verification(self, identifier: str) -> VerificationModel | None:
        result = await self._session.execute(
            select(VerificationModel)
            .where(VerificationModel.identifier == identifier)
            .order_by(VerificationModel.created_at.desc())
        )
        return result.scalars().first()

    async def record_failed_attempt(self, verification: VerificationModel) -> int:
        verification.attempts = (verification.attempts or 0) + 1
        await self._session.flush()
        return verification.attempts

    async def delete_verifications(self, identifier: str) -> None:
        await self._session.execute(
            delete(VerificationModel).where(VerificationModel.identifier == identifier)
        )
