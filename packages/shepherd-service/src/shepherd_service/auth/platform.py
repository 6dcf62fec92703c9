"""Auth platform: sessions, organizations, memberships and phone OTP sign-in.

This is the only component that reads or writes the auth tables. Everything
else talks to it through the operations below, passing the request headers
so the platform can resolve the caller's session.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from datetime import UTC, datetime, timedelta
from uuid import UUID

import jwt
import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shepherd_service.auth import access
from shepherd_service.auth.codes import generate_code, hash_code, verify_code
from shepherd_service.auth.jwt import bearer_token, create_session_token, decode_token
from shepherd_service.auth.models import (
    ActiveMember,
    Member,
    MemberIdentity,
    Organization,
    Session,
    User,
)
from shepherd_service.db.models import MemberModel, OrganizationModel, UserModel
from shepherd_service.db.repositories.auth import AuthRepo
from shepherd_service.settings import settings

log = structlog.get_logger(__name__)

OrganizationHook = Callable[[Organization, Member, User], Awaitable[None]]


class AuthAPIError(Exception):
    """Refusal from an auth platform operation (bad input, missing state)."""

    def __init__(self, status: str, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message


class LoggingOtpSender:
    """Writes one-time codes to the log instead of delivering them."""

    async def send(self, phone_number: str, code: str) -> None:
        # TODO: deliver through an SMS provider once one is contracted.
        log.info("otp_send", phone_number=phone_number, code=code)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes.
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def _is_well_formed_code(code: str) -> bool:
    # bcrypt rejects inputs over 72 bytes; anything but N ASCII digits is wrong anyway.
    return len(code) == settings.otp_length and code.isascii() and code.isdigit()


def _to_org(model: OrganizationModel) -> Organization:
    return Organization(id=model.id, name=model.name, slug=model.slug, created_at=model.created_at)


def _to_member(model: MemberModel) -> Member:
    return Member(
        id=model.id, organization_id=model.organization_id, user_id=model.user_id, role=model.role
    )


def _to_user(model: UserModel) -> User:
    return User(id=model.id, name=model.name, email=model.email, phone_number=model.phone_number)


class AuthPlatform:
    def __init__(
        self,
        session: AsyncSession,
        after_create_organization: Sequence[OrganizationHook] = (),
        otp_sender=None,
    ) -> None:
        self._session = session
        self._repo = AuthRepo(session)
        self._after_create_organization = list(after_create_organization)
        self._otp_sender = otp_sender or LoggingOtpSender()

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def get_session(self, headers: Mapping[str, str]) -> Session | None:
        """Return the caller's session, or None when there is no valid one."""
        token = bearer_token(headers)
        if token is None:
            return None
        try:
            payload = decode_token(token)
        except jwt.PyJWTError:
            log.debug("session_token_rejected")
            return None
        if payload.get("type") != "session":
            return None
        try:
            session_id = UUID(payload["sid"])
            user_id = UUID(payload["sub"])
        except (KeyError, ValueError):
            return None

        row = await self._repo.get_session(session_id)
        if row is None or row.user_id != user_id:
            return None
        if _as_utc(row.expires_at) <= datetime.now(UTC):
            return None
        return Session(
            session_id=row.id,
            user_id=row.user_id,
            expires_at=_as_utc(row.expires_at),
            active_organization_id=row.active_organization_id,
        )

    async def _require_session(self, headers: Mapping[str, str]) -> Session:
        session = await self.get_session(headers)
        if session is None:
            raise AuthAPIError("UNAUTHORIZED", "Session not found")
        return session

    async def sign_out(self, headers: Mapping[str, str]) -> None:
        session = await self.get_session(headers)
        if session is None:
            return
        await self._repo.delete_session(session.session_id)
        await self._session.commit()
        log.info("signed_out", user_id=str(session.user_id))

    # ------------------------------------------------------------------
    # Organizations and memberships
    # ------------------------------------------------------------------

    async def list_organizations(self, headers: Mapping[str, str]) -> list[Organization]:
        session = await self._require_session(headers)
        orgs = await self._repo.list_orgs_for_user(session.user_id)
        return [_to_org(o) for o in orgs]

    async def get_active_member(self, headers: Mapping[str, str]) -> ActiveMember:
        """Return the caller's membership in the active organization.

        Raises AuthAPIError when no organization is active or the caller is
        not a member of it.
        """
        session = await self._require_session(headers)
        if session.active_organization_id is None:
            raise AuthAPIError("BAD_REQUEST", "No active organization")
        member = await self._repo.get_member(session.active_organization_id, session.user_id)
        if member is None:
            raise AuthAPIError("NOT_FOUND", "Member not found")
        return ActiveMember(**vars(_to_member(member)))

    async def set_active_organization(
        self, headers: Mapping[str, str], organization_id: UUID
    ) -> Organization:
        session = await self._require_session(headers)
        member = await self._repo.get_member(organization_id, session.user_id)
        if member is None:
            raise AuthAPIError("FORBIDDEN", "User is not a member of the organization")
        org = await self._repo.get_org(organization_id)
        if org is None:
            raise AuthAPIError("BAD_REQUEST", "Organization not found")
        await self._repo.set_active_org(session.session_id, organization_id)
        await self._session.commit()
        log.info("active_organization_set", organization_id=str(organization_id))
        return _to_org(org)

    async def has_permission(
        self, headers: Mapping[str, str], permissions: access.StatementsInput
    ) -> bool:
        """Check ``permissions`` against the caller's role in the active organization."""
        member = await self.get_active_member(headers)
        return access.has_permission(member.role, permissions)

    async def get_member(self, member_id: UUID, organization_id: UUID) -> MemberIdentity | None:
        found = await self._repo.get_member_with_user(member_id, organization_id)
        if found is None:
            return None
        member, user = found
        return MemberIdentity(
            member_id=member.id,
            user_id=user.id,
            role=member.role,
            name=user.name,
            email=user.email,
            phone_number=user.phone_number,
        )

    async def create_organization(
        self, headers: Mapping[str, str], name: str, slug: str
    ) -> Organization:
        """Create an organization owned by the caller and make it active.

        The after-create hooks run in the same unit of work, so a hook failure
        rolls the organization back as well.
        """
        session = await self._require_session(headers)
        if await self._repo.get_org_by_slug(slug):
            raise AuthAPIError("BAD_REQUEST", "Organization already exists")

        user_row = await self._repo.get_user(session.user_id)
        if user_row is None:
            raise AuthAPIError("UNAUTHORIZED", "User not found")

        try:
            try:
                org_row = await self._repo.create_org(name=name, slug=slug)
            except IntegrityError as exc:
                # Lost a race with a concurrent create for the same slug.
                raise AuthAPIError("BAD_REQUEST", "Organization already exists") from exc
            member_row = await self._repo.add_member(org_row.id, user_row.id, role="owner")
            org, member, user = _to_org(org_row), _to_member(member_row), _to_user(user_row)
            for hook in self._after_create_organization:
                await hook(org, member, user)
            await self._repo.set_active_org(session.session_id, org.id)
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise

        log.info("organization_created", organization_id=str(org.id), slug=slug)
        return org

    # ------------------------------------------------------------------
    # Phone number OTP
    # ------------------------------------------------------------------

    async def send_phone_otp(self, phone_number: str) -> None:
        code = generate_code(settings.otp_length)
        expires_at = datetime.now(UTC) + timedelta(minutes=settings.otp_expire_minutes)
        await self._repo.replace_verification(phone_number, hash_code(code), expires_at)
        await self._session.commit()
        await self._otp_sender.send(phone_number, code)

    async def verify_phone_otp(self, phone_number: str, code: str) -> tuple[str, Session]:
        """Verify a one-time code and open a session for the phone's user.

        The user is created on first successful verification. Returns the
        bearer token and the new session.
        """
        verification = await self._repo.get_verification(phone_number)
        if verification is None:
            raise AuthAPIError("BAD_REQUEST", "OTP not found")
        if _as_utc(verification.expires_at) <= datetime.now(UTC):
            await self._repo.delete_verifications(phone_number)
            await self._session.commit()
            raise AuthAPIError("BAD_REQUEST", "OTP expired")
        if verification.attempts >= settings.otp_max_attempts:
            await self._repo.delete_verifications(phone_number)
            await self._session.commit()
            raise AuthAPIError("FORBIDDEN", "Too many attempts")
        if not _is_well_formed_code(code) or not verify_code(code, verification.code_hash):
            await self._repo.record_failed_attempt(verification)
            await self._session.commit()
            raise AuthAPIError("BAD_REQUEST", "Invalid OTP")

        await self._repo.delete_verifications(phone_number)
        user = await self._repo.get_user_by_phone(phone_number)
        if user is None:
            user = await self._repo.create_user(
                name=phone_number, phone_number=phone_number, phone_number_verified=True
            )
            log.info("user_created", user_id=str(user.id))
        elif not user.phone_number_verified:
            user.phone_number_verified = True

        expires_at = datetime.now(UTC) + timedelta(days=settings.session_expire_days)
        row = await self._repo.create_session(user.id, expires_at)
        await self._session.commit()

        token = create_session_token(user.id, row.id, expires_at)
        log.info("session_created", user_id=str(user.id))
        return token, Session(session_id=row.id, user_id=user.id, expires_at=expires_at)
