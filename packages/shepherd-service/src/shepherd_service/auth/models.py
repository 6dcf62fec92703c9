"""Auth domain models."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from shepherd_service.auth.platform import AuthPlatform


@dataclass
class Session:
    session_id: UUID
    user_id: UUID
    expires_at: datetime
    active_organization_id: UUID | None = None


@dataclass
class User:
    id: UUID
    name: str
    email: str | None = None
    phone_number: str | None = None


@dataclass
class Organization:
    id: UUID
    name: str
    slug: str
    created_at: datetime | None = None


@dataclass
class Member:
    id: UUID
    organization_id: UUID
    user_id: UUID
    role: str  # "owner" | "admin" | "member", comma-separated when several


@dataclass
class ActiveMember(Member):
    """The caller's membership in the session's active organization."""


@dataclass
class MemberIdentity:
    """Identity attributes of a membership, as held by the auth tables."""

    member_id: UUID
    user_id: UUID
    role: str
    name: str
    email: str | None = None
    phone_number: str | None = None


@dataclass
class AuthContext:
    """Request-scoped handle on the auth platform.

    Passed explicitly to every resolver; the headers carry the caller's
    bearer token.
    """

    auth: AuthPlatform
    headers: Mapping[str, str]
