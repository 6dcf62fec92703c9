"""FastAPI auth dependencies."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from shepherd_service.auth.models import AuthContext
from shepherd_service.auth.platform import AuthPlatform
from shepherd_service.churches import church_member_hook
from shepherd_service.db.deps import SessionDep
from shepherd_service.db.repositories.church_members import ChurchMembersRepo


def create_auth(session: AsyncSession, otp_sender=None) -> AuthPlatform:
    """Wire the auth platform for one database session."""
    return AuthPlatform(
        session,
        after_create_organization=[church_member_hook(ChurchMembersRepo(session))],
        otp_sender=otp_sender,
    )


def get_auth_platform(session: SessionDep) -> AuthPlatform:
    return create_auth(session)


AuthPlatformDep = Annotated[AuthPlatform, Depends(get_auth_platform)]


def get_auth_context(request: Request, auth: AuthPlatformDep) -> AuthContext:
    """Bind the auth platform to the current request's headers."""
    return AuthContext(auth=auth, headers=request.headers)


AuthContextDep = Annotated[AuthContext, Depends(get_auth_context)]
