"""Church member profiles created alongside new organizations."""

from __future__ import annotations

import re
import time
from uuid import UUID

import structlog

from shepherd_service.auth.models import Member, Organization, User
from shepherd_service.db.models import ChurchMemberModel
from shepherd_service.db.repositories.church_members import ChurchMembersRepo

log = structlog.get_logger(__name__)

# Slug suffixes count from here to keep them short.
SLUG_EPOCH_MS = 1762605336987

_DIGITS36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(value: int) -> str:
    if value <= 0:
        return "0"
    out = []
    while value:
        value, rem = divmod(value, 36)
        out.append(_DIGITS36[rem])
    return "".join(reversed(out))


def generate_slug(name: str, now_ms: int | None = None) -> str:
    """URL-safe slug from ``name`` with a time-based suffix."""
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    base = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return f"{base}-{_base36(now_ms - SLUG_EPOCH_MS)}"


async def create_church_member_internal(
    repo: ChurchMembersRepo,
    organization_id: UUID,
    organization_member_id: UUID,
    name: str,
) -> ChurchMemberModel:
    """Insert the profile for an organization member.

    Keyed by the organization member id: a repeated call returns the
    existing profile rather than creating a second one.
    """
    existing = await repo.get_by_organization_member(organization_member_id)
    if existing is not None:
        log.warning(
            "church_member_exists",
            organization_id=str(organization_id),
            organization_member_id=str(organization_member_id),
        )
        return existing

    row = await repo.create(
        organization_id=organization_id,
        organization_member_id=organization_member_id,
        name=name,
    )
    log.info(
        "church_member_created",
        organization_id=str(organization_id),
        church_member_id=str(row.id),
    )
    return row


def church_member_hook(repo: ChurchMembersRepo):
    """Build the after-create-organization hook that provisions the creator's profile."""

    async def after_create_organization(
        organization: Organization, member: Member, user: User
    ) -> None:
        await create_church_member_internal(
            repo,
            organization_id=organization.id,
            organization_member_id=member.id,
            name=user.name,
        )

    return after_create_organization
