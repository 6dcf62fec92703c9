"""Members directory: search, single lookup and achieved milestones."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

import structlog

from shepherd_service.auth.access import StatementsInput
from shepherd_service.auth.guards import assert_permitted
from shepherd_service.auth.models import AuthContext, MemberIdentity
from shepherd_service.db.models import ChurchMemberModel, MilestoneModel
from shepherd_service.db.repositories.church_members import ChurchMembersRepo
from shepherd_service.db.repositories.milestones import MilestonesRepo
from shepherd_service.errors import not_found
from shepherd_service.pagination import (
    PaginationOpts,
    PaginationResult,
    decode_cursor,
    encode_cursor,
)

log = structlog.get_logger(__name__)

READ_MEMBERS = {"church_member": ["read"]}
READ_MILESTONES = {"church_member": ["read"], "milestone": ["read"]}


@dataclass
class MemberView:
    id: UUID
    name: str
    email: str | None
    phone_number: str | None
    role: str
    member_since: datetime | None
    milestones_achieved: list[str] = field(default_factory=list)


def _to_view(church_member: ChurchMemberModel, identity: MemberIdentity) -> MemberView:
    return MemberView(
        id=church_member.id,
        name=church_member.name,
        email=identity.email,
        phone_number=identity.phone_number,
        role=identity.role,
        member_since=church_member.created_at,
        milestones_achieved=list(church_member.milestones_achieved or []),
    )


async def list_members(
    auth_ctx: AuthContext,
    repo: ChurchMembersRepo,
    search: str | None,
    pagination: PaginationOpts,
) -> PaginationResult[MemberView]:
    """One page of the active organization's members, joined with identity data.

    Identity lookups for the page run concurrently. Rows whose membership no
    longer exists are dropped from the page.

    The cursor is an offset into the ranked result. A member added between
    page loads that ranks above the cursor shifts later rows, so the next
    page may repeat or skip a row. With an empty search the order is
    creation order and new members only ever append.
    """
    active_member = await assert_permitted(auth_ctx, READ_MEMBERS)
    organization_id = active_member.organization_id

    offset = decode_cursor(pagination.cursor)
    rows, is_done = await repo.search(
        organization_id, search or "", offset=offset, limit=pagination.num_items
    )

    identities = await asyncio.gather(
        *(auth_ctx.auth.get_member(row.organization_member_id, organization_id) for row in rows)
    )
    page = [
        _to_view(row, identity)
        for row, identity in zip(rows, identities)
        if identity is not None
    ]
    if len(page) < len(rows):
        log.warning(
            "dangling_member_references",
            organization_id=str(organization_id),
            considered=len(rows),
            returned=len(page),
        )

    return PaginationResult(
        page=page,
        is_done=is_done,
        continue_cursor=encode_cursor(offset + len(rows)),
    )


async def _get_church_member(
    auth_ctx: AuthContext,
    repo: ChurchMembersRepo,
    church_member_id: UUID,
    statements: StatementsInput,
) -> tuple[ChurchMemberModel, MemberIdentity]:
    active_member = await assert_permitted(auth_ctx, statements)
    organization_id = active_member.organization_id

    row = await repo.get(church_member_id, organization_id)
    if row is None:
        raise not_found()
    identity = await auth_ctx.auth.get_member(row.organization_member_id, organization_id)
    if identity is None:
        raise not_found()
    return row, identity


async def get_member(
    auth_ctx: AuthContext, repo: ChurchMembersRepo, church_member_id: UUID
) -> MemberView:
    row, identity = await _get_church_member(auth_ctx, repo, church_member_id, READ_MEMBERS)
    return _to_view(row, identity)


async def list_member_milestones(
    auth_ctx: AuthContext,
    repo: ChurchMembersRepo,
    milestones_repo: MilestonesRepo,
    church_member_id: UUID,
) -> list[MilestoneModel]:
    """Milestones the member has achieved, in the order they were achieved."""
    row, _identity = await _get_church_member(auth_ctx, repo, church_member_id, READ_MILESTONES)
    milestone_ids = []
    for raw in row.milestones_achieved or []:
        try:
            milestone_ids.append(UUID(str(raw)))
        except ValueError:
            log.warning("malformed_milestone_id", church_member_id=str(row.id), value=raw)
    return await milestones_repo.list_by_ids(row.organization_id, milestone_ids)
