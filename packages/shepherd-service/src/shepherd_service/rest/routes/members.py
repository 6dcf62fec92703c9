"""Members directory endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, HTTPException, Query

from shepherd_service import members
from shepherd_service.auth.deps import AuthContextDep
from shepherd_service.db.deps import ChurchMembersRepoDep, MilestonesRepoDep
from shepherd_service.pagination import PaginationOpts
from shepherd_service.rest.schemas import MemberPageResponse, MemberSchema, MilestoneSchema
from shepherd_service.settings import settings

router = APIRouter(tags=["members"])


def _view_to_schema(view: members.MemberView) -> MemberSchema:
    return MemberSchema(
        id=str(view.id),
        name=view.name,
        email=view.email,
        phone_number=view.phone_number,
        role=view.role,
        member_since=view.member_since,
        milestones_achieved=[str(m) for m in view.milestones_achieved],
    )


def _parse_id(member_id: str) -> UUID:
    try:
        return UUID(member_id)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail="Invalid member id") from exc


@router.get("/members", response_model=MemberPageResponse)
async def list_members(
    auth_ctx: AuthContextDep,
    repo: ChurchMembersRepoDep,
    search: str = "",
    cursor: str | None = None,
    num_items: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
) -> MemberPageResponse:
    result = await members.list_members(
        auth_ctx, repo, search, PaginationOpts(num_items=num_items, cursor=cursor)
    )
    return MemberPageResponse(
        page=[_view_to_schema(v) for v in result.page],
        is_done=result.is_done,
        continue_cursor=result.continue_cursor,
    )


@router.get("/members/{member_id}", response_model=MemberSchema)
async def get_member(
    member_id: str, auth_ctx: AuthContextDep, repo: ChurchMembersRepoDep
) -> MemberSchema:
    view = await members.get_member(auth_ctx, repo, _parse_id(member_id))
    return _view_to_schema(view)


@router.get("/members/{member_id}/milestones", response_model=list[MilestoneSchema])
async def list_member_milestones(
    member_id: str,
    auth_ctx: AuthContextDep,
    repo: ChurchMembersRepoDep,
    milestones_repo: MilestonesRepoDep,
) -> list[MilestoneSchema]:
    milestones = await members.list_member_milestones(
        auth_ctx, repo, milestones_repo, _parse_id(member_id)
    )
    return [
        MilestoneSchema(id=str(m.id), title=m.title, description=m.description)
        for m in milestones
    ]
