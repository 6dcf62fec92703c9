"""Member directory: search join, single lookup, milestones."""

from __future__ import annotations

import asyncio
import uuid
from datetime import UTC, datetime, timedelta

import pytest
from _helpers import (
    FakeAuthPlatform,
    InMemoryChurchMembersRepo,
    InMemoryMilestonesRepo,
    make_active_member,
    make_session,
)

from shepherd_service.auth.models import AuthContext
from shepherd_service.errors import AppError
from shepherd_service.members import get_member, list_member_milestones, list_members
from shepherd_service.pagination import InvalidCursorError, PaginationOpts, decode_cursor


@pytest.fixture
def tenant():
    member = make_active_member(role="member")
    platform = FakeAuthPlatform(session=make_session(member.organization_id), active_member=member)
    repo = InMemoryChurchMembersRepo()
    return member.organization_id, platform, repo


def _ctx(platform) -> AuthContext:
    return AuthContext(auth=platform, headers={})


def _seed(repo, platform, organization_id, names, dangling=()):
    start = datetime(2024, 1, 1, tzinfo=UTC)
    rows = {}
    for i, name in enumerate(names):
        row = repo.add(organization_id, name, created_at=start + timedelta(days=i))
        if name not in dangling:
            platform.add_identity(
                row.organization_member_id, name, email=f"{name.lower()}@example.com"
            )
        rows[name] = row
    return rows


@pytest.mark.asyncio
async def test_dangling_identity_is_dropped_and_order_kept(tenant):
    org_id, platform, repo = tenant
    _seed(repo, platform, org_id, ["Alice", "Bob", "Charlie"], dangling={"Bob"})

    result = await list_members(_ctx(platform), repo, "", PaginationOpts(num_items=10))

    assert [v.name for v in result.page] == ["Alice", "Charlie"]
    assert result.is_done is True
    assert decode_cursor(result.continue_cursor) == 3


@pytest.mark.asyncio
async def test_views_merge_profile_and_identity_fields(tenant):
    org_id, platform, repo = tenant
    milestone_id = str(uuid.uuid4())
    row = repo.add(org_id, "Alice", milestones=[milestone_id])
    platform.add_identity(row.organization_member_id, "Alice", email="a@example.com", phone="+254700000000")

    result = await list_members(_ctx(platform), repo, None, PaginationOpts(num_items=10))

    (view,) = result.page
    assert view.id == row.id
    assert view.email == "a@example.com"
    assert view.phone_number == "+254700000000"
    assert view.role == "member"
    assert view.member_since == row.created_at
    assert view.milestones_achieved == [milestone_id]


@pytest.mark.asyncio
async def test_search_returns_only_true_matches(tenant):
    org_id, platform, repo = tenant
    _seed(repo, platform, org_id, ["Alice Moraa", "Bob Otieno", "Alicia Wanjiru", "Carol"])

    result = await list_members(_ctx(platform), repo, "ali", PaginationOpts(num_items=10))

    assert {v.name for v in result.page} == {"Alice Moraa", "Alicia Wanjiru"}


@pytest.mark.asyncio
async def test_listing_is_scoped_to_the_active_tenant(tenant):
    org_id, platform, repo = tenant
    _seed(repo, platform, org_id, ["Alice"])
    _seed(repo, platform, uuid.uuid4(), ["Mallory"])

    result = await list_members(_ctx(platform), repo, "", PaginationOpts(num_items=10))

    assert [v.name for v in result.page] == ["Alice"]
    assert repo.search_calls[0]["organization_id"] == org_id


@pytest.mark.asyncio
async def test_page_of_only_dangling_rows_is_empty_but_continues(tenant):
    org_id, platform, repo = tenant
    _seed(repo, platform, org_id, ["Ghost1", "Ghost2", "Real"], dangling={"Ghost1", "Ghost2"})

    first = await list_members(_ctx(platform), repo, "", PaginationOpts(num_items=2))
    assert first.page == []
    assert first.is_done is False

    second = await list_members(
        _ctx(platform), repo, "", PaginationOpts(num_items=2, cursor=first.continue_cursor)
    )
    assert [v.name for v in second.page] == ["Real"]
    assert second.is_done is True


@pytest.mark.asyncio
async def test_identity_lookups_run_concurrently(tenant):
    org_id, platform, repo = tenant
    _seed(repo, platform, org_id, ["Alice", "Bob", "Charlie"])

    started = 0
    all_started = asyncio.Event()
    lookup = platform.get_member

    async def gated_get_member(member_id, organization_id):
        nonlocal started
        started += 1
        if started == 3:
            all_started.set()
        # A sequential loop never lets the other lookups start, so this times out.
        await asyncio.wait_for(all_started.wait(), timeout=1)
        return await lookup(member_id, organization_id)

    platform.get_member = gated_get_member

    result = await list_members(_ctx(platform), repo, "", PaginationOpts(num_items=10))
    assert [v.name for v in result.page] == ["Alice", "Bob", "Charlie"]


@pytest.mark.asyncio
async def test_listing_requires_read_permission(tenant):
    _org_id, platform, repo = tenant
    platform.permitted = False

    with pytest.raises(AppError) as exc_info:
        await list_members(_ctx(platform), repo, "", PaginationOpts(num_items=10))

    assert exc_info.value.data == "FORBIDDEN"
    assert repo.search_calls == []
    assert platform.permission_requests == [{"church_member": ["read"]}]


@pytest.mark.asyncio
async def test_bad_cursor_is_rejected(tenant):
    _org_id, platform, repo = tenant
    with pytest.raises(InvalidCursorError):
        await list_members(_ctx(platform), repo, "", PaginationOpts(num_items=10, cursor="%%%"))


# ---------------------------------------------------------------------------
# Single member
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_get_member_returns_view(tenant):
    org_id, platform, repo = tenant
    rows = _seed(repo, platform, org_id, ["Alice"])

    view = await get_member(_ctx(platform), repo, rows["Alice"].id)
    assert view.name == "Alice"
    assert view.email == "alice@example.com"


@pytest.mark.asyncio
async def test_get_member_from_another_tenant_is_not_found(tenant):
    _org_id, platform, repo = tenant
    other = repo.add(uuid.uuid4(), "Mallory")
    platform.add_identity(other.organization_member_id, "Mallory")

    with pytest.raises(AppError) as exc_info:
        await get_member(_ctx(platform), repo, other.id)
    assert exc_info.value.data == "NOT_FOUND"


@pytest.mark.asyncio
async def test_get_member_with_dangling_identity_is_not_found(tenant):
    org_id, platform, repo = tenant
    rows = _seed(repo, platform, org_id, ["Bob"], dangling={"Bob"})

    with pytest.raises(AppError) as exc_info:
        await get_member(_ctx(platform), repo, rows["Bob"].id)
    assert exc_info.value.data == "NOT_FOUND"


# ---------------------------------------------------------------------------
# Milestones
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_member_milestones_in_achievement_order(tenant):
    org_id, platform, repo = tenant
    milestones = InMemoryMilestonesRepo()
    baptism = milestones.add(org_id, "Baptism")
    membership = milestones.add(org_id, "Membership class")
    foreign = milestones.add(uuid.uuid4(), "Other church")

    row = repo.add(
        org_id,
        "Alice",
        milestones=[str(membership.id), str(baptism.id), str(foreign.id), "not-a-uuid"],
    )
    platform.add_identity(row.organization_member_id, "Alice")

    result = await list_member_milestones(_ctx(platform), repo, milestones, row.id)

    assert [m.title for m in result] == ["Membership class", "Baptism"]
    assert platform.permission_requests == [{"church_member": ["read"], "milestone": ["read"]}]
