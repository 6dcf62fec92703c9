"""Slug generation and the organization-creation hook."""

from __future__ import annotations

import re
import uuid

import pytest
from _helpers import InMemoryChurchMembersRepo

from shepherd_service.auth.models import Member, Organization, User
from shepherd_service.churches import (
    SLUG_EPOCH_MS,
    church_member_hook,
    create_church_member_internal,
    generate_slug,
)
from shepherd_service.db.repositories.church_members import ChurchMembersRepo


def test_slug_lowercases_and_collapses_punctuation():
    assert generate_slug("  Grace  Community Church!! ", now_ms=SLUG_EPOCH_MS + 35) == (
        "grace-community-church-z"
    )


def test_slug_suffix_is_base36_time_since_epoch():
    assert generate_slug("St. Paul's", now_ms=SLUG_EPOCH_MS + 36 * 36) == "st-paul-s-100"


def test_slug_is_url_safe_for_current_time():
    assert re.fullmatch(r"[a-z0-9-]+", generate_slug("Kanisa la Neema"))


@pytest.mark.asyncio
async def test_create_church_member_internal_inserts_empty_profile():
    repo = InMemoryChurchMembersRepo()
    org_id, member_id = uuid.uuid4(), uuid.uuid4()

    row = await create_church_member_internal(repo, org_id, member_id, "Pastor Jane")

    assert row.organization_id == org_id
    assert row.organization_member_id == member_id
    assert row.name == "Pastor Jane"
    assert row.milestones_achieved == []


@pytest.mark.asyncio
async def test_repeated_hook_delivery_keeps_one_profile(db_session):
    repo = ChurchMembersRepo(db_session)
    org = Organization(id=uuid.uuid4(), name="Grace", slug="grace-1")
    user = User(id=uuid.uuid4(), name="Pastor Jane")
    member = Member(id=uuid.uuid4(), organization_id=org.id, user_id=user.id, role="owner")
    hook = church_member_hook(repo)

    await hook(org, member, user)
    await hook(org, member, user)

    rows, is_done = await repo.search(org.id, "")
    assert [r.name for r in rows] == ["Pastor Jane"]
    assert rows[0].organization_member_id == member.id
    assert rows[0].milestones_achieved == []
    assert is_done
