"""Request authorization: session, active organization, then permission.

Usage from a handler::

    active_member = await assert_permitted(auth_ctx, {"church_member": ["read"]})
"""

from __future__ import annotations

import structlog

from shepherd_service.auth.access import StatementsInput
from shepherd_service.auth.models import ActiveMember, AuthContext, Organization, Session
from shepherd_service.auth.platform import AuthAPIError
from shepherd_service.errors import forbidden, redirect, unauthorized
from shepherd_service.settings import settings

log = structlog.get_logger(__name__)


async def get_server_session(auth_ctx: AuthContext) -> Session | None:
    try:
        return await auth_ctx.auth.get_session(auth_ctx.headers)
    except Exception:
        log.exception("get_server_session_failed")
        raise


async def assert_authenticated(auth_ctx: AuthContext) -> Session:
    session = await get_server_session(auth_ctx)
    if session is None:
        raise unauthorized()
    return session


async def get_has_permission(auth_ctx: AuthContext, statements: StatementsInput) -> bool:
    return await auth_ctx.auth.has_permission(auth_ctx.headers, statements)


async def get_active_member(auth_ctx: AuthContext) -> ActiveMember | None:
    try:
        return await auth_ctx.auth.get_active_member(auth_ctx.headers)
    except AuthAPIError:
        return None


async def get_organizations(auth_ctx: AuthContext) -> list[Organization]:
    return list(await auth_ctx.auth.list_organizations(auth_ctx.headers) or [])


async def handle_no_active_org(auth_ctx: AuthContext) -> ActiveMember:
    """Pick an organization for a session that has none active.

    Only a single candidate is ever selected automatically; otherwise the
    caller is redirected to choose (or create) one.
    """
    orgs = await get_organizations(auth_ctx)
    log.debug("no_active_organization", organization_count=len(orgs))

    if not orgs:
        raise redirect(settings.no_organization_url)

    if len(orgs) == 1:
        await auth_ctx.auth.set_active_organization(auth_ctx.headers, orgs[0].id)
        active_member = await get_active_member(auth_ctx)
        if active_member is not None:
            return active_member
        log.error("set_active_organization_failed", organization_id=str(orgs[0].id))

    raise redirect(settings.select_organization_url)


async def assert_active_organization(auth_ctx: AuthContext) -> ActiveMember:
    await assert_authenticated(auth_ctx)
    active_member = await get_active_member(auth_ctx)
    if active_member is not None:
        return active_member
    return await handle_no_active_org(auth_ctx)


async def assert_permitted(auth_ctx: AuthContext, statements: StatementsInput) -> ActiveMember:
    # The permission check evaluates against the active organization, so it
    # must be resolved first.
    active_member = await assert_active_organization(auth_ctx)
    if not await get_has_permission(auth_ctx, statements):
        raise forbidden()
    return active_member
