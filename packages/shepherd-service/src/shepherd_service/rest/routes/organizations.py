"""Organization (church) endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, HTTPException

from shepherd_service.auth.deps import AuthContextDep
from shepherd_service.auth.guards import assert_authenticated, get_organizations
from shepherd_service.auth.models import Organization
from shepherd_service.churches import generate_slug
from shepherd_service.rest.schemas import (
    CreateOrganizationRequest,
    OrganizationSchema,
    SetActiveOrganizationRequest,
)

router = APIRouter(prefix="/organizations", tags=["organizations"])


def _org_to_schema(org: Organization) -> OrganizationSchema:
    return OrganizationSchema(
        id=str(org.id), name=org.name, slug=org.slug, created_at=org.created_at
    )


@router.get("", response_model=list[OrganizationSchema])
async def list_organizations(auth_ctx: AuthContextDep) -> list[OrganizationSchema]:
    await assert_authenticated(auth_ctx)
    return [_org_to_schema(o) for o in await get_organizations(auth_ctx)]


@router.post("", response_model=OrganizationSchema, status_code=201)
async def create_organization(
    request: CreateOrganizationRequest, auth_ctx: AuthContextDep
) -> OrganizationSchema:
    """Register a church. The caller becomes its owner and it becomes active."""
    await assert_authenticated(auth_ctx)
    slug = request.slug or generate_slug(request.name)
    org = await auth_ctx.auth.create_organization(auth_ctx.headers, request.name, slug)
    return _org_to_schema(org)


@router.post("/active", response_model=OrganizationSchema)
async def set_active_organization(
    request: SetActiveOrganizationRequest, auth_ctx: AuthContextDep
) -> OrganizationSchema:
    await assert_authenticated(auth_ctx)
    try:
        organization_id = UUID(request.organization_id)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail="Invalid organization id") from exc
    org = await auth_ctx.auth.set_active_organization(auth_ctx.headers, organization_id)
    return _org_to_schema(org)
