"""Pydantic request/response models for REST API."""

from __future__ import annotations

import re
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from shepherd_service.settings import settings

_PHONE_RE = re.compile(r"^\+?[0-9]{7,15}$")


class SendOtpRequest(BaseModel):
    phone_number: str

    @field_validator("phone_number")
    @classmethod
    def phone_format(cls, v: str) -> str:
        v = v.replace(" ", "")
        if not _PHONE_RE.match(v):
            raise ValueError("Phone number must be 7-15 digits, optionally prefixed with +")
        return v


class VerifyOtpRequest(SendOtpRequest):
    code: str = Field(
        pattern=r"^[0-9]+$",
        min_length=settings.otp_length,
        max_length=settings.otp_length,
    )


class SessionResponse(BaseModel):
    token: str | None = None
    session_id: str
    user_id: str
    expires_at: datetime
    active_organization_id: str | None = None


class CreateOrganizationRequest(BaseModel):
    name: str = Field(min_length=2)
    slug: str | None = None

    @field_validator("slug")
    @classmethod
    def slug_format(cls, v: str | None) -> str | None:
        if v is not None and not re.match(r"^[a-z0-9-]+$", v):
            raise ValueError("Slug must contain only lowercase letters, digits, and hyphens")
        return v


class SetActiveOrganizationRequest(BaseModel):
    organization_id: str


class OrganizationSchema(BaseModel):
    id: str
    name: str
    slug: str
    created_at: datetime | None = None


class MemberSchema(BaseModel):
    id: str
    name: str
    email: str | None = None
    phone_number: str | None = None
    role: str
    member_since: datetime | None = None
    milestones_achieved: list[str] = Field(default_factory=list)


class MemberPageResponse(BaseModel):
    page: list[MemberSchema]
    is_done: bool
    continue_cursor: str


class MilestoneSchema(BaseModel):
    id: str
    title: str
    description: str | None = None
