"""Auth endpoints: phone OTP sign-in, session, sign-out."""

from __future__ import annotations

from fastapi import APIRouter

from shepherd_service.auth.deps import AuthContextDep, AuthPlatformDep
from shepherd_service.auth.guards import assert_authenticated
from shepherd_service.rest.schemas import SendOtpRequest, SessionResponse, VerifyOtpRequest

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/phone-number/send-otp", status_code=202)
async def send_otp(request: SendOtpRequest, auth: AuthPlatformDep) -> dict[str, bool]:
    """Send a one-time code to the phone number."""
    await auth.send_phone_otp(request.phone_number)
    return {"sent": True}


@router.post("/phone-number/verify", response_model=SessionResponse)
async def verify_otp(request: VerifyOtpRequest, auth: AuthPlatformDep) -> SessionResponse:
    """Exchange a valid one-time code for a session token."""
    token, session = await auth.verify_phone_otp(request.phone_number, request.code)
    return SessionResponse(
        token=token,
        session_id=str(session.session_id),
        user_id=str(session.user_id),
        expires_at=session.expires_at,
    )


@router.get("/session", response_model=SessionResponse)
async def get_session(auth_ctx: AuthContextDep) -> SessionResponse:
    """Return the caller's current session."""
    session = await assert_authenticated(auth_ctx)
    return SessionResponse(
        session_id=str(session.session_id),
        user_id=str(session.user_id),
        expires_at=session.expires_at,
        active_organization_id=(
            str(session.active_organization_id) if session.active_organization_id else None
        ),
    )


@router.post("/sign-out")
async def sign_out(auth_ctx: AuthContextDep) -> dict[str, bool]:
    await auth_ctx.auth.sign_out(auth_ctx.headers)
    return {"success": True}
