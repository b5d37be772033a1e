from fastapi import APIRouter, Depends, Request, Response
from typing import Optional
import logging

from ..application.ports.session_repo import AuthSession
from ..application.services.otp_request_service import OtpRequestService
from ..application.services.otp_verification_service import OtpVerificationService
from ..application.services.session_service import SessionService
from ..auth_gateway import client_ip, get_request_credential, require_auth_session
from ..core.config import Settings
from ..dependencies import (
    get_app_settings,
    get_otp_request_service,
    get_otp_verification_service,
    get_session_service,
)
from ..schemas import (
    ErrorResponse, MeResponse, RequestOTPRequest, RequestOTPResponse,
    UserResponse, VerifyOTPRequest, VerifyOTPResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

LOCAL_HOSTS = ("localhost", "127.0.0.1")


def _set_session_cookie(response: Response, request: Request, settings: Settings, token: str, max_age: int) -> None:
    # Cross-site cookies need SameSite=None; Secure, which browsers reject over plain http on localhost
    cross_site = settings.is_production and request.url.hostname not in LOCAL_HOSTS
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=max_age,
        path="/",
        httponly=True,
        samesite="none" if cross_site else "lax",
        secure=cross_site,
        domain=settings.COOKIE_DOMAIN if cross_site else None,
    )


@router.post("/request-otp", response_model=RequestOTPResponse, responses={
    400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}, 502: {"model": ErrorResponse},
})
async def request_otp(
    payload: RequestOTPRequest,
    request: Request,
    service: OtpRequestService = Depends(get_otp_request_service),
):
    """
    Send a one-time sign-in code to an email address
    """
    issued = await service.request_code(payload.email or "", client_ip(request))
    return RequestOTPResponse(
        success=True,
        message="Code sent",
        data={"email": issued.email, "expires_in": issued.expires_in_seconds},
    )


@router.post("/verify-otp", response_model=VerifyOTPResponse, responses={
    400: {"model": ErrorResponse}, 429: {"model": ErrorResponse},
})
def verify_otp(
    payload: VerifyOTPRequest,
    request: Request,
    response: Response,
    service: OtpVerificationService = Depends(get_otp_verification_service),
    settings: Settings = Depends(get_app_settings),
):
    """
    Exchange an emailed code for a session token (also set as an httpOnly cookie)
    """
    login = service.verify(payload.email or "", str(payload.code if payload.code is not None else ""))

    max_age = max(0, int((login.expires_at - service.clock.now()).total_seconds()))
    _set_session_cookie(response, request, settings, login.token, max_age)

    return VerifyOTPResponse(
        success=True,
        message="Signed in",
        data={
            "token": login.token,
            "user": UserResponse(id=login.user.id, email=login.user.email, created_at=login.user.created_at),
            "expires_at": login.expires_at,
        },
    )


@router.get("/me", response_model=MeResponse, responses={401: {"model": ErrorResponse}})
def me(auth: AuthSession = Depends(require_auth_session)):
    return MeResponse(
        success=True,
        message="Authenticated",
        data={
            "user": UserResponse(id=auth.user.id, email=auth.user.email, created_at=auth.user.created_at),
            "session_expires_at": auth.session.expires_at,
        },
    )


@router.post("/logout", status_code=204)
def logout(
    request: Request,
    credential: Optional[str] = Depends(get_request_credential),
    sessions: SessionService = Depends(get_session_service),
    settings: Settings = Depends(get_app_settings),
):
    """
    Delete the current session if there is one and expire the cookie
    """
    sessions.logout(credential)
    response = Response(status_code=204)
    _set_session_cookie(response, request, settings, "", 0)
    return response
