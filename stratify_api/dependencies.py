# Per-request construction of services from the objects held on app.state
from fastapi import Depends, Request
from sqlmodel import Session

from .application.services.conversation_service import ConversationService
from .application.services.otp_request_service import OtpRequestService
from .application.services.otp_verification_service import OtpVerificationService
from .application.services.session_service import SessionService
from .core.config import Settings
from .database import get_session
from .infrastructure.persistence.sqlalchemy.repositories.conversation_repository_sql import SqlConversationRepository
from .infrastructure.persistence.sqlalchemy.repositories.otp_repository_sql import SqlOtpRepository
from .infrastructure.persistence.sqlalchemy.repositories.session_repository_sql import SqlSessionRepository
from .infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserRepository


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_otp_request_service(request: Request, session: Session = Depends(get_session)) -> OtpRequestService:
    state = request.app.state
    return OtpRequestService(
        otp_repo=SqlOtpRepository(session),
        hasher=state.hasher,
        sender=state.email_sender,
        clock=state.clock,
        ttl_minutes=state.settings.OTP_TTL_MINUTES,
        cooldown_seconds=state.settings.OTP_COOLDOWN_SECONDS,
        max_per_hour=state.settings.OTP_MAX_PER_HOUR,
    )


def get_otp_verification_service(request: Request, session: Session = Depends(get_session)) -> OtpVerificationService:
    state = request.app.state
    return OtpVerificationService(
        otp_repo=SqlOtpRepository(session),
        user_repo=SqlUserRepository(session),
        session_repo=SqlSessionRepository(session),
        hasher=state.hasher,
        clock=state.clock,
        max_attempts=state.settings.OTP_MAX_ATTEMPTS,
        cooldown_seconds=state.settings.OTP_COOLDOWN_SECONDS,
        session_ttl_days=state.settings.SESSION_TTL_DAYS,
        max_per_hour=state.settings.OTP_MAX_PER_HOUR,
    )


def get_session_service(request: Request, session: Session = Depends(get_session)) -> SessionService:
    state = request.app.state
    return SessionService(
        session_repo=SqlSessionRepository(session),
        hasher=state.hasher,
        clock=state.clock,
    )


def get_conversation_service(request: Request, session: Session = Depends(get_session)) -> ConversationService:
    return ConversationService(repo=SqlConversationRepository(session), clock=request.app.state.clock)
