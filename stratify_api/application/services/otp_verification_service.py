import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from ..ports.clock import Clock
from ..ports.otp_repo import OtpRecord, OtpRepository
from ..ports.session_repo import SessionDto, SessionRepository
from ..ports.user_repo import UserDto, UserRepository
from .identity import generate_session_token, is_valid_code, is_valid_email, normalize_email
from .otp_request_service import HOURLY_WINDOW_SECONDS
from .secret_hasher import SecretHasher
from ...exceptions import InvalidInput, InvalidOrExpiredCode, TooManyAttempts

logger = logging.getLogger(__name__)


@dataclass
class VerifiedLogin:
    token: str
    expires_at: datetime
    user: UserDto
    session: SessionDto


@dataclass
class OtpVerificationService:
    otp_repo: OtpRepository
    user_repo: UserRepository
    session_repo: SessionRepository
    hasher: SecretHasher
    clock: Clock
    max_attempts: int = 5
    cooldown_seconds: int = 60
    session_ttl_days: int = 30
    max_per_hour: int = 5

    def verify(self, email: str, code: str) -> VerifiedLogin:
        email = normalize_email(email)
        code = str(code or "").strip()
        if not is_valid_email(email):
            raise InvalidInput("Enter a valid email address")
        if not is_valid_code(code):
            raise InvalidInput("Enter a valid 6 digit code")

        now = self.clock.now()
        otp = self.otp_repo.latest_active_for_email(email, now)
        if otp is None:
            raise InvalidOrExpiredCode()

        if otp.attempts >= self.max_attempts:
            raise TooManyAttempts(retry_after=self._resend_wait(otp, now))

        if not self.hasher.matches(otp.code_hash, self.hasher.hash_otp(email, code)):
            self.otp_repo.increment_attempts(otp.id, self.max_attempts)
            logger.info(f"Wrong code for OTP request {otp.id} (attempt {otp.attempts + 1})")
            raise InvalidOrExpiredCode()

        # Consume the code before a session exists; a concurrent verify loses here
        if not self.otp_repo.mark_used(otp.id, now):
            logger.info(f"OTP request {otp.id} was consumed concurrently")
            raise InvalidOrExpiredCode()

        user = self.user_repo.upsert_by_email(email, now)

        token = generate_session_token()
        expires_at = now + timedelta(days=self.session_ttl_days)
        session = self.session_repo.create(
            user_id=user.id,
            token_hash=self.hasher.hash_token(token),
            expires_at=expires_at,
            created_at=now,
        )
        logger.info(f"Session {session.id} issued for user {user.id}")
        return VerifiedLogin(token=token, expires_at=expires_at, user=user, session=session)

    def _resend_wait(self, otp: OtpRecord, now: datetime) -> int:
        """Seconds until request-otp would issue a new code for this email.

        Covers both the per-request cooldown and the hourly quota, mirroring
        the limits OtpRequestService enforces.
        """
        elapsed = (now - otp.created_at).total_seconds()
        wait = max(0, math.ceil(self.cooldown_seconds - elapsed))
        window_start = now - timedelta(seconds=HOURLY_WINDOW_SECONDS)
        if self.otp_repo.count_since(otp.email, window_start) >= self.max_per_hour:
            wait = max(wait, HOURLY_WINDOW_SECONDS)
        return wait
