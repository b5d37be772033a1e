import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..ports.clock import Clock
from ..ports.email_sender import EmailSender
from ..ports.otp_repo import OtpRepository
from .identity import generate_code, is_valid_email, normalize_email
from .secret_hasher import SecretHasher
from ...exceptions import DeliveryError, DeliveryFailed, InvalidInput, RateLimited

logger = logging.getLogger(__name__)

HOURLY_WINDOW_SECONDS = 3600


@dataclass
class OtpIssued:
    email: str
    expires_in_seconds: int


@dataclass
class OtpRequestService:
    otp_repo: OtpRepository
    hasher: SecretHasher
    sender: EmailSender
    clock: Clock
    ttl_minutes: int = 10
    cooldown_seconds: int = 60
    max_per_hour: int = 5

    async def request_code(self, email: str, client_ip: Optional[str] = None) -> OtpIssued:
        """Issue a fresh code for ``email`` and hand it to the email sender.

        Raises InvalidInput for a malformed address, RateLimited when the
        cooldown or hourly quota is exhausted, and DeliveryFailed when the
        sender fails. In the last case the request row is kept, so the
        cooldown still applies to the next attempt.
        """
        email = normalize_email(email)
        if not is_valid_email(email):
            raise InvalidInput("Enter a valid email address")

        now = self.clock.now()
        self._enforce_rate_limits(email, now)

        code = generate_code()
        expires_at = now + timedelta(minutes=self.ttl_minutes)
        record = self.otp_repo.create(
            email=email,
            code_hash=self.hasher.hash_otp(email, code),
            expires_at=expires_at,
            created_at=now,
            request_ip=client_ip,
        )

        try:
            await self.sender.send(email, code)
        except DeliveryError as e:
            logger.error(f"OTP delivery failed for request {record.id}: {e}")
            raise DeliveryFailed(detail=str(e)) from e

        logger.info(f"OTP issued for request {record.id}, expires at {expires_at.isoformat()}")
        return OtpIssued(email=email, expires_in_seconds=self.ttl_minutes * 60)

    def _enforce_rate_limits(self, email: str, now: datetime) -> None:
        last = self.otp_repo.latest_for_email(email)
        if last is not None:
            elapsed = (now - last.created_at).total_seconds()
            if elapsed < self.cooldown_seconds:
                retry_after = math.ceil(self.cooldown_seconds - elapsed)
                retry_after = max(0, min(self.cooldown_seconds, retry_after))
                logger.warning(f"OTP cooldown active, retry after {retry_after}s")
                raise RateLimited(retry_after=retry_after)

        window_start = now - timedelta(seconds=HOURLY_WINDOW_SECONDS)
        if self.otp_repo.count_since(email, window_start) >= self.max_per_hour:
            logger.warning("OTP hourly quota exceeded")
            raise RateLimited("Too many requests. Try again later.", retry_after=HOURLY_WINDOW_SECONDS)
