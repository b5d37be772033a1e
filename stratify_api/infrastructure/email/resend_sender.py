import asyncio
import logging

import aiohttp

from ...application.ports.email_sender import EmailSender
from ...exceptions import DeliveryError
from .templates import otp_html, otp_subject, otp_text

logger = logging.getLogger(__name__)


class ResendEmailSender(EmailSender):
    """Delivers OTP emails through the Resend HTTP API."""

    def __init__(self, api_key: str, from_email: str, from_name: str = "StratifyPM",
                 api_url: str = "https://api.resend.com/emails", ttl_minutes: int = 10,
                 timeout_seconds: int = 15):
        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name
        self.api_url = api_url
        self.ttl_minutes = ttl_minutes
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    def build_payload(self, email: str, code: str) -> dict:
        return {
            "from": f"{self.from_name} <{self.from_email}>",
            "to": email,
            "subject": otp_subject(self.from_name),
            "html": otp_html(email, code, self.ttl_minutes, self.from_name),
            "text": otp_text(code, self.ttl_minutes),
        }

    async def send(self, email: str, code: str) -> None:
        if not self.api_key or not self.from_email:
            raise DeliveryError("Missing RESEND configuration")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(self.api_url, json=self.build_payload(email, code), headers=headers) as response:
                    if response.status >= 300:
                        error_text = await response.text()
                        raise DeliveryError(f"Resend error: {response.status} {error_text}")
                    logger.info(f"Resend accepted OTP email (status {response.status})")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DeliveryError(f"Resend request failed: {e}") from e
