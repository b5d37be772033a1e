import logging

from ...application.ports.email_sender import EmailSender

logger = logging.getLogger(__name__)


class ConsoleEmailSender(EmailSender):
    """Development sender: writes the code to the log instead of emailing it."""

    async def send(self, email: str, code: str) -> None:
        logger.warning(f"[console email] OTP for {email}: {code}")
