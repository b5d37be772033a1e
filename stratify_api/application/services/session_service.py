import logging
from dataclasses import dataclass
from typing import Optional

from ..ports.clock import Clock
from ..ports.session_repo import AuthSession, SessionRepository
from .secret_hasher import SecretHasher

logger = logging.getLogger(__name__)


@dataclass
class SessionService:
    session_repo: SessionRepository
    hasher: SecretHasher
    clock: Clock

    def resolve_session(self, credential: Optional[str]) -> Optional[AuthSession]:
        """Return the live session and its user for a bearer credential.

        ``None`` means anonymous: no credential, unknown token or an expired
        session. Expired rows are deleted on the way out. Expiry is never
        extended here.
        """
        if not credential:
            return None

        found = self.session_repo.find_with_user(self.hasher.hash_token(credential))
        if found is None:
            return None

        if found.session.expires_at <= self.clock.now():
            self._discard_expired(found.session.id)
            return None

        return found

    def logout(self, credential: Optional[str]) -> None:
        found = self.resolve_session(credential)
        if found is None:
            return
        self.session_repo.delete(found.session.id)
        logger.info(f"Session {found.session.id} logged out")

    def _discard_expired(self, session_id: str) -> None:
        # Best-effort cleanup, the caller gets None either way
        try:
            self.session_repo.delete(session_id)
            logger.info(f"Expired session {session_id} removed")
        except Exception as e:
            logger.warning(f"Could not remove expired session {session_id}: {e}")
