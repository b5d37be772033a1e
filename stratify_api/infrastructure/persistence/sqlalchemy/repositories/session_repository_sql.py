from datetime import datetime
from typing import Optional
from sqlalchemy import delete
from sqlmodel import Session, select

from .....db.models import User, UserSession
from .....application.ports.session_repo import AuthSession, SessionRepository, SessionDto
from .....application.ports.user_repo import UserDto


class SqlSessionRepository(SessionRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, rec: UserSession) -> SessionDto:
        return SessionDto(
            id=rec.id,
            user_id=rec.user_id,
            expires_at=rec.expires_at,
            created_at=rec.created_at,
        )

    def create(self, user_id: str, token_hash: str, expires_at: datetime, created_at: datetime) -> SessionDto:
        rec = UserSession(user_id=user_id, token_hash=token_hash, expires_at=expires_at, created_at=created_at)
        self.session.add(rec)
        self.session.commit()
        self.session.refresh(rec)
        return self._to_dto(rec)

    def find_with_user(self, token_hash: str) -> Optional[AuthSession]:
        row = self.session.exec(
            select(UserSession, User)
            .join(User, User.id == UserSession.user_id)
            .where(UserSession.token_hash == token_hash)
        ).first()
        if not row:
            return None
        rec, user = row
        return AuthSession(
            session=self._to_dto(rec),
            user=UserDto(id=user.id, email=user.email, created_at=user.created_at),
        )

    def delete(self, session_id: str) -> None:
        # Delete-if-exists: deleting a row that is already gone is a no-op
        try:
            self.session.exec(
                delete(UserSession)
                .where(UserSession.id == session_id)
                .execution_options(synchronize_session=False)
            )
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
