from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .user_repo import UserDto


@dataclass
class SessionDto:
    id: str
    user_id: str
    expires_at: datetime
    created_at: datetime


@dataclass
class AuthSession:
    session: SessionDto
    user: UserDto


class SessionRepository:
    def create(self, user_id: str, token_hash: str, expires_at: datetime, created_at: datetime) -> SessionDto:
        ...

    def find_with_user(self, token_hash: str) -> Optional[AuthSession]:
        ...

    def delete(self, session_id: str) -> None:
        ...
