from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class UserDto:
    id: str
    email: str
    created_at: datetime


class UserRepository:
    def upsert_by_email(self, email: str, created_at: datetime) -> UserDto:
        ...

    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        ...
