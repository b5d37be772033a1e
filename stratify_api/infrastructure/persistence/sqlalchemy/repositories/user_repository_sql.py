import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .....db.models import User
from .....application.ports.user_repo import UserRepository, UserDto

_INSERT_BY_DIALECT = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}

class SqlUserRepository(UserRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, user: User) -> UserDto:
        return UserDto(
            id=user.id,
            email=user.email,
            created_at=user.created_at,
        )

    def upsert_by_email(self, email: str, created_at: datetime) -> UserDto:
        """Insert the user unless the email exists, then read it back.

        Uses ON CONFLICT DO NOTHING where the dialect has it; elsewhere the
        unique index on email decides and the loser of a race rolls back.
        """
        dialect = self.session.get_bind().dialect.name
        insert_fn = _INSERT_BY_DIALECT.get(dialect)
        if insert_fn is not None:
            stmt = (
                insert_fn(User.__table__)
                .values(id=str(uuid.uuid4()), email=email, created_at=created_at)
                .on_conflict_do_nothing(index_elements=["email"])
            )
            self.session.exec(stmt)
            self.session.commit()
        else:
            try:
                self.session.add(User(email=email, created_at=created_at))
                self.session.commit()
            except IntegrityError:
                self.session.rollback()

        user = self.session.exec(select(User).where(User.email == email)).one()
        return self._to_dto(user)

    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        user = self.session.exec(select(User).where(User.id == user_id)).first()
        return self._to_dto(user) if user else None
