import json
from typing import List, Optional
from sqlalchemy import delete
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .....db.models import Conversation
from .....application.ports.conversation_repo import ConversationDto, ConversationRepository

_INSERT_BY_DIALECT = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class SqlConversationRepository(ConversationRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, rec: Conversation) -> ConversationDto:
        return ConversationDto(
            id=rec.id,
            user_id=rec.user_id,
            title=rec.title,
            messages=json.loads(rec.messages or "[]"),
            files=json.loads(rec.files or "[]"),
            created_at=rec.created_at,
            updated_at=rec.updated_at,
        )

    def list_for_user(self, user_id: str) -> List[ConversationDto]:
        rows = self.session.exec(
            select(Conversation)
            .where(Conversation.user_id == user_id)
            .order_by(Conversation.updated_at.desc())
        ).all()
        return [self._to_dto(r) for r in rows]

    def get(self, conversation_id: str) -> Optional[ConversationDto]:
        rec = self.session.get(Conversation, conversation_id)
        return self._to_dto(rec) if rec else None

    def upsert(self, conversation: ConversationDto) -> Optional[ConversationDto]:
        """Insert or update in one statement, guarded on the owning user.

        ``ON CONFLICT (id) DO UPDATE ... WHERE user_id = excluded.user_id`` leaves
        another user's row untouched and reports no affected row. ``created_at``
        is only written on insert.
        """
        insert_fn = _INSERT_BY_DIALECT.get(self.session.get_bind().dialect.name)
        if insert_fn is None:
            return self._upsert_fallback(conversation)

        table = Conversation.__table__
        stmt = insert_fn(table).values(
            id=conversation.id,
            user_id=conversation.user_id,
            title=conversation.title,
            messages=json.dumps(conversation.messages or []),
            files=json.dumps(conversation.files or []),
            created_at=conversation.created_at,
            updated_at=conversation.updated_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["id"],
            set_={
                "title": stmt.excluded.title,
                "messages": stmt.excluded.messages,
                "files": stmt.excluded.files,
                "updated_at": stmt.excluded.updated_at,
            },
            where=table.c.user_id == stmt.excluded.user_id,
        )
        result = self.session.exec(stmt)
        self.session.commit()
        if result.rowcount == 0:
            return None
        return self._reload(conversation.id)

    def _upsert_fallback(self, conversation: ConversationDto) -> Optional[ConversationDto]:
        rec = self.session.get(Conversation, conversation.id)
        if rec is not None and rec.user_id != conversation.user_id:
            return None
        if rec is None:
            rec = Conversation(id=conversation.id, user_id=conversation.user_id, created_at=conversation.created_at)
        rec.title = conversation.title
        rec.messages = json.dumps(conversation.messages or [])
        rec.files = json.dumps(conversation.files or [])
        rec.updated_at = conversation.updated_at
        try:
            self.session.add(rec)
            self.session.commit()
        except IntegrityError:
            # A concurrent first save of the same id won
            self.session.rollback()
            return None
        return self._reload(conversation.id)

    def _reload(self, conversation_id: str) -> ConversationDto:
        rec = self.session.exec(
            select(Conversation)
            .where(Conversation.id == conversation_id)
            .execution_options(populate_existing=True)
        ).one()
        return self._to_dto(rec)

    def delete_for_user(self, conversation_id: str, user_id: str) -> None:
        self.session.exec(
            delete(Conversation)
            .where(Conversation.id == conversation_id, Conversation.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        self.session.commit()

    def delete_all_for_user(self, user_id: str) -> int:
        result = self.session.exec(
            delete(Conversation)
            .where(Conversation.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        return result.rowcount
