from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional

from ..ports.clock import Clock
from ..ports.conversation_repo import ConversationDto, ConversationRepository
from ...core.timezones import as_utc
from ...exceptions import ConversationForbidden, ConversationNotFound, InvalidInput


@dataclass
class ConversationService:
    repo: ConversationRepository
    clock: Clock

    def list_for_user(self, user_id: str) -> List[ConversationDto]:
        return self.repo.list_for_user(user_id)

    def get_for_user(self, user_id: str, conversation_id: str) -> ConversationDto:
        conversation = self.repo.get(conversation_id)
        if conversation is None or conversation.user_id != user_id:
            raise ConversationNotFound()
        return conversation

    def save(self, user_id: str, conversation_id: Optional[str], title: Optional[str],
             messages: Optional[List[Any]] = None, files: Optional[List[Any]] = None,
             created_at: Optional[datetime] = None, updated_at: Optional[datetime] = None) -> ConversationDto:
        """Create or update a conversation owned by ``user_id``.

        Client timestamps without an offset are taken as UTC. An existing
        conversation keeps its original ``created_at``.
        """
        if not conversation_id:
            raise InvalidInput("Missing conversation id")
        if not title:
            raise InvalidInput("Missing conversation title")

        now = self.clock.now()
        saved = self.repo.upsert(ConversationDto(
            id=conversation_id,
            user_id=user_id,
            title=title,
            messages=messages or [],
            files=files or [],
            created_at=as_utc(created_at) if created_at else now,
            updated_at=as_utc(updated_at) if updated_at else now,
        ))
        # The store refuses to overwrite a row owned by someone else
        if saved is None:
            raise ConversationForbidden()
        return saved

    def delete_for_user(self, user_id: str, conversation_id: str) -> None:
        self.repo.delete_for_user(conversation_id, user_id)

    def delete_all_for_user(self, user_id: str) -> int:
        return self.repo.delete_all_for_user(user_id)
