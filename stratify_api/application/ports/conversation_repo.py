from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional


@dataclass
class ConversationDto:
    id: str
    user_id: str
    title: str
    messages: List[Any] = field(default_factory=list)
    files: List[Any] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ConversationRepository:
    def list_for_user(self, user_id: str) -> List[ConversationDto]:
        ...

    def get(self, conversation_id: str) -> Optional[ConversationDto]:
        ...

    def upsert(self, conversation: ConversationDto) -> Optional[ConversationDto]:
        """Insert or update; None when the id belongs to another user."""
        ...

    def delete_for_user(self, conversation_id: str, user_id: str) -> None:
        ...

    def delete_all_for_user(self, user_id: str) -> int:
        ...
