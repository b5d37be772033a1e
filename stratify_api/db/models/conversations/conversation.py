# stratify_api/db/models/conversations/conversation.py
from sqlmodel import SQLModel, Field
from datetime import datetime

from ....core.timezones import utc_now
from ...types import UTCDateTime

class Conversation(SQLModel, table=True):
    __tablename__ = "conversations"
    # Ids are generated by the client
    id: str = Field(max_length=100, primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    title: str = Field(max_length=255)
    messages: str = Field(default="[]")  # JSON array
    files: str = Field(default="[]")  # JSON array
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
