# stratify_api/schemas/conversations/conversation.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Optional
from datetime import datetime

class ConversationPayload(BaseModel):
    # Clients send camelCase timestamps; unknown keys are ignored
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    title: Optional[str] = None
    messages: List[Any] = Field(default_factory=list)
    files: List[Any] = Field(default_factory=list)
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

class SaveConversationRequest(ConversationPayload):
    # Accepts either {"conversation": {...}} or the bare conversation object
    conversation: Optional[ConversationPayload] = None

    def unwrap(self) -> ConversationPayload:
        return self.conversation or self

class ConversationResponse(BaseModel):
    id: str
    title: str
    messages: List[Any]
    files: List[Any]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class ConversationListData(BaseModel):
    conversations: List[ConversationResponse]

class ConversationListResponse(BaseModel):
    success: bool
    message: str
    data: ConversationListData

class ConversationData(BaseModel):
    conversation: ConversationResponse

class ConversationEnvelope(BaseModel):
    success: bool
    message: str
    data: ConversationData
