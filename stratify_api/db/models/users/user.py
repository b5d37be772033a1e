# stratify_api/db/models/users/user.py
from typing import List
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime
import uuid

from ....core.timezones import utc_now
from ...types import UTCDateTime

class User(SQLModel, table=True):
    __tablename__ = "users"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    # Always stored trimmed and lowercased
    email: str = Field(max_length=320, unique=True, index=True)
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)

    # Relationships
    sessions: List["UserSession"] = Relationship(back_populates="user")
