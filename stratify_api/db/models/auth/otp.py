# stratify_api/db/models/auth/otp.py
from sqlmodel import SQLModel, Field
from datetime import datetime
from typing import Optional
import uuid

from ....core.timezones import utc_now
from ...types import UTCDateTime

class OTPRequest(SQLModel, table=True):
    __tablename__ = "otp_requests"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    email: str = Field(max_length=320, index=True)
    code_hash: str = Field(max_length=64)
    expires_at: datetime = Field(sa_type=UTCDateTime)
    used_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    attempts: int = Field(default=0)
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime, index=True)
    request_ip: Optional[str] = Field(max_length=255, default=None)
