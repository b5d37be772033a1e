from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class OtpRecord:
    id: str
    email: str
    code_hash: str
    expires_at: datetime
    used_at: Optional[datetime]
    attempts: int
    created_at: datetime
    request_ip: Optional[str]


class OtpRepository:
    def create(self, email: str, code_hash: str, expires_at: datetime, created_at: datetime, request_ip: Optional[str]) -> OtpRecord:
        ...

    def latest_for_email(self, email: str) -> Optional[OtpRecord]:
        ...

    def count_since(self, email: str, since: datetime) -> int:
        ...

    def latest_active_for_email(self, email: str, now: datetime) -> Optional[OtpRecord]:
        ...

    def increment_attempts(self, otp_id: str, max_attempts: int) -> bool:
        ...

    def mark_used(self, otp_id: str, now: datetime) -> bool:
        ...
