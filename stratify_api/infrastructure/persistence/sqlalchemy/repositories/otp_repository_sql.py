from datetime import datetime
from typing import Optional
from sqlalchemy import func, update
from sqlmodel import Session, select

from .....db.models import OTPRequest
from .....application.ports.otp_repo import OtpRepository, OtpRecord


class SqlOtpRepository(OtpRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, rec: OTPRequest) -> OtpRecord:
        return OtpRecord(
            id=rec.id,
            email=rec.email,
            code_hash=rec.code_hash,
            expires_at=rec.expires_at,
            used_at=rec.used_at,
            attempts=rec.attempts,
            created_at=rec.created_at,
            request_ip=rec.request_ip,
        )

    def create(self, email: str, code_hash: str, expires_at: datetime, created_at: datetime, request_ip: Optional[str]) -> OtpRecord:
        rec = OTPRequest(
            email=email,
            code_hash=code_hash,
            expires_at=expires_at,
            created_at=created_at,
            request_ip=request_ip,
        )
        self.session.add(rec)
        self.session.commit()
        self.session.refresh(rec)
        return self._to_dto(rec)

    def latest_for_email(self, email: str) -> Optional[OtpRecord]:
        rec = self.session.exec(
            select(OTPRequest)
            .where(OTPRequest.email == email)
            .order_by(OTPRequest.created_at.desc())
        ).first()
        return self._to_dto(rec) if rec else None

    def count_since(self, email: str, since: datetime) -> int:
        return self.session.exec(
            select(func.count())
            .select_from(OTPRequest)
            .where(OTPRequest.email == email, OTPRequest.created_at > since)
        ).one()

    def latest_active_for_email(self, email: str, now: datetime) -> Optional[OtpRecord]:
        rec = self.session.exec(
            select(OTPRequest)
            .where(
                OTPRequest.email == email,
                OTPRequest.used_at.is_(None),
                OTPRequest.expires_at > now,
            )
            .order_by(OTPRequest.created_at.desc())
        ).first()
        return self._to_dto(rec) if rec else None

    def increment_attempts(self, otp_id: str, max_attempts: int) -> bool:
        # Guarded in SQL so concurrent mismatches cannot push attempts past the limit
        stmt = (
            update(OTPRequest)
            .where(
                OTPRequest.id == otp_id,
                OTPRequest.used_at.is_(None),
                OTPRequest.attempts < max_attempts,
            )
            .values(attempts=OTPRequest.attempts + 1)
            .execution_options(synchronize_session=False)
        )
        result = self.session.exec(stmt)
        self.session.commit()
        return result.rowcount == 1

    def mark_used(self, otp_id: str, now: datetime) -> bool:
        # Single conditional statement: of two racing verifications only one matches the row
        stmt = (
            update(OTPRequest)
            .where(
                OTPRequest.id == otp_id,
                OTPRequest.used_at.is_(None),
                OTPRequest.expires_at > now,
            )
            .values(used_at=now)
            .execution_options(synchronize_session=False)
        )
        result = self.session.exec(stmt)
        self.session.commit()
        return result.rowcount == 1
