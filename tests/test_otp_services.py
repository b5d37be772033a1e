from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest

from stratify_api.application.ports.otp_repo import OtpRecord, OtpRepository
from stratify_api.application.ports.session_repo import SessionDto, SessionRepository
from stratify_api.application.ports.user_repo import UserDto, UserRepository
from stratify_api.application.services.otp_request_service import OtpRequestService
from stratify_api.application.services.otp_verification_service import OtpVerificationService
from stratify_api.application.services.secret_hasher import SecretHasher
from stratify_api.exceptions import (
    DeliveryError, DeliveryFailed, InvalidInput, InvalidOrExpiredCode, RateLimited, TooManyAttempts,
)


class FakeClock:
    def __init__(self):
        self.current = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class FakeOtpRepo(OtpRepository):
    def __init__(self):
        self.rows: List[OtpRecord] = []

    def create(self, email, code_hash, expires_at, created_at, request_ip):
        rec = OtpRecord(
            id=f"otp-{len(self.rows) + 1}",
            email=email,
            code_hash=code_hash,
            expires_at=expires_at,
            used_at=None,
            attempts=0,
            created_at=created_at,
            request_ip=request_ip,
        )
        self.rows.append(rec)
        return rec

    def _for_email(self, email):
        return sorted((r for r in self.rows if r.email == email), key=lambda r: r.created_at, reverse=True)

    def latest_for_email(self, email):
        rows = self._for_email(email)
        return rows[0] if rows else None

    def count_since(self, email, since):
        return len([r for r in self._for_email(email) if r.created_at > since])

    def latest_active_for_email(self, email, now):
        for r in self._for_email(email):
            if r.used_at is None and r.expires_at > now:
                return r
        return None

    def _get(self, otp_id):
        return next(r for r in self.rows if r.id == otp_id)

    def increment_attempts(self, otp_id, max_attempts):
        rec = self._get(otp_id)
        if rec.used_at is not None or rec.attempts >= max_attempts:
            return False
        rec.attempts += 1
        return True

    def mark_used(self, otp_id, now):
        rec = self._get(otp_id)
        if rec.used_at is not None or rec.expires_at <= now:
            return False
        rec.used_at = now
        return True


class FakeUserRepo(UserRepository):
    def __init__(self):
        self.users = {}

    def upsert_by_email(self, email, created_at):
        if email not in self.users:
            self.users[email] = UserDto(id=f"user-{len(self.users) + 1}", email=email, created_at=created_at)
        return self.users[email]

    def get_by_id(self, user_id) -> Optional[UserDto]:
        return next((u for u in self.users.values() if u.id == user_id), None)


class FakeSessionRepo(SessionRepository):
    def __init__(self):
        self.rows = []

    def create(self, user_id, token_hash, expires_at, created_at):
        dto = SessionDto(id=f"session-{len(self.rows) + 1}", user_id=user_id, expires_at=expires_at, created_at=created_at)
        self.rows.append((token_hash, dto))
        return dto


class FakeSender:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    async def send(self, email: str, code: str) -> None:
        if self.fail:
            raise DeliveryError("provider down")
        self.sent.append((email, code))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def otp_repo():
    return FakeOtpRepo()


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def hasher():
    return SecretHasher("test-secret")


@pytest.fixture
def request_service(otp_repo, hasher, sender, clock):
    return OtpRequestService(otp_repo=otp_repo, hasher=hasher, sender=sender, clock=clock)


@pytest.fixture
def users():
    return FakeUserRepo()


@pytest.fixture
def sessions():
    return FakeSessionRepo()


@pytest.fixture
def verify_service(otp_repo, users, sessions, hasher, clock):
    return OtpVerificationService(
        otp_repo=otp_repo, user_repo=users, session_repo=sessions, hasher=hasher, clock=clock,
    )


@pytest.mark.asyncio
async def test_request_code_stores_digest_and_sends(request_service, otp_repo, sender, hasher, clock):
    issued = await request_service.request_code("  A@B.com ", client_ip="10.0.0.1")

    assert issued.email == "a@b.com"
    assert issued.expires_in_seconds == 600
    assert len(sender.sent) == 1
    email, code = sender.sent[0]
    assert email == "a@b.com"
    assert len(code) == 6 and code.isdigit()

    row = otp_repo.rows[0]
    assert row.code_hash == hasher.hash_otp("a@b.com", code)
    assert code not in row.code_hash
    assert row.expires_at == clock.now() + timedelta(minutes=10)
    assert row.request_ip == "10.0.0.1"


@pytest.mark.asyncio
@pytest.mark.parametrize("email", ["", "   ", "no-at-sign", "a@b", "a b@c.com"])
async def test_request_code_rejects_malformed_email(request_service, otp_repo, sender, email):
    with pytest.raises(InvalidInput):
        await request_service.request_code(email)
    assert otp_repo.rows == []
    assert sender.sent == []


@pytest.mark.asyncio
async def test_second_request_within_cooldown_is_rate_limited(request_service, clock):
    await request_service.request_code("a@b.com")
    clock.advance(seconds=20)

    with pytest.raises(RateLimited) as exc:
        await request_service.request_code("a@b.com")
    assert exc.value.retry_after == 40


@pytest.mark.asyncio
async def test_cooldown_is_per_email(request_service, sender):
    await request_service.request_code("a@b.com")
    await request_service.request_code("c@d.com")
    assert [e for e, _ in sender.sent] == ["a@b.com", "c@d.com"]


@pytest.mark.asyncio
async def test_sixth_request_in_an_hour_hits_quota(request_service, clock):
    for _ in range(5):
        await request_service.request_code("a@b.com")
        clock.advance(seconds=61)

    with pytest.raises(RateLimited) as exc:
        await request_service.request_code("a@b.com")
    assert exc.value.retry_after == 3600

    clock.advance(hours=1)
    issued = await request_service.request_code("a@b.com")
    assert issued.expires_in_seconds == 600


@pytest.mark.asyncio
async def test_delivery_failure_keeps_row_and_cooldown(otp_repo, hasher, clock):
    svc = OtpRequestService(otp_repo=otp_repo, hasher=hasher, sender=FakeSender(fail=True), clock=clock)

    with pytest.raises(DeliveryFailed) as exc:
        await svc.request_code("a@b.com")
    assert exc.value.detail == "provider down"
    assert len(otp_repo.rows) == 1

    with pytest.raises(RateLimited):
        await svc.request_code("a@b.com")


async def _issue(request_service, sender, email="a@b.com") -> str:
    await request_service.request_code(email)
    return sender.sent[-1][1]


@pytest.mark.asyncio
async def test_verify_issues_session_for_matching_code(request_service, verify_service, sender, otp_repo, sessions, hasher, clock):
    code = await _issue(request_service, sender)

    login = verify_service.verify("A@B.com", code)

    assert login.user.email == "a@b.com"
    assert len(login.token) == 64
    assert login.expires_at == clock.now() + timedelta(days=30)
    assert otp_repo.rows[0].used_at == clock.now()
    assert len(sessions.rows) == 1
    token_hash, session = sessions.rows[0]
    assert token_hash == hasher.hash_token(login.token)
    assert session.user_id == login.user.id


@pytest.mark.asyncio
async def test_verify_replay_is_rejected(request_service, verify_service, sender, sessions):
    code = await _issue(request_service, sender)
    verify_service.verify("a@b.com", code)

    with pytest.raises(InvalidOrExpiredCode):
        verify_service.verify("a@b.com", code)
    assert len(sessions.rows) == 1


@pytest.mark.asyncio
async def test_five_wrong_codes_lock_the_request(request_service, verify_service, sender, otp_repo, clock):
    code = await _issue(request_service, sender)
    wrong = "000000" if code != "000000" else "111111"

    for _ in range(5):
        with pytest.raises(InvalidOrExpiredCode):
            verify_service.verify("a@b.com", wrong)
    assert otp_repo.rows[0].attempts == 5

    clock.advance(seconds=10)
    with pytest.raises(TooManyAttempts) as exc:
        verify_service.verify("a@b.com", code)
    assert exc.value.retry_after == 50
    assert otp_repo.rows[0].attempts == 5
    assert otp_repo.rows[0].used_at is None


@pytest.mark.asyncio
async def test_too_many_attempts_retry_after_is_never_negative(request_service, verify_service, sender, otp_repo, clock):
    await _issue(request_service, sender)
    otp_repo.rows[0].attempts = 5
    clock.advance(minutes=5)

    with pytest.raises(TooManyAttempts) as exc:
        verify_service.verify("a@b.com", "123456")
    assert exc.value.retry_after == 0


@pytest.mark.parametrize("code", ["", "12345", "1234567", "abcdef", "12 456", "１２３４５６"])
def test_verify_rejects_malformed_code(verify_service, code):
    with pytest.raises(InvalidInput):
        verify_service.verify("a@b.com", code)


def test_verify_without_issued_code(verify_service):
    with pytest.raises(InvalidOrExpiredCode):
        verify_service.verify("fresh@example.com", "123456")


@pytest.mark.asyncio
async def test_verify_expired_code(request_service, verify_service, sender, clock):
    code = await _issue(request_service, sender)
    clock.advance(minutes=10)

    with pytest.raises(InvalidOrExpiredCode):
        verify_service.verify("a@b.com", code)


@pytest.mark.asyncio
async def test_only_latest_code_is_accepted(request_service, verify_service, sender, clock):
    first = await _issue(request_service, sender)
    clock.advance(seconds=61)
    second = await _issue(request_service, sender)

    if first != second:
        with pytest.raises(InvalidOrExpiredCode):
            verify_service.verify("a@b.com", first)
    assert verify_service.verify("a@b.com", second).user.email == "a@b.com"


@pytest.mark.asyncio
async def test_verify_twice_reuses_user(request_service, verify_service, sender, users, sessions, clock):
    first = verify_service.verify("a@b.com", await _issue(request_service, sender))
    clock.advance(seconds=61)
    second = verify_service.verify("a@b.com", await _issue(request_service, sender))

    assert first.user.id == second.user.id
    assert len(users.users) == 1
    assert len(sessions.rows) == 2
    assert first.token != second.token


@pytest.mark.asyncio
async def test_verify_trims_code(request_service, verify_service, sender):
    code = await _issue(request_service, sender)
    assert verify_service.verify("a@b.com", f" {code} ").user.email == "a@b.com"


class RacingOtpRepo(FakeOtpRepo):
    """Another verification consumes the code between lookup and mark-used."""

    def mark_used(self, otp_id, now):
        self._get(otp_id).used_at = now
        return False


@pytest.mark.asyncio
async def test_concurrently_consumed_code_issues_no_session(hasher, sender, clock, users, sessions):
    otp_repo = RacingOtpRepo()
    request_service = OtpRequestService(otp_repo=otp_repo, hasher=hasher, sender=sender, clock=clock)
    verify_service = OtpVerificationService(
        otp_repo=otp_repo, user_repo=users, session_repo=sessions, hasher=hasher, clock=clock,
    )
    code = await _issue(request_service, sender)

    with pytest.raises(InvalidOrExpiredCode):
        verify_service.verify("a@b.com", code)
    assert users.users == {}
    assert sessions.rows == []
    assert otp_repo.rows[0].attempts == 0


@pytest.mark.asyncio
async def test_too_many_attempts_retry_after_covers_hourly_quota(request_service, verify_service, sender, otp_repo, clock):
    for _ in range(5):
        await _issue(request_service, sender)
        clock.advance(seconds=61)
    otp_repo.latest_for_email("a@b.com").attempts = 5

    with pytest.raises(TooManyAttempts) as exc:
        verify_service.verify("a@b.com", "123456")
    assert exc.value.retry_after == 3600
