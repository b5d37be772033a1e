from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from stratify_api.core.config import Settings
from stratify_api.exceptions import DeliveryError
from stratify_api.main import create_app


class FakeClock:
    def __init__(self):
        self.current = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class CapturingSender:
    def __init__(self):
        self.sent = []
        self.fail_with = None

    async def send(self, email: str, code: str) -> None:
        if self.fail_with:
            raise DeliveryError(self.fail_with)
        self.sent.append((email, code))

    def last_code(self, email: str) -> str:
        return [code for to, code in self.sent if to == email][-1]


def make_settings(**overrides) -> Settings:
    values = dict(
        DATABASE_URL="sqlite://",
        AUTH_SECRET="test-secret",
        ENVIRONMENT="development",
        EMAIL_BACKEND="console",
        LOG_LEVEL="WARNING",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sender():
    return CapturingSender()


@pytest.fixture
def app(clock, sender):
    app = create_app(make_settings())
    app.state.clock = clock
    app.state.email_sender = sender
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def sign_in(client, sender, email="a@b.com"):
    """Request and verify a code, returning the verify-otp ``data`` payload."""
    resp = client.post("/api/auth/request-otp", json={"email": email})
    assert resp.status_code == 200, resp.text
    resp = client.post("/api/auth/verify-otp", json={"email": email, "code": sender.last_code(email)})
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]
