import hashlib
import hmac
from typing import Optional


class SecretHasher:
    """Keyed one-way digests for OTP codes and session tokens.

    Digests are deterministic so rows can be looked up by equality on the
    stored hash. The secret is server-wide, not per record.
    """

    def __init__(self, secret: Optional[str]):
        if not secret:
            raise RuntimeError("AUTH_SECRET is not set")
        self._secret = secret

    def _digest(self, value: str) -> str:
        return hashlib.sha256(value.encode("utf-8")).hexdigest()

    def hash_otp(self, email: str, code: str) -> str:
        return self._digest(f"{email}:{code}:{self._secret}")

    def hash_token(self, token: str) -> str:
        return self._digest(f"{token}:{self._secret}")

    @staticmethod
    def matches(expected: str, actual: str) -> bool:
        return hmac.compare_digest(expected, actual)
