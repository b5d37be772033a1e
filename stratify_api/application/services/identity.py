import re
import secrets
from typing import Optional

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# ASCII digits only; \d would also accept other Unicode digit characters
CODE_PATTERN = re.compile(r"^[0-9]{6}$")


def normalize_email(raw: Optional[str]) -> str:
    return str(raw or "").strip().lower()


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


def is_valid_code(code: str) -> bool:
    return bool(CODE_PATTERN.match(code))


def generate_code() -> str:
    """Uniform over 000000-999999."""
    return f"{secrets.randbelow(1_000_000):06d}"


def generate_session_token() -> str:
    # 32 bytes = 256 bits of entropy, hex encoded
    return secrets.token_hex(32)
