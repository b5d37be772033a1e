"""Request-side half of authentication.

Pulls the session credential out of an incoming request and resolves it
through SessionService. Protected routes depend on ``require_auth_session``;
routes that merely care whether someone is signed in use
``get_optional_auth_session``.
"""
import logging
from typing import Dict, Mapping, Optional
from urllib.parse import unquote

from fastapi import Depends, Request

from .application.ports.session_repo import AuthSession
from .application.services.session_service import SessionService
from .dependencies import get_session_service
from .exceptions import Unauthenticated

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def parse_cookie_header(cookie_header: Optional[str]) -> Dict[str, str]:
    if not cookie_header:
        return {}
    cookies: Dict[str, str] = {}
    for part in cookie_header.split(";"):
        key, _, value = part.strip().partition("=")
        if not key:
            continue
        cookies[key] = unquote(value)
    return cookies


def extract_credential(headers: Mapping[str, str], cookies: Optional[Mapping[str, str]], cookie_name: str) -> Optional[str]:
    """Bearer header, then the parsed cookie jar, then the raw Cookie header."""
    auth_header = headers.get("authorization") or ""
    if auth_header.startswith(BEARER_PREFIX):
        token = auth_header[len(BEARER_PREFIX):].strip()
        if token:
            return token

    if cookies and cookies.get(cookie_name):
        return cookies[cookie_name]

    return parse_cookie_header(headers.get("cookie")).get(cookie_name) or None


def get_request_credential(request: Request) -> Optional[str]:
    return extract_credential(request.headers, request.cookies, request.app.state.settings.SESSION_COOKIE_NAME)


def get_optional_auth_session(
    credential: Optional[str] = Depends(get_request_credential),
    sessions: SessionService = Depends(get_session_service),
) -> Optional[AuthSession]:
    return sessions.resolve_session(credential)


def require_auth_session(auth: Optional[AuthSession] = Depends(get_optional_auth_session)) -> AuthSession:
    if auth is None:
        raise Unauthenticated()
    return auth


def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else None
