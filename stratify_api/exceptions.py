from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from typing import Optional


class AuthError(Exception):
    """Base class for domain errors raised by the auth and conversation services.

    Each subclass carries a stable ``kind`` for clients and the HTTP status the
    boundary answers with.
    """

    kind = "error"
    status_code = 400
    message = "Request failed"

    def __init__(self, message: Optional[str] = None, retry_after: Optional[int] = None, detail: Optional[str] = None):
        self.message = message or self.message
        self.retry_after = retry_after
        self.detail = detail
        super().__init__(self.message)


class InvalidInput(AuthError):
    kind = "invalid_input"
    status_code = 400
    message = "Invalid input"


class RateLimited(AuthError):
    kind = "rate_limited"
    status_code = 429
    message = "Please wait before requesting another code"


class InvalidOrExpiredCode(AuthError):
    kind = "invalid_or_expired_code"
    status_code = 400
    message = "Code expired or invalid"


class TooManyAttempts(AuthError):
    kind = "too_many_attempts"
    status_code = 429
    message = "Too many attempts. Request a new code."


class DeliveryFailed(AuthError):
    kind = "delivery_failed"
    status_code = 502
    message = "Unable to send code"


class Unauthenticated(AuthError):
    kind = "unauthenticated"
    status_code = 401
    message = "Unauthorized"


class ConversationNotFound(AuthError):
    kind = "not_found"
    status_code = 404
    message = "Conversation not found"


class ConversationForbidden(AuthError):
    kind = "forbidden"
    status_code = 403
    message = "Forbidden"


class DeliveryError(Exception):
    """Raised by email senders when the provider rejects or cannot be reached."""


def create_error_response(error_message: str, status_code: int = 400, kind: Optional[str] = None,
                          retry_after: Optional[int] = None, detail: Optional[str] = None) -> dict:
    """Create a standardized error response"""
    body = {
        "success": False,
        "data": None,
        "error": error_message,
    }
    if kind:
        body["kind"] = kind
    if retry_after is not None:
        body["retry_after"] = retry_after
    if detail:
        body["detail"] = detail
    return body

def create_success_response(data: dict, message: Optional[str] = None) -> dict:
    """Create a standardized success response"""
    return {
        "success": True,
        "message": message,
        "data": data,
        "error": None
    }

async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    headers = {}
    if exc.retry_after is not None:
        headers["Retry-After"] = str(exc.retry_after)
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.message, exc.status_code, exc.kind, exc.retry_after, exc.detail),
        headers=headers or None,
    )

async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    # Convert 403 from HTTPBearer to 401 for missing authentication
    if exc.status_code == 403 and "Not authenticated" in str(exc.detail):
        return JSONResponse(
            status_code=401,
            content=create_error_response("Authentication required", 401, Unauthenticated.kind)
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail, exc.status_code),
        headers=getattr(exc, "headers", None),
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid input") if errors else "Invalid input"
    return JSONResponse(
        status_code=400,
        content=create_error_response(message, 400, InvalidInput.kind)
    )
