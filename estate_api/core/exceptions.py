"""Application-level exceptions and FastAPI exception handlers.

Every rejection carries a stable machine-readable ``code`` next to the
free-text ``message`` so clients can branch on the code alone.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500, code: str = "INTERNAL_ERROR"):
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(message)


class BadRequestError(AppException):
    def __init__(self, message: str, code: str = "BAD_REQUEST"):
        super().__init__(message, status_code=400, code=code)


class UnauthorizedError(AppException):
    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, status_code=401, code="UNAUTHORIZED")


class ForbiddenError(AppException):
    def __init__(self, message: str = "Insufficient role permissions", code: str = "FORBIDDEN"):
        super().__init__(message, status_code=403, code=code)


class NotFoundError(AppException):
    def __init__(self, entity: str):
        super().__init__(f"{entity} not found", status_code=404, code="NOT_FOUND")


class ConflictError(AppException):
    def __init__(self, message: str, code: str = "CONFLICT"):
        super().__init__(message, status_code=409, code=code)


class InvalidStatusTransition(ConflictError):
    def __init__(self, current: str, target: str):
        super().__init__(
            f"Invalid status transition from {current} to {target}",
            code="INVALID_STATUS_TRANSITION",
        )
        self.current = current
        self.target = target


class PropertyNotLive(ConflictError):
    def __init__(self):
        super().__init__("Property is not live for bidding", code="PROPERTY_NOT_LIVE")


class BidConflictError(ConflictError):
    """Concurrent writers kept colliding after the bounded retries."""

    def __init__(self):
        super().__init__(
            "Bid could not be recorded due to concurrent activity; please retry",
            code="BID_CONFLICT",
        )


class RateLimitedError(AppException):
    def __init__(self, retry_after_seconds: int):
        super().__init__(
            "Rate limit exceeded for bid submission.", status_code=429, code="RATE_LIMITED"
        )
        self.retry_after_seconds = retry_after_seconds


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def _error_body(code: str, message: str) -> dict:
    return {"error": {"code": code, "message": message}}


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        headers = None
        if isinstance(exc, RateLimitedError):
            headers = {"Retry-After": str(exc.retry_after_seconds)}
        if exc.status_code >= 500:
            logger.error("request failed", extra={"code": exc.code, "path": request.url.path})
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.code, exc.message),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        msg = first.get("msg", "Invalid request")
        return JSONResponse(
            status_code=422,
            content=_error_body("VALIDATION_ERROR", f"{loc}: {msg}" if loc else msg),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        code = {401: "UNAUTHORIZED", 403: "FORBIDDEN", 404: "NOT_FOUND"}.get(
            exc.status_code, "HTTP_ERROR"
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(code, str(exc.detail)),
        )
