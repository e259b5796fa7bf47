"""
Service Exceptions

Errors raised by services and repositories. Every error carries the HTTP
status and message that the client receives as ``{"error": message}``
(plus ``details`` when present). Routers do not build error responses
themselves; the handlers registered in ``register_exception_handlers`` do.

Author: Academia
"""
import logging
from typing import Any, List, Optional, Union

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """
    Base exception for all handler errors.

    Attributes:
        message: Human-readable error message sent to the client
        status_code: HTTP status code of the error response
        details: Optional extra payload (list of validation messages, upstream body, ...)
    """

    status_code: int = 400

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Union[List[str], dict, str]] = None
    ) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body: dict = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationFailed(ServiceError):
    """Request payload failed validation; details holds the messages"""

    status_code = 400

    def __init__(self, errors: List[str], message: str = "Validation failed") -> None:
        super().__init__(message, details=list(errors))


class AuthenticationError(ServiceError):
    status_code = 401


class PermissionDenied(ServiceError):
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


class RateLimitExceeded(ServiceError):
    """Caller exceeded the fixed-window request budget"""

    status_code = 429

    def __init__(self, message: str, retry_after: int = 60) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class ConfigurationError(ServiceError):
    """A required secret or integration is not configured"""

    status_code = 500


class UpstreamError(ServiceError):
    """A third-party API (Cloudflare, Stripe) answered with an error"""

    status_code = 502


def _error_response(error: ServiceError) -> JSONResponse:
    headers = {}
    if isinstance(error, RateLimitExceeded):
        headers["Retry-After"] = str(error.retry_after)
    return JSONResponse(status_code=error.status_code, content=error.to_dict(), headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Render ServiceError and HTTPException with the same {"error": ...} shape"""

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        else:
            logger.info(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")
        return _error_response(exc)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        detail: Any = exc.detail
        content = detail if isinstance(detail, dict) else {"error": detail}
        return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            f"{'.'.join(str(part) for part in error.get('loc', ()) if part != 'body')} {error.get('msg')}".strip()
            for error in exc.errors()
        ]
        return _error_response(ValidationFailed(errors))
