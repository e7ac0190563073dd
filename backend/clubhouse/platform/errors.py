"""
Consistent error handling for the clubhouse backend.

All API errors use these error classes and shapes.
Stack traces are never returned to clients.

Status codes:
- 303: See Other (unauthenticated page request, redirect to /login)
- 400: Bad Request (validation errors)
- 401: Unauthorized (bad credentials)
- 403: Forbidden (role not allowed)
- 404: Not Found
- 409: Conflict (duplicate, capacity reached)
- 500: Internal Server Error
"""

import logging
import uuid
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"


class AppError(Exception):
    """
    Base application error with consistent error shape.

    All custom errors inherit from this class.
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to API error response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            }
        }


class ValidationError(AppError):
    """Validation error (400)."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
        )


class AuthenticationError(AppError):
    """Authentication failure (401)."""

    def __init__(self, message: str = "These credentials do not match our records.", details: Optional[dict[str, Any]] = None):
        super().__init__(
            code="AUTHENTICATION_ERROR",
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            details=details,
        )


class LoginRequiredError(AppError):
    """No authenticated user; rendered as a redirect to the login page."""

    def __init__(self, message: str = "Login required"):
        super().__init__(
            code="LOGIN_REQUIRED",
            message=message,
            status_code=status.HTTP_303_SEE_OTHER,
            details={"location": LOGIN_PATH},
        )


class PermissionDeniedError(AppError):
    """Permission denied (403)."""

    def __init__(self, message: str = "Permission denied", details: Optional[dict[str, Any]] = None):
        super().__init__(
            code="PERMISSION_DENIED",
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            details=details,
        )


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(self, resource: str, identifier: Optional[str] = None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with id '{identifier}' not found"
        super().__init__(
            code="NOT_FOUND",
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
        )


class ConflictError(AppError):
    """Resource conflict (409)."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(
            code="CONFLICT",
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            details=details,
        )


def generate_correlation_id() -> str:
    """Generate a unique correlation ID for request tracing."""
    return str(uuid.uuid4())


def get_correlation_id(request: Request) -> str:
    """
    Get correlation ID from request or generate new one.

    Checks X-Correlation-ID header first, then request state.
    """
    correlation_id = request.headers.get("X-Correlation-ID")
    if correlation_id:
        return correlation_id

    if hasattr(request.state, "correlation_id"):
        return request.state.correlation_id

    return generate_correlation_id()


def app_error_response(request: Request, error: AppError):
    """Render an AppError, turning LoginRequiredError into a redirect."""
    correlation_id = get_correlation_id(request)
    headers = {"X-Correlation-ID": correlation_id}

    if isinstance(error, LoginRequiredError):
        return RedirectResponse(
            url=LOGIN_PATH,
            status_code=status.HTTP_303_SEE_OTHER,
            headers=headers,
        )

    logger.warning(
        "Application error",
        extra={
            "correlation_id": correlation_id,
            "error_code": error.code,
            "status_code": error.status_code,
            "path": request.url.path,
            "method": request.method,
        },
    )
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_dict(),
        headers=headers,
    )


async def _handle_app_error(request: Request, exc: AppError):
    return app_error_response(request, exc)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Assigns correlation IDs and converts unexpected exceptions to a generic 500.

    IMPORTANT: Stack traces are never returned to clients.
    """

    async def dispatch(self, request: Request, call_next):
        correlation_id = get_correlation_id(request)
        request.state.correlation_id = correlation_id

        try:
            response = await call_next(request)
            response.headers["X-Correlation-ID"] = correlation_id
            return response

        except AppError as e:
            return app_error_response(request, e)

        except Exception as e:
            logger.exception(
                "Unhandled exception",
                extra={
                    "correlation_id": correlation_id,
                    "error_type": type(e).__name__,
                    "path": request.url.path,
                    "method": request.method,
                },
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error": {
                        "code": "INTERNAL_ERROR",
                        "message": "An unexpected error occurred",
                        "details": {"correlation_id": correlation_id},
                    }
                },
                headers={"X-Correlation-ID": correlation_id},
            )


def register_error_handlers(app: FastAPI) -> None:
    """Install the AppError handler and correlation/500 middleware on an app."""
    app.add_exception_handler(AppError, _handle_app_error)
    app.add_middleware(ErrorHandlerMiddleware)
