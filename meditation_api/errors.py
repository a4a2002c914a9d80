# meditation_api/errors.py
"""
Application error taxonomy.

Every error carries a category; the category alone decides the HTTP status
through ``STATUS_BY_CATEGORY``. Handlers registered by
``register_exception_handlers`` turn errors into ``{"error": message}``
bodies, so controllers can simply raise.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    CONFLICT = "conflict"
    INTERNAL = "internal"


STATUS_BY_CATEGORY: Dict[ErrorCategory, int] = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.AUTHENTICATION: 401,
    ErrorCategory.AUTHORIZATION: 403,
    ErrorCategory.CONFLICT: 409,
    ErrorCategory.INTERNAL: 500,
}


def status_for(category: ErrorCategory) -> int:
    return STATUS_BY_CATEGORY.get(category, 500)


class AppError(Exception):
    """Base for all application errors.

    ``message`` is safe to return to clients; ``context`` is only logged.
    """

    code = "INTERNAL_ERROR"
    category = ErrorCategory.INTERNAL

    def __init__(self, message: str = "An unexpected error occurred", context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.context = context or {}
        super().__init__(message)

    @property
    def status_code(self) -> int:
        return status_for(self.category)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": type(self).__name__,
            "message": self.message,
            "code": self.code,
            "category": self.category.value,
            "context": self.context,
        }


class ValidationError(AppError):
    code = "VALIDATION_ERROR"
    category = ErrorCategory.VALIDATION


class NotFoundError(AppError):
    code = "NOT_FOUND"
    category = ErrorCategory.NOT_FOUND


class AuthenticationError(AppError):
    code = "AUTHENTICATION_ERROR"
    category = ErrorCategory.AUTHENTICATION


class AuthorizationError(AppError):
    code = "AUTHORIZATION_ERROR"
    category = ErrorCategory.AUTHORIZATION


class ConflictError(AppError):
    code = "CONFLICT"
    category = ErrorCategory.CONFLICT


class InternalError(AppError):
    code = "INTERNAL_ERROR"
    category = ErrorCategory.INTERNAL


def _error_response(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s %s", request.method, request.url.path, exc.message, exc.context)
        else:
            logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(HTTPException)
    async def handle_http_exception(request: Request, exc: HTTPException):
        message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        return _error_response(exc.status_code, message, getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            field = ".".join(str(p) for p in first.get("loc", []) if p not in ("body", "query", "path"))
            message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
        else:
            message = "Invalid request"
        logger.warning("%s %s -> 400: %s", request.method, request.url.path, message)
        return _error_response(400, message)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error_response(500, "Internal server error")
