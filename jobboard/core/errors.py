# jobboard/core/errors.py
"""Typed failures and the single terminal handler that renders them.

Every check in the request pipeline raises one of the ``AppError`` subclasses
below at the point of failure. ``register_exception_handlers`` installs the
sink that turns them into ``{"message", "description"}`` JSON bodies with the
carried status code; anything else becomes a 500.
"""
import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code: int = 500
    default_message: str = "Something went wrong"

    def __init__(self, message: Optional[str] = None, description: Optional[str] = None, **context: Any):
        self.message = message or self.default_message
        self.description = description or self.message
        # structured diagnostics; logged, never sent to the client
        self.context = context
        super().__init__(self.message)

    def to_body(self) -> dict:
        return {"message": self.message, "description": self.description}


class Unauthenticated(AppError):
    status_code = 401
    default_message = "Unauthenticated"


class InvalidToken(Unauthenticated):
    default_message = "Invalid token"


class TokenExpired(Unauthenticated):
    default_message = "Token expired"


class Forbidden(AppError):
    status_code = 403
    default_message = "Unauthorized"


class NotFoundOrUnauthorized(AppError):
    status_code = 404
    default_message = "Not found or unauthorized"

    def __init__(self, **context: Any):
        # message and description are fixed so a missing resource and a
        # foreign one render identically
        super().__init__(self.default_message, self.default_message, **context)


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    status_code = 400
    default_message = "Already exists"


class ValidationFailed(AppError):
    status_code = 400
    default_message = "Validation error"


class BadRequest(AppError):
    status_code = 400
    default_message = "Bad request"


class StaleRevision(AppError):
    status_code = 409
    default_message = "Resource was modified by another request"


class Unexpected(AppError):
    status_code = 500
    default_message = "Internal server error"


def _format_validation_errors(errors) -> str:
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
        msg = err.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts)


def _render(exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s %s", request.method, request.url.path, exc.message, exc.context)
    else:
        logger.info(
            "%s %s rejected (%s): %s %s",
            request.method, request.url.path, exc.status_code, exc.message, exc.context,
        )
    return _render(exc)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    err = ValidationFailed(description=_format_validation_errors(exc.errors()))
    logger.info("%s %s validation failed: %s", request.method, request.url.path, err.description)
    return _render(err)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": detail, "description": detail},
        headers=getattr(exc, "headers", None),
    )


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _render(Unexpected(description="Unexpected error"))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
