"""Workflow errors and their ``application/problem+json`` rendering.

Each ``AppException`` subclass fixes its HTTP status, problem type slug and
title as class attributes; instances only carry the human-readable detail
and, for validation failures, a ``field -> [messages]`` map.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from leave_workflow.config import settings

logger = logging.getLogger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"


class AppException(Exception):
    status_code: ClassVar[int] = 400
    error_type: ClassVar[str] = "bad-request"
    title: ClassVar[str] = "Bad Request"

    def __init__(self, detail: str, errors: Optional[dict[str, list[str]]] = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.errors = errors


class NotFoundException(AppException):
    status_code = 404
    error_type = "not-found"
    title = "Not Found"

    def __init__(self, entity_type: str, entity_id: Any, detail: Optional[str] = None) -> None:
        super().__init__(detail or f"{entity_type} with id '{entity_id}' does not exist.")
        self.entity_type = entity_type
        self.entity_id = entity_id


class ForbiddenException(AppException):
    """The acting user may not perform this workflow step."""

    status_code = 403
    error_type = "forbidden"
    title = "Forbidden"

    def __init__(self, detail: str = "You do not have permission to perform this action.") -> None:
        super().__init__(detail)


class ValidationException(AppException):
    """Bad input or a failed business rule.

    ``detail`` is the first field message, which is what the requester is
    shown.
    """

    status_code = 422
    error_type = "validation-error"
    title = "Validation Error"

    def __init__(self, errors: dict[str, list[str]]) -> None:
        messages = [m for field_messages in errors.values() for m in field_messages]
        super().__init__(
            messages[0] if messages else "One or more fields failed validation.",
            errors=errors,
        )


class StoreException(AppException):
    """A database call failed. The driver error is chained as ``__cause__``."""

    status_code = 500
    error_type = "store-error"
    title = "Store Error"


class ProblemDetail(BaseModel):
    type: str
    title: str
    status: int
    detail: str
    instance: str
    errors: Optional[dict[str, list[str]]] = None

    def to_response(self) -> JSONResponse:
        return JSONResponse(
            status_code=self.status,
            content=self.model_dump(exclude_none=True),
            media_type=PROBLEM_MEDIA_TYPE,
        )


def problem_type_uri(slug: str) -> str:
    return f"{settings.SITE_URL.rstrip('/')}/errors/{slug}"


def _field_name(loc: tuple) -> str:
    # drop the leading "body" / "query" / "path" segment
    if len(loc) > 1:
        return ".".join(str(part) for part in loc[1:])
    return str(loc[0]) if loc else "unknown"


async def _app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    if isinstance(exc, StoreException):
        logger.error(
            "Store failure on %s %s: %s (cause: %s)",
            request.method, request.url.path, exc.detail, exc.__cause__,
        )
    problem = ProblemDetail(
        type=problem_type_uri(exc.error_type),
        title=exc.title,
        status=exc.status_code,
        detail=exc.detail,
        instance=request.url.path,
        errors=exc.errors or None,
    )
    return problem.to_response()


async def _request_validation_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        errors.setdefault(_field_name(tuple(err.get("loc", ()))), []).append(
            err.get("msg", "Invalid value")
        )
    problem = ProblemDetail(
        type=problem_type_uri(ValidationException.error_type),
        title=ValidationException.title,
        status=422,
        detail="Request validation failed.",
        instance=request.url.path,
        errors=errors,
    )
    return problem.to_response()


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppException, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _request_validation_handler)  # type: ignore[arg-type]
