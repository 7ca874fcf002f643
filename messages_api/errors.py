"""
Exceptions and the exception-to-HTTP translation for the messages API.

The service layer raises and propagates. Validation errors are rendered by the
handler registered on the app; anything else is caught by
RequestLoggingMiddleware and rendered by internal_error_response().
"""

import logging
from typing import Any, Iterable

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from messages_api.schemas import ProblemDetail, ValidationProblemDetail

logger = logging.getLogger(__name__)

PROBLEM_JSON = "application/problem+json"

# Location prefixes FastAPI puts in front of the field name
_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}


class InvalidArgumentError(ValueError):
    """A required argument was missing or malformed."""


def format_validation_errors(errors: Iterable[dict[str, Any]]) -> str:
    """
    Render validation errors as "<field>: <message>, ...".

    [{"loc": ("body", "content"), "msg": "must not be blank"}] -> "content: must not be blank"
    """
    rendered = []
    for error in errors:
        field = ".".join(
            str(part) for part in error.get("loc", ())
            if part not in _LOCATION_PREFIXES and not isinstance(part, int)
        )
        rendered.append(f"{field or 'body'}: {error.get('msg', '')}")
    return ", ".join(rendered)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = format_validation_errors(exc.errors())
    logger.warning(f"Request validation failed: {errors}")
    problem = ValidationProblemDetail(
        status=status.HTTP_400_BAD_REQUEST,
        title="Invalid Request Content",
        detail="Validation failed",
        errors=errors,
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=problem.model_dump(),
        media_type=PROBLEM_JSON,
    )


def internal_error_response(request: Request, exc: Exception) -> JSONResponse:
    """
    Log an unhandled exception with its traceback and render it as a 500 problem detail.
    Called by RequestLoggingMiddleware while the request id is still in context.
    """
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}: {exc}",
        exc_info=exc,
        extra={"request_id": getattr(request.state, "request_id", None)},
    )
    problem = ProblemDetail(
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        title="Internal Server Error",
        detail=str(exc),
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=problem.model_dump(),
        media_type=PROBLEM_JSON,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
