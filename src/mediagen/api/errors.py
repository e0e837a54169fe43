"""Reusable error primitives for API exception handling."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..generation.generation_errors import GenerationError
from ..generation.generation_models import FailureReason

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ApiError(Exception):
    """Structured application-level error for HTTP handlers."""

    status_code: int
    code: str
    message: str
    headers: Mapping[str, str] | None = None

    def to_response(self) -> JSONResponse:
        """Materialise the error into a ``JSONResponse`` instance."""

        return JSONResponse(
            status_code=self.status_code,
            content={"success": False, "error": self.message, "code": self.code},
            headers=dict(self.headers or {}),
        )


async def api_error_handler(_: Request, exc: ApiError) -> JSONResponse:
    """Convert :class:`ApiError` exceptions into JSON payloads."""

    return exc.to_response()


async def generation_error_handler(request: Request, exc: GenerationError) -> JSONResponse:
    """Convert :class:`GenerationError` into the structured error payload."""

    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "api.generation_error",
        extra={
            "path": request.url.path,
            "failure_reason": exc.failure_reason.value,
            "status_code": exc.status_code,
        },
    )
    return ApiError(exc.status_code, exc.failure_reason.value, exc.public_message).to_response()


async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies as 400 instead of FastAPI's 422."""

    logger.warning("api.invalid_body", extra={"errors": exc.errors()})
    return ApiError(
        status.HTTP_400_BAD_REQUEST,
        FailureReason.INVALID_REQUEST.value,
        "Request body is invalid",
    ).to_response()


def unauthorized_error(message: str) -> ApiError:
    """Return an :class:`ApiError` representing an authentication failure."""

    return ApiError(status.HTTP_401_UNAUTHORIZED, "unauthorized", message)


__all__ = [
    "ApiError",
    "api_error_handler",
    "generation_error_handler",
    "request_validation_handler",
    "unauthorized_error",
]
