"""Domain-specific exceptions for the generation pipeline."""

from __future__ import annotations

from typing import Any

from fastapi import status

from .generation_models import FailureReason


class GenerationError(Exception):
    """Base class for generation errors converted at the HTTP boundary."""

    failure_reason: FailureReason = FailureReason.INTERNAL_ERROR
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    @property
    def public_message(self) -> str:
        return str(self) or "Failed to generate media"


class InvalidRequestError(GenerationError):
    """Raised when the prompt or source image is missing or malformed."""

    failure_reason = FailureReason.INVALID_REQUEST
    status_code = status.HTTP_400_BAD_REQUEST


class GenerationFailedError(GenerationError):
    """Raised when the provider rejects or fails a generation."""

    failure_reason = FailureReason.GENERATION_FAILED


class ProviderUnavailableError(GenerationFailedError):
    """Raised when the provider cannot be reached for a status lookup."""

    failure_reason = FailureReason.PROVIDER_UNAVAILABLE
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class UnrecognizedOutputShapeError(GenerationError):
    """Raised when provider output matches none of the known shapes."""

    failure_reason = FailureReason.UNRECOGNIZED_OUTPUT

    def __init__(self, raw: Any) -> None:
        super().__init__("Unexpected response format from AI model")
        self.raw = raw


class StreamReadError(GenerationError):
    """Raised when a byte stream fails mid-read."""

    failure_reason = FailureReason.STREAM_READ_ERROR


class PayloadTooLargeError(GenerationError):
    """Raised when a byte stream exceeds the configured budget."""

    failure_reason = FailureReason.PAYLOAD_TOO_LARGE

    def __init__(self, size_bytes: int, limit_bytes: int) -> None:
        super().__init__(f"Generated media exceeds {limit_bytes} bytes")
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes


class JobNotFoundError(GenerationError):
    """Raised when a job identifier is unknown to the provider."""

    failure_reason = FailureReason.JOB_NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, job_id: str) -> None:
        super().__init__(f"Job '{job_id}' not found")
        self.job_id = job_id


class GenerationTimedOutError(GenerationError):
    """Raised when polling gives up before a terminal status."""

    failure_reason = FailureReason.GENERATION_TIMED_OUT
    status_code = status.HTTP_504_GATEWAY_TIMEOUT


__all__ = [
    "GenerationError",
    "GenerationFailedError",
    "GenerationTimedOutError",
    "InvalidRequestError",
    "JobNotFoundError",
    "PayloadTooLargeError",
    "ProviderUnavailableError",
    "StreamReadError",
    "UnrecognizedOutputShapeError",
]
