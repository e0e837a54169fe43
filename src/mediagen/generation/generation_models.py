"""Data structures for the generation job pipeline."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class MediaKind(StrEnum):
    """Media produced by a generation endpoint."""

    IMAGE = "image"
    VIDEO = "video"


class GenerationMode(StrEnum):
    """How a submission waits for the provider."""

    SYNC = "sync"
    ASYNC = "async"


class JobState(StrEnum):
    """Canonical job statuses reported to callers."""

    STARTING = "starting"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (JobState.SUCCEEDED, JobState.FAILED)


class FailureReason(StrEnum):
    """Failure reasons surfaced in error payloads and failed statuses."""

    INVALID_REQUEST = "invalid_request"
    GENERATION_FAILED = "generation_failed"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    UNRECOGNIZED_OUTPUT = "unrecognized_output"
    STREAM_READ_ERROR = "stream_read_error"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    JOB_NOT_FOUND = "job_not_found"
    GENERATION_TIMED_OUT = "generation_timed_out"
    INTERNAL_ERROR = "internal_error"


_DATA_URI_RE = re.compile(r"^data:(?P<mime>[^;,]+);base64,(?P<data>.*)$", re.DOTALL)


@dataclass(frozen=True, slots=True)
class GenerationRequest:
    """Prompt and optional source image submitted by a user."""

    kind: MediaKind
    prompt: str
    source_image: str | None = None


@dataclass(frozen=True, slots=True)
class Job:
    """Remote generation tracked by a provider-assigned identifier.

    Synchronous runs have no trackable prediction, so their ``id`` is ``None``.
    """

    id: str | None
    mode: GenerationMode
    submitted_at: datetime


@dataclass(frozen=True, slots=True)
class MediaResult:
    """Canonical media reference: a remote URL or an inline base64 payload."""

    url: str | None = None
    mime_type: str | None = None
    data_base64: str | None = None

    def __post_init__(self) -> None:
        has_url = self.url is not None
        has_inline = self.mime_type is not None and self.data_base64 is not None
        if has_url == has_inline:
            raise ValueError("MediaResult must hold exactly one of url or inline data")
        if not has_inline and (self.mime_type is not None or self.data_base64 is not None):
            raise ValueError("Inline MediaResult requires both mime_type and data_base64")

    @classmethod
    def remote(cls, url: str) -> "MediaResult":
        return cls(url=url)

    @classmethod
    def inline(cls, mime_type: str, data_base64: str) -> "MediaResult":
        return cls(mime_type=mime_type, data_base64=data_base64)

    @classmethod
    def from_reference(cls, reference: str) -> "MediaResult":
        """Parse a URL or ``data:`` URI produced by :attr:`reference`."""

        match = _DATA_URI_RE.match(reference)
        if match:
            return cls.inline(match.group("mime"), match.group("data"))
        return cls.remote(reference)

    @property
    def is_inline(self) -> bool:
        return self.url is None

    @property
    def data_uri(self) -> str | None:
        if not self.is_inline:
            return None
        return f"data:{self.mime_type};base64,{self.data_base64}"

    @property
    def reference(self) -> str:
        """URL or data URI handed to the end consumer."""

        return self.url if self.url is not None else self.data_uri  # type: ignore[return-value]


@dataclass(frozen=True, slots=True)
class JobStatus:
    """One observation of a job; only the most recent one matters."""

    job_id: str | None
    state: JobState
    output: MediaResult | None = None
    error: str | None = None
    failure_reason: FailureReason | None = None

    def __post_init__(self) -> None:
        if self.output is not None and self.state is not JobState.SUCCEEDED:
            raise ValueError("output is only allowed on succeeded statuses")
        if self.state is JobState.SUCCEEDED and self.output is None:
            raise ValueError("succeeded statuses must carry an output")
        if self.error is not None and self.state is not JobState.FAILED:
            raise ValueError("error detail is only allowed on failed statuses")

    @property
    def terminal(self) -> bool:
        return self.state.terminal

    @classmethod
    def failed(
        cls,
        job_id: str | None,
        error: str,
        reason: FailureReason = FailureReason.GENERATION_FAILED,
    ) -> "JobStatus":
        return cls(job_id=job_id, state=JobState.FAILED, error=error, failure_reason=reason)


__all__ = [
    "FailureReason",
    "GenerationMode",
    "GenerationRequest",
    "Job",
    "JobState",
    "JobStatus",
    "MediaKind",
    "MediaResult",
]
