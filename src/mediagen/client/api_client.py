"""Typed HTTP client facade for the MediaGen REST API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from httpx import AsyncClient, HTTPError, Response

from ..generation.generation_errors import (
    GenerationFailedError,
    InvalidRequestError,
    JobNotFoundError,
    ProviderUnavailableError,
)
from ..generation.generation_models import (
    FailureReason,
    GenerationMode,
    JobState,
    JobStatus,
    MediaKind,
    MediaResult,
)


@dataclass(slots=True)
class SubmitResult:
    """Outcome of ``POST /api/generate/{kind}``."""

    mode: GenerationMode
    job_id: str | None = None
    status: JobState | None = None
    media: MediaResult | None = None


def _error_message(response: Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"HTTP {response.status_code}"


def _raise_for_error(response: Response, *, job_id: str | None = None) -> None:
    if response.status_code < 400:
        return
    message = _error_message(response)
    if response.status_code == 404 and job_id is not None:
        raise JobNotFoundError(job_id)
    if response.status_code == 400:
        raise InvalidRequestError(message)
    if response.status_code == 503:
        raise ProviderUnavailableError(message)
    raise GenerationFailedError(message)


@dataclass(slots=True)
class GenerationApiClient:
    """Convenience wrapper around :class:`httpx.AsyncClient` with typed responses."""

    http: AsyncClient

    async def submit(
        self,
        kind: MediaKind,
        prompt: str,
        source_image: str | None = None,
    ) -> SubmitResult:
        """Submit a prompt; returns either a job id or the finished media."""

        payload: dict[str, Any] = {"prompt": prompt}
        if source_image is not None:
            payload["sourceImage"] = source_image
        try:
            response = await self.http.post(f"/api/generate/{kind.value}", json=payload)
        except HTTPError as exc:
            raise ProviderUnavailableError(f"Generation service unreachable: {exc}") from exc
        _raise_for_error(response)

        body = response.json()
        if body.get("mediaUrl"):
            return SubmitResult(
                mode=GenerationMode.SYNC,
                status=JobState.SUCCEEDED,
                media=MediaResult.from_reference(body["mediaUrl"]),
            )
        return SubmitResult(
            mode=GenerationMode.ASYNC,
            job_id=body["jobId"],
            status=JobState(body.get("status", JobState.STARTING)),
        )

    async def get_status(self, job_id: str) -> JobStatus:
        """Poll the current status of ``job_id``."""

        try:
            response = await self.http.get(f"/api/status/{job_id}")
        except HTTPError as exc:
            raise ProviderUnavailableError(f"Generation service unreachable: {exc}") from exc
        _raise_for_error(response, job_id=job_id)

        body = response.json()
        state = JobState(body["status"])
        if state is JobState.SUCCEEDED:
            output = body.get("output")
            if not output:
                return JobStatus.failed(
                    job_id, "Succeeded without output", FailureReason.UNRECOGNIZED_OUTPUT
                )
            return JobStatus(job_id=job_id, state=state, output=MediaResult.from_reference(output))
        if state is JobState.FAILED:
            return JobStatus.failed(job_id, body.get("error") or "Generation failed")
        return JobStatus(job_id=job_id, state=state)


__all__ = ["GenerationApiClient", "SubmitResult"]
