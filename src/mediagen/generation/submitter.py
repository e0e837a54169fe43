"""Start generations on the provider in synchronous or asynchronous mode."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Mapping

from ..providers.presets import ModelPreset
from ..providers.providers_base import ProviderDriver, ProviderError
from .generation_errors import GenerationFailedError
from .generation_models import (
    GenerationMode,
    GenerationRequest,
    Job,
    JobState,
    JobStatus,
    MediaKind,
)
from .normalizer import normalize_output
from .validation import validate_request

logger = logging.getLogger(__name__)

WEBHOOK_PATH = "/api/webhooks/replicate"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_callback_url(host: str, path: str = WEBHOOK_PATH) -> str:
    """Return the webhook address for ``host``; the scheme is always https."""

    return f"https://{host.strip().rstrip('/')}{path}"


@dataclass(slots=True)
class Submission:
    """Job created by a submission together with its first status."""

    job: Job
    status: JobStatus


@dataclass(slots=True)
class JobSubmitter:
    """Validate requests and hand them to the provider driver."""

    driver: ProviderDriver
    presets: Mapping[MediaKind, ModelPreset]
    mode: GenerationMode = GenerationMode.SYNC
    max_stream_bytes: int | None = None
    clock: Callable[[], datetime] = _utcnow
    log: logging.Logger = field(default_factory=lambda: logger)

    async def submit(
        self,
        request: GenerationRequest,
        *,
        mode: GenerationMode | None = None,
        callback_host: str | None = None,
    ) -> Submission:
        preset = self.presets[request.kind]
        validate_request(request, preset)

        effective_mode = mode or self.mode
        model_input = preset.build_input(request)
        self.log.info(
            "generation.submit.start",
            extra={
                "kind": request.kind.value,
                "mode": effective_mode.value,
                "model": preset.model,
                "prompt_len": len(request.prompt),
                "has_image": bool(request.source_image),
            },
        )
        if effective_mode is GenerationMode.SYNC:
            return await self._run_sync(request, preset, model_input)
        return await self._start_async(request, preset, model_input, callback_host)

    async def _run_sync(
        self,
        request: GenerationRequest,
        preset: ModelPreset,
        model_input: dict,
    ) -> Submission:
        submitted_at = self.clock()
        try:
            output = await self.driver.run(preset.model, model_input)
        except ProviderError as exc:
            self.log.error(
                "generation.submit.provider_failed",
                extra={"kind": request.kind.value, "error": str(exc)},
            )
            raise GenerationFailedError(f"Failed to generate {request.kind.value}") from exc

        result = await normalize_output(
            output, mime_type=preset.mime_type, max_bytes=self.max_stream_bytes
        )
        job = Job(id=None, mode=GenerationMode.SYNC, submitted_at=submitted_at)
        self.log.info(
            "generation.submit.completed",
            extra={"kind": request.kind.value, "inline": result.is_inline},
        )
        return Submission(
            job=job,
            status=JobStatus(job_id=None, state=JobState.SUCCEEDED, output=result),
        )

    async def _start_async(
        self,
        request: GenerationRequest,
        preset: ModelPreset,
        model_input: dict,
        callback_host: str | None,
    ) -> Submission:
        webhook = build_callback_url(callback_host) if callback_host else None
        submitted_at = self.clock()
        try:
            prediction = await self.driver.create_prediction(
                preset.model, model_input, webhook=webhook
            )
        except ProviderError as exc:
            self.log.error(
                "generation.submit.provider_failed",
                extra={"kind": request.kind.value, "error": str(exc)},
            )
            raise GenerationFailedError(f"Failed to generate {request.kind.value}") from exc

        job = Job(id=prediction.id, mode=GenerationMode.ASYNC, submitted_at=submitted_at)
        self.log.info(
            "generation.submit.accepted",
            extra={"kind": request.kind.value, "job_id": job.id, "webhook": webhook},
        )
        return Submission(
            job=job,
            status=JobStatus(job_id=job.id, state=JobState.STARTING),
        )


__all__ = ["JobSubmitter", "Submission", "WEBHOOK_PATH", "build_callback_url"]
