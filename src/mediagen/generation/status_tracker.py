"""Map provider prediction state onto canonical job statuses."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping

from ..providers.presets import ModelPreset, mime_type_for_model
from ..providers.providers_base import (
    ProviderConnectionError,
    ProviderDriver,
    ProviderError,
    ProviderNotFoundError,
    ProviderPrediction,
)
from .generation_errors import (
    GenerationFailedError,
    JobNotFoundError,
    PayloadTooLargeError,
    ProviderUnavailableError,
    StreamReadError,
    UnrecognizedOutputShapeError,
)
from .generation_models import JobState, JobStatus, MediaKind
from .normalizer import normalize_output
from .webhooks import WebhookInbox

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_MESSAGE = "Generation failed"

PROVIDER_STATES: dict[str, JobState] = {
    "starting": JobState.STARTING,
    "processing": JobState.PROCESSING,
    "succeeded": JobState.SUCCEEDED,
    "failed": JobState.FAILED,
    "canceled": JobState.FAILED,
}


def map_provider_state(status: str, error: str | None = None) -> JobState:
    """Translate provider status vocabulary into :class:`JobState`.

    ``completed`` is the webhook event name; it means succeeded unless the
    delivery carries an error.  Unknown values are treated as still running.
    """

    normalized = (status or "").strip().lower()
    if normalized == "completed":
        return JobState.FAILED if error else JobState.SUCCEEDED
    state = PROVIDER_STATES.get(normalized)
    if state is None:
        logger.warning("generation.status.unknown_provider_state", extra={"provider_status": status})
        return JobState.PROCESSING
    return state


@dataclass(slots=True)
class JobStatusTracker:
    """Answer status queries from webhook deliveries or provider lookups."""

    driver: ProviderDriver
    presets: Mapping[MediaKind, ModelPreset]
    inbox: WebhookInbox = field(default_factory=WebhookInbox)
    max_stream_bytes: int | None = None
    log: logging.Logger = field(default_factory=lambda: logger)

    async def get_status(self, job_id: str) -> JobStatus:
        delivered = self.inbox.get(job_id)
        if delivered is not None and delivered.terminal:
            return delivered

        try:
            prediction = await self.driver.get_prediction(job_id)
        except ProviderNotFoundError as exc:
            self.log.warning("generation.status.not_found", extra={"job_id": job_id})
            raise JobNotFoundError(job_id) from exc
        except ProviderConnectionError as exc:
            self.log.warning(
                "generation.status.provider_unavailable",
                extra={"job_id": job_id, "error": str(exc)},
            )
            raise ProviderUnavailableError("Status of the generation is temporarily unavailable") from exc
        except ProviderError as exc:
            self.log.error(
                "generation.status.lookup_rejected",
                extra={"job_id": job_id, "error": str(exc)},
            )
            raise GenerationFailedError("Failed to check generation status") from exc
        return await self.resolve(prediction)

    async def resolve(self, prediction: ProviderPrediction) -> JobStatus:
        """Build a :class:`JobStatus`, normalising output on success."""

        state = map_provider_state(prediction.status, prediction.error)
        if state is JobState.FAILED:
            self.log.info(
                "generation.status.failed",
                extra={"job_id": prediction.id, "error": prediction.error},
            )
            return JobStatus.failed(prediction.id, prediction.error or DEFAULT_FAILURE_MESSAGE)
        if state is not JobState.SUCCEEDED:
            return JobStatus(job_id=prediction.id, state=state)

        mime_type = mime_type_for_model(self.presets, prediction.model)
        try:
            result = await normalize_output(
                prediction.output, mime_type=mime_type, max_bytes=self.max_stream_bytes
            )
        except (UnrecognizedOutputShapeError, StreamReadError, PayloadTooLargeError) as exc:
            # Успешная задача с нечитаемым результатом для клиента всё равно провал
            self.log.error(
                "generation.status.unreadable_output",
                extra={"job_id": prediction.id, "reason": exc.failure_reason.value},
            )
            return JobStatus.failed(prediction.id, exc.public_message, exc.failure_reason)
        return JobStatus(job_id=prediction.id, state=JobState.SUCCEEDED, output=result)

    async def record_callback(self, prediction: ProviderPrediction) -> JobStatus:
        """Treat a webhook delivery as a status observation and remember it."""

        status = await self.resolve(prediction)
        self.inbox.put(status)
        self.log.info(
            "generation.webhook.recorded",
            extra={"job_id": prediction.id, "state": status.state.value},
        )
        return status


__all__ = ["JobStatusTracker", "PROVIDER_STATES", "map_provider_state"]
