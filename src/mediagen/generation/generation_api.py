"""HTTP routes for job submission, status polling and webhook delivery."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from ..api.errors import ApiError, unauthorized_error
from ..config import AppConfig
from ..providers.providers_base import ProviderPrediction
from .generation_errors import GenerationFailedError
from .generation_models import FailureReason, GenerationMode, GenerationRequest, MediaKind
from .generation_schemas import (
    GenerateRequestBody,
    JobStatusResponse,
    SubmitAcceptedResponse,
    SubmitCompletedResponse,
    WebhookAck,
    WebhookPayload,
)
from .status_tracker import JobStatusTracker
from .submitter import JobSubmitter
from .webhooks import WebhookSignatureError, verify_webhook_signature

router = APIRouter(prefix="/api", tags=["generation"])
logger = logging.getLogger(__name__)


def get_submitter(request: Request) -> JobSubmitter:
    """Fetch job submitter from application state."""
    try:
        return request.app.state.job_submitter  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("JobSubmitter is not configured") from exc


def get_tracker(request: Request) -> JobStatusTracker:
    """Fetch status tracker from application state."""
    try:
        return request.app.state.status_tracker  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("JobStatusTracker is not configured") from exc


def get_config(request: Request) -> AppConfig:
    return request.app.state.config  # type: ignore[attr-defined]


def _callback_host(request: Request) -> str | None:
    return request.headers.get("x-forwarded-host") or request.headers.get("host")


@router.post("/generate/{kind}")
async def submit_generation(
    kind: MediaKind,
    body: GenerateRequestBody,
    request: Request,
    submitter: JobSubmitter = Depends(get_submitter),
) -> JSONResponse:
    """Start a generation; answers with a job id or, in sync mode, the media."""
    generation_request = GenerationRequest(
        kind=kind, prompt=body.prompt, source_image=body.source_image
    )
    submission = await submitter.submit(
        generation_request, callback_host=_callback_host(request)
    )

    if submission.job.mode is GenerationMode.SYNC:
        output = submission.status.output
        if output is None:
            raise GenerationFailedError(f"Failed to generate {kind.value}")
        payload = SubmitCompletedResponse(media_url=output.reference)
    else:
        payload = SubmitAcceptedResponse(
            job_id=submission.job.id, status=submission.status.state
        )
    return JSONResponse(content=payload.model_dump(mode="json", by_alias=True))


@router.get("/status/{job_id}")
async def get_job_status(
    job_id: str,
    tracker: JobStatusTracker = Depends(get_tracker),
) -> JSONResponse:
    """Return the canonical status of ``job_id``."""
    job_status = await tracker.get_status(job_id)
    payload = JobStatusResponse(
        status=job_status.state,
        output=job_status.output.reference if job_status.output else None,
        error=job_status.error,
    )
    return JSONResponse(content=payload.model_dump(mode="json", exclude_none=True))


@router.post("/webhooks/replicate")
async def receive_webhook(
    request: Request,
    tracker: JobStatusTracker = Depends(get_tracker),
    config: AppConfig = Depends(get_config),
) -> JSONResponse:
    """Accept a provider completion callback as a status update."""
    body = await request.body()
    if config.webhook_secret:
        try:
            verify_webhook_signature(config.webhook_secret, request.headers, body)
        except WebhookSignatureError as exc:
            logger.warning("generation.webhook.rejected", extra={"reason": str(exc)})
            raise unauthorized_error("Invalid webhook signature") from exc

    try:
        payload = WebhookPayload.model_validate_json(body)
    except ValidationError as exc:
        logger.warning("generation.webhook.invalid_payload", extra={"errors": exc.errors()})
        raise ApiError(
            status.HTTP_400_BAD_REQUEST,
            FailureReason.INVALID_REQUEST.value,
            "Invalid webhook payload",
        ) from exc

    prediction = ProviderPrediction(
        id=payload.job_id,
        status=payload.status,
        output=payload.output,
        error=str(payload.error) if payload.error else None,
        model=payload.model,
    )
    job_status = await tracker.record_callback(prediction)
    return JSONResponse(content=WebhookAck(status=job_status.state).model_dump(mode="json"))


@router.get("/health")
async def health(config: AppConfig = Depends(get_config)) -> dict[str, str]:
    return {"status": "ok", "mode": config.mode.value}
