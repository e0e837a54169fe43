"""Dependency wiring helpers."""

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from .api.errors import (
    ApiError,
    api_error_handler,
    generation_error_handler,
    request_validation_handler,
)
from .config import AppConfig
from .generation.generation_api import router as generation_router
from .generation.generation_errors import GenerationError
from .generation.status_tracker import JobStatusTracker
from .generation.submitter import JobSubmitter
from .generation.webhooks import WebhookInbox
from .providers.presets import build_presets
from .providers.providers_base import ProviderDriver
from .providers.providers_replicate import ReplicateDriver


def include_routers(
    app: FastAPI,
    config: AppConfig,
    *,
    driver: ProviderDriver | None = None,
) -> None:
    """Mount module routers and attach services."""
    provider = driver
    if provider is None:
        provider = ReplicateDriver(
            api_token=config.api_token,
            timeout_seconds=config.provider_timeout_seconds,
        )
    presets = build_presets(image_model=config.image_model, video_model=config.video_model)

    job_submitter = JobSubmitter(
        driver=provider,
        presets=presets,
        mode=config.mode,
        max_stream_bytes=config.max_stream_bytes,
    )
    status_tracker = JobStatusTracker(
        driver=provider,
        presets=presets,
        inbox=WebhookInbox(capacity=config.webhook_inbox_size),
        max_stream_bytes=config.max_stream_bytes,
    )

    app.state.config = config
    app.state.provider_driver = provider
    app.state.job_submitter = job_submitter
    app.state.status_tracker = status_tracker

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(GenerationError, generation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(generation_router)
