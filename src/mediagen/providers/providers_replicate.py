"""Replicate provider driver implementation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

import httpx
import replicate
from replicate.exceptions import ModelError, ReplicateError

from .providers_base import (
    ProviderConnectionError,
    ProviderDriver,
    ProviderError,
    ProviderNotFoundError,
    ProviderPrediction,
)

logger = logging.getLogger(__name__)

WEBHOOK_EVENTS = ["completed"]


def _to_prediction(prediction: Any) -> ProviderPrediction:
    error = getattr(prediction, "error", None)
    return ProviderPrediction(
        id=str(prediction.id),
        status=str(prediction.status),
        output=getattr(prediction, "output", None),
        error=str(error) if error else None,
        model=getattr(prediction, "model", None),
    )


@dataclass(slots=True)
class ReplicateDriver(ProviderDriver):
    """Call Replicate through its official client."""

    api_token: str
    timeout_seconds: float = 120.0
    client: Any = None
    log: logging.Logger = field(default_factory=lambda: logger)

    def __post_init__(self) -> None:
        if self.client is None:
            self.client = replicate.Client(
                api_token=self.api_token,
                timeout=httpx.Timeout(self.timeout_seconds),
            )

    async def run(self, model: str, model_input: Mapping[str, Any]) -> Any:
        self.log.info("replicate.run.start", extra={"model": model})
        try:
            output = await self.client.async_run(model, input=dict(model_input))
        except ModelError as exc:
            raise ProviderError(f"Replicate model run failed: {exc}") from exc
        except ReplicateError as exc:
            raise ProviderError(f"Replicate rejected the run: {exc}") from exc
        except httpx.HTTPError as exc:
            raise ProviderConnectionError(f"Replicate HTTP error: {exc}") from exc
        self.log.info(
            "replicate.run.complete",
            extra={"model": model, "output_type": type(output).__name__},
        )
        return output

    async def create_prediction(
        self,
        model: str,
        model_input: Mapping[str, Any],
        *,
        webhook: str | None = None,
    ) -> ProviderPrediction:
        params: dict[str, Any] = {}
        if webhook:
            params["webhook"] = webhook
            params["webhook_events_filter"] = WEBHOOK_EVENTS
        try:
            prediction = await self.client.predictions.async_create(
                model=model,
                input=dict(model_input),
                **params,
            )
        except ReplicateError as exc:
            raise ProviderError(f"Replicate rejected the prediction: {exc}") from exc
        except httpx.HTTPError as exc:
            raise ProviderConnectionError(f"Replicate HTTP error: {exc}") from exc
        self.log.info(
            "replicate.prediction.created",
            extra={"model": model, "prediction_id": prediction.id, "webhook": bool(webhook)},
        )
        return _to_prediction(prediction)

    async def get_prediction(self, prediction_id: str) -> ProviderPrediction:
        try:
            prediction = await self.client.predictions.async_get(prediction_id)
        except ReplicateError as exc:
            if getattr(exc, "status", None) == 404:
                raise ProviderNotFoundError(prediction_id) from exc
            raise ProviderError(f"Replicate status lookup failed: {exc}") from exc
        except httpx.HTTPError as exc:
            raise ProviderConnectionError(f"Replicate HTTP error: {exc}") from exc
        return _to_prediction(prediction)


__all__ = ["ReplicateDriver"]
