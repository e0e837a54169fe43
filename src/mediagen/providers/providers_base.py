"""Abstract provider driver definition."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping


class ProviderError(Exception):
    """Raised when the provider rejects a call or a model run fails."""


class ProviderConnectionError(ProviderError):
    """Raised when the provider cannot be reached."""


class ProviderNotFoundError(ProviderError):
    """Raised when the provider does not know the requested prediction."""


@dataclass(slots=True)
class ProviderPrediction:
    """Provider-side view of a prediction, in the provider's own vocabulary."""

    id: str
    status: str
    output: Any = None
    error: str | None = None
    model: str | None = None


class ProviderDriver(ABC):
    """Base interface for provider drivers."""

    @abstractmethod
    async def run(self, model: str, model_input: Mapping[str, Any]) -> Any:
        """Run ``model`` to completion and return its raw output."""

    @abstractmethod
    async def create_prediction(
        self,
        model: str,
        model_input: Mapping[str, Any],
        *,
        webhook: str | None = None,
    ) -> ProviderPrediction:
        """Start a prediction without waiting for it to finish."""

    @abstractmethod
    async def get_prediction(self, prediction_id: str) -> ProviderPrediction:
        """Fetch the current state of ``prediction_id``."""
