"""Application configuration builder."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from .generation.generation_models import GenerationMode
from .providers.presets import DEFAULT_IMAGE_MODEL, DEFAULT_VIDEO_MODEL

_MODE_ALIASES = {
    "sync": GenerationMode.SYNC,
    "synchronous": GenerationMode.SYNC,
    "async": GenerationMode.ASYNC,
    "asynchronous": GenerationMode.ASYNC,
    "webhook": GenerationMode.ASYNC,
}


class ConfigurationError(RuntimeError):
    """Raised at startup when required settings are missing or invalid."""


@dataclass(slots=True)
class AppConfig:
    api_token: str
    mode: GenerationMode = GenerationMode.SYNC
    webhook_secret: str | None = None
    image_model: str = DEFAULT_IMAGE_MODEL
    video_model: str = DEFAULT_VIDEO_MODEL
    max_stream_bytes: int = 200 * 1024 * 1024
    provider_timeout_seconds: float = 120.0
    webhook_inbox_size: int = 256


def _parse_mode(raw: str) -> GenerationMode:
    try:
        return _MODE_ALIASES[raw.strip().lower()]
    except KeyError:
        raise ConfigurationError(
            f"GENERATION_MODE must be one of {sorted(_MODE_ALIASES)}, got '{raw}'"
        ) from None


def _parse_number(env: Mapping[str, str], name: str, default: float, cast: type) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got '{raw}'") from None
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive")
    return value


def load_config(env: Mapping[str, str] | None = None) -> AppConfig:
    """Load configuration from environment; the API token is mandatory."""
    source = os.environ if env is None else env

    api_token = (source.get("REPLICATE_API_TOKEN") or "").strip()
    if not api_token:
        raise ConfigurationError("REPLICATE_API_TOKEN is not set")

    return AppConfig(
        api_token=api_token,
        mode=_parse_mode(source.get("GENERATION_MODE", "sync")),
        webhook_secret=(source.get("REPLICATE_WEBHOOK_SECRET") or None),
        image_model=source.get("REPLICATE_IMAGE_MODEL") or DEFAULT_IMAGE_MODEL,
        video_model=source.get("REPLICATE_VIDEO_MODEL") or DEFAULT_VIDEO_MODEL,
        max_stream_bytes=int(
            _parse_number(source, "MAX_STREAM_BYTES", 200 * 1024 * 1024, int)
        ),
        provider_timeout_seconds=float(
            _parse_number(source, "PROVIDER_TIMEOUT_SECONDS", 120.0, float)
        ),
        webhook_inbox_size=int(_parse_number(source, "WEBHOOK_INBOX_SIZE", 256, int)),
    )


__all__ = ["AppConfig", "ConfigurationError", "load_config"]
