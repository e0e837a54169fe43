"""Request validation performed before any provider call."""

from __future__ import annotations

import base64
import binascii
import logging
import re

from ..providers.presets import ModelPreset
from .generation_errors import InvalidRequestError
from .generation_models import GenerationRequest

logger = logging.getLogger(__name__)

_DATA_URI_RE = re.compile(
    r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)(?:;[\w.+-]+=[\w.+-]+)*;base64,(?P<data>.+)$",
    re.DOTALL,
)

# HEIC conversion is not supported; such uploads are rejected up front.
UNSUPPORTED_IMAGE_TYPES = frozenset({"image/heic", "image/heif"})


def validate_source_image(source_image: str) -> str:
    """Check that ``source_image`` is a base64 image data URI; return its MIME type."""

    match = _DATA_URI_RE.match(source_image.strip())
    if match is None:
        raise InvalidRequestError("Image must be a base64 data URI")

    mime = match.group("mime").lower()
    if mime in UNSUPPORTED_IMAGE_TYPES:
        raise InvalidRequestError(
            "HEIC images are not supported, please upload a JPEG, PNG or WebP image"
        )
    if not mime.startswith("image/"):
        raise InvalidRequestError(f"Unsupported image type '{mime}'")

    try:
        base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidRequestError("Image data is not valid base64") from exc
    return mime


def validate_request(request: GenerationRequest, preset: ModelPreset) -> None:
    """Fail fast with :class:`InvalidRequestError` on malformed requests."""

    if not request.prompt or not request.prompt.strip():
        logger.warning("generation.request.missing_prompt", extra={"kind": request.kind.value})
        raise InvalidRequestError("Prompt is required")

    if not request.source_image:
        if preset.requires_image:
            logger.warning(
                "generation.request.missing_image", extra={"kind": request.kind.value}
            )
            raise InvalidRequestError("Prompt and image are required")
        return

    validate_source_image(request.source_image)


__all__ = ["UNSUPPORTED_IMAGE_TYPES", "validate_request", "validate_source_image"]
