"""Fixed model parameter sets for each media kind."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from ..generation.generation_models import GenerationRequest, MediaKind

DEFAULT_IMAGE_MODEL = "black-forest-labs/flux-dev"
DEFAULT_VIDEO_MODEL = "wavespeedai/wan-2.1-i2v-720p"


@dataclass(frozen=True, slots=True)
class ModelPreset:
    """Model identifier plus the parameters sent with every request."""

    kind: MediaKind
    model: str
    mime_type: str
    parameters: Mapping[str, Any] = field(default_factory=dict)
    image_field: str = "image"
    requires_image: bool = False

    def build_input(self, request: GenerationRequest) -> dict[str, Any]:
        model_input: dict[str, Any] = {"prompt": request.prompt}
        if request.source_image:
            model_input[self.image_field] = request.source_image
        model_input.update(self.parameters)
        return model_input


_IMAGE_PARAMETERS = MappingProxyType(
    {
        "output_format": "webp",
        "num_outputs": 1,
        "aspect_ratio": "1:1",
        "output_quality": 80,
    }
)

_VIDEO_PARAMETERS = MappingProxyType(
    {
        "max_area": "720x1280",
        "fast_mode": "Balanced",
        "lora_scale": 1,
        "num_frames": 81,
        "sample_shift": 5,
        "sample_steps": 30,
        "frames_per_second": 16,
        "sample_guide_scale": 5,
    }
)


def build_presets(
    *,
    image_model: str = DEFAULT_IMAGE_MODEL,
    video_model: str = DEFAULT_VIDEO_MODEL,
) -> dict[MediaKind, ModelPreset]:
    """Return the preset table keyed by media kind."""

    return {
        MediaKind.IMAGE: ModelPreset(
            kind=MediaKind.IMAGE,
            model=image_model,
            mime_type="image/webp",
            parameters=_IMAGE_PARAMETERS,
        ),
        MediaKind.VIDEO: ModelPreset(
            kind=MediaKind.VIDEO,
            model=video_model,
            mime_type="video/mp4",
            parameters=_VIDEO_PARAMETERS,
            requires_image=True,
        ),
    }


def mime_type_for_model(
    presets: Mapping[MediaKind, ModelPreset],
    model: str | None,
    default: str = "application/octet-stream",
) -> str:
    """Pick the inline MIME type for results produced by ``model``."""

    if model:
        # Replicate may report "owner/name:version"
        name = model.split(":", 1)[0]
        for preset in presets.values():
            if preset.model == name:
                return preset.mime_type
    return default


__all__ = [
    "DEFAULT_IMAGE_MODEL",
    "DEFAULT_VIDEO_MODEL",
    "ModelPreset",
    "build_presets",
    "mime_type_for_model",
]
