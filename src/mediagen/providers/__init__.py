"""Provider drivers and model presets."""

from .presets import ModelPreset, build_presets
from .providers_base import ProviderDriver, ProviderPrediction
from .providers_replicate import ReplicateDriver

__all__ = [
    "ModelPreset",
    "ProviderDriver",
    "ProviderPrediction",
    "ReplicateDriver",
    "build_presets",
]
