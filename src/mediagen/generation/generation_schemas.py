"""Pydantic models for the generation HTTP contract."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .generation_models import JobState


class GenerateRequestBody(BaseModel):
    """Prompt plus optional source image encoded as a data URI."""

    model_config = ConfigDict(extra="ignore")

    prompt: str = Field("", description="Text prompt for the model.")
    source_image: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("sourceImage", "source_image", "image"),
        description="Source image as a base64 data URI.",
    )


class SubmitAcceptedResponse(BaseModel):
    """Asynchronous submission: the caller polls ``jobId``."""

    model_config = ConfigDict(populate_by_name=True)

    success: Literal[True] = True
    job_id: str = Field(..., serialization_alias="jobId")
    status: JobState = JobState.STARTING


class SubmitCompletedResponse(BaseModel):
    """Synchronous submission: the final media reference is ready."""

    model_config = ConfigDict(populate_by_name=True)

    success: Literal[True] = True
    media_url: str = Field(..., serialization_alias="mediaUrl")


class JobStatusResponse(BaseModel):
    """Latest observation of an asynchronous job."""

    status: JobState
    output: Optional[str] = None
    error: Optional[str] = None


class ErrorResponse(BaseModel):
    """Structured failure returned for every handled error."""

    success: Literal[False] = False
    error: str
    code: str


class WebhookPayload(BaseModel):
    """Prediction snapshot delivered by the provider on completion."""

    model_config = ConfigDict(extra="ignore")

    job_id: str = Field(..., validation_alias=AliasChoices("id", "jobId", "job_id"))
    status: str
    output: Any = None
    error: Optional[Any] = None
    model: Optional[str] = None


class WebhookAck(BaseModel):
    success: Literal[True] = True
    status: JobState


__all__ = [
    "ErrorResponse",
    "GenerateRequestBody",
    "JobStatusResponse",
    "SubmitAcceptedResponse",
    "SubmitCompletedResponse",
    "WebhookAck",
    "WebhookPayload",
]
