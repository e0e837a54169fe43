from __future__ import annotations

import pytest

from src.mediagen.generation.generation_models import (
    FailureReason,
    JobState,
    JobStatus,
    MediaResult,
)


def test_media_result_requires_exactly_one_variant() -> None:
    with pytest.raises(ValueError):
        MediaResult()
    with pytest.raises(ValueError):
        MediaResult(url="https://x", mime_type="image/webp", data_base64="AAAA")
    with pytest.raises(ValueError):
        MediaResult(mime_type="image/webp")


def test_reference_round_trips_through_from_reference() -> None:
    inline = MediaResult.inline("video/mp4", "AAAA")

    assert inline.reference == "data:video/mp4;base64,AAAA"
    assert MediaResult.from_reference(inline.reference) == inline
    assert MediaResult.from_reference("https://cdn.example/a.webp").url == "https://cdn.example/a.webp"


@pytest.mark.parametrize(
    ("state", "terminal"),
    [
        (JobState.STARTING, False),
        (JobState.PROCESSING, False),
        (JobState.SUCCEEDED, True),
        (JobState.FAILED, True),
    ],
)
def test_terminal_states(state: JobState, terminal: bool) -> None:
    assert state.terminal is terminal


def test_status_invariants() -> None:
    with pytest.raises(ValueError):
        JobStatus(job_id="p1", state=JobState.SUCCEEDED)
    with pytest.raises(ValueError):
        JobStatus(job_id="p1", state=JobState.PROCESSING, output=MediaResult.remote("https://x"))
    with pytest.raises(ValueError):
        JobStatus(job_id="p1", state=JobState.STARTING, error="nope")


def test_failed_factory_defaults_to_generation_failed() -> None:
    status = JobStatus.failed("p1", "boom")

    assert status.terminal
    assert status.failure_reason is FailureReason.GENERATION_FAILED
