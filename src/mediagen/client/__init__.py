"""Caller-side helpers: REST client facade and job poller."""

from .api_client import GenerationApiClient, SubmitResult
from .poller import JobPoller, PollerState, poll_until_done

__all__ = [
    "GenerationApiClient",
    "JobPoller",
    "PollerState",
    "SubmitResult",
    "poll_until_done",
]
