"""Caller-side polling of asynchronous generation jobs.

A :class:`JobPoller` follows a single job: ``idle`` until started, ``polling``
while statuses are non-terminal, and ``done`` once a terminal status is seen or
the consumer cancels.  Queries run on the event loop in one background task
which is the only scheduled work owned by the poller; a done poller never
issues another query and cannot be restarted.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any

from ..generation.generation_errors import (
    GenerationError,
    GenerationTimedOutError,
    JobNotFoundError,
    ProviderUnavailableError,
)
from ..generation.generation_models import FailureReason, JobStatus

StatusFetcher = Callable[[str], Awaitable[JobStatus]]
StatusCallback = Callable[[JobStatus], Any]

DEFAULT_INTERVAL_SECONDS = 2.0


class PollerState(StrEnum):
    IDLE = "idle"
    POLLING = "polling"
    DONE = "done"


class JobPoller:
    """Re-query a job at a fixed interval until it reaches a terminal status."""

    def __init__(
        self,
        fetch_status: StatusFetcher,
        *,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        max_polls: int | None = None,
        on_status: StatusCallback | None = None,
        sleep: Callable[[float], Awaitable[Any]] | None = None,
    ) -> None:
        if max_polls is not None and max_polls < 1:
            raise ValueError("max_polls must be at least 1")
        self._fetch = fetch_status
        self._interval = max(0.0, float(interval_seconds))
        self._max_polls = max_polls
        self._on_status = on_status
        self._sleep = sleep or asyncio.sleep
        self._state = PollerState.IDLE
        self._job_id: str | None = None
        self._last_status: JobStatus | None = None
        self._polls = 0
        self._task: asyncio.Task[None] | None = None
        self._done: asyncio.Future[JobStatus] | None = None
        self._logger = logging.getLogger(__name__)

    @property
    def state(self) -> PollerState:
        return self._state

    @property
    def job_id(self) -> str | None:
        return self._job_id

    @property
    def last_status(self) -> JobStatus | None:
        return self._last_status

    @property
    def polls(self) -> int:
        """Number of status queries issued so far."""
        return self._polls

    def start(self, job_id: str, initial_status: JobStatus | None = None) -> None:
        """Begin polling ``job_id``; only valid on a fresh poller."""

        if self._state is not PollerState.IDLE:
            raise RuntimeError("JobPoller is single-use, create a new instance per job")
        loop = asyncio.get_running_loop()
        self._job_id = job_id
        self._last_status = initial_status
        self._state = PollerState.POLLING
        self._done = loop.create_future()
        self._task = loop.create_task(self._run(), name=f"job-poller:{job_id}")
        self._logger.info("poller.started", extra={"job_id": job_id})

    async def wait(self) -> JobStatus:
        """Return the terminal status once polling is done."""

        if self._done is None:
            raise RuntimeError("JobPoller has not been started")
        return await asyncio.shield(self._done)

    def cancel(self) -> None:
        """Stop polling and drop the scheduled query."""

        if self._state is PollerState.DONE:
            return
        self._state = PollerState.DONE
        if self._task is not None and not self._task.done():
            self._task.cancel()
        if self._done is not None and not self._done.done():
            self._done.cancel()
        self._logger.info("poller.cancelled", extra={"job_id": self._job_id})

    async def __aenter__(self) -> "JobPoller":
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        self.cancel()
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)

    async def poll_once(self) -> JobStatus | None:
        """Issue one status query; does nothing unless the poller is polling."""

        if self._state is not PollerState.POLLING or self._job_id is None:
            return None
        job_id = self._job_id
        self._polls += 1
        try:
            status = await self._fetch(job_id)
        except JobNotFoundError as exc:
            status = JobStatus.failed(job_id, exc.public_message, FailureReason.JOB_NOT_FOUND)
        except ProviderUnavailableError as exc:
            self._logger.warning(
                "poller.status_unavailable",
                extra={"job_id": job_id, "attempt": self._polls, "error": str(exc)},
            )
            return None
        except GenerationError as exc:
            status = JobStatus.failed(job_id, exc.public_message, exc.failure_reason)
        except Exception:
            self._logger.exception("poller.unexpected_error", extra={"job_id": job_id})
            status = JobStatus.failed(
                job_id, "Failed to check generation status", FailureReason.INTERNAL_ERROR
            )

        if self._state is not PollerState.POLLING:
            return None
        await self._observe(status)
        return status

    async def _run(self) -> None:
        try:
            while self._state is PollerState.POLLING:
                await self._sleep(self._interval)
                await self.poll_once()
                if self._state is PollerState.POLLING and self._ceiling_reached():
                    exc = GenerationTimedOutError(
                        f"Generation did not finish after {self._polls} status checks"
                    )
                    await self._observe(
                        JobStatus.failed(self._job_id, exc.public_message, exc.failure_reason)
                    )
        except Exception:
            self._logger.exception("poller.observer_failed", extra={"job_id": self._job_id})
            if self._state is PollerState.POLLING:
                status = JobStatus.failed(
                    self._job_id, "Failed to process generation status", FailureReason.INTERNAL_ERROR
                )
                self._last_status = status
                self._finish(status)

    def _ceiling_reached(self) -> bool:
        return self._max_polls is not None and self._polls >= self._max_polls

    async def _observe(self, status: JobStatus) -> None:
        self._last_status = status
        if self._on_status is not None:
            result = self._on_status(status)
            if inspect.isawaitable(result):
                await result
        if status.terminal:
            self._finish(status)

    def _finish(self, status: JobStatus) -> None:
        self._state = PollerState.DONE
        if self._done is not None and not self._done.done():
            self._done.set_result(status)
        task = self._task
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
        self._logger.info(
            "poller.done",
            extra={"job_id": status.job_id, "state": status.state.value, "polls": self._polls},
        )


async def poll_until_done(
    fetch_status: StatusFetcher,
    job_id: str,
    *,
    interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    max_polls: int | None = None,
    on_status: StatusCallback | None = None,
) -> JobStatus:
    """Poll ``job_id`` with a fresh :class:`JobPoller` and return the final status."""

    async with JobPoller(
        fetch_status,
        interval_seconds=interval_seconds,
        max_polls=max_polls,
        on_status=on_status,
    ) as poller:
        poller.start(job_id)
        return await poller.wait()


__all__ = ["JobPoller", "PollerState", "poll_until_done"]
