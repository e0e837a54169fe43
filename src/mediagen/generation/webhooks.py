"""Webhook delivery support: in-memory status inbox and signature checks."""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import time
from collections import OrderedDict
from typing import Mapping

import structlog

from .generation_models import JobStatus

logger = structlog.get_logger(__name__)

SIGNATURE_TOLERANCE_SECONDS = 300


class WebhookSignatureError(Exception):
    """Raised when a webhook delivery fails signature verification."""


class WebhookInbox:
    """Most recent status per job delivered by provider webhooks.

    Process-local and bounded: the oldest job is evicted once ``capacity`` is
    reached.  Nothing survives a restart.
    """

    def __init__(self, capacity: int = 256) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._statuses: OrderedDict[str, JobStatus] = OrderedDict()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._statuses)

    def put(self, status: JobStatus) -> None:
        if status.job_id is None:
            return
        self._statuses[status.job_id] = status
        self._statuses.move_to_end(status.job_id)
        while len(self._statuses) > self._capacity:
            evicted, _ = self._statuses.popitem(last=False)
            logger.debug("webhook.inbox.evicted", job_id=evicted)

    def get(self, job_id: str) -> JobStatus | None:
        return self._statuses.get(job_id)


def _signing_key(secret: str) -> bytes:
    encoded = secret.split("_", 1)[1] if secret.startswith("whsec_") else secret
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise WebhookSignatureError("webhook secret is not valid base64") from exc


def verify_webhook_signature(
    secret: str,
    headers: Mapping[str, str],
    body: bytes,
    *,
    now: float | None = None,
    tolerance_seconds: int = SIGNATURE_TOLERANCE_SECONDS,
) -> None:
    """Verify a Replicate webhook delivery signed with ``secret``.

    The signed content is ``"{webhook-id}.{webhook-timestamp}.{body}"`` and the
    ``webhook-signature`` header carries space-separated ``v1,<base64>``
    entries; any matching entry is accepted.
    """

    webhook_id = headers.get("webhook-id")
    timestamp = headers.get("webhook-timestamp")
    signatures = headers.get("webhook-signature")
    if not webhook_id or not timestamp or not signatures:
        raise WebhookSignatureError("missing webhook signature headers")

    try:
        sent_at = int(timestamp)
    except ValueError:
        raise WebhookSignatureError("invalid webhook timestamp") from None
    current = time.time() if now is None else now
    if abs(current - sent_at) > tolerance_seconds:
        raise WebhookSignatureError("webhook timestamp outside tolerance")

    signed = f"{webhook_id}.{timestamp}.".encode() + body
    digest = hmac.new(_signing_key(secret), signed, hashlib.sha256).digest()
    expected = base64.b64encode(digest).decode("ascii")

    for entry in signatures.split():
        version, _, signature = entry.partition(",")
        if version == "v1" and hmac.compare_digest(signature, expected):
            return
    logger.warning("webhook.signature.mismatch", webhook_id=webhook_id)
    raise WebhookSignatureError("webhook signature mismatch")


__all__ = [
    "WebhookInbox",
    "WebhookSignatureError",
    "verify_webhook_signature",
]
