"""Drain lazily produced byte streams into a single base64 payload."""

from __future__ import annotations

import base64
import logging
from collections.abc import AsyncIterable, AsyncIterator, Iterable
from typing import Any

from .generation_errors import PayloadTooLargeError, StreamReadError

logger = logging.getLogger(__name__)

ByteStream = AsyncIterable[bytes] | Iterable[bytes]


async def _iterate_chunks(handle: ByteStream) -> AsyncIterator[Any]:
    if isinstance(handle, AsyncIterable):
        async for chunk in handle:
            yield chunk
        return
    for chunk in handle:
        yield chunk


async def collect_stream(handle: ByteStream, *, max_bytes: int | None) -> bytes:
    """Read ``handle`` to the end and return the concatenated bytes.

    Chunks are consumed strictly in order; their boundaries carry no meaning.
    ``max_bytes`` bounds the total size (``None`` disables the check).
    Partial data is discarded on any failure.
    """

    buffer = bytearray()
    chunks = 0
    try:
        async for chunk in _iterate_chunks(handle):
            if not isinstance(chunk, (bytes, bytearray, memoryview)):
                raise StreamReadError(
                    f"Stream produced {type(chunk).__name__} instead of bytes"
                )
            buffer.extend(chunk)
            chunks += 1
            if max_bytes is not None and len(buffer) > max_bytes:
                logger.warning(
                    "generation.stream.payload_too_large",
                    extra={"size_bytes": len(buffer), "limit_bytes": max_bytes},
                )
                raise PayloadTooLargeError(len(buffer), max_bytes)
    except (PayloadTooLargeError, StreamReadError):
        raise
    except Exception as exc:
        logger.error("generation.stream.read_failed", exc_info=exc)
        raise StreamReadError(f"Failed to read generated media stream: {exc}") from exc

    logger.info(
        "generation.stream.collected",
        extra={"size_bytes": len(buffer), "chunks": chunks},
    )
    return bytes(buffer)


async def collect_stream_base64(handle: ByteStream, *, max_bytes: int | None) -> str:
    """Collect ``handle`` and return its contents base64-encoded."""

    payload = await collect_stream(handle, max_bytes=max_bytes)
    return base64.b64encode(payload).decode("ascii")


__all__ = ["ByteStream", "collect_stream", "collect_stream_base64"]
