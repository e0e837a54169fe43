"""Normalise heterogeneous provider outputs into a :class:`MediaResult`.

Providers answer with one of several encodings depending on the model and the
client library: a bare URL, a list of URLs, or a lazily produced byte stream
(optionally wrapped in a list).  The shape is inspected once up front by
:func:`classify_output` and the normaliser dispatches on the result, so no
field access is attempted on values of unknown type.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, Iterator, Mapping, Sequence
from enum import Enum
from typing import Any

from .generation_errors import UnrecognizedOutputShapeError
from .generation_models import MediaResult
from .stream_collector import collect_stream_base64

logger = logging.getLogger(__name__)

_RAW_PREVIEW_CHARS = 500


class OutputShape(Enum):
    """Provider output encodings understood by the normaliser."""

    TEXT = "text"
    SEQUENCE = "sequence"
    BYTE_STREAM = "byte_stream"
    UNRECOGNIZED = "unrecognized"


def is_byte_stream(value: Any) -> bool:
    """Return ``True`` for lazy chunk producers (async iterables or iterators)."""

    if isinstance(value, (str, bytes, bytearray, Mapping, Sequence)):
        return False
    return isinstance(value, (AsyncIterable, Iterator))


def classify_output(value: Any) -> OutputShape:
    if isinstance(value, str):
        return OutputShape.TEXT
    if isinstance(value, (list, tuple)):
        return OutputShape.SEQUENCE
    if is_byte_stream(value):
        return OutputShape.BYTE_STREAM
    return OutputShape.UNRECOGNIZED


def _unrecognized(raw: Any) -> UnrecognizedOutputShapeError:
    logger.error(
        "generation.output.unrecognized",
        extra={"raw_type": type(raw).__name__, "raw": repr(raw)[:_RAW_PREVIEW_CHARS]},
    )
    return UnrecognizedOutputShapeError(raw)


async def normalize_output(
    raw: Any,
    *,
    mime_type: str,
    max_bytes: int | None,
) -> MediaResult:
    """Convert ``raw`` provider output into a canonical media reference.

    Only the first element of a sequence is inspected; further elements are
    ignored.  Byte streams are collected and returned inline using
    ``mime_type``.

    Raises:
        UnrecognizedOutputShapeError: ``raw`` matches no supported shape.
        StreamReadError: a byte stream failed while being read.
        PayloadTooLargeError: a byte stream exceeded ``max_bytes``.
    """

    shape = classify_output(raw)
    if shape is OutputShape.TEXT:
        if not raw.strip():
            raise _unrecognized(raw)
        return MediaResult.remote(raw)

    if shape is OutputShape.SEQUENCE:
        if not raw:
            raise _unrecognized(raw)
        first = raw[0]
        if isinstance(first, str) and first.strip():
            return MediaResult.remote(first)
        if is_byte_stream(first):
            data = await collect_stream_base64(first, max_bytes=max_bytes)
            return MediaResult.inline(mime_type, data)
        raise _unrecognized(raw)

    if shape is OutputShape.BYTE_STREAM:
        data = await collect_stream_base64(raw, max_bytes=max_bytes)
        return MediaResult.inline(mime_type, data)

    raise _unrecognized(raw)


__all__ = ["OutputShape", "classify_output", "is_byte_stream", "normalize_output"]
