from __future__ import annotations

import base64

import pytest

from src.mediagen.generation.generation_errors import (
    StreamReadError,
    UnrecognizedOutputShapeError,
)
from src.mediagen.generation.generation_models import MediaResult
from src.mediagen.generation.normalizer import (
    OutputShape,
    classify_output,
    normalize_output,
)
from tests.mocks.providers import ChunkStream

GIF_CHUNKS = [bytes([0x47, 0x49, 0x46]), bytes([0x38, 0x39, 0x61])]


async def _normalize(raw, mime_type: str = "image/webp") -> MediaResult:
    return await normalize_output(raw, mime_type=mime_type, max_bytes=None)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("https://cdn.example/out.webp", OutputShape.TEXT),
        (["https://cdn.example/out.webp"], OutputShape.SEQUENCE),
        ((), OutputShape.SEQUENCE),
        (ChunkStream(GIF_CHUNKS), OutputShape.BYTE_STREAM),
        (iter(GIF_CHUNKS), OutputShape.BYTE_STREAM),
        ({}, OutputShape.UNRECOGNIZED),
        (None, OutputShape.UNRECOGNIZED),
        (b"GIF89a", OutputShape.UNRECOGNIZED),
        (42, OutputShape.UNRECOGNIZED),
    ],
)
def test_classify_output(raw, expected) -> None:
    assert classify_output(raw) is expected


@pytest.mark.asyncio
async def test_text_output_is_remote_url() -> None:
    result = await _normalize("https://cdn.example/out.webp")

    assert result == MediaResult.remote("https://cdn.example/out.webp")
    assert result.reference == "https://cdn.example/out.webp"
    assert not result.is_inline


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "rest",
    [[], ["https://cdn.example/other.webp"], [None, {}, 5]],
)
async def test_sequence_uses_first_element_only(rest) -> None:
    url = "https://cdn.example/out2.webp"

    from_sequence = await _normalize([url, *rest])
    from_text = await _normalize(url)

    assert from_sequence == from_text == MediaResult(url=url)


@pytest.mark.asyncio
async def test_stream_output_becomes_data_uri() -> None:
    result = await _normalize(ChunkStream(GIF_CHUNKS))

    expected = base64.b64encode(b"GIF89a").decode("ascii")
    assert result.is_inline
    assert result.mime_type == "image/webp"
    assert result.data_uri == f"data:image/webp;base64,{expected}"


@pytest.mark.asyncio
async def test_stream_inside_sequence_is_unwrapped() -> None:
    result = await _normalize([ChunkStream(GIF_CHUNKS), "ignored"], mime_type="video/mp4")

    assert result.data_uri == "data:video/mp4;base64," + base64.b64encode(b"GIF89a").decode()


@pytest.mark.asyncio
async def test_sync_iterator_stream_is_collected() -> None:
    result = await _normalize(iter(GIF_CHUNKS))

    assert result.data_base64 == base64.b64encode(b"GIF89a").decode()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "raw",
    [{}, None, [], (), "", "   ", [{}], [None], [42], b"raw-bytes", {"url": "https://x"}],
)
async def test_unrecognized_shapes_raise(raw) -> None:
    with pytest.raises(UnrecognizedOutputShapeError) as excinfo:
        await _normalize(raw)

    assert excinfo.value.raw is raw


@pytest.mark.asyncio
async def test_stream_failure_propagates_as_stream_error() -> None:
    with pytest.raises(StreamReadError):
        await _normalize(ChunkStream(GIF_CHUNKS, fail_after=1))
