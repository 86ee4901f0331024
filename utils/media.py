#!/usr/bin/env python3
"""
Media upload bodies.

A media body is either literal data (str or bytes) held in memory, or an
explicit stream that the transport pipes without buffering. The caller
decides which by wrapping streams in StreamBody.
"""

import asyncio
import json
import uuid
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Optional, Union

from errors import InvalidMediaError

DEFAULT_TEXT_MIME = "text/plain"
DEFAULT_BINARY_MIME = "application/octet-stream"
CHUNK_SIZE = 64 * 1024


def _to_bytes(chunk: Union[str, bytes, bytearray, memoryview]) -> bytes:
    if isinstance(chunk, str):
        return chunk.encode("utf-8")
    return bytes(chunk)


@dataclass(frozen=True)
class LiteralBody:
    """In-memory media data."""
    data: Union[str, bytes]

    @property
    def is_text(self) -> bool:
        return isinstance(self.data, str)

    def to_bytes(self) -> bytes:
        return _to_bytes(self.data)


@dataclass(frozen=True)
class StreamBody:
    """
    Media read from a stream handle.

    The handle may be a binary file object, a sync iterable of chunks or an
    async iterable of chunks.
    """
    handle: Any
    chunk_size: int = CHUNK_SIZE

    is_text = False

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        handle = self.handle
        if hasattr(handle, "__aiter__"):
            async for chunk in handle:
                yield _to_bytes(chunk)
        elif hasattr(handle, "read"):
            while True:
                chunk = await asyncio.to_thread(handle.read, self.chunk_size)
                if not chunk:
                    break
                yield _to_bytes(chunk)
        else:
            for chunk in handle:
                yield _to_bytes(chunk)


MediaBody = Union[LiteralBody, StreamBody]


@dataclass(frozen=True)
class MediaUpload:
    """The `media` call parameter: a body and an optional mime type."""
    body: Optional[MediaBody] = None
    mime_type: Optional[str] = None

    @property
    def default_mime_type(self) -> str:
        return default_mime_type(self.body)


def as_media_body(body: Any) -> Optional[MediaBody]:
    """
    Wrap literal data; reject anything that is not explicitly tagged.

    Empty literals count as no media at all.
    """
    if isinstance(body, LiteralBody):
        return body if body.data else None
    if body is None or isinstance(body, StreamBody):
        return body
    if isinstance(body, (str, bytes)):
        return LiteralBody(body) if body else None
    if isinstance(body, (bytearray, memoryview)):
        return LiteralBody(bytes(body)) if len(body) else None
    raise InvalidMediaError(
        f"Unsupported media body of type {type(body).__name__}; wrap streams in StreamBody"
    )


def as_media_upload(media: Any) -> MediaUpload:
    """Coerce the `media` call parameter ({'body': ..., 'mimeType': ...})."""
    if media is None:
        return MediaUpload()
    if isinstance(media, MediaUpload):
        return media
    if not isinstance(media, dict):
        raise InvalidMediaError(f"media must be a mapping, got {type(media).__name__}")
    return MediaUpload(
        body=as_media_body(media.get("body")),
        mime_type=media.get("mimeType") or media.get("mime_type"),
    )


def default_mime_type(body: Optional[MediaBody]) -> str:
    """text/plain for textual literals, application/octet-stream otherwise."""
    if isinstance(body, LiteralBody) and body.is_text:
        return DEFAULT_TEXT_MIME
    return DEFAULT_BINARY_MIME


# =========================
#  multipart/related encoding
# =========================
@dataclass(frozen=True)
class BodyPart:
    """One part of a multipart/related upload."""
    content_type: str
    body: Union[str, bytes, MediaBody]

    def header_bytes(self) -> bytes:
        return f"Content-Type: {self.content_type}\r\n\r\n".encode("utf-8")


def json_part(resource: Any) -> BodyPart:
    return BodyPart("application/json", json.dumps(resource))


def new_boundary() -> str:
    return uuid.uuid4().hex


def multipart_content_type(boundary: str) -> str:
    return f"multipart/related; boundary={boundary}"


async def aiter_multipart(parts: List[BodyPart], boundary: str) -> AsyncIterator[bytes]:
    """Encode parts as multipart/related, streaming any StreamBody part."""
    delimiter = f"--{boundary}\r\n".encode("utf-8")
    for part in parts:
        yield delimiter
        yield part.header_bytes()
        body = part.body
        if isinstance(body, StreamBody):
            async for chunk in body.aiter_bytes():
                yield chunk
        elif isinstance(body, LiteralBody):
            yield body.to_bytes()
        else:
            yield _to_bytes(body)
        yield b"\r\n"
    yield f"--{boundary}--\r\n".encode("utf-8")


def encode_multipart(parts: List[BodyPart], boundary: str) -> bytes:
    """Encode literal-only parts in memory."""
    chunks: List[bytes] = []
    for part in parts:
        body = part.body
        if isinstance(body, StreamBody):
            raise InvalidMediaError("Stream parts must be encoded with aiter_multipart")
        chunks.append(f"--{boundary}\r\n".encode("utf-8"))
        chunks.append(part.header_bytes())
        chunks.append(body.to_bytes() if isinstance(body, LiteralBody) else _to_bytes(body))
        chunks.append(b"\r\n")
    chunks.append(f"--{boundary}--\r\n".encode("utf-8"))
    return b"".join(chunks)


def describe_parts(parts: List[BodyPart]) -> List[Dict[str, Any]]:
    """Log-friendly summary of parts."""
    return [
        {"content_type": p.content_type, "streamed": isinstance(p.body, StreamBody)}
        for p in parts
    ]
