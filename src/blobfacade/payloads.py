from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator

from .errors import UnsupportedPayloadError
from .streams import ChunkSource, collect

DEFAULT_CHUNK_SIZE = 64 * 1024


def as_bytes(data: bytes | bytearray | memoryview) -> bytes:
    """Copy a buffer to bytes, byte for byte (memoryview casts included)."""
    if isinstance(data, bytes):
        return data
    return bytes(memoryview(data))


@dataclass(frozen=True)
class TextPayload:
    """Inline text, transmitted encoded with `encoding`."""

    text: str
    encoding: str = "utf-8"


@dataclass(frozen=True)
class BufferPayload:
    """An in-memory buffer. Non-bytes buffers are copied to bytes on upload."""

    data: bytes | bytearray | memoryview


@dataclass(frozen=True)
class StreamPayload:
    """
    A factory producing a stream of chunks.

    The factory is called once per upload and the stream it returns is
    materialized in memory, because uploads need the length up front.
    Prefer BufferPayload when the data is already in memory.
    """

    factory: Callable[[], ChunkSource]

    @classmethod
    def from_path(
        cls, path: str | Path, chunk_size: int = DEFAULT_CHUNK_SIZE
    ) -> "StreamPayload":
        """Stream the contents of a local file."""
        file_path = Path(path)

        def read_chunks() -> Iterator[bytes]:
            with file_path.open("rb") as f:
                while True:
                    chunk = f.read(chunk_size)
                    if not chunk:
                        break
                    yield chunk

        return cls(read_chunks)


Payload = TextPayload | BufferPayload | StreamPayload


@dataclass(frozen=True)
class ResolvedContent:
    length: int
    body: bytes


class ContentResolver:
    """Turns a payload into a transmittable body and its exact byte length."""

    async def resolve(self, payload: Payload) -> ResolvedContent:
        if isinstance(payload, TextPayload):
            body = payload.text.encode(payload.encoding)
            return ResolvedContent(length=len(body), body=body)

        if isinstance(payload, BufferPayload):
            body = as_bytes(payload.data)
            return ResolvedContent(length=len(body), body=body)

        if isinstance(payload, StreamPayload):
            # A produced stream cannot be replayed: the collected buffer is
            # both the length source and the body.
            body = await collect(payload.factory())
            return ResolvedContent(length=len(body), body=body)

        raise UnsupportedPayloadError(
            f"Unsupported payload type: {type(payload).__name__}. "
            "Use TextPayload, BufferPayload or StreamPayload."
        )
