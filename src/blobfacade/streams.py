"""
Byte stream primitives.

- collect: drain a stream of chunks into a single buffer
- BlobStream: lazy, single-use download stream that detects truncation
- copy_stream: write a stream of chunks into any sink
"""

import inspect
import logging
from typing import Any, AsyncIterable, AsyncIterator, Awaitable, Callable, Iterable

from .errors import MissingStreamError, StreamError

logger = logging.getLogger(__name__)

Chunk = bytes | bytearray | memoryview | str
ChunkSource = AsyncIterable[Chunk] | Iterable[Chunk]


def to_bytes(chunk: Any) -> bytes:
    if isinstance(chunk, bytes):
        return chunk
    if isinstance(chunk, (bytearray, memoryview)):
        return bytes(chunk)
    if isinstance(chunk, str):
        return chunk.encode("utf-8")
    raise StreamError(f"Unsupported chunk type: {type(chunk).__name__}")


async def _iter_chunks(stream: ChunkSource) -> AsyncIterator[bytes]:
    if isinstance(stream, (bytes, bytearray, memoryview, str)):
        yield to_bytes(stream)
    elif hasattr(stream, "__aiter__"):
        async for chunk in stream:
            yield to_bytes(chunk)
    else:
        for chunk in stream:
            yield to_bytes(chunk)


async def collect(stream: ChunkSource | None) -> bytes:
    """
    Consume a stream to completion and return its chunks concatenated
    in emission order.

    Raises MissingStreamError if stream is None and StreamError if the
    stream fails; no partial buffer is ever returned.
    """
    if stream is None:
        raise MissingStreamError("No stream to collect")

    chunks: list[bytes] = []
    try:
        async for chunk in _iter_chunks(stream):
            chunks.append(chunk)
    except StreamError:
        raise
    except Exception as e:
        raise StreamError(f"Stream failed after {len(chunks)} chunks: {e}") from e
    return b"".join(chunks)


async def copy_stream(stream: ChunkSource | None, sink: Any) -> int:
    """
    Write every chunk of stream into sink and return the number of bytes written.
    sink.write may be a plain or a coroutine function.
    """
    if stream is None:
        raise MissingStreamError("No stream to copy")

    written = 0
    chunks = _iter_chunks(stream)
    try:
        while True:
            try:
                chunk = await anext(chunks)
            except StopAsyncIteration:
                break
            except StreamError:
                raise
            except Exception as e:
                raise StreamError(f"Stream failed after {written} bytes: {e}") from e

            # Errors raised by the sink propagate unchanged.
            result = sink.write(chunk)
            if inspect.isawaitable(result):
                await result
            written += len(chunk)
    finally:
        await chunks.aclose()
    return written


class BlobStream:
    """
    Lazy byte stream over a single download.

    The stream can be iterated once. Ownership belongs to whoever holds it:
    drain it fully or call aclose(). `completed` only becomes True once every
    byte has been delivered and the delivered size matched the expected size.
    """

    def __init__(
        self,
        chunks: AsyncIterable[Chunk],
        size: int | None = None,
        name: str | None = None,
        request_id: str | None = None,
        on_close: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        self._chunks = chunks
        self.size = size
        self.name = name
        self.request_id = request_id
        self._on_close = on_close
        self._iterator: AsyncIterator[bytes] | None = None
        self._bytes_read = 0
        self._completed = False
        self._closed = False

    @property
    def bytes_read(self) -> int:
        return self._bytes_read

    @property
    def completed(self) -> bool:
        return self._completed

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> AsyncIterator[bytes]:
        if self._iterator is not None or self._closed:
            raise StreamError(f"Stream for '{self.name}' has already been consumed")
        self._iterator = self._iterate()
        return self._iterator

    async def __aenter__(self) -> "BlobStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def _iterate(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._chunks:
                data = to_bytes(chunk)
                self._bytes_read += len(data)
                yield data
        except StreamError:
            raise
        except Exception as e:
            raise StreamError(
                f"Download of '{self.name}' failed after {self._bytes_read} bytes: {e}"
            ) from e
        finally:
            await self._release()

        if self.size is not None and self._bytes_read != self.size:
            raise StreamError(
                f"Download of '{self.name}' ended after {self._bytes_read} "
                f"of {self.size} bytes"
            )
        self._completed = True

    async def _release(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._on_close is not None:
            await self._on_close()

    async def aclose(self) -> None:
        """Release the underlying download, whether or not it was drained."""
        if self._iterator is not None:
            await self._iterator.aclose()
        await self._release()
        if not self._completed:
            logger.debug(
                "Closed stream for '%s' after %d bytes without draining it",
                self.name,
                self._bytes_read,
            )
