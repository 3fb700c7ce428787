import pytest

from blobfacade import (
    BufferPayload,
    ContentResolver,
    StreamError,
    StreamPayload,
    TextPayload,
    UnsupportedPayloadError,
)


@pytest.fixture
def resolver():
    return ContentResolver()


@pytest.mark.asyncio
async def test_text_length_is_encoded_byte_length(resolver):
    content = await resolver.resolve(TextPayload("hello"))
    assert content.length == 5
    assert content.body == b"hello"


@pytest.mark.asyncio
async def test_text_length_counts_multibyte_characters(resolver):
    content = await resolver.resolve(TextPayload("héllo"))
    assert content.length == 6
    assert len(content.body) == content.length


@pytest.mark.asyncio
async def test_text_uses_payload_encoding(resolver):
    content = await resolver.resolve(TextPayload("hi", encoding="utf-16-le"))
    assert content.length == 4
    assert content.body == "hi".encode("utf-16-le")


@pytest.mark.asyncio
async def test_bytes_buffer_is_passed_through(resolver):
    data = b"\x00\x01\x02"
    content = await resolver.resolve(BufferPayload(data))
    assert content.length == 3
    assert content.body is data


@pytest.mark.asyncio
async def test_bytearray_buffer_becomes_bytes(resolver):
    content = await resolver.resolve(BufferPayload(bytearray(b"\x00\x01\x02")))
    assert content.length == 3
    assert type(content.body) is bytes
    assert content.body == b"\x00\x01\x02"


@pytest.mark.asyncio
async def test_memoryview_length_is_in_bytes(resolver):
    view = memoryview(bytes(range(8))).cast("I")
    content = await resolver.resolve(BufferPayload(view))
    assert content.length == 8
    assert content.body == bytes(range(8))


@pytest.mark.asyncio
async def test_stream_is_materialized_once(resolver):
    calls = []

    async def produce():
        calls.append(True)
        for chunk in (b"ab", b"", b"cde"):
            yield chunk

    content = await resolver.resolve(StreamPayload(produce))

    assert content.length == 5
    assert content.body == b"abcde"
    assert calls == [True]


@pytest.mark.asyncio
async def test_stream_failure_is_stream_error(resolver):
    async def produce():
        yield b"abc"
        raise ConnectionError("source went away")

    with pytest.raises(StreamError):
        await resolver.resolve(StreamPayload(produce))


@pytest.mark.asyncio
async def test_stream_from_path(resolver, tmp_path):
    path = tmp_path / "cool-dog.jpg"
    path.write_bytes(b"\xff\xd8" + b"x" * 1000)

    content = await resolver.resolve(StreamPayload.from_path(path, chunk_size=64))

    assert content.length == 1002
    assert content.body == path.read_bytes()


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [b"raw bytes", "raw text", None, 42])
async def test_unsupported_payload_is_rejected(resolver, payload):
    with pytest.raises(UnsupportedPayloadError):
        await resolver.resolve(payload)
