from types import SimpleNamespace

import pytest
from azure.core.exceptions import HttpResponseError, ResourceNotFoundError

from blobfacade import AzureBlobAdapter, NotFoundError, TransportError
from blobfacade.azure_blob_adapter import (
    _AzureContainerHandle,
    _RequestIdHook,
    _translate_error,
)

# Nothing listens on port 1, so every request fails fast without retries.
UNREACHABLE = (
    "DefaultEndpointsProtocol=http;AccountName=devstoreaccount1;"
    "AccountKey=a2V5;BlobEndpoint=http://127.0.0.1:1/devstoreaccount1;"
)

BUFFERS = [
    pytest.param(b"\x00\x01\x02\x03\x04\x05\x06\x07", id="bytes"),
    pytest.param(bytearray(b"\x00\x01\x02\x03\x04\x05\x06\x07"), id="bytearray"),
    pytest.param(memoryview(bytes(range(8))).cast("I"), id="memoryview-cast"),
]


def pipeline_response(request_id):
    return SimpleNamespace(
        http_response=SimpleNamespace(headers={"x-ms-request-id": request_id})
    )


class FakeContainerClient:
    """Container client that answers through raw_response_hook like the SDK."""

    container_name = "photos"

    async def create_container(self, raw_response_hook=None):
        raw_response_hook(pipeline_response("create-1"))
        return {}

    async def delete_container(self, raw_response_hook=None):
        raw_response_hook(pipeline_response("delete-1"))


@pytest.mark.asyncio
@pytest.mark.parametrize("body", BUFFERS)
async def test_upload_hands_bytes_to_sdk(body, monkeypatch):
    adapter = AzureBlobAdapter.from_connection_string(UNREACHABLE)
    blob = adapter.get_container("photos").get_blob("raw.bin")
    sent = {}

    async def upload_blob(data, **kwargs):
        sent["data"] = data
        sent["length"] = kwargs["length"]
        kwargs["raw_response_hook"](pipeline_response("upload-1"))
        return {}

    monkeypatch.setattr(blob._blob_client, "upload_blob", upload_blob)
    try:
        result = await blob.upload(body, memoryview(body).nbytes)
    finally:
        await adapter.close()

    assert type(sent["data"]) is bytes
    assert sent["data"] == bytes(range(8))
    assert sent["length"] == 8
    assert result.request_id == "upload-1"


@pytest.mark.asyncio
@pytest.mark.parametrize("body", BUFFERS)
async def test_upload_failure_is_transport_error(body):
    adapter = AzureBlobAdapter.from_connection_string(UNREACHABLE, retry_total=0)
    blob = adapter.get_container("photos").get_blob("raw.bin")
    try:
        with pytest.raises(TransportError):
            await blob.upload(body, memoryview(body).nbytes)
    finally:
        await adapter.close()


def test_request_id_hook_reads_header():
    hook = _RequestIdHook()
    hook(pipeline_response("abc-123"))
    assert hook.request_id == "abc-123"


@pytest.mark.asyncio
async def test_container_results_carry_request_id():
    container = _AzureContainerHandle(FakeContainerClient())
    assert (await container.create()).request_id == "create-1"
    assert (await container.delete()).request_id == "delete-1"


def test_translated_error_carries_response_request_id():
    error = HttpResponseError("server busy")
    error.response = SimpleNamespace(headers={"x-ms-request-id": "req-42"})

    translated = _translate_error(error, "Container 'c'")

    assert isinstance(translated, TransportError)
    assert translated.request_id == "req-42"
    assert "(request id: req-42)" in str(translated)


def test_translated_not_found_carries_response_request_id():
    error = ResourceNotFoundError("gone")
    error.response = SimpleNamespace(headers={"x-ms-request-id": "req-404"})

    translated = _translate_error(error, "Blob 'a'")

    assert isinstance(translated, NotFoundError)
    assert translated.request_id == "req-404"


def test_error_without_response_has_no_request_id():
    assert _translate_error(HttpResponseError("boom"), "Blob 'a'").request_id is None
