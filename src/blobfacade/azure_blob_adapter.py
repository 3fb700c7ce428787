import logging
import mimetypes
from typing import Any, AsyncIterator

from azure.core.exceptions import (
    AzureError,
    HttpResponseError,
    ResourceExistsError,
    ResourceNotFoundError,
)
from azure.identity.aio import DefaultAzureCredential
from azure.storage.blob import ContentSettings, StandardBlobTier
from azure.storage.blob.aio import BlobServiceClient

from .errors import ConflictError, NotFoundError, RemoteError, TransportError
from .models import BlobProperties, OperationResult
from .payloads import as_bytes
from .storage_protocols import (
    AsyncBlobHandle,
    AsyncContainerHandle,
    AsyncStorageAdapter,
)
from .streams import BlobStream

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "x-ms-request-id"


def account_url_for(account_name: str) -> str:
    return f"https://{account_name}.blob.core.windows.net"


class _RequestIdHook:
    """raw_response_hook that remembers the service request id."""

    def __init__(self) -> None:
        self.request_id: str | None = None

    def __call__(self, response) -> None:
        self.request_id = response.http_response.headers.get(REQUEST_ID_HEADER)


def _request_id_of(error: AzureError) -> str | None:
    response = getattr(error, "response", None)
    if response is None:
        return None
    return response.headers.get(REQUEST_ID_HEADER)


def _translate_error(error: AzureError, subject: str) -> RemoteError:
    request_id = _request_id_of(error)
    if isinstance(error, ResourceNotFoundError) or (
        isinstance(error, HttpResponseError) and error.status_code == 404
    ):
        return NotFoundError(f"{subject} not found", request_id)
    if isinstance(error, ResourceExistsError):
        return ConflictError(f"{subject} already exists", request_id)
    return TransportError(f"{subject}: {error.message}", request_id)


class AzureBlobAdapter(AsyncStorageAdapter):
    """Azure Blob Storage adapter."""

    def __init__(
        self, blob_service_client: BlobServiceClient, credential: Any = None
    ) -> None:
        """
        Create an adapter from an existing BlobServiceClient.
        This allows custom authentication and configuration. A credential
        passed here is closed together with the adapter.
        """
        self._client = blob_service_client
        self._credential = credential

    @classmethod
    def from_connection_string(
        cls, connection_string: str, **client_options: Any
    ) -> "AzureBlobAdapter":
        """
        Convenience builder: create adapter from a connection string.
        """
        client = BlobServiceClient.from_connection_string(
            connection_string, **client_options
        )
        return cls(client)

    @classmethod
    def from_account(
        cls,
        account_name: str,
        account_url: str | None = None,
        **client_options: Any,
    ) -> "AzureBlobAdapter":
        """
        Create adapter for a named storage account, authenticated with
        DefaultAzureCredential (environment, managed identity, Azure CLI, ...).
        """
        credential = DefaultAzureCredential()
        client = BlobServiceClient(
            account_url or account_url_for(account_name),
            credential=credential,
            **client_options,
        )
        return cls(client, credential=credential)

    @property
    def account_name(self) -> str | None:
        return self._client.account_name

    def get_container(self, container_name: str) -> AsyncContainerHandle:
        return _AzureContainerHandle(self._client.get_container_client(container_name))

    async def list_container_names(self) -> AsyncIterator[str]:
        try:
            async for container in self._client.list_containers():
                yield container.name
        except AzureError as e:
            raise _translate_error(e, "Container listing") from e

    async def close(self) -> None:
        await self._client.close()
        if self._credential is not None:
            await self._credential.close()


class _AzureContainerHandle(AsyncContainerHandle):
    def __init__(self, container_client):
        self._container_client = container_client
        self.name = container_client.container_name

    def get_blob(self, blob_name: str) -> AsyncBlobHandle:
        return _AzureBlobHandle(self._container_client.get_blob_client(blob_name))

    async def exists(self) -> bool:
        try:
            return await self._container_client.exists()
        except AzureError as e:
            raise _translate_error(e, f"Container '{self.name}'") from e

    async def create(self) -> OperationResult:
        hook = _RequestIdHook()
        try:
            response = await self._container_client.create_container(
                raw_response_hook=hook
            )
        except AzureError as e:
            raise _translate_error(e, f"Container '{self.name}'") from e
        return OperationResult(request_id=response.get("request_id") or hook.request_id)

    async def delete(self) -> OperationResult:
        hook = _RequestIdHook()
        try:
            await self._container_client.delete_container(raw_response_hook=hook)
        except AzureError as e:
            raise _translate_error(e, f"Container '{self.name}'") from e
        return OperationResult(request_id=hook.request_id)

    async def list_blob_names(self) -> AsyncIterator[str]:
        try:
            async for blob in self._container_client.list_blobs():
                yield blob.name
        except AzureError as e:
            raise _translate_error(e, f"Container '{self.name}'") from e


class _AzureBlobHandle(AsyncBlobHandle):
    def __init__(self, blob_client):
        self._blob_client = blob_client
        self.name = blob_client.blob_name

    @property
    def _subject(self) -> str:
        return f"Blob '{self.name}' in container '{self._blob_client.container_name}'"

    async def exists(self) -> bool:
        try:
            return await self._blob_client.exists()
        except AzureError as e:
            raise _translate_error(e, self._subject) from e

    async def upload(
        self,
        body: bytes | bytearray | memoryview,
        length: int,
        *,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
        tier: str | None = None,
    ) -> OperationResult:
        """Note: Guesses content type if not provided."""

        if content_type is None:
            guessed, _ = mimetypes.guess_type(self.name)
            content_type = guessed or "application/octet-stream"

        hook = _RequestIdHook()
        kwargs: dict[str, Any] = {
            "length": length,
            "overwrite": True,
            "content_settings": ContentSettings(content_type=content_type),
            "raw_response_hook": hook,
        }
        if metadata:
            kwargs["metadata"] = metadata
        if tier:
            kwargs["standard_blob_tier"] = StandardBlobTier(tier.capitalize())
        # upload_blob iterates bytearray and memoryview bodies as ints.
        try:
            response = await self._blob_client.upload_blob(as_bytes(body), **kwargs)
        except AzureError as e:
            raise _translate_error(e, self._subject) from e
        return OperationResult(request_id=response.get("request_id") or hook.request_id)

    async def get_properties(self) -> BlobProperties:
        hook = _RequestIdHook()
        try:
            props = await self._blob_client.get_blob_properties(raw_response_hook=hook)
        except AzureError as e:
            raise _translate_error(e, self._subject) from e
        return BlobProperties(
            metadata=dict(props.metadata or {}),
            etag=props.etag,
            content_type=props.content_settings.content_type,
            request_id=hook.request_id,
        )

    async def download(self) -> BlobStream:
        hook = _RequestIdHook()
        try:
            downloader = await self._blob_client.download_blob(raw_response_hook=hook)
        except AzureError as e:
            raise _translate_error(e, self._subject) from e
        return BlobStream(
            downloader.chunks(),
            size=downloader.size,
            name=self.name,
            request_id=hook.request_id,
        )

    async def delete(self) -> OperationResult:
        hook = _RequestIdHook()
        try:
            await self._blob_client.delete_blob(raw_response_hook=hook)
        except AzureError as e:
            raise _translate_error(e, self._subject) from e
        return OperationResult(request_id=hook.request_id)
