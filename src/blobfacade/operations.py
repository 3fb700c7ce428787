import logging

from .client_cache import ClientCache
from .errors import ConflictError, NotFoundError
from .factory import create_adapter
from .logging_config import setup_logging
from .models import (
    BlobProperties,
    DownloadResult,
    OperationResult,
    UploadOptions,
    UploadResult,
)
from .payloads import ContentResolver, Payload
from .settings import StorageSettings
from .streams import collect

logger = logging.getLogger(__name__)


class BlobOperations:
    """
    Container and blob operations over a cached set of storage clients.

    Existence checks are advisory: the service stays the source of truth, so
    a container or blob may disappear between a check and the call that
    follows it. In that case the service's own error decides the outcome.
    """

    def __init__(
        self, cache: ClientCache, resolver: ContentResolver | None = None
    ) -> None:
        self.cache = cache
        self.resolver = resolver or ContentResolver()

    @classmethod
    def from_settings(
        cls, settings: StorageSettings, configure_logging: bool = False
    ) -> "BlobOperations":
        """
        Build operations for the configured backend.

        With configure_logging the blobfacade logger is set up from
        settings.log_level and settings.log_format.
        """
        if configure_logging:
            setup_logging(settings.log_level, settings.log_format)
        return cls(ClientCache(create_adapter(settings)))

    async def __aenter__(self) -> "BlobOperations":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self.cache.close()

    async def list_containers(self) -> list[str]:
        """List container names in service order."""
        service = self.cache.get_service_handle()
        names: list[str] = []
        logger.info("Containers:")
        async for name in service.list_container_names():
            names.append(name)
            logger.info("Container %d: %s", len(names), name)
        if not names:
            logger.info("No containers found")
        return names

    async def list_blobs(self, container_name: str) -> dict[str, BlobProperties] | None:
        """
        Return the properties of every blob in listing order, or None when
        the container does not exist.
        """
        container = self.cache.get_container_handle(container_name)
        if not await container.exists():
            logger.info("Container %s does not exist", container_name)
            return None

        logger.info('Blobs in "%s":', container_name)
        blobs: dict[str, BlobProperties] = {}
        async for blob_name in container.list_blob_names():
            properties = await container.get_blob(blob_name).get_properties()
            blobs[blob_name] = properties
            logger.info(
                "Blob %d: %s | metadata=%s etag=%s content_type=%s | %s",
                len(blobs),
                blob_name,
                properties.metadata,
                properties.etag,
                properties.content_type,
                properties.request_id,
            )
        if not blobs:
            logger.info("No blobs found")
        return blobs

    async def create_container(self, container_name: str) -> OperationResult | None:
        """Create a container; returns None if it already exists."""
        container = self.cache.get_container_handle(container_name)
        if await container.exists():
            logger.info("Container %s already exists", container_name)
            return None
        try:
            result = await container.create()
        except ConflictError:
            logger.info("Container %s already exists", container_name)
            return None
        logger.info(
            "Created container %s successfully | %s", container_name, result.request_id
        )
        return result

    async def upload_blob(
        self,
        container_name: str,
        blob_name: str,
        payload: Payload,
        options: UploadOptions | None = None,
    ) -> UploadResult:
        """Create or overwrite a blob with the payload contents."""
        options = options or UploadOptions()
        content = await self.resolver.resolve(payload)
        blob = self.cache.get_blob_handle(container_name, blob_name)

        # Only selects the log line: the upload itself overwrites.
        existed = await blob.exists()
        if existed:
            logger.info("Block blob %s already exists, updating...", blob_name)

        result = await blob.upload(
            content.body,
            content.length,
            content_type=options.content_type,
            metadata=options.metadata,
            tier=options.tier,
        )
        logger.info(
            "%s block blob %s successfully (%d bytes) | %s",
            "Updated" if existed else "Uploaded",
            blob_name,
            content.length,
            result.request_id,
        )
        return UploadResult(request_id=result.request_id, created=not existed)

    async def get_blob_properties(
        self, container_name: str, blob_name: str
    ) -> BlobProperties:
        blob = self.cache.get_blob_handle(container_name, blob_name)
        return await blob.get_properties()

    async def get_blob_buffer_stream(
        self, container_name: str, blob_name: str
    ) -> DownloadResult:
        """
        Open a blob for streaming. The returned stream belongs to the caller,
        who must drain or close it.
        """
        blob = self.cache.get_blob_handle(container_name, blob_name)
        properties = await blob.get_properties()
        stream = await blob.download()
        logger.info("Downloaded blob %s successfully | %s", blob_name, stream.request_id)
        return DownloadResult(
            blob_name=blob_name,
            metadata=properties.metadata,
            etag=properties.etag,
            content_type=properties.content_type,
            request_id=properties.request_id,
            stream=stream,
        )

    async def get_blob_buffer(
        self, container_name: str, blob_name: str
    ) -> DownloadResult:
        """
        Download a blob fully into memory. Prefer get_blob_buffer_stream
        when the content can be passed on as it arrives.
        """
        download = await self.get_blob_buffer_stream(container_name, blob_name)
        stream = download.stream
        try:
            buffer = await collect(stream)
        finally:
            await stream.aclose()
        return DownloadResult(
            blob_name=download.blob_name,
            metadata=download.metadata,
            etag=download.etag,
            content_type=download.content_type,
            request_id=download.request_id,
            buffer=buffer,
        )

    async def delete_container(self, container_name: str) -> OperationResult | None:
        """Delete a container; returns None if it does not exist."""
        container = self.cache.get_container_handle(container_name)
        if not await container.exists():
            logger.info("Container %s does not exist", container_name)
            return None
        try:
            result = await container.delete()
        except NotFoundError:
            self.cache.invalidate(container_name)
            logger.info("Container %s does not exist", container_name)
            return None
        self.cache.invalidate(container_name)
        logger.info(
            "Deleted container %s successfully | %s", container_name, result.request_id
        )
        return result

    async def delete_blob(self, container_name: str, blob_name: str) -> OperationResult:
        blob = self.cache.get_blob_handle(container_name, blob_name)
        result = await blob.delete()
        logger.info("Deleted blob %s successfully | %s", blob_name, result.request_id)
        return result
