from typing import AsyncIterator, Protocol

from .models import BlobProperties, OperationResult
from .streams import BlobStream


class AsyncBlobHandle(Protocol):
    """Represents a single blob in storage."""

    name: str

    async def exists(self) -> bool:
        """Return True if the blob exists."""
        ...

    async def upload(
        self,
        body: bytes | bytearray | memoryview,
        length: int,
        *,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
        tier: str | None = None,
    ) -> OperationResult:
        """Create or overwrite the blob with `length` bytes of body."""
        ...

    async def get_properties(self) -> BlobProperties:
        """Return metadata, etag and content type without downloading."""
        ...

    async def download(self) -> BlobStream:
        """Open a download stream over the blob contents."""
        ...

    async def delete(self) -> OperationResult:
        """Delete blob."""
        ...


class AsyncContainerHandle(Protocol):
    """Represents a container/bucket in storage."""

    name: str

    def get_blob(self, blob_name: str) -> AsyncBlobHandle:
        """Return a handle to a blob."""
        ...

    async def exists(self) -> bool:
        """Return True if the container exists."""
        ...

    async def create(self) -> OperationResult:
        """Create the container."""
        ...

    async def delete(self) -> OperationResult:
        """Delete the container and everything in it."""
        ...

    def list_blob_names(self) -> AsyncIterator[str]:
        """Iterate blob names in listing order."""
        ...


class AsyncStorageAdapter(Protocol):
    """Protocol for a storage backend adapter."""

    def get_container(self, container_name: str) -> AsyncContainerHandle:
        """Return a handle to a container. Must not perform network calls."""
        ...

    def list_container_names(self) -> AsyncIterator[str]:
        """Iterate container names in listing order."""
        ...

    async def close(self) -> None:
        """Close any resources/connections."""
        ...
