import logging
import threading

from .errors import ConfigurationError
from .storage_protocols import (
    AsyncBlobHandle,
    AsyncContainerHandle,
    AsyncStorageAdapter,
)

logger = logging.getLogger(__name__)


class ClientCache:
    """
    Owns the process-wide service handle and one container handle per
    container name.

    Handles are created lazily and never involve a network round trip.
    Insertion is atomic: concurrent callers asking for the same unseen name
    all receive the same handle object. The lock is never held across an
    await, so it is safe to share between coroutines and threads.
    """

    def __init__(self, service: AsyncStorageAdapter | None) -> None:
        self._service = service
        self._containers: dict[str, AsyncContainerHandle] = {}
        self._lock = threading.Lock()

    def __contains__(self, container_name: str) -> bool:
        return container_name in self._containers

    def __len__(self) -> int:
        return len(self._containers)

    def get_service_handle(self) -> AsyncStorageAdapter:
        if self._service is None:
            raise ConfigurationError(
                "No storage service configured: supply a storage account "
                "name, connection string or local path at startup"
            )
        return self._service

    def get_container_handle(self, container_name: str) -> AsyncContainerHandle:
        handle = self._containers.get(container_name)
        if handle is not None:
            return handle

        with self._lock:
            handle = self._containers.get(container_name)
            if handle is None:
                handle = self.get_service_handle().get_container(container_name)
                self._containers[container_name] = handle
                logger.debug("Cached client for container '%s'", container_name)
        return handle

    def get_blob_handle(self, container_name: str, blob_name: str) -> AsyncBlobHandle:
        return self.get_container_handle(container_name).get_blob(blob_name)

    def invalidate(self, container_name: str) -> None:
        with self._lock:
            if self._containers.pop(container_name, None) is not None:
                logger.debug("Dropped client for container '%s'", container_name)

    async def close(self) -> None:
        """Drop every cached handle and close the service handle."""
        with self._lock:
            self._containers.clear()
        if self._service is not None:
            await self._service.close()
