"""
blobfacade
==========

Async facade over Azure Blob Storage (or a local directory) with cached
container clients and streaming downloads.

Main entry points:
- BlobOperations: container and blob operations
- ClientCache: service handle plus one cached client per container
- TextPayload, BufferPayload, StreamPayload: upload payloads
- BlobStream, collect, copy_stream: download streaming
- StorageSettings: environment configuration
- LocalFileAdapter, AzureBlobAdapter: storage backends

Example:
    from blobfacade import BlobOperations, StorageSettings, TextPayload

    async with BlobOperations.from_settings(StorageSettings.from_env()) as ops:
        await ops.create_container("documents")
        await ops.upload_blob("documents", "hello.txt", TextPayload("hello"))
        download = await ops.get_blob_buffer("documents", "hello.txt")
"""

from .operations import BlobOperations
from .client_cache import ClientCache

from .errors import (
    BlobFacadeError,
    ConfigurationError,
    ConflictError,
    MissingStreamError,
    NotFoundError,
    RemoteError,
    StreamError,
    TransportError,
    UnsupportedPayloadError,
)
from .models import (
    BlobProperties,
    DownloadResult,
    OperationResult,
    UploadOptions,
    UploadResult,
)
from .payloads import (
    BufferPayload,
    ContentResolver,
    Payload,
    ResolvedContent,
    StreamPayload,
    TextPayload,
)
from .streams import BlobStream, collect, copy_stream

from .storage_protocols import (
    AsyncStorageAdapter,
    AsyncContainerHandle,
    AsyncBlobHandle,
)
from .local_file_adapter import LocalFileAdapter
from .azure_blob_adapter import AzureBlobAdapter
from .factory import create_adapter
from .settings import StorageSettings
from .logging_config import setup_logging

import importlib.metadata

try:
    __version__ = importlib.metadata.version(__name__)
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "BlobOperations",
    "ClientCache",
    "BlobFacadeError",
    "ConfigurationError",
    "ConflictError",
    "MissingStreamError",
    "NotFoundError",
    "RemoteError",
    "StreamError",
    "TransportError",
    "UnsupportedPayloadError",
    "BlobProperties",
    "DownloadResult",
    "OperationResult",
    "UploadOptions",
    "UploadResult",
    "BufferPayload",
    "ContentResolver",
    "Payload",
    "ResolvedContent",
    "StreamPayload",
    "TextPayload",
    "BlobStream",
    "collect",
    "copy_stream",
    "AsyncStorageAdapter",
    "AsyncContainerHandle",
    "AsyncBlobHandle",
    "LocalFileAdapter",
    "AzureBlobAdapter",
    "create_adapter",
    "StorageSettings",
    "setup_logging",
]
