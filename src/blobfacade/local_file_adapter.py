import asyncio
import hashlib
import json
import logging
import mimetypes
import shutil
import uuid
from pathlib import Path
from typing import AsyncIterator

from .errors import ConflictError, NotFoundError
from .models import BlobProperties, OperationResult
from .payloads import as_bytes
from .storage_protocols import (
    AsyncBlobHandle,
    AsyncContainerHandle,
    AsyncStorageAdapter,
)
from .streams import BlobStream

logger = logging.getLogger(__name__)

META_DIR = ".blobmeta"
DOWNLOAD_CHUNK_SIZE = 64 * 1024


def _ensure_within(base: Path, target: Path, strict: bool = True) -> Path:
    """
    Resolve target path and ensure it is inside base path.
    strict=True will fail if the target does not exist (good for read/delete).
    strict=False allows non-existing targets, existing symlinks on the way are
    still followed so they cannot be used to escape.
    """
    base_resolved = base.resolve()
    target_resolved = target.resolve(strict=strict)
    if target_resolved != base_resolved and not target_resolved.is_relative_to(
        base_resolved
    ):
        raise ValueError(
            f"Path {target_resolved} escapes base directory {base_resolved}"
        )
    return target_resolved


def _new_request_id() -> str:
    return str(uuid.uuid4())


class _LockRegistry:
    """Per-adapter blob locks keyed by resolved file path."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def get(self, path: Path) -> asyncio.Lock:
        key = str(path.resolve())
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    def discard(self, path: Path) -> None:
        key = str(path.resolve())
        lock = self._locks.get(key)
        if lock is not None and not lock.locked():
            del self._locks[key]

    def discard_under(self, directory: Path) -> None:
        for key in list(self._locks):
            if Path(key).is_relative_to(directory) and not self._locks[key].locked():
                del self._locks[key]


class LocalFileAdapter(AsyncStorageAdapter):
    """
    Local filesystem adapter.

    Containers are directories under base_path, blobs are files inside them.
    Blob properties (metadata, content type, etag) live in JSON sidecar files
    under base_path/.blobmeta/<container>/.
    """

    def __init__(self, base_path: str | Path):
        self._base_path = Path(base_path).resolve()
        self._base_path.mkdir(parents=True, exist_ok=True)
        self._locks = _LockRegistry()

    def get_container(self, container_name: str) -> AsyncContainerHandle:
        if not container_name or container_name.startswith("."):
            raise ValueError(f"Invalid container name: {container_name!r}")
        container_path = _ensure_within(
            self._base_path, self._base_path / container_name, strict=False
        )
        meta_path = self._base_path / META_DIR / container_name
        return _LocalContainerHandle(
            container_name, container_path, meta_path, self._locks
        )

    async def list_container_names(self) -> AsyncIterator[str]:
        for path in sorted(self._base_path.iterdir()):
            if path.is_dir() and not path.name.startswith("."):
                yield path.name

    async def close(self) -> None:
        pass


class _LocalContainerHandle(AsyncContainerHandle):
    def __init__(
        self, name: str, container_path: Path, meta_path: Path, locks: _LockRegistry
    ):
        self.name = name
        self._container_path = container_path
        self._meta_path = meta_path
        self._locks = locks

    def get_blob(self, blob_name: str) -> AsyncBlobHandle:
        blob_path = _ensure_within(
            self._container_path, self._container_path / blob_name, strict=False
        )
        meta_path = self._meta_path / f"{blob_name}.json"
        return _LocalBlobHandle(
            blob_name, blob_path, meta_path, self._container_path, self._locks
        )

    def _require(self) -> None:
        if not self._container_path.is_dir():
            raise NotFoundError(f"Container '{self.name}' not found")

    async def exists(self) -> bool:
        return self._container_path.is_dir()

    async def create(self) -> OperationResult:
        if self._container_path.exists():
            raise ConflictError(f"Container '{self.name}' already exists")
        self._container_path.mkdir(parents=True)
        return OperationResult(request_id=_new_request_id())

    async def delete(self) -> OperationResult:
        self._require()
        shutil.rmtree(self._container_path)
        shutil.rmtree(self._meta_path, ignore_errors=True)
        self._locks.discard_under(self._container_path)
        return OperationResult(request_id=_new_request_id())

    async def list_blob_names(self) -> AsyncIterator[str]:
        self._require()
        names: list[str] = []
        for path in self._container_path.rglob("*"):
            if path.is_file():
                # Strict resolve to catch symlink escapes
                _ensure_within(self._container_path, path, strict=True)
                names.append(path.relative_to(self._container_path).as_posix())
        for name in sorted(names):
            yield name


class _LocalBlobHandle(AsyncBlobHandle):
    def __init__(
        self,
        name: str,
        file_path: Path,
        meta_path: Path,
        container_path: Path,
        locks: _LockRegistry,
    ):
        self.name = name
        self._file_path = file_path
        self._meta_path = meta_path
        self._container_path = container_path
        self._locks = locks
        self._lock = locks.get(file_path)

    def _require(self) -> None:
        if not self._container_path.is_dir():
            raise NotFoundError(f"Container '{self._container_path.name}' not found")
        if not self._file_path.is_file():
            raise NotFoundError(f"Blob '{self.name}' not found")
        _ensure_within(self._container_path, self._file_path, strict=True)

    async def exists(self) -> bool:
        return self._file_path.is_file()

    async def upload(
        self,
        body: bytes | bytearray | memoryview,
        length: int,
        *,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
        tier: str | None = None,
    ) -> OperationResult:
        if not self._container_path.is_dir():
            raise NotFoundError(f"Container '{self._container_path.name}' not found")
        data = as_bytes(body)
        if len(data) != length:
            raise ValueError(f"Body is {len(data)} bytes but length is {length}")
        if content_type is None:
            guessed, _ = mimetypes.guess_type(self.name)
            content_type = guessed or "application/octet-stream"

        _ensure_within(self._container_path, self._file_path, strict=False)
        properties = {
            "metadata": dict(metadata or {}),
            "content_type": content_type,
            "etag": f'"{hashlib.md5(data).hexdigest()}"',
            "tier": tier,
        }
        async with self._lock:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_bytes(data)
            self._meta_path.parent.mkdir(parents=True, exist_ok=True)
            self._meta_path.write_text(json.dumps(properties), encoding="utf-8")
        return OperationResult(request_id=_new_request_id())

    async def get_properties(self) -> BlobProperties:
        self._require()
        async with self._lock:
            if self._meta_path.exists():
                properties = json.loads(self._meta_path.read_text(encoding="utf-8"))
            else:
                # Blob written outside this adapter
                content = self._file_path.read_bytes()
                properties = {"etag": f'"{hashlib.md5(content).hexdigest()}"'}
        return BlobProperties(
            metadata=properties.get("metadata", {}),
            etag=properties.get("etag"),
            content_type=properties.get("content_type"),
            request_id=_new_request_id(),
        )

    async def download(self) -> BlobStream:
        self._require()
        async with self._lock:
            data = self._file_path.read_bytes()

        async def chunks() -> AsyncIterator[bytes]:
            for start in range(0, len(data), DOWNLOAD_CHUNK_SIZE):
                yield data[start : start + DOWNLOAD_CHUNK_SIZE]

        return BlobStream(
            chunks(), size=len(data), name=self.name, request_id=_new_request_id()
        )

    async def delete(self) -> OperationResult:
        self._require()
        async with self._lock:
            self._file_path.unlink()
            self._meta_path.unlink(missing_ok=True)
        self._locks.discard(self._file_path)
        return OperationResult(request_id=_new_request_id())
