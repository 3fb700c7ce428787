from dataclasses import dataclass, field

from .streams import BlobStream

DEFAULT_MEDIA_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class OperationResult:
    request_id: str | None


@dataclass(frozen=True)
class UploadResult:
    request_id: str | None
    created: bool  # False when an existing blob was overwritten


@dataclass
class UploadOptions:
    tier: str | None = None  # "Hot", "Cool", "Cold" or "Archive"
    content_type: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class BlobProperties:
    metadata: dict[str, str]
    etag: str | None
    content_type: str | None
    request_id: str | None


@dataclass
class DownloadResult:
    """
    A downloaded blob with its properties.

    Exactly one of `stream` and `buffer` is set. A stream is owned by the
    caller and must be drained or closed.
    """

    blob_name: str
    metadata: dict[str, str]
    etag: str | None
    content_type: str | None
    request_id: str | None
    stream: BlobStream | None = None
    buffer: bytes | None = None

    def __post_init__(self) -> None:
        if (self.stream is None) == (self.buffer is None):
            raise ValueError("DownloadResult needs exactly one of stream or buffer")

    @property
    def filename(self) -> str:
        return self.metadata.get("filename") or self.blob_name

    @property
    def media_type(self) -> str:
        return (
            self.content_type or self.metadata.get("contentType") or DEFAULT_MEDIA_TYPE
        )
