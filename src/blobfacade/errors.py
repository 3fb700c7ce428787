class BlobFacadeError(Exception):
    """Base class for all blobfacade errors."""

    pass


class ConfigurationError(BlobFacadeError):
    """Raised when the storage account identity or settings are missing or invalid."""

    pass


class RemoteError(BlobFacadeError):
    """Raised when the storage service rejects a request."""

    def __init__(self, message: str, request_id: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.request_id = request_id

    def __str__(self) -> str:
        if self.request_id:
            return f"{self.message} (request id: {self.request_id})"
        return self.message


class NotFoundError(RemoteError):
    """Raised when a requested container or blob does not exist."""

    pass


class ConflictError(RemoteError):
    """Raised when a container or blob already exists."""

    pass


class TransportError(RemoteError):
    """Raised on network or service failures other than not-found/conflict."""

    pass


class StreamError(BlobFacadeError):
    """Raised when draining a download or upload source stream fails."""

    pass


class MissingStreamError(StreamError):
    """Raised when a stream was expected but none was provided."""

    pass


class UnsupportedPayloadError(BlobFacadeError):
    """Raised when an upload payload is not one of the supported variants."""

    pass
