"""Exception classes for the storage layer."""


class StorageError(Exception):
    """Base exception for storage-related errors."""

    code = "storage_error"

    def __init__(self, message: str, path: str | None = None):
        """Initialize with message and the artifact path involved."""
        self.path = path
        super().__init__(message)


class NotFoundError(StorageError):
    """Raised when an artifact does not exist."""

    code = "not_found"

    def __init__(self, path: str):
        """Initialize with artifact path."""
        super().__init__(f"Artifact not found: {path}", path=path)


class UnauthorizedError(StorageError):
    """Raised when credentials are missing or rejected by the backend."""

    code = "unauthorized"


class ConflictError(StorageError):
    """Raised when a write would clobber a newer revision or non-empty data."""

    code = "conflict"


class TransientError(StorageError):
    """Raised on network failures, timeouts and retryable server errors."""

    code = "transient"


class MalformedError(StorageError):
    """Raised when stored content cannot be parsed as structured data."""

    code = "malformed"

    def __init__(self, path: str, details: str = ""):
        """Initialize with path and parser details."""
        message = f"Malformed content at {path}"
        if details:
            message += f": {details}"
        super().__init__(message, path=path)
