"""Base storage driver interface."""

from abc import ABC, abstractmethod
from types import TracebackType
from typing import Any

import msgspec

from ..exceptions import MalformedError

JSON_CONTENT_TYPE = "application/json"
HTML_CONTENT_TYPE = "text/html"


def collection_path(key: str) -> str:
    """Artifact path holding a whole collection."""
    return f"{key}.json"


def encode_json(value: Any) -> bytes:
    """Serialize a collection value the way it is stored."""
    return msgspec.json.format(msgspec.json.encode(value), indent=2)


def decode_json(data: bytes, path: str) -> Any:
    """Parse stored JSON, reporting unparsable content as malformed."""
    try:
        return msgspec.json.decode(data)
    except msgspec.DecodeError as e:
        raise MalformedError(path, str(e)) from e


class Driver(ABC):
    """Abstract base class for storage drivers.

    A driver maps artifact paths to bytes in one physical store. Missing
    artifacts are reported as ``None`` (reads) or ``False`` (deletes);
    every other failure raises a ``StorageError`` subclass.
    """

    name = "base"

    @abstractmethod
    def read(self, path: str) -> bytes | None:
        """Read an artifact, or None if it does not exist."""
        pass

    @abstractmethod
    def write(
        self, path: str, data: bytes, content_type: str = JSON_CONTENT_TYPE
    ) -> None:
        """Create or overwrite an artifact."""
        pass

    @abstractmethod
    def delete(self, path: str) -> bool:
        """Delete an artifact, returning False if it did not exist."""
        pass

    @abstractmethod
    def keys(self, prefix: str = "") -> list[str]:
        """List artifact paths starting with prefix."""
        pass

    def close(self) -> None:
        """Release connections held by the driver."""
        pass

    def read_collection(self, key: str) -> bytes | None:
        """Read the artifact backing a collection."""
        return self.read(collection_path(key))

    def write_collection(self, key: str, data: bytes) -> None:
        """Overwrite the artifact backing a collection."""
        self.write(collection_path(key), data, JSON_CONTENT_TYPE)

    def describe(self) -> dict[str, Any]:
        """Describe the driver for status output."""
        return {"driver": self.name}

    def __enter__(self) -> "Driver":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
