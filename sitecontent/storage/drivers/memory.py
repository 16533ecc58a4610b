"""In-memory storage driver for testing."""

from typing import Any

from .base import JSON_CONTENT_TYPE, Driver


class MemoryDriver(Driver):
    """In-memory storage driver for testing purposes."""

    name = "memory"

    def __init__(self, initial: dict[str, bytes] | None = None):
        self._data: dict[str, bytes] = dict(initial or {})
        self._content_types: dict[str, str] = {}

    def read(self, path: str) -> bytes | None:
        """Read artifact bytes."""
        return self._data.get(path)

    def write(
        self, path: str, data: bytes, content_type: str = JSON_CONTENT_TYPE
    ) -> None:
        """Write artifact bytes."""
        self._data[path] = bytes(data)
        self._content_types[path] = content_type

    def delete(self, path: str) -> bool:
        """Delete an artifact."""
        self._content_types.pop(path, None)
        return self._data.pop(path, None) is not None

    def keys(self, prefix: str = "") -> list[str]:
        """List stored artifact paths."""
        return sorted(path for path in self._data if path.startswith(prefix))

    def content_type(self, path: str) -> str | None:
        """Content type an artifact was written with."""
        return self._content_types.get(path)

    def describe(self) -> dict[str, Any]:
        return {"driver": self.name, "artifacts": len(self._data)}
