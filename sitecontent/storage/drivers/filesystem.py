"""Local filesystem storage driver."""

import fcntl
import logging
import tempfile
import threading
from pathlib import Path
from typing import Any

from ..exceptions import StorageError
from .base import JSON_CONTENT_TYPE, Driver

logger = logging.getLogger(__name__)


class FileSystemDriver(Driver):
    """Stores each artifact as a file below a data directory."""

    name = "filesystem"

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self._lock = threading.RLock()
        self.initialize()

    def initialize(self) -> None:
        """Create the data directory."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _safe_segment(self, segment: str) -> str:
        """Convert one path segment to a safe filename."""
        safe = "".join(c if c.isalnum() or c in "-_." else "_" for c in segment)
        return safe.lstrip(".") or "_"

    def _get_path(self, path: str) -> Path:
        """Get the file path for an artifact path."""
        segments = [self._safe_segment(s) for s in path.strip("/").split("/") if s]
        if not segments:
            raise StorageError(f"Invalid artifact path: {path!r}", path=path)
        return self.data_dir.joinpath(*segments)

    def read(self, path: str) -> bytes | None:
        """Read artifact bytes from disk."""
        file_path = self._get_path(path)
        try:
            with open(file_path, "rb") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    return f.read()
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Cannot read {file_path}: {e}", path=path) from e

    def write(
        self, path: str, data: bytes, content_type: str = JSON_CONTENT_TYPE
    ) -> None:
        """Write artifact bytes atomically."""
        file_path = self._get_path(path)

        with self._lock:
            try:
                file_path.parent.mkdir(parents=True, exist_ok=True)
                temp_fd, temp_path = tempfile.mkstemp(
                    dir=file_path.parent, suffix=".tmp"
                )
            except OSError as e:
                raise StorageError(f"Cannot write {file_path}: {e}", path=path) from e

            try:
                with open(temp_fd, "wb") as f:
                    f.write(data)
                Path(temp_path).replace(file_path)
            except OSError as e:
                Path(temp_path).unlink(missing_ok=True)
                raise StorageError(f"Cannot write {file_path}: {e}", path=path) from e

        logger.debug("Saved %s (%d bytes)", file_path, len(data))

    def delete(self, path: str) -> bool:
        """Delete an artifact file."""
        file_path = self._get_path(path)
        with self._lock:
            try:
                file_path.unlink()
                return True
            except FileNotFoundError:
                return False
            except OSError as e:
                raise StorageError(f"Cannot delete {file_path}: {e}", path=path) from e

    def keys(self, prefix: str = "") -> list[str]:
        """List artifact paths below the data directory."""
        if not self.data_dir.exists():
            return []
        paths = []
        for file_path in self.data_dir.rglob("*"):
            if not file_path.is_file() or file_path.suffix == ".tmp":
                continue
            relative = file_path.relative_to(self.data_dir).as_posix()
            if relative.startswith(prefix):
                paths.append(relative)
        return sorted(paths)

    def describe(self) -> dict[str, Any]:
        return {"driver": self.name, "data_dir": str(self.data_dir)}
