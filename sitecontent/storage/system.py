"""Integrated content store bringing together all components.

Provides a unified interface for:
- Backend selection from configuration, once per process
- Cached reads of the whole content graph
- Whole-collection writes reported as machine-readable results
- Externalized body artifacts
- Legacy migration status and execution
"""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sitecontent.config import StorageConfig, load_config
from sitecontent.core.exceptions import InvalidContentError, UnknownCollectionError
from sitecontent.core.models import COLLECTIONS, get_collection

from .bodies import BodyStore, make_ref
from .cache import ReadCache
from .events import EventBus
from .exceptions import StorageError
from .migrations import MigrationEngine, MigrationStatus, MigrationSummary
from .repository import ContentRepository
from .selector import DriverSelection, select

logger = logging.getLogger(__name__)


@dataclass
class WriteResult:
    """Outcome of a write through the content store."""

    success: bool
    key: str
    error: str | None = None
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "key": self.key,
            "error": self.error,
            "message": self.message,
        }


def _failure(key: str, error: Exception) -> WriteResult:
    code = getattr(error, "code", "storage_error")
    return WriteResult(success=False, key=key, error=code, message=str(error))


class ContentStore:
    """Complete content store integrating all components."""

    def __init__(
        self,
        selection: DriverSelection,
        cache_ttl: float = 300.0,
        event_bus: EventBus | None = None,
        migration_workers: int = 1,
    ):
        self.selection = selection
        self.driver = selection.driver
        self.event_bus = event_bus or EventBus()
        self.cache = ReadCache(ttl=cache_ttl)
        self.bodies = BodyStore(self.driver)
        self.repository = ContentRepository(
            self.driver, cache=self.cache, bodies=self.bodies, event_bus=self.event_bus
        )
        self.migrations = MigrationEngine(
            self.repository, event_bus=self.event_bus, max_workers=migration_workers
        )

    @classmethod
    def from_config(cls, config: StorageConfig, **kwargs: Any) -> ContentStore:
        """Select a driver for the configuration and build the store."""
        return cls(select(config), cache_ttl=config.cache_ttl, **kwargs)

    @classmethod
    def from_environment(
        cls,
        config_path: Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> ContentStore:
        """Build a store from config files and environment variables."""
        return cls.from_config(load_config(config_path, environ))

    # Reads

    def fetch_all(self) -> dict[str, Any]:
        """Return the content graph, served from cache while fresh.

        If loading fails, the last snapshot that loaded successfully is
        returned, and collection defaults when there is none. Callers get
        a copy and may modify it without touching the cache.
        """
        try:
            return copy.deepcopy(self.repository.get_cached_or_load())
        except StorageError as e:
            last_good = self.cache.last_good
            if last_good is not None:
                logger.error("Failed to load content, serving last snapshot: %s", e)
                return copy.deepcopy(last_good)
            logger.error("Failed to load content, serving defaults: %s", e)
            return {key: spec.default() for key, spec in COLLECTIONS.items()}

    def fetch(self, key: str) -> Any:
        """Return one collection from the content graph."""
        get_collection(key)
        return self.fetch_all()[key]

    # Writes

    def submit(self, key: str, value: Any) -> WriteResult:
        """Replace a whole collection, reporting failures as a result."""
        try:
            self.repository.save(key, value)
        except (UnknownCollectionError, InvalidContentError, StorageError) as e:
            logger.error("Failed to save %s: %s", key, e)
            return _failure(key, e)
        return WriteResult(success=True, key=key, message=f"Saved {key}")

    # Bodies

    def write_body(self, key: str, record_id: Any, html: str) -> WriteResult:
        """Store the body artifact of a record."""
        try:
            get_collection(key)
            ref = self.bodies.externalize(key, record_id, html)["content_file"]
        except (UnknownCollectionError, InvalidContentError, StorageError) as e:
            logger.error("Failed to save body %s/%s: %s", key, record_id, e)
            return _failure(key, e)
        return WriteResult(success=True, key=key, message=ref)

    def read_body(self, key: str, record_id: Any) -> str:
        """Load the body artifact of a record, ``""`` if it does not exist.

        Raises:
            InvalidContentError: If the id cannot name a content file
        """
        get_collection(key)
        return self.bodies.hydrate(make_ref(key, record_id))

    def delete_body(self, key: str, record_id: Any) -> WriteResult:
        """Delete the body artifact of a record."""
        try:
            get_collection(key)
            self.bodies.remove(make_ref(key, record_id))
        except (UnknownCollectionError, InvalidContentError, StorageError) as e:
            logger.error("Failed to delete body %s/%s: %s", key, record_id, e)
            return _failure(key, e)
        return WriteResult(success=True, key=key, message=f"Deleted {key}/{record_id}")

    # Migration

    def migration_status(self) -> MigrationStatus:
        """Report whether the legacy document still needs migrating."""
        return self.migrations.status()

    def run_migration(self) -> MigrationSummary:
        """Migrate the legacy document into per-collection artifacts."""
        return self.migrations.run()

    # Status

    def describe(self) -> dict[str, Any]:
        """Describe the selected driver and any configuration warnings."""
        info = dict(self.driver.describe())
        info["reason"] = self.selection.reason
        info["warnings"] = list(self.selection.warnings)
        info["cache_ttl"] = self.cache.ttl
        return info

    def close(self) -> None:
        self.driver.close()

    def __enter__(self) -> ContentStore:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


_default_store: ContentStore | None = None
_default_lock = threading.Lock()


def get_store() -> ContentStore:
    """Process-wide store, built from the environment on first use."""
    global _default_store
    with _default_lock:
        if _default_store is None:
            _default_store = ContentStore.from_environment()
        return _default_store


def reset_store() -> None:
    """Close and forget the process-wide store."""
    global _default_store
    with _default_lock:
        if _default_store is not None:
            _default_store.close()
        _default_store = None
