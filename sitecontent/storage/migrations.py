"""Migration of the legacy nested content document.

Older deployments kept all content in one ``site-content`` document with
every collection nested under ``site_content``. The migration engine
copies each nested collection into its own artifact. The legacy document
is only ever read, so running the migration again is harmless: targets
that already hold the legacy value are reported as unchanged and targets
holding different content are never overwritten.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from sitecontent.core.exceptions import InvalidContentError
from sitecontent.core.models import COLLECTIONS, TIMESTAMP_FIELDS, get_collection

from .drivers import collection_path, decode_json
from .events import EventBus, EventPublisher, EventType
from .exceptions import MalformedError, StorageError
from .repository import ContentRepository

logger = logging.getLogger(__name__)

LEGACY_KEY = "site-content"
NESTED_FIELD = "site_content"

# Older names some deployments used inside the nested document
LEGACY_ALIASES = {
    "news_items": "news",
    "portfolio_items": "portfolio",
    "site_settings": "settings",
    "about_content": "about",
}

SUCCESS = "success"
UNCHANGED = "unchanged"
CONFLICT = "conflict"
SKIPPED = "skipped"
ERROR = "error"


class MigrationState(Enum):
    """Where the migration stands for the current storage."""

    UNCHECKED = "unchecked"
    NEEDED = "needed"
    NOT_NEEDED = "not_needed"
    DONE = "done"


def target_collection(legacy_key: str) -> str | None:
    """Collection key a legacy name maps to, or None if it has none."""
    key = LEGACY_ALIASES.get(legacy_key, legacy_key)
    return key if key in COLLECTIONS else None


@dataclass
class MigrationResult:
    """Outcome for one key of the legacy document."""

    legacy_key: str
    status: str
    collection: str | None = None
    item_count: int = 0
    reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "legacy_key": self.legacy_key,
            "collection": self.collection,
            "status": self.status,
            "item_count": self.item_count,
            "reason": self.reason,
        }


@dataclass
class MigrationSummary:
    """Statistics for a migration run."""

    started_at: datetime
    completed_at: datetime | None = None
    state: MigrationState = MigrationState.UNCHECKED
    results: list[MigrationResult] = field(default_factory=list)

    def count(self, status: str) -> int:
        return sum(1 for result in self.results if result.status == status)

    @property
    def successful(self) -> int:
        return self.count(SUCCESS)

    @property
    def failed(self) -> int:
        return self.count(ERROR)

    @property
    def conflicts(self) -> int:
        return self.count(CONFLICT)

    @property
    def duration(self) -> float | None:
        """Get migration duration in seconds."""
        if self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "state": self.state.value,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat()
            if self.completed_at
            else None,
            "duration": self.duration,
            "total": len(self.results),
            "successful": self.successful,
            "unchanged": self.count(UNCHANGED),
            "conflicts": self.conflicts,
            "skipped": self.count(SKIPPED),
            "failed": self.failed,
            "results": [result.to_dict() for result in self.results],
        }


@dataclass
class MigrationStatus:
    """Detected state plus what each collection currently holds."""

    state: MigrationState
    has_legacy: bool
    legacy_keys: list[str]
    collections: dict[str, dict[str, Any]]

    @property
    def recommendation(self) -> str:
        if self.state is MigrationState.NEEDED:
            return "Migration needed"
        return "Migration not needed"

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "has_legacy": self.has_legacy,
            "legacy_keys": self.legacy_keys,
            "collections": self.collections,
            "recommendation": self.recommendation,
        }


def _item_count(value: Any) -> int:
    if isinstance(value, list):
        return len(value)
    if isinstance(value, dict):
        return sum(1 for key in value if key not in TIMESTAMP_FIELDS)
    return 0


class MigrationEngine(EventPublisher):
    """Folds the legacy nested document into per-collection artifacts."""

    def __init__(
        self,
        repository: ContentRepository,
        event_bus: EventBus | None = None,
        max_workers: int = 1,
    ):
        super().__init__(event_bus)
        self.repository = repository
        self.max_workers = max_workers
        self.state = MigrationState.UNCHECKED

    def _read_legacy(self) -> dict[str, Any] | None:
        path = collection_path(LEGACY_KEY)
        data = self.repository.driver.read(path)
        if data is None:
            return None
        document = decode_json(data, path)
        if not isinstance(document, dict):
            raise MalformedError(path, "legacy document is not an object")
        return document

    def _nested(self, document: dict[str, Any] | None) -> dict[str, Any] | None:
        if document is None:
            return None
        nested = document.get(NESTED_FIELD)
        return nested if isinstance(nested, dict) else None

    def detect(self) -> MigrationState:
        """Inspect the legacy document and record whether migration is needed.

        Raises:
            StorageError: If the legacy document cannot be read or parsed
        """
        return self._classify(self._nested(self._read_legacy()))

    def _classify(self, nested: dict[str, Any] | None) -> MigrationState:
        if nested is not None and any(target_collection(key) for key in nested):
            self.state = MigrationState.NEEDED
        else:
            self.state = MigrationState.NOT_NEEDED
        logger.debug("Legacy content migration state: %s", self.state.value)
        return self.state

    def run(self) -> MigrationSummary:
        """Copy every nested collection to its own artifact.

        Does nothing unless detection finds the migration needed. Targets
        that already hold different, non-empty content are reported as
        conflicts and left untouched.

        Raises:
            StorageError: If the legacy document cannot be read or parsed
        """
        summary = MigrationSummary(started_at=datetime.now())
        nested = self._nested(self._read_legacy())
        if self._classify(nested) is not MigrationState.NEEDED or nested is None:
            summary.state = self.state
            summary.completed_at = datetime.now()
            logger.info("No legacy content to migrate")
            return summary

        # One slot per legacy key keeps results in document order
        results: list[MigrationResult | None] = []
        jobs = []
        claimed: dict[str, str] = {}
        for legacy_key, value in nested.items():
            target = target_collection(legacy_key)
            if target is None:
                results.append(
                    MigrationResult(legacy_key, SKIPPED, reason="unknown collection")
                )
            elif target in claimed:
                results.append(
                    MigrationResult(
                        legacy_key,
                        SKIPPED,
                        collection=target,
                        reason=f"already migrated from {claimed[target]}",
                    )
                )
            else:
                claimed[target] = legacy_key
                jobs.append((len(results), legacy_key, target, value))
                results.append(None)

        def migrate(job):
            slot, legacy_key, target, value = job
            results[slot] = self._migrate_one(legacy_key, target, value)

        if self.max_workers > 1 and len(jobs) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                list(executor.map(migrate, jobs))
        else:
            for job in jobs:
                migrate(job)
        summary.results = [result for result in results if result is not None]

        self.state = MigrationState.DONE
        summary.state = self.state
        summary.completed_at = datetime.now()
        logger.info(
            "Migration complete: %d successful, %d unchanged, %d conflicts, %d failed",
            summary.successful,
            summary.count(UNCHANGED),
            summary.conflicts,
            summary.failed,
        )
        self._publish_event(EventType.MIGRATION_COMPLETED, summary=summary.to_dict())
        return summary

    def _migrate_one(self, legacy_key: str, target: str, value: Any) -> MigrationResult:
        spec = get_collection(target)
        result = MigrationResult(legacy_key, SUCCESS, collection=target)
        try:
            current = self.repository.get(target, strict=True)
            if current == value:
                result.status = UNCHANGED
            elif not spec.is_empty(current):
                result.status = CONFLICT
                result.reason = "target already holds different content"
                logger.warning(
                    "Not migrating %s: %s already holds different content",
                    legacy_key,
                    target,
                )
            else:
                self.repository.save(target, value)
                logger.info("Migrated %s to %s", legacy_key, target)
        except (StorageError, InvalidContentError) as e:
            logger.error("Failed to migrate %s: %s", legacy_key, e)
            result.status = ERROR
            result.reason = str(e)
            return result

        result.item_count = _item_count(value)
        return result

    def status(self) -> MigrationStatus:
        """Report the detected state and what each collection holds.

        Raises:
            StorageError: If the legacy document cannot be read or parsed
        """
        document = self._read_legacy()
        nested = self._nested(document)
        self._classify(nested)

        collections = {}
        for key in COLLECTIONS:
            try:
                data = self.repository.driver.read_collection(key)
                value = decode_json(data, collection_path(key)) if data else None
            except StorageError as e:
                logger.warning("Could not inspect %s: %s", key, e)
                collections[key] = {"exists": False, "error": str(e)}
                continue
            collections[key] = {
                "exists": value is not None,
                "item_count": _item_count(value),
            }

        return MigrationStatus(
            state=self.state,
            has_legacy=document is not None,
            legacy_keys=sorted(nested) if nested else [],
            collections=collections,
        )
