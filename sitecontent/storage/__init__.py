"""Content storage layer.

Provides one storage interface over interchangeable backends:

- **Drivers**: GitHub, Vercel Blob, FileSystem, SQLite, Memory
- **Selector**: environment-driven choice of exactly one driver
- **Repository**: CRUD over the fixed content collections with validation
- **Read cache**: time-boxed snapshot invalidated on every write
- **Bodies**: rich-text bodies stored as separate HTML artifacts
- **Migrations**: folding the legacy nested document into collections
- **Event system**: notifications for content changes
"""

from sitecontent.storage.bodies import BodyStore, excerpt, make_ref, parse_ref
from sitecontent.storage.cache import CacheEntry, ReadCache
from sitecontent.storage.drivers import (
    BlobDriver,
    Driver,
    FileSystemDriver,
    GitHubDriver,
    MemoryDriver,
    SQLiteDriver,
)
from sitecontent.storage.events import Event, EventBus, EventPublisher, EventType
from sitecontent.storage.exceptions import (
    ConflictError,
    MalformedError,
    NotFoundError,
    StorageError,
    TransientError,
    UnauthorizedError,
)
from sitecontent.storage.migrations import (
    MigrationEngine,
    MigrationResult,
    MigrationState,
    MigrationStatus,
    MigrationSummary,
)
from sitecontent.storage.repository import ContentRepository, SearchHit
from sitecontent.storage.selector import DriverSelection, select, select_driver
from sitecontent.storage.system import ContentStore, WriteResult, get_store

__all__ = [
    # Drivers
    "BlobDriver",
    "Driver",
    "FileSystemDriver",
    "GitHubDriver",
    "MemoryDriver",
    "SQLiteDriver",
    # Selection
    "DriverSelection",
    "select",
    "select_driver",
    # Repository
    "ContentRepository",
    "SearchHit",
    # Cache
    "CacheEntry",
    "ReadCache",
    # Bodies
    "BodyStore",
    "excerpt",
    "make_ref",
    "parse_ref",
    # Events
    "Event",
    "EventBus",
    "EventPublisher",
    "EventType",
    # Errors
    "ConflictError",
    "MalformedError",
    "NotFoundError",
    "StorageError",
    "TransientError",
    "UnauthorizedError",
    # Migrations
    "MigrationEngine",
    "MigrationResult",
    "MigrationState",
    "MigrationStatus",
    "MigrationSummary",
    # Facade
    "ContentStore",
    "WriteResult",
    "get_store",
]
