"""Backend selection from deployment configuration.

The selector turns a ``StorageConfig`` into exactly one driver. The
decision is made once, when the content store is built; later failures
of the chosen backend surface as errors and never trigger a switch to
another backend.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from sitecontent.config import StorageConfig

from .drivers import (
    BlobDriver,
    Driver,
    FileSystemDriver,
    GitHubDriver,
    MemoryDriver,
    SQLiteDriver,
)

logger = logging.getLogger(__name__)

LOCAL_DRIVERS = ("filesystem", "sqlite", "memory")
REMOTE_DRIVERS = ("github", "blob")
DEFAULT_REMOTE = "github"


@dataclass
class DriverSelection:
    """Outcome of backend selection.

    Attributes:
        driver: The driver all reads and writes go through
        reason: Why this driver was chosen
        warnings: Configuration problems that caused a local fallback
    """

    driver: Driver
    reason: str
    warnings: list[str] = field(default_factory=list)

    @property
    def fell_back(self) -> bool:
        return bool(self.warnings)


def _local_driver(name: str, config: StorageConfig) -> Driver:
    data_dir = Path(config.data_dir)
    if name == "sqlite":
        return SQLiteDriver(data_dir / "content.db")
    if name == "memory":
        return MemoryDriver()
    return FileSystemDriver(data_dir)


def _fallback(config: StorageConfig, warning: str) -> DriverSelection:
    logger.warning("%s; falling back to local file storage", warning)
    return DriverSelection(
        driver=FileSystemDriver(Path(config.data_dir)),
        reason="fallback",
        warnings=[warning],
    )


def select(config: StorageConfig) -> DriverSelection:
    """Choose a driver for the configured environment.

    Decision order, first match wins:

    1. Development mode without an explicit driver: local files
    2. An explicitly requested local driver
    3. Missing credentials for the remote driver: local files, with a warning
    4. Missing remote target (owner/repo or bucket): local files, with a warning
    5. The configured remote driver

    Raises:
        ValueError: If the configured driver name is not known
    """
    name = config.driver.lower() if config.driver else None

    if name is not None and name not in LOCAL_DRIVERS + REMOTE_DRIVERS:
        raise ValueError(
            f"Unknown driver {config.driver!r}; "
            f"expected one of {', '.join(LOCAL_DRIVERS + REMOTE_DRIVERS)}"
        )

    if name is None and config.is_development:
        logger.info("Using local file storage (development mode)")
        return DriverSelection(
            driver=FileSystemDriver(Path(config.data_dir)), reason="development"
        )

    if name in LOCAL_DRIVERS:
        logger.info("Using %s storage (explicitly configured)", name)
        return DriverSelection(driver=_local_driver(name, config), reason="configured")

    name = name or DEFAULT_REMOTE

    if name == "github":
        github = config.github
        if not github.token:
            return _fallback(config, "GITHUB_TOKEN is not set")
        if not github.owner or not github.repo:
            return _fallback(
                config, "CONTENT_GITHUB_OWNER or CONTENT_GITHUB_REPO is not set"
            )
        logger.info("Using GitHub storage (%s/%s)", github.owner, github.repo)
        driver: Driver = GitHubDriver(
            token=github.token,
            owner=github.owner,
            repo=github.repo,
            branch=github.branch,
            base_dir=github.base_dir,
            timeout=config.timeout,
        )
        return DriverSelection(driver=driver, reason="remote")

    blob = config.blob
    if not blob.token:
        return _fallback(config, "BLOB_READ_WRITE_TOKEN is not set")
    if not blob.bucket:
        return _fallback(config, "SITECONTENT_BLOB_BUCKET is not set")
    logger.info("Using blob storage (bucket %s)", blob.bucket)
    driver = BlobDriver(token=blob.token, bucket=blob.bucket, timeout=config.timeout)
    return DriverSelection(driver=driver, reason="remote")


def select_driver(config: StorageConfig) -> Driver:
    """Choose a driver for the configured environment."""
    return select(config).driver
