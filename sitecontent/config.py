"""Configuration management for the storage layer.

Settings come from YAML files and environment variables; environment
variables win. The merged result is converted into a ``StorageConfig``
once, when the content store is built.
"""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import msgspec
import yaml

DEVELOPMENT = "development"
PRODUCTION = "production"


class GitHubSettings(msgspec.Struct, kw_only=True):
    """Target repository for the GitHub driver."""

    token: str | None = None
    owner: str | None = None
    repo: str | None = None
    branch: str = "main"
    base_dir: str = ""


class BlobSettings(msgspec.Struct, kw_only=True):
    """Target store for the blob driver."""

    token: str | None = None
    bucket: str | None = None


class StorageConfig(msgspec.Struct, kw_only=True):
    """Settings consumed when selecting and building a driver."""

    mode: str = PRODUCTION
    driver: str | None = None
    data_dir: str = "content-data"
    timeout: float = 10.0
    cache_ttl: float = 300.0
    github: GitHubSettings = msgspec.field(default_factory=GitHubSettings)
    blob: BlobSettings = msgspec.field(default_factory=BlobSettings)

    @property
    def is_development(self) -> bool:
        return self.mode == DEVELOPMENT


# Environment variable -> config path; later entries win, so
# SITECONTENT_MODE takes precedence over NODE_ENV
ENV_VARIABLES: dict[str, tuple[str, ...]] = {
    "NODE_ENV": ("mode",),
    "SITECONTENT_MODE": ("mode",),
    "SITECONTENT_DRIVER": ("driver",),
    "SITECONTENT_DATA_DIR": ("data_dir",),
    "SITECONTENT_TIMEOUT": ("timeout",),
    "SITECONTENT_CACHE_TTL": ("cache_ttl",),
    "GITHUB_TOKEN": ("github", "token"),
    "CONTENT_GITHUB_OWNER": ("github", "owner"),
    "CONTENT_GITHUB_REPO": ("github", "repo"),
    "CONTENT_GITHUB_BRANCH": ("github", "branch"),
    "CONTENT_GITHUB_DIR": ("github", "base_dir"),
    "BLOB_READ_WRITE_TOKEN": ("blob", "token"),
    "SITECONTENT_BLOB_BUCKET": ("blob", "bucket"),
}


class Config:
    """Configuration file handling."""

    @staticmethod
    def from_file(path: Path) -> dict[str, Any]:
        """Load configuration from a YAML file."""
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file: {e}") from e
        except OSError as e:
            raise ValueError(f"Error reading config file: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        return data

    @staticmethod
    def get_config_paths() -> list[Path]:
        """Get the default configuration file paths to check."""
        paths = []

        xdg_config_home = Path(
            os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
        )
        paths.append(xdg_config_home / "sitecontent" / "config.yaml")

        paths.append(Path(".sitecontent.yaml"))
        paths.append(Path("sitecontent.yaml"))

        return paths

    @staticmethod
    def merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
        """Merge multiple configuration dictionaries."""
        result: dict[str, Any] = {}
        for config in configs:
            result = _deep_merge(result, config)
        return result


def env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    """Build a config mapping from environment variables."""
    overrides: dict[str, Any] = {}
    for variable, target in ENV_VARIABLES.items():
        value = environ.get(variable)
        if not value:
            continue
        node = overrides
        for part in target[:-1]:
            node = node.setdefault(part, {})
        node[target[-1]] = value
    return overrides


def load_config(
    path: Path | None = None, environ: Mapping[str, str] | None = None
) -> StorageConfig:
    """Load configuration from files and environment variables.

    Args:
        path: Explicit config file; replaces the default search paths
        environ: Environment to read, defaults to ``os.environ``

    Raises:
        ValueError: If a file cannot be parsed or a value has the wrong type
    """
    environ = os.environ if environ is None else environ
    config: dict[str, Any] = {}

    if path is not None:
        config = Config.from_file(path)
    else:
        # Last one wins for conflicting keys
        for candidate in Config.get_config_paths():
            if candidate.exists():
                config = Config.merge_configs(config, Config.from_file(candidate))

    merged = Config.merge_configs(config, env_overrides(environ))

    try:
        return msgspec.convert(merged, StorageConfig, strict=False)
    except msgspec.ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result
