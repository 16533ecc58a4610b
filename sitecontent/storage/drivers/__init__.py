"""Pluggable storage drivers.

Provides one read/write contract over different physical stores:

- **GitHubDriver**: JSON and HTML files in a GitHub repository
- **BlobDriver**: objects in a Vercel Blob store
- **FileSystemDriver**: files below a local data directory
- **SQLiteDriver**: rows in a local SQLite key-value table
- **MemoryDriver**: in-memory storage for testing
"""

from .base import (
    HTML_CONTENT_TYPE,
    JSON_CONTENT_TYPE,
    Driver,
    collection_path,
    decode_json,
    encode_json,
)
from .blob import BlobDriver
from .filesystem import FileSystemDriver
from .github import GitHubDriver
from .memory import MemoryDriver
from .sqlite import SQLiteDriver

__all__ = [
    "HTML_CONTENT_TYPE",
    "JSON_CONTENT_TYPE",
    "BlobDriver",
    "Driver",
    "FileSystemDriver",
    "GitHubDriver",
    "MemoryDriver",
    "SQLiteDriver",
    "collection_path",
    "decode_json",
    "encode_json",
]
