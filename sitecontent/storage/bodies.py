"""Externalized rich-text bodies.

Large HTML bodies are kept out of the collection documents. Each body is
stored as its own artifact at ``content/{key}/{id}.html`` and the record
carries a ``content_file`` reference of the form ``{key}/{id}`` instead of
the inline text. Bodies are loaded again only when a single record is
requested with its content.
"""

import logging
import re
from typing import Any

from sitecontent.core.exceptions import InvalidContentError
from sitecontent.core.models import RECORD_ID, Record

from .drivers import HTML_CONTENT_TYPE, Driver
from .exceptions import StorageError

logger = logging.getLogger(__name__)

BODY_ROOT = "content"
EXCERPT_LENGTH = 150

# Matches current references and the older local or raw.githubusercontent
# URL forms, which all end in content/{key}/{id}.html
_LEGACY_REF = re.compile(r"(?:^|/)content/([^/]+)/([^/]+)\.html$")
_REF = re.compile(r"^([^/]+)/([^/]+)$")
_TAG = re.compile(r"<[^>]*>")
_WHITESPACE = re.compile(r"\s+")


def _checked_id(key: str, record_id: Any) -> str:
    record_id = str(record_id)
    if not RECORD_ID.match(record_id):
        raise InvalidContentError(key, f"id {record_id!r} cannot name a content file")
    return record_id


def make_ref(key: str, record_id: Any) -> str:
    """Reference stored on a record for its body."""
    return f"{key}/{_checked_id(key, record_id)}"


def parse_ref(ref: str) -> tuple[str, str]:
    """Split a body reference into collection key and record id.

    Accepts ``{key}/{id}`` as well as older references that point at the
    HTML file directly, such as ``/content-data/content/news/n1.html`` or
    a raw GitHub URL ending in ``content/news/n1.html``.

    Raises:
        ValueError: If the reference has none of the known forms
    """
    ref = ref.strip()
    match = _LEGACY_REF.search(ref) or _REF.match(ref)
    if match is None:
        raise ValueError(f"Unrecognized content file reference: {ref!r}")
    return match.group(1), match.group(2)


def body_path(key: str, record_id: Any) -> str:
    """Artifact path of a body."""
    return f"{BODY_ROOT}/{key}/{_checked_id(key, record_id)}.html"


def excerpt(html: str, max_length: int = EXCERPT_LENGTH) -> str:
    """Plain-text excerpt of an HTML body, cut at a word boundary.

    Examples:
        >>> excerpt("<p>Short text</p>")
        'Short text'
    """
    text = _WHITESPACE.sub(" ", _TAG.sub("", html)).strip()
    if len(text) <= max_length:
        return text

    truncated = text[:max_length]
    last_space = truncated.rfind(" ")
    if last_space > 0:
        truncated = truncated[:last_space]
    return truncated + "..."


class BodyStore:
    """Reads and writes externalized bodies through a driver."""

    def __init__(self, driver: Driver, body_field: str = "content"):
        self.driver = driver
        self.body_field = body_field

    def externalize(self, key: str, record_id: Any, body: str) -> dict[str, str]:
        """Store a body and return the reference fields for its record.

        Raises:
            StorageError: If the artifact cannot be written
            InvalidContentError: If the id cannot name a content file
        """
        self.driver.write(
            body_path(key, record_id), body.encode("utf-8"), HTML_CONTENT_TYPE
        )
        logger.debug("Externalized body of %s/%s (%d chars)", key, record_id, len(body))
        return {"content_file": make_ref(key, record_id)}

    def hydrate(self, ref: str) -> str:
        """Load a body by reference; an absent artifact yields ``""``."""
        key, record_id = parse_ref(ref)
        data = self.driver.read(body_path(key, record_id))
        if data is None:
            logger.warning("Content file %s not found", ref)
            return ""
        return data.decode("utf-8")

    def remove(self, ref: str) -> bool:
        """Delete a body; an already absent artifact counts as removed."""
        key, record_id = parse_ref(ref)
        if not self.driver.delete(body_path(key, record_id)):
            logger.debug("Content file %s was already absent", ref)
        return True

    def migrate_records(self, key: str, records: list[Record]) -> list[Record]:
        """Externalize inline bodies of records that lack a reference.

        Records that already carry a reference, or have no string body,
        are passed through unchanged. A record whose body cannot be
        written keeps its inline body and is logged.
        """
        migrated = []
        for record in records:
            body = record.get(self.body_field)
            if record.get("content_file") or not isinstance(body, str) or not body:
                migrated.append(record)
                continue

            try:
                ref = self.externalize(key, record["id"], body)
            except (StorageError, InvalidContentError) as e:
                logger.error("Failed to externalize %s/%s: %s", key, record["id"], e)
                migrated.append(record)
                continue

            updated = {k: v for k, v in record.items() if k != self.body_field}
            updated.update(ref)
            migrated.append(updated)
            logger.info("Moved body of %s/%s to its content file", key, record["id"])
        return migrated
