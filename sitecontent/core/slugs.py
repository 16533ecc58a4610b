"""Slug and identifier allocation for list collections.

Slugs are derived from titles and made unique against the records that
are currently live in a collection. Identifiers combine the collection
key, the current time and a short random suffix so that no central
counter is needed.
"""

import re
import time
import uuid
from collections.abc import Iterable

from .models import Record

FALLBACK_SLUG = "untitled"

_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-{2,}")


def slugify(title: str) -> str:
    """Turn a title into a URL-friendly slug.

    Lower-cases the text, drops everything except letters, digits,
    whitespace and hyphens, joins words with single hyphens and trims
    hyphens from both ends.

    Examples:
        >>> slugify("ZSCORE Studio Launch")
        'zscore-studio-launch'
        >>> slugify("  Hello, World!  ")
        'hello-world'
    """
    text = "".join(
        char
        for char in title.lower()
        if char.isalnum() or char.isspace() or char == "-"
    )
    text = _WHITESPACE.sub("-", text.strip())
    text = _HYPHENS.sub("-", text)
    return text.strip("-") or FALLBACK_SLUG


def live_slugs(records: Iterable[Record]) -> set[str]:
    """Collect slugs attached to the given records."""
    return {record["slug"] for record in records if record.get("slug")}


def allocate_unique_slug(records: Iterable[Record], candidate: str) -> str:
    """Return candidate, or candidate with the first free numeric suffix."""
    taken = live_slugs(records)
    if candidate not in taken:
        return candidate

    counter = 1
    while f"{candidate}-{counter}" in taken:
        counter += 1
    return f"{candidate}-{counter}"


def allocate_id(collection_key: str) -> str:
    """Generate a record id unlikely to collide within its collection."""
    millis = int(time.time() * 1000)
    return f"{collection_key}_{millis}_{uuid.uuid4().hex[:9]}"
