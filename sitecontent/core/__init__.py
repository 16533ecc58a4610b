"""Content model and identifier allocation.

- **Collections**: the fixed set of list and singleton collections
- **Validation**: typed record core checked at ingestion
- **Slugs**: unique human-readable identifiers for list records
"""

from .exceptions import InvalidContentError, UnknownCollectionError
from .models import (
    COLLECTIONS,
    CategoryTag,
    CollectionSpec,
    Record,
    RecordCore,
    ShapeKind,
    get_collection,
    utc_now,
)
from .slugs import allocate_id, allocate_unique_slug, slugify

__all__ = [
    "COLLECTIONS",
    "CategoryTag",
    "CollectionSpec",
    "InvalidContentError",
    "Record",
    "RecordCore",
    "ShapeKind",
    "UnknownCollectionError",
    "allocate_id",
    "allocate_unique_slug",
    "get_collection",
    "slugify",
    "utc_now",
]
