"""Core data models for site content.

This module defines the fixed set of content collections a deployment
stores and the validation applied when values enter the storage layer.
Records are kept as plain dictionaries so that type-specific fields
(titles, excerpts, image lists, content blocks) pass through untouched;
only the fixed core of every record is checked.

Key components:
- ShapeKind: whether a collection holds a list of records or one object
- CollectionSpec: declaration of a collection and its default value
- RecordCore: the typed core shared by all list records
- CategoryTag: one tag definition in the categories singleton
"""

import enum
import re
from datetime import datetime, timezone
from typing import Any

import msgspec

from .exceptions import InvalidContentError, UnknownCollectionError

Record = dict[str, Any]

CATEGORY_SECTIONS = ("services", "portfolio", "news")

TIMESTAMP_FIELDS = frozenset({"updated_at", "lastUpdated", "version"})

# Ids name body artifacts, so they must be a single path segment that every
# driver stores verbatim
RECORD_ID = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9._-]*\Z")

CATEGORY_COLORS = (
    "blue",
    "green",
    "yellow",
    "red",
    "purple",
    "pink",
    "indigo",
    "gray",
    "orange",
    "teal",
    "cyan",
    "emerald",
)


def utc_now() -> str:
    """Current time as an ISO 8601 string in UTC."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


class ShapeKind(enum.Enum):
    """Shape of the value stored under a collection key."""

    LIST = "list"
    SINGLETON = "singleton"


class RecordCore(msgspec.Struct, kw_only=True):
    """Fields every list record must carry with a well-defined type.

    Unknown fields are ignored during conversion, so the open part of a
    record never fails validation.
    """

    id: str | int
    slug: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    content_file: str | None = None
    order: float | None = None


class CategoryTag(msgspec.Struct, kw_only=True):
    """A tag definition shown next to content in one site section."""

    id: str
    label: str
    color: str = "gray"


class CollectionSpec(msgspec.Struct, frozen=True, kw_only=True):
    """Declaration of one content collection.

    Attributes:
        key: Stable storage key, also the artifact name
        kind: LIST or SINGLETON
        slugged: Whether list records get a unique human-readable slug
        body_field: Name of the rich-text field externalized to a content file
        label: Human-readable name
    """

    key: str
    kind: ShapeKind
    slugged: bool = False
    body_field: str | None = None
    label: str = ""

    @property
    def is_list(self) -> bool:
        return self.kind is ShapeKind.LIST

    def default(self) -> Any:
        """Value used when the collection has never been written."""
        if self.is_list:
            return []
        if self.key == "categories":
            value: dict[str, Any] = {section: [] for section in CATEGORY_SECTIONS}
            value["updated_at"] = utc_now()
            return value
        return {"updated_at": utc_now()}

    def is_empty(self, value: Any) -> bool:
        """Check whether a value carries no content beyond timestamps."""
        if value is None:
            return True
        if self.is_list:
            return len(value) == 0
        return all(
            field in TIMESTAMP_FIELDS or value[field] in (None, [], {}, "")
            for field in value
        )

    def validate(self, value: Any) -> Any:
        """Validate a whole-collection value at ingestion.

        Returns the value unchanged so callers can chain it.

        Raises:
            InvalidContentError: If the value does not fit the declared shape
        """
        if self.is_list:
            if not isinstance(value, list):
                raise InvalidContentError(
                    self.key, f"expected a list, got {type(value).__name__}"
                )
            seen_ids: set[str] = set()
            seen_slugs: set[str] = set()
            for index, record in enumerate(value):
                core = validate_record(self.key, record, index)
                record_id = str(core.id)
                if record_id in seen_ids:
                    raise InvalidContentError(self.key, f"duplicate id {record_id!r}")
                seen_ids.add(record_id)
                if core.slug:
                    if core.slug in seen_slugs:
                        raise InvalidContentError(
                            self.key, f"duplicate slug {core.slug!r}"
                        )
                    seen_slugs.add(core.slug)
            return value

        if not isinstance(value, dict):
            raise InvalidContentError(
                self.key, f"expected an object, got {type(value).__name__}"
            )
        if self.key == "categories":
            validate_categories(value)
        return value


def validate_record(key: str, record: Any, index: int | None = None) -> RecordCore:
    """Check the typed core of a single list record."""
    where = f"record {index}" if index is not None else "record"
    if not isinstance(record, dict):
        raise InvalidContentError(key, f"{where} is not an object")
    try:
        core = msgspec.convert(record, RecordCore)
    except msgspec.ValidationError as e:
        raise InvalidContentError(key, f"{where}: {e}") from e
    if core.id == "":
        raise InvalidContentError(key, f"{where} has an empty id")
    if not RECORD_ID.match(str(core.id)):
        raise InvalidContentError(
            key, f"{where} has id {core.id!r}; use letters, digits, ., _ and -"
        )
    return core


def validate_categories(value: dict[str, Any]) -> None:
    """Check every section of the categories map holds tag definitions."""
    for section, tags in value.items():
        if section in TIMESTAMP_FIELDS:
            continue
        try:
            parsed = msgspec.convert(tags, list[CategoryTag])
        except msgspec.ValidationError as e:
            raise InvalidContentError(
                "categories", f"section {section!r}: {e}"
            ) from e
        for tag in parsed:
            if tag.color not in CATEGORY_COLORS and not tag.color.startswith("#"):
                raise InvalidContentError(
                    "categories", f"tag {tag.id!r} has unknown color {tag.color!r}"
                )


COLLECTIONS: dict[str, CollectionSpec] = {
    spec.key: spec
    for spec in (
        CollectionSpec(
            key="services",
            kind=ShapeKind.LIST,
            slugged=True,
            body_field="content",
            label="Services",
        ),
        CollectionSpec(
            key="news",
            kind=ShapeKind.LIST,
            slugged=True,
            body_field="content",
            label="News",
        ),
        CollectionSpec(
            key="portfolio",
            kind=ShapeKind.LIST,
            slugged=True,
            body_field="content",
            label="Portfolio",
        ),
        CollectionSpec(key="about", kind=ShapeKind.SINGLETON, label="About"),
        CollectionSpec(key="settings", kind=ShapeKind.SINGLETON, label="Site settings"),
        CollectionSpec(key="categories", kind=ShapeKind.SINGLETON, label="Categories"),
    )
}


def get_collection(key: str) -> CollectionSpec:
    """Look up a collection declaration by key."""
    try:
        return COLLECTIONS[key]
    except KeyError:
        raise UnknownCollectionError(key) from None
