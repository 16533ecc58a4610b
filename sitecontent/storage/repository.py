"""Repository for named content collections.

Every operation is scoped to one of the fixed collection keys. Reads go
through the driver and fall back to the collection default when the
artifact is absent; writes overwrite the whole collection artifact,
invalidate the read cache and publish a change event.
"""

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

import msgspec

from sitecontent.core.exceptions import InvalidContentError
from sitecontent.core.models import (
    COLLECTIONS,
    CollectionSpec,
    Record,
    get_collection,
    utc_now,
    validate_record,
)
from sitecontent.core.slugs import allocate_id, allocate_unique_slug, slugify

from .bodies import BodyStore
from .cache import ReadCache
from .drivers import Driver, collection_path, decode_json, encode_json
from .events import EventBus, EventPublisher, EventType
from .exceptions import MalformedError, StorageError

logger = logging.getLogger(__name__)

ORDER_STEP = 10
TITLE_WEIGHT = 10
FIELD_WEIGHT = 1


@dataclass(frozen=True)
class SearchHit:
    """A record matching a search query."""

    key: str
    record: Record
    relevance: int


def _find_index(records: list[Record], record_id: Any) -> int | None:
    wanted = str(record_id)
    for index, record in enumerate(records):
        if str(record.get("id")) == wanted:
            return index
    return None


def _relevance(record: Record, query: str) -> int:
    score = 0
    for field, value in record.items():
        if not isinstance(value, str) or query not in value.lower():
            continue
        if field in ("title", "name"):
            score += TITLE_WEIGHT
        else:
            score += FIELD_WEIGHT
    return score


class ContentRepository(EventPublisher):
    """Typed CRUD over the fixed content collections."""

    def __init__(
        self,
        driver: Driver,
        cache: ReadCache | None = None,
        bodies: BodyStore | None = None,
        event_bus: EventBus | None = None,
    ):
        super().__init__(event_bus)
        self.driver = driver
        self.cache = cache if cache is not None else ReadCache()
        self.bodies = bodies if bodies is not None else BodyStore(driver)
        self._lock = threading.RLock()

    # Reads

    def get(self, key: str, strict: bool = False) -> Any:
        """Load one collection.

        Args:
            key: Collection key
            strict: Propagate storage errors instead of returning the default

        Raises:
            UnknownCollectionError: If the key is not a known collection
            StorageError: In strict mode, for anything but a missing artifact
        """
        spec = get_collection(key)
        try:
            return self._load(spec)
        except StorageError as e:
            if strict:
                raise
            logger.error("Failed to load %s, using defaults: %s", key, e)
            return spec.default()

    def _load(self, spec: CollectionSpec) -> Any:
        data = self.driver.read_collection(spec.key)
        if data is None:
            return spec.default()

        path = collection_path(spec.key)
        value = decode_json(data, path)
        expected = list if spec.is_list else dict
        if not isinstance(value, expected):
            raise MalformedError(path, f"expected {expected.__name__} at top level")
        return value

    def get_all(self, strict: bool = False) -> dict[str, Any]:
        """Load every collection."""
        return {key: self.get(key, strict=strict) for key in COLLECTIONS}

    def get_cached_or_load(self) -> dict[str, Any]:
        """Return the cached content graph, loading it when stale.

        Raises:
            StorageError: If the graph has to be loaded and a read fails
        """
        return self.cache.get_or_load(lambda: self.get_all(strict=True))

    def get_record(
        self, key: str, record_id: Any, hydrate: bool = True
    ) -> Record | None:
        """Find one list record, optionally with its body loaded."""
        spec = self._list_spec(key)
        records = self.get(key)
        index = _find_index(records, record_id)
        if index is None:
            return None

        record = dict(records[index])
        ref = record.get("content_file")
        if hydrate and ref and spec.body_field:
            record[spec.body_field] = self._hydrate(ref)
        return record

    def _hydrate(self, ref: str) -> str:
        try:
            return self.bodies.hydrate(ref)
        except ValueError as e:
            logger.warning("Ignoring content file reference: %s", e)
        except StorageError as e:
            logger.error("Failed to load content file %s: %s", ref, e)
        return ""

    def search(self, query: str, keys: Iterable[str] | None = None) -> list[SearchHit]:
        """Find records whose stored form contains the query.

        Matching is case-insensitive. Hits are ordered by relevance: a
        match in ``title`` or ``name`` counts 10, a match in any other
        string field counts 1. Equal scores keep collection order.
        """
        needle = query.strip().lower()
        if not needle:
            return []

        hits = []
        for key in COLLECTIONS if keys is None else keys:
            spec = get_collection(key)
            value = self.get(key)
            records = value if spec.is_list else [value]
            for record in records:
                text = msgspec.json.encode(record).decode("utf-8").lower()
                if needle in text:
                    hits.append(SearchHit(key, record, _relevance(record, needle)))

        hits.sort(key=lambda hit: hit.relevance, reverse=True)
        return hits

    # Writes

    def save(self, key: str, value: Any) -> None:
        """Overwrite a whole collection after validating it.

        Raises:
            InvalidContentError: If the value does not fit the collection
            StorageError: If the write fails
        """
        spec = get_collection(key)
        spec.validate(value)
        with self._lock:
            self._write(spec, value)
        self._publish_event(EventType.COLLECTION_SAVED, collection=key)

    def upsert_record(self, key: str, record: Record) -> Record:
        """Replace the list record with the same id, or append it.

        For singleton collections the record is merged shallowly into the
        stored object. ``updated_at`` is always refreshed. An update keeps
        the stored ``slug``, ``created_at`` and ``content_file`` unless the
        new record supplies them; the slug never changes once assigned.

        Returns:
            The record as stored
        """
        spec = get_collection(key)
        with self._lock:
            current = self.get(key, strict=True)
            if not spec.is_list:
                stored = {**current, **record, "updated_at": utc_now()}
                spec.validate(stored)
                self._write(spec, stored)
                self._publish_event(EventType.RECORD_UPDATED, collection=key)
                return stored

            validate_record(key, record)
            records = list(current)
            index = _find_index(records, record["id"])
            existing = records[index] if index is not None else None
            stored = self._prepare(spec, record, existing)

            if index is None:
                records.append(stored)
            else:
                records[index] = stored
            spec.validate(records)
            self._write(spec, records)

        if existing is None:
            event = EventType.RECORD_CREATED
        else:
            event = EventType.RECORD_UPDATED
        self._publish_event(event, collection=key, record_id=str(stored["id"]))
        return stored

    def _prepare(
        self, spec: CollectionSpec, record: Record, existing: Record | None
    ) -> Record:
        stored = dict(record)
        now = utc_now()

        if existing is not None:
            for field in ("created_at", "content_file"):
                if field in existing and field not in stored:
                    stored[field] = existing[field]
            if existing.get("slug"):
                stored["slug"] = existing["slug"]

        stored.setdefault("created_at", now)
        stored["updated_at"] = now

        body = stored.get(spec.body_field) if spec.body_field else None
        if isinstance(body, str):
            del stored[spec.body_field]
            stored.update(self.bodies.externalize(spec.key, stored["id"], body))
        return stored

    def add_record(self, key: str, record: Record) -> Record:
        """Create a list record.

        Assigns an id when missing, a unique slug for slugged collections,
        an ``order`` after the current last record and both timestamps.
        An inline body is moved to its content file.

        Returns:
            The record as stored
        """
        spec = self._list_spec(key)
        with self._lock:
            records = self.get(key, strict=True)
            new = dict(record)
            if not new.get("id"):
                new["id"] = allocate_id(key)

            if spec.slugged:
                candidate = new.get("slug") or slugify(
                    str(new.get("title") or new.get("name") or "")
                )
                new["slug"] = allocate_unique_slug(records, candidate)

            if new.get("order") is None:
                orders = [
                    r["order"]
                    for r in records
                    if isinstance(r.get("order"), int | float)
                ]
                new["order"] = max(orders, default=0) + ORDER_STEP

            now = utc_now()
            new["created_at"] = now
            new["updated_at"] = now
            return self.upsert_record(key, new)

    def delete_record(self, key: str, record_id: Any) -> bool:
        """Delete a list record and its content file.

        Returns:
            False if no record had the id
        """
        self._list_spec(key)
        with self._lock:
            records = self.get(key, strict=True)
            index = _find_index(records, record_id)
            if index is None:
                return False

            removed = records[index]
            spec = get_collection(key)
            self._write(spec, records[:index] + records[index + 1 :])

        ref = removed.get("content_file")
        if ref:
            try:
                self.bodies.remove(ref)
            except (StorageError, ValueError) as e:
                logger.warning(
                    "Record %s/%s deleted, content file kept: %s", key, record_id, e
                )

        self._publish_event(
            EventType.RECORD_DELETED, collection=key, record_id=str(record_id)
        )
        return True

    def reorder_records(self, key: str, ordered_ids: list[Any]) -> list[Record]:
        """Rewrite ``order`` so records follow the given id sequence.

        Records not named keep their relative order after the named ones.

        Raises:
            InvalidContentError: If an id does not exist in the collection
        """
        spec = self._list_spec(key)
        with self._lock:
            records = self.get(key, strict=True)
            by_id = {str(r.get("id")): r for r in records}
            wanted = [str(record_id) for record_id in ordered_ids]
            unknown = [record_id for record_id in wanted if record_id not in by_id]
            if unknown:
                raise InvalidContentError(key, f"unknown ids {', '.join(unknown)}")

            rest = [r for r in records if str(r.get("id")) not in wanted]
            ordered = [by_id[record_id] for record_id in wanted] + rest
            reordered = [
                {**record, "order": (position + 1) * ORDER_STEP}
                for position, record in enumerate(ordered)
            ]
            self._write(spec, reordered)

        self._publish_event(EventType.COLLECTION_SAVED, collection=key)
        return reordered

    def externalize_bodies(self, keys: Iterable[str] | None = None) -> dict[str, int]:
        """Move inline bodies of stored records into content files.

        Only collections in which at least one record changed are written.

        Returns:
            Number of externalized records per collection key
        """
        specs = [
            get_collection(key)
            for key in (keys if keys is not None else COLLECTIONS)
        ]
        counts = {}
        for spec in specs:
            if not spec.is_list or not spec.body_field:
                continue
            with self._lock:
                records = self.get(spec.key, strict=True)
                migrated = self.bodies.migrate_records(spec.key, records)
                changed = sum(
                    1 for before, after in zip(records, migrated) if before is not after
                )
                if changed:
                    self._write(spec, migrated)
            counts[spec.key] = changed
            if changed:
                self._publish_event(
                    EventType.BODIES_EXTERNALIZED, collection=spec.key, count=changed
                )
        return counts

    def _write(self, spec: CollectionSpec, value: Any) -> None:
        self.driver.write_collection(spec.key, encode_json(value))
        self.cache.invalidate()
        logger.debug("Saved collection %s", spec.key)
        self._publish_event(EventType.CACHE_INVALIDATED, collection=spec.key)

    def _list_spec(self, key: str) -> CollectionSpec:
        spec = get_collection(key)
        if not spec.is_list:
            raise InvalidContentError(key, "operation requires a list collection")
        return spec
