"""Tests for collection declarations and ingestion validation."""

import pytest

from sitecontent.core.exceptions import InvalidContentError, UnknownCollectionError
from sitecontent.core.models import (
    CATEGORY_SECTIONS,
    COLLECTIONS,
    ShapeKind,
    get_collection,
    validate_record,
)


class TestCollectionRegistry:
    """The fixed set of collections."""

    def test_list_collections(self):
        for key in ("services", "news", "portfolio"):
            spec = COLLECTIONS[key]
            assert spec.kind is ShapeKind.LIST
            assert spec.slugged is True
            assert spec.body_field == "content"

    def test_singleton_collections(self):
        for key in ("about", "settings", "categories"):
            spec = COLLECTIONS[key]
            assert spec.kind is ShapeKind.SINGLETON
            assert spec.is_list is False

    def test_unknown_collection_raises(self):
        with pytest.raises(UnknownCollectionError) as exc_info:
            get_collection("hero")

        assert exc_info.value.key == "hero"
        assert str(exc_info.value) == "Unknown collection: hero"
        assert isinstance(exc_info.value, KeyError)


class TestDefaults:
    """Values used when a collection was never written."""

    def test_list_default_is_empty(self):
        assert get_collection("news").default() == []

    def test_singleton_default_has_timestamp(self):
        value = get_collection("about").default()
        assert set(value) == {"updated_at"}

    def test_categories_default_has_sections(self):
        value = get_collection("categories").default()
        for section in CATEGORY_SECTIONS:
            assert value[section] == []
        assert "updated_at" in value

    def test_defaults_are_independent(self):
        spec = get_collection("news")
        first = spec.default()
        first.append({"id": "n1"})
        assert spec.default() == []


class TestIsEmpty:
    def test_empty_list(self):
        assert get_collection("services").is_empty([]) is True
        assert get_collection("services").is_empty([{"id": 1}]) is False

    def test_singleton_with_only_timestamps(self):
        spec = get_collection("settings")
        assert spec.is_empty({"updated_at": "2024-01-01", "version": 3}) is True
        assert spec.is_empty({"updated_at": "2024-01-01", "title": "ZSCORE"}) is False

    def test_default_categories_are_empty(self):
        spec = get_collection("categories")
        assert spec.is_empty(spec.default()) is True

    def test_none_is_empty(self):
        assert get_collection("about").is_empty(None) is True


class TestValidation:
    """Ingestion validation of whole-collection values."""

    def test_valid_list_passes(self):
        records = [{"id": "a", "slug": "a", "title": "A"}, {"id": 2, "extra": [1]}]
        assert get_collection("news").validate(records) is records

    def test_list_requires_list(self):
        with pytest.raises(InvalidContentError, match="expected a list"):
            get_collection("news").validate({"id": "a"})

    def test_record_requires_id(self):
        with pytest.raises(InvalidContentError):
            get_collection("news").validate([{"title": "No id"}])

    def test_record_rejects_empty_id(self):
        with pytest.raises(InvalidContentError, match="empty id"):
            validate_record("news", {"id": ""})

    @pytest.mark.parametrize(
        "record_id", ["2024/launch", "a b", ".hidden", "..", "n1\n"]
    )
    def test_record_rejects_ids_unfit_for_paths(self, record_id):
        with pytest.raises(InvalidContentError, match="has id"):
            validate_record("news", {"id": record_id})

    @pytest.mark.parametrize(
        "record_id", ["a_b", "news_1700000000000_3f2a", "v1.2", 7]
    )
    def test_record_accepts_path_safe_ids(self, record_id):
        assert validate_record("news", {"id": record_id}).id == record_id

    def test_record_rejects_non_object(self):
        with pytest.raises(InvalidContentError, match="not an object"):
            get_collection("news").validate(["just a string"])

    def test_record_field_types_checked(self):
        with pytest.raises(InvalidContentError):
            validate_record("news", {"id": "a", "slug": 5})

    def test_duplicate_ids_rejected(self):
        with pytest.raises(InvalidContentError, match="duplicate id"):
            get_collection("news").validate([{"id": "a"}, {"id": "a"}])

    def test_duplicate_ids_compare_as_strings(self):
        with pytest.raises(InvalidContentError, match="duplicate id"):
            get_collection("news").validate([{"id": 1}, {"id": "1"}])

    def test_duplicate_slugs_rejected(self):
        records = [{"id": "a", "slug": "same"}, {"id": "b", "slug": "same"}]
        with pytest.raises(InvalidContentError, match="duplicate slug"):
            get_collection("news").validate(records)

    def test_singleton_requires_object(self):
        with pytest.raises(InvalidContentError, match="expected an object"):
            get_collection("about").validate([])

    def test_categories_accept_palette_and_hex_colors(self):
        value = {
            "services": [{"id": "print", "label": "Print", "color": "blue"}],
            "news": [{"id": "event", "label": "Event", "color": "#ff8800"}],
            "portfolio": [],
            "updated_at": "2024-01-01T00:00:00.000+00:00",
        }
        assert get_collection("categories").validate(value) is value

    def test_categories_reject_unknown_color(self):
        value = {"news": [{"id": "event", "label": "Event", "color": "chartreuse"}]}
        with pytest.raises(InvalidContentError, match="unknown color"):
            get_collection("categories").validate(value)

    def test_categories_reject_malformed_tags(self):
        value = {"news": [{"label": "Missing id"}]}
        with pytest.raises(InvalidContentError, match="section 'news'"):
            get_collection("categories").validate(value)
