"""Tests for externalized record bodies."""

import pytest

from sitecontent.core.exceptions import InvalidContentError
from sitecontent.storage.bodies import (
    BodyStore,
    body_path,
    excerpt,
    make_ref,
    parse_ref,
)
from sitecontent.storage.drivers import HTML_CONTENT_TYPE, MemoryDriver
from sitecontent.storage.exceptions import TransientError


@pytest.fixture
def bodies(driver):
    return BodyStore(driver)


class TestReferences:
    def test_make_ref(self):
        assert make_ref("news", "n1") == "news/n1"

    def test_body_path(self):
        assert body_path("news", "n1") == "content/news/n1.html"

    @pytest.mark.parametrize(
        "ref",
        [
            "news/n1",
            "/content-data/content/news/n1.html",
            "content/news/n1.html",
            "https://raw.githubusercontent.com/acme/site/main/content/news/n1.html",
        ],
    )
    def test_parse_ref_forms(self, ref):
        assert parse_ref(ref) == ("news", "n1")

    @pytest.mark.parametrize("ref", ["", "n1", "a/b/c", "https://example.com/x"])
    def test_parse_ref_rejects_unknown_forms(self, ref):
        with pytest.raises(ValueError):
            parse_ref(ref)


class TestExternalize:
    @pytest.mark.parametrize("record_id", ["2024/launch", "a b"])
    def test_ids_that_are_not_path_segments_rejected(self, bodies, driver, record_id):
        with pytest.raises(InvalidContentError):
            bodies.externalize("news", record_id, "<p>x</p>")
        assert driver.keys() == []

    def test_legacy_ref_with_unsafe_id_rejected(self, bodies):
        with pytest.raises(ValueError):
            bodies.hydrate("/content-data/content/news/a b.html")

    def test_externalize_then_hydrate_round_trip(self, bodies):
        html = "<h2>Premiere</h2>\n<p>Über 200 Gäste &amp; more</p>"

        ref = bodies.externalize("news", "n1", html)

        assert ref == {"content_file": "news/n1"}
        assert bodies.hydrate(ref["content_file"]) == html

    def test_stored_as_html(self, bodies, driver):
        bodies.externalize("news", "n1", "<p>x</p>")
        assert driver.content_type("content/news/n1.html") == HTML_CONTENT_TYPE

    def test_hydrate_missing_returns_empty(self, bodies):
        assert bodies.hydrate("news/never-written") == ""

    def test_hydrate_after_remove_returns_empty(self, bodies):
        ref = bodies.externalize("news", "n1", "<p>x</p>")["content_file"]

        assert bodies.remove(ref) is True
        assert bodies.hydrate(ref) == ""

    def test_remove_absent_counts_as_success(self, bodies):
        assert bodies.remove("news/gone") is True

    def test_hydrate_legacy_ref(self, bodies):
        bodies.externalize("portfolio", "p7", "<p>Score</p>")
        ref = "/content-data/content/portfolio/p7.html"
        assert bodies.hydrate(ref) == "<p>Score</p>"


class TestMigrateRecords:
    def test_inline_bodies_moved(self, bodies, driver):
        records = [
            {"id": "n1", "title": "A", "content": "<p>A</p>"},
            {"id": "n2", "title": "B", "content_file": "news/n2"},
            {"id": "n3", "title": "C"},
        ]

        migrated = bodies.migrate_records("news", records)

        assert migrated[0] == {"id": "n1", "title": "A", "content_file": "news/n1"}
        assert migrated[1] is records[1]
        assert migrated[2] is records[2]
        assert driver.read("content/news/n1.html") == b"<p>A</p>"

    def test_input_not_mutated(self, bodies):
        records = [{"id": "n1", "content": "<p>A</p>"}]
        bodies.migrate_records("news", records)
        assert records == [{"id": "n1", "content": "<p>A</p>"}]

    def test_failed_write_keeps_inline_body(self):
        class FailingDriver(MemoryDriver):
            def write(self, path, data, content_type="application/json"):
                raise TransientError("backend down", path=path)

        bodies = BodyStore(FailingDriver())
        records = [{"id": "n1", "content": "<p>A</p>"}]

        assert bodies.migrate_records("news", records) == records


    def test_unsafe_id_keeps_inline_body(self, bodies, driver):
        records = [{"id": "a b", "content": "<p>A</p>"}]

        assert bodies.migrate_records("news", records) == records
        assert driver.keys() == []


class TestExcerpt:
    def test_short_text_unchanged(self):
        assert excerpt("<p>Short <b>text</b></p>") == "Short text"

    def test_cut_on_word_boundary(self):
        html = "<p>" + "word " * 50 + "</p>"

        result = excerpt(html, max_length=22)

        assert result == "word word word word..."

    def test_long_word_cut_hard(self):
        assert excerpt("x" * 20, max_length=5) == "xxxxx..."

    def test_default_length(self):
        result = excerpt("<p>" + "a " * 200 + "</p>")
        assert len(result) <= 150 + 3
