"""Tests for the blob store driver."""

import json

import httpx
import pytest
import respx

from sitecontent.storage.drivers import HTML_CONTENT_TYPE, BlobDriver
from sitecontent.storage.exceptions import MalformedError, TransientError

API = "https://blob.vercel-storage.com"
PUBLIC = "https://store.public.blob.vercel-storage.com"


def blob(pathname: str) -> dict:
    return {"pathname": pathname, "url": f"{PUBLIC}/{pathname}", "size": 2}


@pytest.fixture
def driver():
    driver = BlobDriver(token="blob-token", bucket="site")
    yield driver
    driver.close()


class TestRead:
    @respx.mock
    def test_read_downloads_exact_pathname(self, driver):
        listing = respx.get(f"{API}/").respond(
            json={
                "blobs": [blob("site/news.json.bak"), blob("site/news.json")],
                "hasMore": False,
            }
        )
        respx.get(f"{PUBLIC}/site/news.json").respond(content=b'[{"id": 1}]')

        assert driver.read("news.json") == b'[{"id": 1}]'

        request = listing.calls.last.request
        assert request.url.params["prefix"] == "site/news.json"
        assert request.headers["authorization"] == "Bearer blob-token"

    @respx.mock
    def test_read_missing_returns_none(self, driver):
        respx.get(f"{API}/").respond(json={"blobs": [], "hasMore": False})

        assert driver.read("news.json") is None

    @respx.mock
    def test_download_404_returns_none(self, driver):
        respx.get(f"{API}/").respond(json={"blobs": [blob("site/news.json")]})
        respx.get(f"{PUBLIC}/site/news.json").respond(status_code=404)

        assert driver.read("news.json") is None

    @respx.mock
    def test_listing_without_blobs_is_malformed(self, driver):
        respx.get(f"{API}/").respond(json={"error": "unexpected"})

        with pytest.raises(MalformedError):
            driver.read("news.json")

    @respx.mock
    def test_network_error_is_transient(self, driver):
        respx.get(f"{API}/").mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(TransientError):
            driver.read("news.json")


class TestWrite:
    @respx.mock
    def test_write_puts_stable_pathname(self, driver):
        put = respx.put(f"{API}/site/content/news/n1.html").respond(
            json={"pathname": "site/content/news/n1.html"}
        )

        driver.write("content/news/n1.html", b"<p>Body</p>", HTML_CONTENT_TYPE)

        request = put.calls.last.request
        assert request.content == b"<p>Body</p>"
        assert request.headers["x-content-type"] == HTML_CONTENT_TYPE
        assert request.headers["x-add-random-suffix"] == "0"
        assert request.headers["x-allow-overwrite"] == "1"

    @respx.mock
    def test_server_error_is_transient(self, driver):
        respx.put(f"{API}/site/news.json").respond(status_code=503)

        with pytest.raises(TransientError):
            driver.write("news.json", b"[]")


class TestDelete:
    @respx.mock
    def test_delete_posts_url(self, driver):
        respx.get(f"{API}/").respond(json={"blobs": [blob("site/news.json")]})
        delete = respx.post(f"{API}/delete").respond(json={})

        assert driver.delete("news.json") is True
        assert json.loads(delete.calls.last.request.content) == {
            "urls": [f"{PUBLIC}/site/news.json"]
        }

    @respx.mock
    def test_delete_missing(self, driver):
        respx.get(f"{API}/").respond(json={"blobs": []})

        assert driver.delete("news.json") is False


class TestKeys:
    @respx.mock
    def test_keys_follow_pagination(self, driver):
        respx.get(f"{API}/").mock(
            side_effect=[
                httpx.Response(
                    200,
                    json={
                        "blobs": [blob("site/news.json")],
                        "hasMore": True,
                        "cursor": "page-2",
                    },
                ),
                httpx.Response(
                    200,
                    json={"blobs": [blob("site/about.json")], "hasMore": False},
                ),
            ]
        )

        assert driver.keys() == ["about.json", "news.json"]
        assert respx.calls.last.request.url.params["cursor"] == "page-2"


def test_describe(driver):
    assert driver.describe() == {"driver": "blob", "bucket": "site"}
