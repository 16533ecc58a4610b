"""Object store driver for the Vercel Blob HTTP API."""

import logging
from typing import Any

import httpx

from ..exceptions import MalformedError
from .base import JSON_CONTENT_TYPE, Driver
from .http import check_response, http_errors, json_payload

logger = logging.getLogger(__name__)


class BlobDriver(Driver):
    """Stores artifacts as objects under a bucket prefix.

    Objects are written with a stable pathname (no random suffix) and
    overwritten in place. Reads list the bucket by prefix to find the
    public URL of the exact pathname and download it from there.
    """

    name = "blob"
    API_URL = "https://blob.vercel-storage.com"
    API_VERSION = "7"

    def __init__(
        self,
        token: str,
        bucket: str,
        timeout: float = 10.0,
        api_url: str = API_URL,
    ) -> None:
        self.bucket = bucket.strip("/")
        self._client = httpx.Client(
            base_url=api_url,
            timeout=timeout,
            headers={
                "authorization": f"Bearer {token}",
                "x-api-version": self.API_VERSION,
            },
        )
        self._downloads = httpx.Client(timeout=timeout, follow_redirects=True)

    def _pathname(self, path: str) -> str:
        return f"{self.bucket}/{path.strip('/')}"

    def _list(self, prefix: str, cursor: str | None = None) -> dict[str, Any]:
        params = {"prefix": prefix, "limit": "1000"}
        if cursor:
            params["cursor"] = cursor
        with http_errors(prefix):
            response = self._client.get("/", params=params)
        check_response(response, prefix)

        payload = json_payload(response, prefix)
        if not isinstance(payload, dict) or not isinstance(payload.get("blobs"), list):
            raise MalformedError(prefix, "listing lacks a blobs array")
        return payload

    def _find(self, path: str) -> dict[str, Any] | None:
        pathname = self._pathname(path)
        for blob in self._list(pathname)["blobs"]:
            if blob.get("pathname") == pathname:
                return blob
        return None

    def read(self, path: str) -> bytes | None:
        """Download an object, or None if it does not exist."""
        blob = self._find(path)
        if blob is None:
            return None

        with http_errors(path):
            response = self._downloads.get(blob["url"])
        if response.status_code == 404:
            return None
        check_response(response, path)
        return response.content

    def write(
        self, path: str, data: bytes, content_type: str = JSON_CONTENT_TYPE
    ) -> None:
        """Upload an object, overwriting any previous version."""
        pathname = self._pathname(path)
        with http_errors(path):
            response = self._client.put(
                f"/{pathname}",
                content=data,
                headers={
                    "x-content-type": content_type,
                    "x-add-random-suffix": "0",
                    "x-allow-overwrite": "1",
                },
            )
        check_response(response, path)
        logger.info("Uploaded %s (%d bytes)", pathname, len(data))

    def delete(self, path: str) -> bool:
        """Delete an object; False if it does not exist."""
        blob = self._find(path)
        if blob is None:
            return False

        with http_errors(path):
            response = self._client.post("/delete", json={"urls": [blob["url"]]})
        check_response(response, path)
        return True

    def keys(self, prefix: str = "") -> list[str]:
        """List object paths below the bucket, following pagination."""
        root = f"{self.bucket}/"
        paths = []
        cursor = None
        while True:
            payload = self._list(root + prefix, cursor)
            for blob in payload["blobs"]:
                pathname = blob.get("pathname", "")
                if pathname.startswith(root):
                    paths.append(pathname[len(root) :])
            cursor = payload.get("cursor")
            if not payload.get("hasMore") or not cursor:
                break
        return sorted(paths)

    def close(self) -> None:
        """Close HTTP clients."""
        self._client.close()
        self._downloads.close()

    def describe(self) -> dict[str, Any]:
        return {"driver": self.name, "bucket": self.bucket}
