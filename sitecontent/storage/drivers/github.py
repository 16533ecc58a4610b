"""GitHub storage driver.

Stores artifacts as files in a GitHub repository through the REST
contents API. GitHub identifies every stored file version by its blob
SHA; the driver remembers the SHA of each artifact it has seen and sends
it with every update so that a write based on an outdated version is
rejected instead of overwriting someone else's change.
"""

import base64
import binascii
import logging
import threading
from typing import Any

import httpx

from ..exceptions import ConflictError, MalformedError
from .base import JSON_CONTENT_TYPE, Driver
from .http import check_response, http_errors, json_payload

logger = logging.getLogger(__name__)


class GitHubDriver(Driver):
    """Stores artifacts as files in a GitHub repository."""

    name = "github"
    API_URL = "https://api.github.com"

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        branch: str = "main",
        base_dir: str = "",
        timeout: float = 10.0,
        api_url: str = API_URL,
    ) -> None:
        """Initialize the GitHub driver.

        Args:
            token: Personal access or app token with contents permission
            owner: Repository owner (user or organization)
            repo: Repository name
            branch: Branch that holds the content
            base_dir: Directory inside the repository for all artifacts
            timeout: HTTP timeout in seconds
            api_url: GitHub API root
        """
        self.owner = owner
        self.repo = repo
        self.branch = branch
        self.base_dir = base_dir.strip("/")
        self._revisions: dict[str, str] = {}
        self._lock = threading.RLock()
        self._client = httpx.Client(
            base_url=api_url,
            timeout=timeout,
            headers={
                "Authorization": f"token {token}",
                "Accept": "application/vnd.github.v3+json",
                "User-Agent": "sitecontent",
            },
        )

    def _repo_path(self, path: str) -> str:
        path = path.strip("/")
        return f"{self.base_dir}/{path}" if self.base_dir else path

    def _contents_url(self, path: str) -> str:
        return f"/repos/{self.owner}/{self.repo}/contents/{self._repo_path(path)}"

    def _fetch(self, path: str) -> dict[str, Any] | None:
        """Fetch the contents API entry for an artifact."""
        with http_errors(path):
            response = self._client.get(
                self._contents_url(path), params={"ref": self.branch}
            )

        if response.status_code == 404:
            with self._lock:
                self._revisions.pop(path, None)
            return None
        check_response(response, path)

        payload = json_payload(response, path)
        if not isinstance(payload, dict) or "sha" not in payload:
            raise MalformedError(path, "expected a file entry")
        return payload

    def _current_revision(self, path: str) -> str | None:
        with self._lock:
            sha = self._revisions.get(path)
        if sha is None:
            payload = self._fetch(path)
            if payload is not None:
                sha = payload["sha"]
                with self._lock:
                    self._revisions[path] = sha
        return sha

    def revision(self, path: str) -> str | None:
        """Last revision marker seen for an artifact."""
        with self._lock:
            return self._revisions.get(path)

    def read(self, path: str) -> bytes | None:
        """Read an artifact and remember its revision marker."""
        payload = self._fetch(path)
        if payload is None:
            return None

        try:
            data = base64.b64decode(payload.get("content") or "")
        except (binascii.Error, ValueError) as e:
            raise MalformedError(path, f"invalid base64 content: {e}") from e

        with self._lock:
            self._revisions[path] = payload["sha"]
        return data

    def write(
        self, path: str, data: bytes, content_type: str = JSON_CONTENT_TYPE
    ) -> None:
        """Create or update an artifact.

        The known revision marker is sent with the update; a new artifact
        is created without one.

        Raises:
            ConflictError: If the remote file changed since it was last read
        """
        sha = self._current_revision(path)
        body: dict[str, Any] = {
            "message": f"Update {path}",
            "content": base64.b64encode(data).decode("ascii"),
            "branch": self.branch,
        }
        if sha:
            body["sha"] = sha

        with http_errors(path):
            response = self._client.put(self._contents_url(path), json=body)

        try:
            check_response(response, path)
        except ConflictError:
            with self._lock:
                self._revisions.pop(path, None)
            logger.warning("Revision conflict writing %s (sent sha %s)", path, sha)
            raise

        result = json_payload(response, path)
        try:
            new_sha = result["content"]["sha"]
        except (KeyError, TypeError) as e:
            raise MalformedError(path, "write response lacks content sha") from e

        with self._lock:
            self._revisions[path] = new_sha
        logger.info("Saved %s to %s/%s@%s", path, self.owner, self.repo, self.branch)

    def delete(self, path: str) -> bool:
        """Delete an artifact; False if it does not exist."""
        sha = self._current_revision(path)
        if sha is None:
            return False

        with http_errors(path):
            response = self._client.request(
                "DELETE",
                self._contents_url(path),
                json={"message": f"Delete {path}", "sha": sha, "branch": self.branch},
            )
        if response.status_code == 404:
            return False
        check_response(response, path)

        with self._lock:
            self._revisions.pop(path, None)
        return True

    def keys(self, prefix: str = "") -> list[str]:
        """List artifact paths from the branch tree."""
        with http_errors(prefix or "/"):
            response = self._client.get(
                f"/repos/{self.owner}/{self.repo}/git/trees/{self.branch}",
                params={"recursive": "1"},
            )
        if response.status_code == 404:
            return []
        check_response(response, prefix or "/")

        payload = json_payload(response, prefix or "/")
        root = f"{self.base_dir}/" if self.base_dir else ""
        paths = []
        for item in payload.get("tree", []):
            if item.get("type") != "blob":
                continue
            item_path = item.get("path", "")
            if not item_path.startswith(root):
                continue
            relative = item_path[len(root) :]
            if relative.startswith(prefix):
                paths.append(relative)
        return sorted(paths)

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def describe(self) -> dict[str, Any]:
        return {
            "driver": self.name,
            "repository": f"{self.owner}/{self.repo}",
            "branch": self.branch,
        }
