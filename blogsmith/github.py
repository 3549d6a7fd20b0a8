"""GitHub REST client for the publish pipeline.

Covers the three things a deploy needs from GitHub: the actor's permission
level on the repository, the open pull request for a branch, and a single
marker-tagged comment on that pull request.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from .errors import PublishError

logger = logging.getLogger(__name__)

API_VERSION = "2022-11-28"
PER_PAGE = 100


def github_headers(token: str) -> dict[str, str]:
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": API_VERSION,
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


class GitHubClient:
    def __init__(
        self,
        repository: str,
        token: str = "",
        api_url: str = "https://api.github.com",
        client: Optional[httpx.Client] = None,
    ) -> None:
        if "/" not in repository:
            raise PublishError(f"Repository must look like 'owner/name', got {repository!r}")
        self.repository = repository
        self.owner = repository.split("/", 1)[0]
        self.owns_client = client is None
        self.client = client or httpx.Client(base_url=api_url, timeout=15.0)
        self.headers = github_headers(token)

    def close(self) -> None:
        if self.owns_client:
            self.client.close()

    def __enter__(self) -> "GitHubClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self.client.request(method, path, headers=self.headers, **kwargs)
        except httpx.HTTPError as exc:
            raise PublishError(f"GitHub API {method} {path} failed: {exc}") from exc
        return response

    def _json(self, method: str, path: str, **kwargs: Any) -> Any:
        response = self._request(method, path, **kwargs)
        if response.status_code >= 400:
            raise PublishError(f"GitHub API {method} {path} returned {response.status_code}: {response.text[:200]}")
        return response.json()

    def permission_level(self, username: str) -> str:
        path = f"/repos/{self.repository}/collaborators/{username}/permission"
        response = self._request("GET", path)
        if response.status_code == 404:
            return "none"
        if response.status_code >= 400:
            raise PublishError(f"GitHub API GET {path} returned {response.status_code}: {response.text[:200]}")
        return str(response.json().get("permission") or "none")

    def open_pull_requests(self, branch: str) -> list[dict]:
        params = {"head": f"{self.owner}:{branch}", "state": "open"}
        return self._json("GET", f"/repos/{self.repository}/pulls", params=params)

    def list_comments(self, number: int) -> list[dict]:
        comments: list[dict] = []
        page = 1
        while True:
            params = {"per_page": str(PER_PAGE), "page": str(page)}
            batch = self._json("GET", f"/repos/{self.repository}/issues/{number}/comments", params=params)
            comments.extend(batch)
            if len(batch) < PER_PAGE:
                return comments
            page += 1

    def create_comment(self, number: int, body: str) -> dict:
        return self._json("POST", f"/repos/{self.repository}/issues/{number}/comments", json={"body": body})

    def update_comment(self, comment_id: int, body: str) -> dict:
        return self._json("PATCH", f"/repos/{self.repository}/issues/comments/{comment_id}", json={"body": body})

    def upsert_comment(self, number: int, body: str, marker: str) -> tuple[str, dict]:
        """Replace the comment containing ``marker`` or create it; returns ``(action, comment)``."""
        for comment in self.list_comments(number):
            if marker in (comment.get("body") or ""):
                logger.info("Updating comment %s on #%d", comment["id"], number)
                return "updated", self.update_comment(comment["id"], body)
        logger.info("Creating preview comment on #%d", number)
        return "created", self.create_comment(number, body)
