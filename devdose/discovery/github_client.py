"""Thin GitHub REST v3 client used by discovery and extraction."""

from __future__ import annotations

import base64
import logging
from typing import Any, Optional

import requests

from devdose.config.settings import GitHubSettings, get_settings

logger = logging.getLogger(__name__)

_TRANSIENT_STATUS_CODES = {403, 429}


class GitHubApiError(RuntimeError):
    """Non-2xx response from the GitHub API."""

    def __init__(self, status_code: int, url: str, message: str = "") -> None:
        self.status_code = status_code
        self.url = url
        detail = f"GitHub API returned {status_code} for {url}"
        super().__init__(f"{detail}: {message}" if message else detail)


def is_transient_github_error(exc: BaseException) -> bool:
    """Rate limits (403/429), server errors and network failures are worth retrying."""
    if isinstance(exc, GitHubApiError):
        return exc.status_code in _TRANSIENT_STATUS_CODES or exc.status_code >= 500
    return isinstance(exc, (requests.ConnectionError, requests.Timeout))


class GitHubClient:
    """
    Blocking client over a shared ``requests.Session``.

    Callers on the event loop run these methods through ``asyncio.to_thread``
    and wrap them in a ``RetryPolicy``; the client itself never retries.
    """

    def __init__(
        self,
        settings: Optional[GitHubSettings] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._settings = settings or get_settings().github
        token = self._settings.require_token()
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "User-Agent": self._settings.user_agent,
            }
        )

    def search_repositories(self, query: str, per_page: int = 50) -> list[dict[str, Any]]:
        """Search repositories, most-starred first."""
        payload = self._get(
            "/search/repositories",
            params={"q": query, "sort": "stars", "order": "desc", "per_page": per_page},
        )
        return payload.get("items", [])

    def get_readme(self, owner: str, repo: str) -> dict[str, Any]:
        """README metadata including ``size`` and base64 ``content``."""
        return self._get(f"/repos/{owner}/{repo}/readme")

    def get_readme_text(self, owner: str, repo: str) -> str:
        return decode_content(self.get_readme(owner, repo))

    def get_content(self, owner: str, repo: str, path: str) -> dict[str, Any] | list[dict[str, Any]]:
        """A file object, or a list of entries when ``path`` is a directory."""
        return self._get(f"/repos/{owner}/{repo}/contents/{path}")

    def _get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        url = f"{self._settings.api_url.rstrip('/')}{path}"
        response = self._session.get(url, params=params, timeout=self._settings.request_timeout)
        if response.status_code >= 400:
            raise GitHubApiError(response.status_code, url, response.text[:200])
        return response.json()


def decode_content(payload: dict[str, Any]) -> str:
    """Decode the base64 ``content`` field of a contents-API file object."""
    raw = payload.get("content") or ""
    if payload.get("encoding", "base64") != "base64":
        return raw
    return base64.b64decode(raw).decode("utf-8", errors="replace")
