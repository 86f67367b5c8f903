"""GitHub REST API v3 transport.

Every remote call made by the repositories goes through GitHubClient.request,
which is the one place httpx failures are turned into domain errors.
"""

import logging
import re
import subprocess
from typing import Any

import httpx

from issuestore.errors import AuthorizationError, DomainError
from issuestore.github.error_mapper import normalize_error
from issuestore.settings import GITHUB_API_URL as BASE_URL
from issuestore.settings import IssueStoreSettings

__all__ = ["BASE_URL", "GitHubClient", "decode_json"]

logger = logging.getLogger(__name__)

_REMOTE_PATTERN = re.compile(r"github\.com[:/](?P<owner>[^/\s]+)/(?P<repo>[^/\s]+?)(?:\.git)?/?$")


def _repo_from_git_remote() -> str | None:
    """Return "owner/repo" parsed from the origin remote, or None."""
    result = subprocess.run(["git", "remote", "get-url", "origin"], capture_output=True, text=True)
    if result.returncode != 0 or not isinstance(result.stdout, str):
        return None
    match = _REMOTE_PATTERN.search(result.stdout.strip())
    if not match:
        return None
    return f"{match['owner']}/{match['repo']}"


def decode_json(response: httpx.Response) -> Any:
    """Parsed body of a successful response, None when it is empty.

    A body that is not JSON is reported as a GITHUB_ERROR like any other
    remote failure.
    """
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as exc:
        raise DomainError(f"GitHub API returned a malformed response: {exc}", "GITHUB_ERROR") from exc


class GitHubClient:
    def __init__(self, settings: IssueStoreSettings, http: httpx.Client | None = None) -> None:
        self._token = self._resolve_token(settings)
        self.owner, self.repo = self._resolve_repo(settings)
        self._http = http or httpx.Client(
            base_url=settings.github_api_url,
            headers={
                "Authorization": f"Bearer {self._token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
            timeout=settings.timeout,
        )

    def _resolve_token(self, settings: IssueStoreSettings) -> str:
        if settings.github_auth == "gh-cli":
            result = subprocess.run(
                ["gh", "auth", "token"],
                capture_output=True,
                text=True,
            )
            if result.returncode != 0:
                raise AuthorizationError("use the gh CLI token", "gh auth token failed. Run: gh auth login")
            return result.stdout.strip()
        if settings.github_token:
            return settings.github_token.get_secret_value()
        raise AuthorizationError("access GitHub", "no GitHub credentials configured")

    def _resolve_repo(self, settings: IssueStoreSettings) -> tuple[str, str]:
        repo = settings.github_repo or _repo_from_git_remote()
        if not repo:
            raise DomainError(
                "No GitHub repository configured. Set ISSUESTORE_GITHUB_REPO or github_repo in your profile.",
                "CONFIGURATION_ERROR",
            )
        owner, name = repo.split("/", 1)
        return owner, name

    @property
    def repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        resource: str = "resource",
        identifier: str | int | None = None,
    ) -> httpx.Response:
        logger.debug("%s %s %s", method, path, params or "")
        try:
            response = self._http.request(method, path, params=params, json=json)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise normalize_error(exc, resource, identifier) from exc
        return response

    def get(self, path: str, params: dict[str, Any] | None = None, **context: Any) -> httpx.Response:
        return self.request("GET", path, params=params, **context)

    def post(self, path: str, body: dict[str, Any], **context: Any) -> httpx.Response:
        return self.request("POST", path, json=body, **context)

    def patch(self, path: str, body: dict[str, Any], **context: Any) -> httpx.Response:
        return self.request("PATCH", path, json=body, **context)

    def delete(self, path: str, **context: Any) -> httpx.Response:
        return self.request("DELETE", path, **context)

    def close(self) -> None:
        self._http.close()
