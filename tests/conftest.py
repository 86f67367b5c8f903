"""Shared test fixtures."""

import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from issuestore.github.client import GitHubClient
from issuestore.settings import IssueStoreSettings

OWNER = "octo"
REPO = "widgets"


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep the developer's ISSUESTORE_* variables and .env out of every test."""
    for name in list(os.environ):
        if name.startswith("ISSUESTORE_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


def _settings(**kwargs: Any) -> IssueStoreSettings:
    defaults: dict[str, Any] = {"github_token": "ghp_test", "github_auth": "token", "github_repo": f"{OWNER}/{REPO}"}
    defaults.update(kwargs)
    return IssueStoreSettings(**defaults)


@pytest.fixture
def settings() -> IssueStoreSettings:
    return _settings()


@pytest.fixture
def client(settings: IssueStoreSettings) -> GitHubClient:
    return GitHubClient(settings)


@pytest.fixture
def make_issue() -> Callable[..., dict[str, Any]]:
    def _make(number: int, body: str | None = None, **overrides: Any) -> dict[str, Any]:
        node: dict[str, Any] = {
            "id": 1000 + number,
            "number": number,
            "title": f"Issue {number}",
            "body": body,
            "state": "open",
            "labels": [],
            "assignees": [],
            "milestone": None,
            "html_url": f"https://github.com/{OWNER}/{REPO}/issues/{number}",
            "locked": False,
            "created_at": "2024-05-01T10:00:00Z",
            "updated_at": "2024-05-02T10:00:00Z",
        }
        node.update(overrides)
        return node

    return _make


@pytest.fixture
def make_milestone() -> Callable[..., dict[str, Any]]:
    def _make(number: int, **overrides: Any) -> dict[str, Any]:
        node: dict[str, Any] = {
            "id": 5000 + number,
            "number": number,
            "title": f"Milestone {number}",
            "description": None,
            "state": "open",
            "due_on": None,
            "open_issues": 0,
            "closed_issues": 0,
            "html_url": f"https://github.com/{OWNER}/{REPO}/milestone/{number}",
            "created_at": "2024-05-01T10:00:00Z",
            "updated_at": "2024-05-02T10:00:00Z",
        }
        node.update(overrides)
        return node

    return _make
