"""Smoke tests for the CLI commands using typer CliRunner."""

from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import tomlkit
from typer.testing import CliRunner

import issuestore.settings as settings_module
from issuestore import ids
from issuestore.errors import NotFoundError
from issuestore.main import app, describe_link, get_repositories
from issuestore.models import (
    CreateIssueInput,
    Issue,
    IssueLink,
    Milestone,
    PaginatedResult,
    Priority,
)
from issuestore.settings import IssueStoreSettings

runner = CliRunner()
NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def reset_lru_cache():
    settings_module._load_toml.cache_clear()
    yield
    settings_module._load_toml.cache_clear()


def _issue_id(number: int) -> str:
    return ids.issue_id("octo", "widgets", number)


def _issue(number: int = 42) -> Issue:
    return Issue(
        id=_issue_id(number),
        title="Crash",
        description="Null pointer in logout handler.",
        labels=["bug"],
        metadata={"github_number": number, "github_url": f"https://github.com/octo/widgets/issues/{number}"},
        created_at=NOW,
        updated_at=NOW,
    )


def _link(source: int, target: int, link_type: str = "blocks") -> IssueLink:
    return IssueLink(
        id=ids.link_id(f"octo/widgets#{source}", link_type, f"octo/widgets#{target}"),
        source_issue_id=_issue_id(source),
        target_issue_id=_issue_id(target),
        type=link_type,
        created_at=NOW,
    )


def _mock_repositories() -> MagicMock:
    repos = MagicMock()
    repos.client.owner = "octo"
    repos.client.repo = "widgets"
    repos.issues.list.return_value = PaginatedResult[Issue](items=[_issue()], total=1, page=1, limit=20, has_more=False)
    repos.issues.get_by_id.return_value = _issue()
    repos.issues.create.return_value = _issue(43)
    repos.links.find_by_issue_id.return_value = [_link(42, 43)]
    repos.links.link.return_value = _link(42, 43)
    repos.milestones.list.return_value = PaginatedResult[Milestone](
        items=[
            Milestone(
                id=ids.milestone_id("octo", "widgets", 1),
                name="v1",
                metadata={"github_milestone_number": 1},
                created_at=NOW,
                updated_at=NOW,
            )
        ],
        total=1,
        page=1,
        limit=20,
        has_more=False,
    )
    return repos


class TestIssueCommands:
    def test_list(self) -> None:
        repos = _mock_repositories()
        with patch("issuestore.main.get_repositories", return_value=repos):
            result = runner.invoke(app, ["issue", "list", "--priority", "high"])
        assert result.exit_code == 0, result.output
        assert "#42" in result.output
        issue_filter = repos.issues.list.call_args.args[0]
        assert issue_filter.priority == Priority.HIGH

    def test_get(self) -> None:
        repos = _mock_repositories()
        with patch("issuestore.main.get_repositories", return_value=repos):
            result = runner.invoke(app, ["issue", "get", "42"])
        assert result.exit_code == 0, result.output
        assert "Crash" in result.output
        repos.issues.get_by_id.assert_called_once_with(_issue_id(42))
        repos.links.find_by_issue_id.assert_called_once_with(_issue_id(42))

    def test_get_not_found(self) -> None:
        repos = _mock_repositories()
        repos.issues.get_by_id.side_effect = NotFoundError("Issue", _issue_id(42))
        with patch("issuestore.main.get_repositories", return_value=repos):
            result = runner.invoke(app, ["issue", "get", "42"])
        assert result.exit_code == 1
        assert "NOT_FOUND" in result.output

    def test_create(self) -> None:
        repos = _mock_repositories()
        with patch("issuestore.main.get_repositories", return_value=repos):
            result = runner.invoke(
                app, ["issue", "create", "Crash", "Details", "-p", "urgent", "-l", "bug", "-a", "mona", "-m", "3"]
            )
        assert result.exit_code == 0, result.output
        data: CreateIssueInput = repos.issues.create.call_args.args[0]
        assert data.title == "Crash"
        assert data.description == "Details"
        assert data.priority == Priority.URGENT
        assert data.labels == ["bug"]
        assert data.assignees == ["mona"]
        assert data.milestone_id == ids.milestone_id("octo", "widgets", 3)
        repos.milestones.populate_cache.assert_called_once_with(data.milestone_id, 3)

    def test_delete_clears_links_first(self) -> None:
        repos = _mock_repositories()
        with patch("issuestore.main.get_repositories", return_value=repos):
            result = runner.invoke(app, ["issue", "delete", "42"])
        assert result.exit_code == 0, result.output
        calls = [name for name, _, _ in repos.mock_calls if name in ("links.delete_by_issue_id", "issues.delete")]
        assert calls == ["links.delete_by_issue_id", "issues.delete"]


class TestMilestoneCommands:
    def test_list(self) -> None:
        repos = _mock_repositories()
        with patch("issuestore.main.get_repositories", return_value=repos):
            result = runner.invoke(app, ["milestone", "list"])
        assert result.exit_code == 0, result.output
        assert "v1" in result.output

    def test_create(self) -> None:
        repos = _mock_repositories()
        repos.milestones.create.return_value = repos.milestones.list.return_value.items[0]
        with patch("issuestore.main.get_repositories", return_value=repos):
            result = runner.invoke(app, ["milestone", "create", "v1"])
        assert result.exit_code == 0, result.output
        assert repos.milestones.create.call_args.args[0].name == "v1"

    def test_delete(self) -> None:
        repos = _mock_repositories()
        with patch("issuestore.main.get_repositories", return_value=repos):
            result = runner.invoke(app, ["milestone", "delete", "1"])
        assert result.exit_code == 0, result.output
        repos.milestones.delete.assert_called_once_with(ids.milestone_id("octo", "widgets", 1))


class TestLinkCommands:
    def test_add(self) -> None:
        repos = _mock_repositories()
        with patch("issuestore.main.get_repositories", return_value=repos):
            result = runner.invoke(app, ["link", "add", "42", "blocks", "43"])
        assert result.exit_code == 0, result.output
        repos.links.link.assert_called_once_with(_issue_id(42), _issue_id(43), "blocks")

    def test_list_with_type(self) -> None:
        repos = _mock_repositories()
        with patch("issuestore.main.get_repositories", return_value=repos):
            result = runner.invoke(app, ["link", "list", "43", "--type", "blocks"])
        assert result.exit_code == 0, result.output
        repos.links.find_by_issue_id.assert_called_once_with(_issue_id(43), type="blocks")

    def test_remove(self) -> None:
        repos = _mock_repositories()
        with patch("issuestore.main.get_repositories", return_value=repos):
            result = runner.invoke(app, ["link", "remove", "some-link-id"])
        assert result.exit_code == 0, result.output
        repos.links.delete.assert_called_once_with("some-link-id")

    def test_remove_missing(self) -> None:
        repos = _mock_repositories()
        repos.links.delete.side_effect = NotFoundError("IssueLink", "some-link-id")
        with patch("issuestore.main.get_repositories", return_value=repos):
            result = runner.invoke(app, ["link", "remove", "some-link-id"])
        assert result.exit_code == 1

    def test_clear(self) -> None:
        repos = _mock_repositories()
        with patch("issuestore.main.get_repositories", return_value=repos):
            result = runner.invoke(app, ["link", "clear", "42"])
        assert result.exit_code == 0, result.output
        repos.links.delete_by_issue_id.assert_called_once_with(_issue_id(42))


class TestDescribeLink:
    def test_outgoing(self) -> None:
        assert describe_link(_link(42, 43), _issue_id(42)) == ("outgoing", "blocks")

    def test_incoming(self) -> None:
        assert describe_link(_link(42, 43), _issue_id(43)) == ("incoming", "is blocked by")

    def test_custom_type(self) -> None:
        link = _link(42, 43, "tracks")
        assert describe_link(link, _issue_id(42)) == ("outgoing", "tracks")
        assert describe_link(link, _issue_id(43)) == ("incoming", "tracks (inverse)")


class TestGetRepositories:
    def test_shares_caches(self) -> None:
        settings = IssueStoreSettings(github_token="ghp_test", github_repo="octo/widgets", link_namespace="tracker")
        with patch("issuestore.main.get_settings", return_value=settings):
            repos = get_repositories()
        assert repos.issues.cache is repos.links._cache
        assert repos.issues._milestone_cache is repos.milestones._cache
        assert repos.links._codec.namespace == "tracker"
        assert (repos.client.owner, repos.client.repo) == ("octo", "widgets")


class TestSetDefault:
    def test_sets_existing_profile(self, tmp_path: Path) -> None:
        config_path = tmp_path / "config.toml"
        config_path.write_text(tomlkit.dumps({"work": {"github_repo": "acme/api"}}))
        with patch("issuestore.main.CONFIG_PATH", config_path):
            result = runner.invoke(app, ["set-default", "work"])
        assert result.exit_code == 0, result.output
        assert tomlkit.load(config_path.open())["default_profile"] == "work"

    def test_validates_profile_exists(self, tmp_path: Path) -> None:
        config_path = tmp_path / "config.toml"
        config_path.write_text(tomlkit.dumps({"work": {"github_repo": "acme/api"}}))
        with patch("issuestore.main.CONFIG_PATH", config_path):
            result = runner.invoke(app, ["set-default", "nonexistent"])
        assert result.exit_code != 0

    def test_missing_config_file(self, tmp_path: Path) -> None:
        with patch("issuestore.main.CONFIG_PATH", tmp_path / "missing.toml"):
            result = runner.invoke(app, ["set-default", "work"])
        assert result.exit_code != 0


class TestConfigShow:
    def test_masks_token(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings_module, "CONFIG_PATH", tmp_path / "missing.toml")
        monkeypatch.setenv("ISSUESTORE_GITHUB_TOKEN", "ghp_secret12345")
        monkeypatch.setenv("ISSUESTORE_GITHUB_REPO", "octo/widgets")

        result = runner.invoke(app, ["config-show"])

        assert result.exit_code == 0, result.output
        assert "12345" in result.output
        assert "ghp_secret" not in result.output
