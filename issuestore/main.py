"""issuestore CLI: an operator surface over the GitHub-backed repositories."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Annotated

import tomlkit
import typer
from rich import print as rprint
from rich.logging import RichHandler
from rich.table import Table

from issuestore import ids
from issuestore.errors import DomainError
from issuestore.github.cache import ResourceNumberCache
from issuestore.github.client import GitHubClient
from issuestore.github.issues import GitHubIssueRepository
from issuestore.github.link_codec import LinkCodec
from issuestore.github.links import GitHubIssueLinkRepository
from issuestore.github.milestones import GitHubMilestoneRepository
from issuestore.github.scanner import PaginatedScanner
from issuestore.models import (
    DEFAULT_RELATIONSHIP_TYPES,
    CreateIssueInput,
    CreateMilestoneInput,
    Issue,
    IssueFilter,
    IssueLink,
    PaginationParams,
    Priority,
    Status,
)
from issuestore.settings import CONFIG_PATH, _list_profiles, get_settings

app = typer.Typer(help="issuestore: issues, milestones and issue links stored in GitHub", no_args_is_help=True)
issue_app = typer.Typer(help="Work with issues", no_args_is_help=True)
milestone_app = typer.Typer(help="Work with milestones", no_args_is_help=True)
link_app = typer.Typer(help="Work with typed links between issues", no_args_is_help=True)
app.add_typer(issue_app, name="issue")
app.add_typer(milestone_app, name="milestone")
app.add_typer(link_app, name="link")

ProfileOpt = Annotated[
    str | None,
    typer.Option("--profile", "-P", help="Profile name from ~/.config/issuestore/config.toml"),
]

# ---------------------------------------------------------------------------
# Repository factory
# ---------------------------------------------------------------------------


@contextmanager
def _domain_errors() -> Iterator[None]:
    try:
        yield
    except DomainError as exc:
        rprint(f"[red]{exc.message}[/red] [dim]({exc.code})[/dim]")
        raise typer.Exit(1) from exc


@dataclass
class Repositories:
    client: GitHubClient
    issues: GitHubIssueRepository
    milestones: GitHubMilestoneRepository
    links: GitHubIssueLinkRepository


def get_repositories(profile: str | None = None) -> Repositories:
    settings = get_settings(profile=profile)
    root = logging.getLogger()
    if root.level != logging.DEBUG:  # --verbose wins over the configured level
        root.setLevel(settings.log_level.upper())
    with _domain_errors():
        client = GitHubClient(settings)
    scanner = PaginatedScanner(client, page_size=settings.page_size)
    # One cache per resource kind, shared by every repository touching that kind
    issue_cache = ResourceNumberCache()
    milestone_cache = ResourceNumberCache()
    return Repositories(
        client=client,
        issues=GitHubIssueRepository(client, issue_cache, milestone_cache, scanner),
        milestones=GitHubMilestoneRepository(client, milestone_cache, scanner),
        links=GitHubIssueLinkRepository(client, issue_cache, scanner, LinkCodec(settings.link_namespace)),
    )


def _issue_id(repos: Repositories, number: int) -> str:
    """Internal id for an issue number, pre-seeding the caches so no scan is needed."""
    issue_id = ids.issue_id(repos.client.owner, repos.client.repo, number)
    repos.issues.populate_cache(issue_id, number)  # shared with repos.links
    return issue_id


def _milestone_id(repos: Repositories, number: int) -> str:
    milestone_id = ids.milestone_id(repos.client.owner, repos.client.repo, number)
    repos.milestones.populate_cache(milestone_id, number)
    return milestone_id


def _number(issue: Issue) -> str:
    return f"#{issue.metadata.get('github_number', '?')}"


_LABELS = {t.name: t for t in DEFAULT_RELATIONSHIP_TYPES}


def describe_link(link: IssueLink, perspective_id: str) -> tuple[str, str]:
    """(direction, human label) of a link as seen from one of its issues."""
    relationship = _LABELS.get(link.type)
    if link.source_issue_id == perspective_id:
        return "outgoing", relationship.forward_label if relationship else link.type
    return "incoming", relationship.inverse_label if relationship else f"{link.type} (inverse)"


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log GitHub API traffic")] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
    )


# ---------------------------------------------------------------------------
# Issue commands
# ---------------------------------------------------------------------------


@issue_app.command("list")
def list_issues(
    profile: ProfileOpt = None,
    status: Annotated[Status | None, typer.Option("--status", "-s")] = None,
    priority: Annotated[Priority | None, typer.Option("--priority", "-p")] = None,
    assignee: Annotated[str | None, typer.Option("--assignee", "-a", help="GitHub login")] = None,
    search: Annotated[str | None, typer.Option("--search", "-q", help="Free text search")] = None,
    page: Annotated[int, typer.Option(min=1)] = 1,
    limit: Annotated[int, typer.Option(min=1, max=100)] = 20,
) -> None:
    """List issues."""
    repos = get_repositories(profile)
    with _domain_errors():
        result = repos.issues.list(
            IssueFilter(status=status, priority=priority, assignee=assignee, search=search),
            PaginationParams(page=page, limit=limit),
        )

    table = Table(title=f"Issues (page {result.page}, {result.total} total)")
    table.add_column("#", style="cyan")
    table.add_column("Status")
    table.add_column("Priority")
    table.add_column("Title")
    table.add_column("Assignees", style="dim")

    for issue in result.items:
        table.add_row(_number(issue), issue.status.value, issue.priority.value, issue.title, ", ".join(issue.assignees))

    rprint(table)
    if result.has_more:
        rprint(f"[dim]More results: --page {result.page + 1}[/dim]")


@issue_app.command("get")
def get_issue(
    number: Annotated[int, typer.Argument(help="GitHub issue number")],
    profile: ProfileOpt = None,
) -> None:
    """Show full details for an issue, including its links."""
    repos = get_repositories(profile)
    issue_id = _issue_id(repos, number)
    with _domain_errors():
        issue = repos.issues.get_by_id(issue_id)
        links = repos.links.find_by_issue_id(issue_id)

    table = Table(title=f"{_number(issue)}: {issue.title}")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("ID", issue.id)
    table.add_row("Status", issue.status.value)
    table.add_row("Priority", issue.priority.value)
    table.add_row("Assignees", ", ".join(issue.assignees) or "Unassigned")
    table.add_row("Milestone", issue.metadata.get("github_milestone") or "-")
    table.add_row("Labels", ", ".join(issue.labels) if issue.labels else "none")
    table.add_row("URL", issue.metadata.get("github_url") or "-")
    for link in links:
        _, label = describe_link(link, issue_id)
        other = link.target_issue_id if link.source_issue_id == issue_id else link.source_issue_id
        table.add_row("Link", f"{label} {other}")

    rprint(table)


@issue_app.command("create")
def create_issue(
    title: Annotated[str, typer.Argument(help="Issue title")],
    description: Annotated[str | None, typer.Argument(help="Issue description")] = None,
    profile: ProfileOpt = None,
    priority: Annotated[Priority, typer.Option("--priority", "-p")] = Priority.NORMAL,
    label: Annotated[list[str] | None, typer.Option("--label", "-l", help="Repeatable")] = None,
    assignee: Annotated[list[str] | None, typer.Option("--assignee", "-a", help="Repeatable")] = None,
    milestone: Annotated[int | None, typer.Option("--milestone", "-m", help="Milestone number")] = None,
) -> None:
    """Create a new issue."""
    repos = get_repositories(profile)
    with _domain_errors():
        issue = repos.issues.create(
            CreateIssueInput(
                title=title,
                description=description or "",
                priority=priority,
                labels=label or [],
                assignees=assignee or [],
                milestone_id=_milestone_id(repos, milestone) if milestone is not None else None,
            )
        )

    rprint(f"[green]✓[/green] [bold]{_number(issue)}[/bold] {issue.title}")
    rprint(f"  {issue.metadata.get('github_url') or issue.id}")


@issue_app.command("delete")
def delete_issue(
    number: Annotated[int, typer.Argument(help="GitHub issue number")],
    profile: ProfileOpt = None,
) -> None:
    """Remove an issue's links, then close it with the 'deleted' label."""
    repos = get_repositories(profile)
    issue_id = _issue_id(repos, number)
    with _domain_errors():
        repos.links.delete_by_issue_id(issue_id)
        repos.issues.delete(issue_id)
    rprint(f"[green]✓[/green] Deleted #{number}")


# ---------------------------------------------------------------------------
# Milestone commands
# ---------------------------------------------------------------------------


@milestone_app.command("list")
def list_milestones(
    profile: ProfileOpt = None,
    page: Annotated[int, typer.Option(min=1)] = 1,
    limit: Annotated[int, typer.Option(min=1, max=100)] = 20,
) -> None:
    """List milestones."""
    repos = get_repositories(profile)
    with _domain_errors():
        result = repos.milestones.list(PaginationParams(page=page, limit=limit))

    table = Table(title=f"Milestones ({result.total} total)")
    table.add_column("#", style="cyan")
    table.add_column("Status")
    table.add_column("Name")
    table.add_column("Due", style="dim")

    for milestone in result.items:
        due = milestone.due_date.date().isoformat() if milestone.due_date else "-"
        table.add_row(
            str(milestone.metadata.get("github_milestone_number", "?")), milestone.status.value, milestone.name, due
        )

    rprint(table)


@milestone_app.command("create")
def create_milestone(
    name: Annotated[str, typer.Argument(help="Milestone name")],
    description: Annotated[str | None, typer.Argument(help="Milestone description")] = None,
    profile: ProfileOpt = None,
) -> None:
    """Create a new milestone."""
    repos = get_repositories(profile)
    with _domain_errors():
        milestone = repos.milestones.create(CreateMilestoneInput(name=name, description=description or ""))
    rprint(f"[green]✓[/green] [bold]{milestone.name}[/bold] {milestone.id}")


@milestone_app.command("delete")
def delete_milestone(
    number: Annotated[int, typer.Argument(help="GitHub milestone number")],
    profile: ProfileOpt = None,
) -> None:
    """Permanently delete a milestone."""
    repos = get_repositories(profile)
    with _domain_errors():
        repos.milestones.delete(_milestone_id(repos, number))
    rprint(f"[green]✓[/green] Deleted milestone {number}")


# ---------------------------------------------------------------------------
# Link commands
# ---------------------------------------------------------------------------


@link_app.command("add")
def add_link(
    source: Annotated[int, typer.Argument(help="Source issue number")],
    link_type: Annotated[str, typer.Argument(metavar="TYPE", help="e.g. blocks, duplicates, relates-to")],
    target: Annotated[int, typer.Argument(help="Target issue number")],
    profile: ProfileOpt = None,
) -> None:
    """Link two issues."""
    repos = get_repositories(profile)
    with _domain_errors():
        link = repos.links.link(_issue_id(repos, source), _issue_id(repos, target), link_type)
    rprint(f"[green]✓[/green] #{source} {link.type} #{target} [dim]{link.id}[/dim]")


@link_app.command("list")
def list_links(
    number: Annotated[int, typer.Argument(help="GitHub issue number")],
    profile: ProfileOpt = None,
    link_type: Annotated[str | None, typer.Option("--type", "-t")] = None,
) -> None:
    """List links in either direction for an issue."""
    repos = get_repositories(profile)
    issue_id = _issue_id(repos, number)
    with _domain_errors():
        links = repos.links.find_by_issue_id(issue_id, type=link_type)

    table = Table(title=f"Links of #{number}")
    table.add_column("Direction")
    table.add_column("Relationship", style="cyan")
    table.add_column("Other issue")
    table.add_column("Link ID", style="dim")

    for link in links:
        direction, label = describe_link(link, issue_id)
        other = link.target_issue_id if direction == "outgoing" else link.source_issue_id
        table.add_row(direction, label, other, link.id)

    rprint(table)


@link_app.command("remove")
def remove_link(
    link_id: Annotated[str, typer.Argument(help="Link ID as shown by 'link list'")],
    profile: ProfileOpt = None,
) -> None:
    """Remove one link."""
    repos = get_repositories(profile)
    with _domain_errors():
        repos.links.delete(link_id)
    rprint(f"[green]✓[/green] Removed link {link_id}")


@link_app.command("clear")
def clear_links(
    number: Annotated[int, typer.Argument(help="GitHub issue number")],
    profile: ProfileOpt = None,
) -> None:
    """Remove every link an issue takes part in."""
    repos = get_repositories(profile)
    with _domain_errors():
        repos.links.delete_by_issue_id(_issue_id(repos, number))
    rprint(f"[green]✓[/green] Cleared links of #{number}")


# ---------------------------------------------------------------------------
# Configuration commands
# ---------------------------------------------------------------------------


@app.command("set-default")
def set_default(
    profile: Annotated[str, typer.Argument(help="Profile name to set as default")],
) -> None:
    """Set the default profile in ~/.config/issuestore/config.toml."""
    if not CONFIG_PATH.exists():
        rprint(f"[red]No config file at {CONFIG_PATH}. Add a profile section first.[/red]")
        raise typer.Exit(1)

    doc = tomlkit.load(CONFIG_PATH.open())
    profiles = _list_profiles(doc)
    if profile not in profiles:
        rprint(f"[red]Profile '{profile}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}[/red]")
        raise typer.Exit(1)

    doc["default_profile"] = profile
    CONFIG_PATH.write_text(tomlkit.dumps(doc))
    rprint(f'[green]✓[/green] Default profile set to "{profile}" in {CONFIG_PATH}')


@app.command("config-show")
def config_show(profile: ProfileOpt = None) -> None:
    """Show resolved configuration (masks credentials)."""
    settings = get_settings(profile=profile)

    def mask(val: str | None) -> str:
        if val is None:
            return "[dim](not set)[/dim]"
        if len(val) <= 5:
            return "***"
        return f"...{val[-5:]}"

    table = Table(title="issuestore configuration")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("default_profile", settings.default_profile or "[dim](not set)[/dim]")
    table.add_row("github_token", mask(settings.github_token.get_secret_value() if settings.github_token else None))
    table.add_row("github_auth", settings.github_auth)
    table.add_row("github_repo", settings.github_repo or "[dim](from git remote)[/dim]")
    table.add_row("github_api_url", settings.github_api_url)
    table.add_row("page_size", str(settings.page_size))
    table.add_row("link_namespace", settings.link_namespace)

    rprint(table)
