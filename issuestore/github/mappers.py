"""GitHub JSON <-> domain entity mapping."""

from datetime import datetime, timezone
from typing import Any

from issuestore import ids
from issuestore.github import labels as label_map
from issuestore.models import (
    CreateIssueInput,
    CreateMilestoneInput,
    Issue,
    Milestone,
    MilestoneStatus,
    UpdateMilestoneInput,
)


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _timestamp(value: str | None) -> datetime:
    return _parse_datetime(value) or datetime.now(tz=timezone.utc)


def _format_datetime(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def issue_from_node(node: dict[str, Any], owner: str, repo: str) -> Issue:
    names = label_map.label_names(node.get("labels"))
    milestone = node.get("milestone") or None
    assignees = node.get("assignees") or []
    return Issue(
        id=ids.issue_id(owner, repo, node["number"]),
        title=node.get("title") or "",
        description=node.get("body") or "",
        status=label_map.extract_status(node.get("state", "open"), names),
        priority=label_map.extract_priority(names),
        assignees=[a["login"] for a in assignees if isinstance(a, dict) and a.get("login")],
        milestone_id=ids.milestone_id(owner, repo, milestone["number"]) if milestone else None,
        labels=label_map.unmanaged(names),
        metadata={
            "github_number": node["number"],
            "github_url": node.get("html_url"),
            "github_milestone": milestone.get("title") if milestone else None,
            "github_locked": node.get("locked", False),
        },
        created_at=_timestamp(node.get("created_at")),
        updated_at=_timestamp(node.get("updated_at")),
    )


def issue_create_body(data: CreateIssueInput, milestone_number: int | None) -> dict[str, Any]:
    body: dict[str, Any] = {"title": data.title}
    if data.description:
        body["body"] = data.description
    labels = [*data.labels, *label_map.priority_labels(data.priority), *label_map.status_labels(data.status)]
    if labels:
        body["labels"] = labels
    if data.assignees:
        body["assignees"] = list(data.assignees)
    if milestone_number is not None:
        body["milestone"] = milestone_number
    return body


def milestone_from_node(node: dict[str, Any], owner: str, repo: str) -> Milestone:
    return Milestone(
        id=ids.milestone_id(owner, repo, node["number"]),
        name=node.get("title") or "",
        description=node.get("description") or "",
        status=MilestoneStatus.CLOSED if node.get("state") == "closed" else MilestoneStatus.OPEN,
        due_date=_parse_datetime(node.get("due_on")),
        metadata={
            "github_milestone_number": node["number"],
            "github_url": node.get("html_url"),
            "github_open_issues": node.get("open_issues", 0),
            "github_closed_issues": node.get("closed_issues", 0),
        },
        created_at=_timestamp(node.get("created_at")),
        updated_at=_timestamp(node.get("updated_at")),
    )


def milestone_create_body(data: CreateMilestoneInput) -> dict[str, Any]:
    body: dict[str, Any] = {"title": data.name}
    if data.description:
        body["description"] = data.description
    if data.due_date is not None:
        body["due_on"] = _format_datetime(data.due_date)
    return body


def milestone_update_body(data: UpdateMilestoneInput) -> dict[str, Any]:
    body: dict[str, Any] = {}
    fields = data.model_fields_set
    if data.name is not None:
        body["title"] = data.name
    if data.description is not None:
        body["description"] = data.description
    if data.status is not None:
        body["state"] = data.status.value
    if "due_date" in fields:
        body["due_on"] = _format_datetime(data.due_date) if data.due_date is not None else None
    return body
