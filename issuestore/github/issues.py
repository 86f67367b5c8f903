"""Issue repository backed by GitHub issues."""

import logging
from typing import Any

from issuestore import ids
from issuestore.github import labels as label_map
from issuestore.github.cache import ResourceNumberCache
from issuestore.github.client import GitHubClient, decode_json
from issuestore.github.mappers import issue_create_body, issue_from_node
from issuestore.github.pagination import total_from_link_header
from issuestore.github.scanner import PaginatedScanner, is_pull_request, resolve_number
from issuestore.models import (
    CreateIssueInput,
    Issue,
    IssueFilter,
    PaginatedResult,
    PaginationParams,
    SortOptions,
    Status,
    UpdateIssueInput,
)
from issuestore.repositories.base import IssueRepository

logger = logging.getLogger(__name__)

_SORT_FIELDS = {"created_at": "created", "updated_at": "updated"}


def _state_param(status: Status | None) -> str:
    if status is None:
        return "all"
    return label_map.remote_state(status)


def _filter_labels(filter: IssueFilter) -> list[str]:
    labels = []
    if filter.priority is not None:
        labels += label_map.priority_labels(filter.priority)
    if filter.status is not None:
        labels += label_map.status_labels(filter.status)
    return labels


class GitHubIssueRepository(IssueRepository):
    def __init__(
        self,
        client: GitHubClient,
        cache: ResourceNumberCache | None = None,
        milestone_cache: ResourceNumberCache | None = None,
        scanner: PaginatedScanner | None = None,
    ) -> None:
        self._client = client
        self._cache = cache if cache is not None else ResourceNumberCache()
        self._milestone_cache = milestone_cache if milestone_cache is not None else ResourceNumberCache()
        self._scanner = scanner or PaginatedScanner(client)

    @property
    def cache(self) -> ResourceNumberCache:
        return self._cache

    def _issue_id(self, number: int) -> str:
        return ids.issue_id(self._client.owner, self._client.repo, number)

    def _milestone_id(self, number: int) -> str:
        return ids.milestone_id(self._client.owner, self._client.repo, number)

    def _path(self, number: int | None = None) -> str:
        base = f"{self._client.repo_path}/issues"
        return base if number is None else f"{base}/{number}"

    def _resolve(self, issue_id: str) -> int:
        return resolve_number(self._cache, issue_id, self._scanner.scan_issues, self._issue_id, "Issue")

    def _resolve_milestone(self, milestone_id: str) -> int:
        return resolve_number(
            self._milestone_cache, milestone_id, self._scanner.scan_milestones, self._milestone_id, "Milestone"
        )

    def _to_domain(self, node: dict[str, Any]) -> Issue:
        issue = issue_from_node(node, self._client.owner, self._client.repo)
        self._cache.populate(issue.id, node["number"])
        milestone = node.get("milestone")
        if milestone and issue.milestone_id is not None:
            self._milestone_cache.populate(issue.milestone_id, milestone["number"])
        return issue

    def populate_cache(self, issue_id: str, number: int) -> None:
        self._cache.populate(issue_id, number)

    def populate_milestone_cache(self, milestone_id: str, number: int) -> None:
        self._milestone_cache.populate(milestone_id, number)

    def create(self, data: CreateIssueInput) -> Issue:
        milestone_number = self._resolve_milestone(data.milestone_id) if data.milestone_id else None
        logger.info("Creating GitHub issue %r", data.title)
        response = self._client.post(self._path(), issue_create_body(data, milestone_number), resource="Issue")
        node = decode_json(response)
        if data.status == Status.CLOSED:
            # GitHub creates every issue open
            response = self._client.patch(
                self._path(node["number"]), {"state": "closed"}, resource="Issue", identifier=node["number"]
            )
            node = decode_json(response)
        issue = self._to_domain(node)
        logger.info("Created GitHub issue #%s (%s)", node["number"], issue.id)
        return issue

    def get_by_id(self, issue_id: str) -> Issue:
        number = self._resolve(issue_id)
        logger.debug("Fetching GitHub issue #%s", number)
        node = decode_json(self._client.get(self._path(number), resource="Issue", identifier=issue_id))
        return self._to_domain(node)

    def update(self, issue_id: str, data: UpdateIssueInput) -> Issue:
        number = self._resolve(issue_id)
        # Re-read so label namespaces we do not touch survive the write
        current = decode_json(self._client.get(self._path(number), resource="Issue", identifier=issue_id))

        body: dict[str, Any] = {}
        if data.title is not None:
            body["title"] = data.title
        if data.description is not None:
            body["body"] = data.description
        if data.status is not None:
            body["state"] = label_map.remote_state(data.status)
        if data.assignees is not None:
            body["assignees"] = list(data.assignees)
        if "milestone_id" in data.model_fields_set:
            body["milestone"] = self._resolve_milestone(data.milestone_id) if data.milestone_id else None
        if data.labels is not None or data.priority is not None or data.status is not None:
            body["labels"] = label_map.merge_labels(
                label_map.label_names(current.get("labels")),
                labels=data.labels,
                priority=data.priority,
                status=data.status,
            )

        logger.info("Updating GitHub issue #%s (%s)", number, ", ".join(sorted(body)) or "no changes")
        node = decode_json(self._client.patch(self._path(number), body, resource="Issue", identifier=issue_id))
        return self._to_domain(node)

    def delete(self, issue_id: str) -> None:
        """Soft delete: GitHub issues cannot be deleted through the REST API.

        The issue is closed and tagged with the ``deleted`` label.
        """
        number = self._resolve(issue_id)
        current = decode_json(self._client.get(self._path(number), resource="Issue", identifier=issue_id))
        names = label_map.label_names(current.get("labels"))
        if label_map.DELETED_LABEL not in names:
            names.append(label_map.DELETED_LABEL)

        logger.info("Closing GitHub issue #%s with the %r label", number, label_map.DELETED_LABEL)
        self._client.patch(
            self._path(number), {"state": "closed", "labels": names}, resource="Issue", identifier=issue_id
        )
        self._cache.mark_deleted(issue_id)

    def list(
        self,
        filter: IssueFilter,
        pagination: PaginationParams,
        sort: SortOptions | None = None,
    ) -> PaginatedResult[Issue]:
        if filter.search and filter.search.strip():
            return self._search(filter, pagination, sort)

        params = self._list_params(filter, pagination, sort)
        logger.debug("Listing GitHub issues %s", params)
        response = self._client.get(self._path(), params=params, resource="Issue")
        data = decode_json(response)
        nodes = data if isinstance(data, list) else []
        issues = [self._to_domain(node) for node in nodes if not is_pull_request(node)]

        return PaginatedResult[Issue](
            items=issues,
            total=total_from_link_header(response.headers.get("link"), len(issues), pagination),
            page=pagination.page,
            limit=pagination.limit,
            has_more=len(issues) == pagination.limit,
        )

    def _list_params(
        self,
        filter: IssueFilter,
        pagination: PaginationParams,
        sort: SortOptions | None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "state": _state_param(filter.status),
            "per_page": pagination.limit,
            "page": pagination.page,
        }
        if filter.assignee:
            params["assignee"] = filter.assignee
        labels = _filter_labels(filter)
        if labels:
            params["labels"] = ",".join(labels)
        if sort is not None and sort.field in _SORT_FIELDS:
            params["sort"] = _SORT_FIELDS[sort.field]
            params["direction"] = sort.direction
        return params

    def _search(
        self,
        filter: IssueFilter,
        pagination: PaginationParams,
        sort: SortOptions | None,
    ) -> PaginatedResult[Issue]:
        qualifiers = [f"repo:{self._client.owner}/{self._client.repo}", "is:issue", filter.search.strip()]
        state = _state_param(filter.status)
        if state != "all":
            qualifiers.append(f"is:{state}")
        if filter.assignee:
            qualifiers.append(f"assignee:{filter.assignee}")
        qualifiers += [f"label:{label}" for label in _filter_labels(filter)]

        params: dict[str, Any] = {"q": " ".join(qualifiers), "per_page": pagination.limit, "page": pagination.page}
        if sort is not None and sort.field in _SORT_FIELDS:
            params["sort"] = _SORT_FIELDS[sort.field]
            params["order"] = sort.direction

        logger.debug("Searching GitHub issues: %s", params["q"])
        data = decode_json(self._client.get("/search/issues", params=params, resource="Issue"))
        nodes = data.get("items", []) if isinstance(data, dict) else []
        issues = [self._to_domain(node) for node in nodes if not is_pull_request(node)]

        return PaginatedResult[Issue](
            items=issues,
            total=data.get("total_count", len(issues)) if isinstance(data, dict) else len(issues),
            page=pagination.page,
            limit=pagination.limit,
            has_more=len(issues) == pagination.limit,
        )
