"""Milestone repository backed by GitHub milestones."""

import logging

from issuestore import ids
from issuestore.github.cache import ResourceNumberCache
from issuestore.github.client import GitHubClient, decode_json
from issuestore.github.mappers import milestone_create_body, milestone_from_node, milestone_update_body
from issuestore.github.pagination import total_from_link_header
from issuestore.github.scanner import PaginatedScanner, resolve_number
from issuestore.models import (
    CreateMilestoneInput,
    Milestone,
    PaginatedResult,
    PaginationParams,
    SortOptions,
    UpdateMilestoneInput,
)
from issuestore.repositories.base import MilestoneRepository

logger = logging.getLogger(__name__)

# The milestones endpoint only sorts by these two
_SORT_FIELDS = {"due_date": "due_on", "completeness": "completeness"}


class GitHubMilestoneRepository(MilestoneRepository):
    def __init__(
        self,
        client: GitHubClient,
        cache: ResourceNumberCache | None = None,
        scanner: PaginatedScanner | None = None,
    ) -> None:
        self._client = client
        self._cache = cache if cache is not None else ResourceNumberCache()
        self._scanner = scanner or PaginatedScanner(client)

    def _milestone_id(self, number: int) -> str:
        return ids.milestone_id(self._client.owner, self._client.repo, number)

    def _path(self, number: int | None = None) -> str:
        base = f"{self._client.repo_path}/milestones"
        return base if number is None else f"{base}/{number}"

    def _resolve(self, milestone_id: str) -> int:
        return resolve_number(
            self._cache, milestone_id, self._scanner.scan_milestones, self._milestone_id, "Milestone"
        )

    def populate_cache(self, milestone_id: str, number: int) -> None:
        self._cache.populate(milestone_id, number)

    def create(self, data: CreateMilestoneInput) -> Milestone:
        logger.info("Creating GitHub milestone %r", data.name)
        node = decode_json(self._client.post(self._path(), milestone_create_body(data), resource="Milestone"))
        milestone = milestone_from_node(node, self._client.owner, self._client.repo)
        self._cache.populate(milestone.id, node["number"])
        logger.info("Created GitHub milestone #%s (%s)", node["number"], milestone.id)
        return milestone

    def get_by_id(self, milestone_id: str) -> Milestone:
        number = self._resolve(milestone_id)
        logger.debug("Fetching GitHub milestone #%s", number)
        node = decode_json(self._client.get(self._path(number), resource="Milestone", identifier=milestone_id))
        return milestone_from_node(node, self._client.owner, self._client.repo)

    def update(self, milestone_id: str, data: UpdateMilestoneInput) -> Milestone:
        number = self._resolve(milestone_id)
        logger.info("Updating GitHub milestone #%s", number)
        response = self._client.patch(
            self._path(number), milestone_update_body(data), resource="Milestone", identifier=milestone_id
        )
        node = decode_json(response)
        return milestone_from_node(node, self._client.owner, self._client.repo)

    def delete(self, milestone_id: str) -> None:
        """Delete the milestone on GitHub. Unlike issues this is permanent."""
        number = self._resolve(milestone_id)
        logger.info("Deleting GitHub milestone #%s", number)
        self._client.delete(self._path(number), resource="Milestone", identifier=milestone_id)
        self._cache.mark_deleted(milestone_id)

    def list(self, pagination: PaginationParams, sort: SortOptions | None = None) -> PaginatedResult[Milestone]:
        params: dict = {"state": "all", "per_page": pagination.limit, "page": pagination.page}
        if sort is not None and sort.field in _SORT_FIELDS:
            params["sort"] = _SORT_FIELDS[sort.field]
            params["direction"] = sort.direction

        logger.debug("Listing GitHub milestones page %s", pagination.page)
        response = self._client.get(self._path(), params=params, resource="Milestone")
        data = decode_json(response)
        nodes = data if isinstance(data, list) else []

        milestones = []
        for node in nodes:
            milestone = milestone_from_node(node, self._client.owner, self._client.repo)
            self._cache.populate(milestone.id, node["number"])
            milestones.append(milestone)

        return PaginatedResult[Milestone](
            items=milestones,
            total=total_from_link_header(response.headers.get("link"), len(milestones), pagination),
            page=pagination.page,
            limit=pagination.limit,
            has_more=len(milestones) == pagination.limit,
        )
