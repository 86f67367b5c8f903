"""Full paginated retrieval of GitHub collections."""

import logging
from collections.abc import Callable
from typing import Any

from issuestore.errors import NotFoundError
from issuestore.github.cache import ResourceNumberCache
from issuestore.github.client import GitHubClient
from issuestore.github.pagination import parse_link_header

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100


def is_pull_request(item: dict[str, Any]) -> bool:
    # The issues endpoints return pull requests too, tagged with this key
    return "pull_request" in item


class PaginatedScanner:
    def __init__(self, client: GitHubClient, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        self._client = client
        self._page_size = page_size

    def scan(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        resource: str = "resource",
    ) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        page = 1
        while True:
            response = self._client.get(
                path,
                params={**(params or {}), "per_page": self._page_size, "page": page},
                resource=resource,
            )
            try:
                data = response.json() if response.content else None
            except ValueError:
                logger.warning("Ignoring non-JSON %s page %d from %s", resource, page, path)
                data = None
            batch = data if isinstance(data, list) else []
            items.extend(item for item in batch if isinstance(item, dict))

            if len(batch) < self._page_size:
                break
            link_header = response.headers.get("link")
            if link_header is not None and "next" not in parse_link_header(link_header):
                break
            page += 1

        logger.debug("Scanned %d %s item(s) from %s across %d page(s)", len(items), resource, path, page)
        return items

    def scan_issues(self) -> list[dict[str, Any]]:
        items = self.scan(f"{self._client.repo_path}/issues", {"state": "all"}, resource="Issue")
        return [item for item in items if not is_pull_request(item)]

    def scan_milestones(self) -> list[dict[str, Any]]:
        return self.scan(f"{self._client.repo_path}/milestones", {"state": "all"}, resource="Milestone")


def resolve_number(
    cache: ResourceNumberCache,
    internal_id: str,
    load: Callable[[], list[dict[str, Any]]],
    derive_id: Callable[[int], str],
    resource: str,
) -> int:
    """Cache lookup falling back to a full scan.

    Every scanned item is written to the cache on the way, so one miss warms
    the cache for the whole collection. Raises NotFoundError for ids deleted
    through this cache, or after the scan has come up empty too.
    """
    if cache.is_deleted(internal_id):
        raise NotFoundError(resource, internal_id)

    number = cache.resolve(internal_id)
    if number is not None:
        return number

    logger.debug("%s %s not cached, scanning", resource, internal_id)
    for item in load():
        cache.populate(derive_id(item["number"]), item["number"])

    number = cache.resolve(internal_id)
    if number is None:
        raise NotFoundError(resource, internal_id)
    return number
