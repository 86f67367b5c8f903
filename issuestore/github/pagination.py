"""Link header parsing for GitHub list endpoints."""

import re

from issuestore.models import PaginationParams

_LINK_PATTERN = re.compile(r'<(?P<url>[^>]*)>;\s*rel="(?P<rel>[^"]+)"')
_PAGE_PATTERN = re.compile(r"[?&]page=(\d+)")


def parse_link_header(header: str | None) -> dict[str, str]:
    """Return {rel: url} for every entry of a Link header."""
    if not header:
        return {}
    return {match["rel"]: match["url"] for match in _LINK_PATTERN.finditer(header)}


def last_page(header: str | None) -> int | None:
    url = parse_link_header(header).get("last")
    if url is None:
        return None
    match = _PAGE_PATTERN.search(url)
    return int(match.group(1)) if match else None


def total_from_link_header(header: str | None, count: int, pagination: PaginationParams) -> int:
    """Best available total for a list endpoint that exposes no count.

    Off the last page the result assumes the last page is full. Without a
    ``rel="last"`` entry only what has been seen so far is counted.
    """
    last = last_page(header)
    if last is None or pagination.page >= last:
        return (pagination.page - 1) * pagination.limit + count
    return last * pagination.limit
