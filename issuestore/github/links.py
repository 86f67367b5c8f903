"""Issue link repository that keeps links as markers in GitHub issue bodies.

A link lives in the body of its source issue (see link_codec). There is no
index, so every query that is not "outgoing links of one known issue" reads
the body of every issue in the repository. Writes touching several issues are
issued one after another and are not atomic; they are idempotent, so a failed
run can simply be repeated.
"""

import logging
import re
from collections.abc import Iterator
from datetime import datetime, timezone
from typing import Any

from issuestore import ids
from issuestore.errors import NotFoundError, ValidationError
from issuestore.github.cache import ResourceNumberCache
from issuestore.github.client import GitHubClient, decode_json
from issuestore.github.link_codec import LinkCodec, LinkMarker
from issuestore.github.scanner import PaginatedScanner, resolve_number
from issuestore.models import LINK_TYPE_PATTERN, IssueLink
from issuestore.repositories.base import IssueLinkRepository

logger = logging.getLogger(__name__)


class GitHubIssueLinkRepository(IssueLinkRepository):
    def __init__(
        self,
        client: GitHubClient,
        cache: ResourceNumberCache | None = None,
        scanner: PaginatedScanner | None = None,
        codec: LinkCodec | None = None,
    ) -> None:
        self._client = client
        # Pass the issue repository's cache here to share what it has already resolved
        self._cache = cache if cache is not None else ResourceNumberCache()
        self._scanner = scanner or PaginatedScanner(client)
        self._codec = codec or LinkCodec()

    def _issue_key(self, number: int) -> str:
        return ids.issue_key(self._client.owner, self._client.repo, number)

    def _issue_id(self, number: int) -> str:
        return ids.issue_id(self._client.owner, self._client.repo, number)

    def _resolve(self, issue_id: str) -> int:
        return resolve_number(self._cache, issue_id, self._scanner.scan_issues, self._issue_id, "Issue")

    def _fetch_body(self, number: int) -> str | None:
        node = decode_json(
            self._client.get(f"{self._client.repo_path}/issues/{number}", resource="Issue", identifier=number)
        )
        return node.get("body")

    def _write_body(self, number: int, body: str) -> None:
        logger.info("Rewriting link markers in GitHub issue #%s", number)
        self._client.patch(
            f"{self._client.repo_path}/issues/{number}", {"body": body}, resource="Issue", identifier=number
        )

    def _scan_issues(self) -> list[dict[str, Any]]:
        nodes = self._scanner.scan_issues()
        for node in nodes:
            self._cache.populate(self._issue_id(node["number"]), node["number"])
        return nodes

    def _build(self, source_key: str, marker: LinkMarker) -> IssueLink:
        return IssueLink(
            id=ids.link_id(source_key, marker.type, marker.target_key),
            source_issue_id=ids.generate_id(ids.ISSUE_NAMESPACE, source_key),
            target_issue_id=ids.generate_id(ids.ISSUE_NAMESPACE, marker.target_key),
            type=marker.type,
            created_at=datetime.now(tz=timezone.utc),
        )

    def _all_links(self) -> Iterator[tuple[dict[str, Any], LinkMarker, IssueLink]]:
        for node in self._scan_issues():
            source_key = self._issue_key(node["number"])
            for marker in self._codec.decode(node.get("body")):
                yield node, marker, self._build(source_key, marker)

    def populate_cache(self, issue_id: str, number: int) -> None:
        self._cache.populate(issue_id, number)

    def link(self, source_issue_id: str, target_issue_id: str, type: str) -> IssueLink:
        """Build the deterministic link for the triple and persist it."""
        if re.fullmatch(LINK_TYPE_PATTERN, type) is None:
            raise ValidationError("type", f"'{type}' must match {LINK_TYPE_PATTERN}")
        source_key = self._issue_key(self._resolve(source_issue_id))
        target_key = self._issue_key(self._resolve(target_issue_id))
        link = IssueLink(
            id=ids.link_id(source_key, type, target_key),
            source_issue_id=source_issue_id,
            target_issue_id=target_issue_id,
            type=type,
            created_at=datetime.now(tz=timezone.utc),
        )
        return self.create(link)

    def create(self, link: IssueLink) -> IssueLink:
        source_number = self._resolve(link.source_issue_id)
        target_number = self._resolve(link.target_issue_id)
        target_key = self._issue_key(target_number)

        body = self._fetch_body(source_number)
        if self._codec.contains(body, link.type, target_key):
            logger.debug("Issue #%s already %s %s", source_number, link.type, target_key)
            return link

        self._write_body(source_number, self._codec.encode(body, link.type, target_key))
        return link

    def find_by_id(self, link_id: str) -> IssueLink | None:
        for _, _, link in self._all_links():
            if link.id == link_id:
                return link
        return None

    def find_by_issue_id(self, issue_id: str, type: str | None = None) -> list[IssueLink]:
        number = self._resolve(issue_id)
        key = self._issue_key(number)

        links = [self._build(key, marker) for marker in self._codec.decode(self._fetch_body(number))]
        for node in self._scan_issues():
            if node["number"] == number:
                continue
            source_key = self._issue_key(node["number"])
            links += [
                self._build(source_key, marker)
                for marker in self._codec.decode(node.get("body"))
                if marker.target_key == key
            ]

        unique = {link.id: link for link in links}
        return [link for link in unique.values() if type is None or link.type == type]

    def find_by_source_and_target_and_type(
        self,
        source_issue_id: str,
        target_issue_id: str,
        type: str,
    ) -> IssueLink | None:
        try:
            source_number = self._resolve(source_issue_id)
            target_number = self._resolve(target_issue_id)
        except NotFoundError:
            return None

        body = self._fetch_body(source_number)
        if not body:
            return None
        source_key = self._issue_key(source_number)
        target_key = self._issue_key(target_number)
        for marker in self._codec.decode(body):
            if marker.type == type and marker.target_key == target_key:
                return self._build(source_key, marker)
        return None

    def delete(self, link_id: str) -> None:
        for node, marker, link in self._all_links():
            if link.id == link_id:
                self._write_body(node["number"], self._codec.remove(node.get("body"), marker.text))
                return
        raise NotFoundError("IssueLink", link_id)

    def delete_by_issue_id(self, issue_id: str) -> None:
        number = self._resolve(issue_id)
        key = self._issue_key(number)

        body, removed = self._codec.remove_where(self._fetch_body(number), lambda marker: True)
        if removed:
            self._write_body(number, body)

        for node in self._scan_issues():
            if node["number"] == number:
                continue
            body, removed = self._codec.remove_where(node.get("body"), lambda marker: marker.target_key == key)
            if removed:
                self._write_body(node["number"], body)
