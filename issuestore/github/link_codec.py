"""Typed issue links stored as marker lines inside GitHub issue bodies.

GitHub has no notion of "issue A blocks issue B", so each outgoing link of an
issue is kept as one HTML comment line in that issue's body::

    Some free text written by a human.
    <!-- issuestore:blocks=octo/widgets#12 -->
    <!-- issuestore:relates-to=octo/widgets#40 -->

The comments do not render on GitHub. Only whole lines matching the grammar
exactly are markers; anything else, including marker-like text inside a
sentence, is free text and is left untouched.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass

from issuestore.models import LINK_TYPE_PATTERN

DEFAULT_NAMESPACE = "issuestore"

_TYPE = LINK_TYPE_PATTERN
_TARGET = r"[^\s/#]+/[^\s/#]+#\d+"


@dataclass(frozen=True)
class LinkMarker:
    type: str
    target_key: str  # "owner/repo#number"
    text: str  # the marker exactly as written, without surrounding whitespace


class LinkCodec:
    def __init__(self, namespace: str = DEFAULT_NAMESPACE) -> None:
        self.namespace = namespace
        self._pattern = re.compile(
            rf"^[ \t]*(?P<marker><!-- {re.escape(namespace)}:(?P<type>{_TYPE})=(?P<target>{_TARGET}) -->)[ \t]*\r?$",
            re.MULTILINE,
        )

    def marker(self, link_type: str, target_key: str) -> str:
        return f"<!-- {self.namespace}:{link_type}={target_key} -->"

    def encode(self, body: str | None, link_type: str, target_key: str) -> str:
        """Append a marker for (link_type, target_key) as a new last line."""
        marker = self.marker(link_type, target_key)
        text = (body or "").strip()
        if not text:
            return marker
        return f"{text}\n{marker}"

    def decode(self, body: str | None) -> list[LinkMarker]:
        if not body:
            return []
        return [
            LinkMarker(type=match["type"], target_key=match["target"], text=match["marker"])
            for match in self._pattern.finditer(body)
        ]

    def contains(self, body: str | None, link_type: str, target_key: str) -> bool:
        return any(m.type == link_type and m.target_key == target_key for m in self.decode(body))

    def remove(self, body: str | None, marker_text: str) -> str:
        """Delete the line(s) holding exactly marker_text.

        Returns body unchanged when the marker is absent.
        """
        new_body, removed = self.remove_where(body, lambda marker: marker.text == marker_text)
        return new_body if removed else (body or "")

    def remove_where(self, body: str | None, predicate: Callable[[LinkMarker], bool]) -> tuple[str, list[LinkMarker]]:
        """Strip every marker line for which predicate holds.

        Returns the edge-trimmed body and the markers that were removed. Lines
        that are not removed keep their exact bytes, separators included.
        """
        if not body:
            return "", []

        kept: list[str] = []
        removed: list[LinkMarker] = []
        for line in body.splitlines(keepends=True):
            match = self._pattern.fullmatch(line.rstrip("\r\n"))
            if match:
                marker = LinkMarker(type=match["type"], target_key=match["target"], text=match["marker"])
                if predicate(marker):
                    removed.append(marker)
                    continue
            kept.append(line)

        if not removed:
            return body, []
        return "".join(kept).strip(), removed
