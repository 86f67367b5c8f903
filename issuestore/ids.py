"""Deterministic internal identifiers derived from GitHub resource keys.

Ids are name-based (SHA-1) UUIDs, so the same (namespace, key) pair always maps
to the same id and no lookup table has to be persisted. Each entity kind has
its own namespace; identical key text in two namespaces yields unrelated ids.
"""

import uuid

ISSUE_NAMESPACE = uuid.UUID("6ba7b810-9dad-11d1-80b4-00c04fd430c8")
MILESTONE_NAMESPACE = uuid.UUID("6ba7b813-9dad-11d1-80b4-00c04fd430c8")
LINK_NAMESPACE = uuid.UUID("6ba7b814-9dad-11d1-80b4-00c04fd430c8")


def generate_id(namespace: uuid.UUID, external_key: str) -> str:
    return str(uuid.uuid5(namespace, external_key))


def issue_key(owner: str, repo: str, number: int) -> str:
    return f"{owner}/{repo}#{number}"


def link_key(source_key: str, link_type: str, target_key: str) -> str:
    return f"{source_key}:{link_type}:{target_key}"


def issue_id(owner: str, repo: str, number: int) -> str:
    return generate_id(ISSUE_NAMESPACE, issue_key(owner, repo, number))


def milestone_id(owner: str, repo: str, number: int) -> str:
    return generate_id(MILESTONE_NAMESPACE, issue_key(owner, repo, number))


def link_id(source_key: str, link_type: str, target_key: str) -> str:
    return generate_id(LINK_NAMESPACE, link_key(source_key, link_type, target_key))
