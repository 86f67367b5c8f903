"""Label conventions used to store priority and status on GitHub issues.

``priority:<level>`` and ``status:<state>`` are managed namespaces owned by
issuestore; every other label belongs to the user and is passed through.
"""

from typing import Any

from issuestore.models import Priority, Status

PRIORITY_PREFIX = "priority:"
STATUS_PREFIX = "status:"
MANAGED_PREFIXES = (PRIORITY_PREFIX, STATUS_PREFIX)

IN_PROGRESS_LABEL = "status:in-progress"
DELETED_LABEL = "deleted"

_IN_PROGRESS_ALIASES = {"status:in-progress", "status:in_progress"}


def label_names(labels: list[Any] | None) -> list[str]:
    """Names from a GitHub labels array, which holds either strings or label objects."""
    names = []
    for label in labels or []:
        if isinstance(label, str):
            names.append(label)
        elif isinstance(label, dict) and label.get("name"):
            names.append(label["name"])
    return names


def is_managed(name: str) -> bool:
    return name.lower().startswith(MANAGED_PREFIXES)


def extract_priority(names: list[str]) -> Priority:
    for name in names:
        lowered = name.lower()
        if lowered.startswith(PRIORITY_PREFIX):
            try:
                return Priority(lowered.removeprefix(PRIORITY_PREFIX))
            except ValueError:
                continue
    return Priority.NORMAL


def extract_status(state: str, names: list[str]) -> Status:
    if state == "closed":
        return Status.CLOSED
    if any(name.lower() in _IN_PROGRESS_ALIASES for name in names):
        return Status.IN_PROGRESS
    return Status.OPEN


def unmanaged(names: list[str]) -> list[str]:
    return [name for name in names if not is_managed(name)]


def priority_labels(priority: Priority) -> list[str]:
    # normal is the default and is not written out
    if priority == Priority.NORMAL:
        return []
    return [f"{PRIORITY_PREFIX}{priority.value}"]


def status_labels(status: Status) -> list[str]:
    return [IN_PROGRESS_LABEL] if status == Status.IN_PROGRESS else []


def remote_state(status: Status) -> str:
    return "closed" if status == Status.CLOSED else "open"


def merge_labels(
    current: list[str],
    *,
    labels: list[str] | None = None,
    priority: Priority | None = None,
    status: Status | None = None,
) -> list[str]:
    """Combine an issue's current labels with an update.

    Each managed namespace is replaced only when its value is given; unmanaged
    labels are replaced only when labels is given.
    """
    merged = list(labels) if labels is not None else unmanaged(current)

    if priority is not None:
        merged += priority_labels(priority)
    else:
        merged += [name for name in current if name.lower().startswith(PRIORITY_PREFIX)]

    if status is not None:
        merged += status_labels(status)
    else:
        merged += [name for name in current if name.lower().startswith(STATUS_PREFIX)]

    return list(dict.fromkeys(merged))
