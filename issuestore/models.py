"""Shared pydantic models, the contract between repositories and their callers."""

from datetime import datetime
from enum import StrEnum
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class Status(StrEnum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"


class Priority(StrEnum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class MilestoneStatus(StrEnum):
    OPEN = "open"
    CLOSED = "closed"


class Issue(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str  # deterministic, see issuestore.ids
    title: str
    description: str = ""
    status: Status = Status.OPEN
    priority: Priority = Priority.NORMAL
    assignees: list[str] = []  # GitHub logins
    milestone_id: str | None = None
    labels: list[str] = []  # labels outside the managed namespaces
    metadata: dict[str, Any] = {}
    created_at: datetime
    updated_at: datetime


class CreateIssueInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = Field(min_length=1, max_length=500)
    description: str = ""
    status: Status = Status.OPEN
    priority: Priority = Priority.NORMAL
    assignees: list[str] = []
    milestone_id: str | None = None
    labels: list[str] = []


class UpdateIssueInput(BaseModel):
    """Partial update. Fields left unset are not sent; use model_fields_set to tell unset from None."""

    model_config = ConfigDict(frozen=True)

    title: str | None = Field(default=None, min_length=1, max_length=500)
    description: str | None = None
    status: Status | None = None
    priority: Priority | None = None
    assignees: list[str] | None = None
    milestone_id: str | None = None
    labels: list[str] | None = None


class Milestone(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    status: MilestoneStatus = MilestoneStatus.OPEN
    due_date: datetime | None = None
    metadata: dict[str, Any] = {}
    created_at: datetime
    updated_at: datetime


class CreateMilestoneInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, max_length=200)
    description: str = ""
    due_date: datetime | None = None


class UpdateMilestoneInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    status: MilestoneStatus | None = None
    due_date: datetime | None = None

# Link types travel inside body markers, so they are limited to what a marker can carry
LINK_TYPE_PATTERN = r"[A-Za-z0-9][A-Za-z0-9_-]*"


class IssueLink(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str  # derived from (source key, type, target key)
    source_issue_id: str
    target_issue_id: str
    type: str = Field(min_length=1, pattern=rf"^{LINK_TYPE_PATTERN}$")
    created_at: datetime


class RelationshipType(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    forward_label: str
    inverse_label: str
    symmetric: bool


DEFAULT_RELATIONSHIP_TYPES: tuple[RelationshipType, ...] = (
    RelationshipType(name="blocks", forward_label="blocks", inverse_label="is blocked by", symmetric=False),
    RelationshipType(
        name="duplicates", forward_label="duplicates", inverse_label="is duplicated by", symmetric=False
    ),
    RelationshipType(name="relates-to", forward_label="relates to", inverse_label="relates to", symmetric=True),
)


class IssueFilter(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Status | None = None
    priority: Priority | None = None
    assignee: str | None = None  # GitHub login
    search: str | None = None  # free text, routed to the search endpoint


class PaginationParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)


class SortOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    direction: Literal["asc", "desc"] = "desc"


class PaginatedResult(BaseModel, Generic[T]):
    model_config = ConfigDict(frozen=True)

    items: list[T]
    total: int
    page: int
    limit: int
    has_more: bool
