"""Tests for the shared pydantic models."""

from datetime import datetime, timezone

import pydantic
import pytest

from issuestore.models import (
    DEFAULT_RELATIONSHIP_TYPES,
    CreateIssueInput,
    CreateMilestoneInput,
    Issue,
    IssueLink,
    PaginatedResult,
    PaginationParams,
    Priority,
    SortOptions,
    Status,
    UpdateIssueInput,
)

NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)


class TestIssue:
    def test_defaults(self) -> None:
        issue = Issue(id="i1", title="Fix", created_at=NOW, updated_at=NOW)
        assert issue.status == Status.OPEN
        assert issue.priority == Priority.NORMAL
        assert issue.description == ""
        assert issue.assignees == []
        assert issue.milestone_id is None

    def test_frozen(self) -> None:
        issue = Issue(id="i1", title="Fix", created_at=NOW, updated_at=NOW)
        with pytest.raises(pydantic.ValidationError):
            issue.title = "Changed"  # type: ignore[misc]


class TestCreateIssueInput:
    def test_title_required(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            CreateIssueInput(title="")

    def test_title_max_length(self) -> None:
        CreateIssueInput(title="x" * 500)
        with pytest.raises(pydantic.ValidationError):
            CreateIssueInput(title="x" * 501)

    def test_enum_from_string(self) -> None:
        data = CreateIssueInput(title="Fix", priority="urgent", status="in_progress")  # type: ignore[arg-type]
        assert data.priority == Priority.URGENT
        assert data.status == Status.IN_PROGRESS


class TestUpdateIssueInput:
    def test_unset_vs_none(self) -> None:
        assert "milestone_id" not in UpdateIssueInput(title="x").model_fields_set
        assert "milestone_id" in UpdateIssueInput(milestone_id=None).model_fields_set


class TestMilestoneInput:
    def test_name_bounds(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            CreateMilestoneInput(name="")
        with pytest.raises(pydantic.ValidationError):
            CreateMilestoneInput(name="x" * 201)


class TestIssueLink:
    def test_type_required(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            IssueLink(id="l", source_issue_id="a", target_issue_id="b", type="", created_at=NOW)

    @pytest.mark.parametrize("link_type", ["is child of", "is.child", "-blocks"])
    def test_type_must_fit_marker(self, link_type: str) -> None:
        with pytest.raises(pydantic.ValidationError):
            IssueLink(id="l", source_issue_id="a", target_issue_id="b", type=link_type, created_at=NOW)

    def test_marker_safe_type(self) -> None:
        link = IssueLink(id="l", source_issue_id="a", target_issue_id="b", type="relates-to_2", created_at=NOW)
        assert link.type == "relates-to_2"


class TestRelationshipTypes:
    def test_defaults(self) -> None:
        by_name = {t.name: t for t in DEFAULT_RELATIONSHIP_TYPES}
        assert set(by_name) == {"blocks", "duplicates", "relates-to"}
        assert by_name["blocks"].inverse_label == "is blocked by"
        assert by_name["relates-to"].symmetric is True
        assert by_name["blocks"].symmetric is False


class TestPagination:
    def test_defaults(self) -> None:
        params = PaginationParams()
        assert (params.page, params.limit) == (1, 20)

    @pytest.mark.parametrize("kwargs", [{"page": 0}, {"limit": 0}, {"limit": 101}])
    def test_bounds(self, kwargs: dict) -> None:
        with pytest.raises(pydantic.ValidationError):
            PaginationParams(**kwargs)

    def test_sort_direction(self) -> None:
        assert SortOptions(field="created_at").direction == "desc"
        with pytest.raises(pydantic.ValidationError):
            SortOptions(field="created_at", direction="sideways")  # type: ignore[arg-type]

    def test_paginated_result(self) -> None:
        issue = Issue(id="i1", title="Fix", created_at=NOW, updated_at=NOW)
        result = PaginatedResult[Issue](items=[issue], total=1, page=1, limit=20, has_more=False)
        assert result.items[0].id == "i1"
