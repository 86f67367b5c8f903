"""Abstract repository contracts consumed by domain use cases."""

from abc import ABC, abstractmethod

from issuestore.models import (
    CreateIssueInput,
    CreateMilestoneInput,
    Issue,
    IssueFilter,
    IssueLink,
    Milestone,
    PaginatedResult,
    PaginationParams,
    SortOptions,
    UpdateIssueInput,
    UpdateMilestoneInput,
)


class IssueRepository(ABC):
    @abstractmethod
    def create(self, data: CreateIssueInput) -> Issue: ...

    @abstractmethod
    def get_by_id(self, issue_id: str) -> Issue: ...

    @abstractmethod
    def update(self, issue_id: str, data: UpdateIssueInput) -> Issue: ...

    @abstractmethod
    def delete(self, issue_id: str) -> None: ...

    @abstractmethod
    def list(
        self,
        filter: IssueFilter,
        pagination: PaginationParams,
        sort: SortOptions | None = None,
    ) -> PaginatedResult[Issue]: ...


class MilestoneRepository(ABC):
    @abstractmethod
    def create(self, data: CreateMilestoneInput) -> Milestone: ...

    @abstractmethod
    def get_by_id(self, milestone_id: str) -> Milestone: ...

    @abstractmethod
    def update(self, milestone_id: str, data: UpdateMilestoneInput) -> Milestone: ...

    @abstractmethod
    def delete(self, milestone_id: str) -> None: ...

    @abstractmethod
    def list(self, pagination: PaginationParams, sort: SortOptions | None = None) -> PaginatedResult[Milestone]: ...


class IssueLinkRepository(ABC):
    @abstractmethod
    def create(self, link: IssueLink) -> IssueLink: ...

    @abstractmethod
    def find_by_id(self, link_id: str) -> IssueLink | None: ...

    @abstractmethod
    def find_by_issue_id(self, issue_id: str, type: str | None = None) -> list[IssueLink]:
        """Links where the issue is either source or target."""

    @abstractmethod
    def find_by_source_and_target_and_type(
        self,
        source_issue_id: str,
        target_issue_id: str,
        type: str,
    ) -> IssueLink | None: ...

    @abstractmethod
    def delete(self, link_id: str) -> None: ...

    @abstractmethod
    def delete_by_issue_id(self, issue_id: str) -> None:
        """Remove every link the issue takes part in, in either direction."""
