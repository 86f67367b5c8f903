"""Domain error taxonomy shared by every repository implementation."""

from datetime import datetime


class DomainError(Exception):
    def __init__(self, message: str, code: str = "DOMAIN_ERROR") -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class NotFoundError(DomainError):
    def __init__(self, entity: str, id: str | int) -> None:
        super().__init__(f"{entity} with id '{id}' not found", "NOT_FOUND")
        self.entity = entity
        self.id = id


class ValidationError(DomainError):
    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"Validation failed for '{field}': {message}", "VALIDATION_ERROR")
        self.field = field


class ConflictError(DomainError):
    def __init__(self, entity: str, id: str | int, reason: str) -> None:
        super().__init__(f"Conflict on {entity} '{id}': {reason}", "CONFLICT")
        self.entity = entity
        self.id = id


class AuthorizationError(DomainError):
    def __init__(self, action: str, reason: str, scope: str | None = None) -> None:
        super().__init__(f"Not authorized to {action}: {reason}", "AUTHORIZATION_ERROR")
        self.scope = scope


class RateLimitedError(DomainError):
    def __init__(self, message: str, reset_at: datetime | None = None) -> None:
        super().__init__(message, "RATE_LIMITED")
        self.reset_at = reset_at


class ServerError(DomainError):
    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message, "GITHUB_SERVER_ERROR")
        self.status = status
