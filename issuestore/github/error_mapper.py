"""Translate GitHub/httpx failures into the domain error taxonomy.

Failures arrive in different shapes: ``httpx.HTTPStatusError`` carries the
response, transport errors carry none, and other callers may hand over an
object with a bare ``status``/``status_code`` attribute. Everything is
normalized here so no caller has to know which shape it got.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx

from issuestore.errors import (
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    RateLimitedError,
    ServerError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_DEFAULT_SCOPE_HINT = "requires the 'repo' scope (or 'public_repo' for public repositories)"


def _status_of(exc: BaseException) -> int | None:
    response = getattr(exc, "response", None)
    if isinstance(response, httpx.Response):
        return response.status_code
    for attr in ("status", "status_code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    return None


def _headers_of(exc: BaseException) -> httpx.Headers:
    response = getattr(exc, "response", None)
    if isinstance(response, httpx.Response):
        return response.headers
    return httpx.Headers(getattr(exc, "headers", None) or {})


def _payload_of(exc: BaseException) -> dict[str, Any]:
    response = getattr(exc, "response", None)
    if not isinstance(response, httpx.Response):
        return {}
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


def _message_of(exc: BaseException, payload: dict[str, Any]) -> str:
    message = payload.get("message")
    if isinstance(message, str) and message:
        return message
    response = getattr(exc, "response", None)
    if isinstance(response, httpx.Response) and response.text:
        return response.text.strip()
    return str(exc) or "Unknown GitHub API error"


def _split_scopes(value: str | None) -> list[str]:
    if not value:
        return []
    return [scope.strip() for scope in value.split(",") if scope.strip()]


def _reset_time(headers: httpx.Headers) -> datetime | None:
    reset = headers.get("x-ratelimit-reset")
    if reset and reset.isdigit():
        return datetime.fromtimestamp(int(reset), tz=timezone.utc)
    retry_after = headers.get("retry-after")
    if retry_after and retry_after.isdigit():
        return datetime.now(tz=timezone.utc).replace(microsecond=0) + timedelta(seconds=int(retry_after))
    return None


def _rate_limited(headers: httpx.Headers) -> RateLimitedError:
    reset_at = _reset_time(headers)
    if reset_at is None:
        return RateLimitedError("Rate limited by GitHub API")
    return RateLimitedError(f"Rate limited by GitHub API. Resets at {reset_at.isoformat()}", reset_at=reset_at)


def _forbidden(headers: httpx.Headers, message: str) -> DomainError:
    if headers.get("x-ratelimit-remaining") == "0" or "rate limit" in message.lower():
        return _rate_limited(headers)

    accepted = _split_scopes(headers.get("x-accepted-oauth-scopes"))
    granted = _split_scopes(headers.get("x-oauth-scopes"))
    missing = [scope for scope in accepted if scope not in granted]
    if missing:
        scope = missing[0]
        return AuthorizationError(
            "access GitHub resource",
            f"token is missing the '{scope}' scope",
            scope=scope,
        )
    return AuthorizationError("access GitHub resource", f"{message}; the token {_DEFAULT_SCOPE_HINT}")


def _unprocessable(payload: dict[str, Any], message: str) -> ValidationError:
    errors = payload.get("errors")
    if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        first = errors[0]
        field = first.get("field") or "unknown"
        field_message = first.get("message") or first.get("code") or message
        return ValidationError(str(field), str(field_message))
    return ValidationError("unknown", message)


def normalize_error(
    exc: BaseException,
    resource: str = "resource",
    identifier: str | int | None = None,
) -> DomainError:
    """Classify exc into a DomainError subclass.

    resource and identifier name what was being accessed and end up in
    NotFound/Conflict messages.
    """
    if isinstance(exc, DomainError):
        return exc

    status = _status_of(exc)
    if status is None:
        if isinstance(exc, httpx.RemoteProtocolError):
            return ServerError(f"GitHub server error: {exc}")
        return DomainError(f"GitHub API error: {exc}", "GITHUB_ERROR")

    headers = _headers_of(exc)
    payload = _payload_of(exc)
    message = _message_of(exc, payload)
    target = identifier if identifier is not None else "unknown"
    logger.debug("GitHub API returned %s for %s %s: %s", status, resource, target, message)

    if status == 401:
        return AuthorizationError("access GitHub resource", "invalid or expired credentials")
    if status == 403:
        return _forbidden(headers, message)
    if status == 404:
        return NotFoundError(resource, target)
    if status == 409:
        return ConflictError(resource, target, message)
    if status == 422:
        return _unprocessable(payload, message)
    if status == 429:
        return _rate_limited(headers)
    if status >= 500:
        return ServerError(f"GitHub server error: {message}", status=status)
    return DomainError(f"GitHub API error: {message}", "GITHUB_ERROR")
