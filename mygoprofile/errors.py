"""Error types shared by the data sources and the API layer."""

from enum import Enum
from typing import Any

import httpx


class BusinessErrorKind(str, Enum):
    AUTH_EXPIRED = "auth_expired"
    INSUFFICIENT_SCOPE = "insufficient_scope"
    NOT_FOUND = "not_found"
    TRANSIENT = "transient"
    UNKNOWN = "unknown"


class BusinessDataError(Exception):
    """Raised by a BusinessDataSource when an upstream read fails."""

    def __init__(self, kind: BusinessErrorKind, message: str, status_code: int | None = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code

    def __repr__(self) -> str:
        return f"BusinessDataError({self.kind.value!r}, {self.message!r}, status_code={self.status_code})"


class ApiError(Exception):
    """An HTTP error rendered as {"error": ..., "details": ...}."""

    def __init__(self, status_code: int, error: str, details: str | None = None):
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.details = details

    def payload(self) -> dict[str, str]:
        body = {"error": self.error}
        if self.details is not None:
            body["details"] = self.details
        return body


_SCOPE_REASONS = {"ACCESS_TOKEN_SCOPE_INSUFFICIENT", "insufficient_scope"}
_AUTH_REASONS = {"invalid_grant", "invalid_token", "ACCESS_TOKEN_EXPIRED", "CREDENTIALS_MISSING"}
_TRANSIENT_STATUSES = {408, 429, 500, 502, 503, 504}


def _error_reasons(error: dict[str, Any]) -> set[str]:
    reasons = set()
    for detail in error.get("details") or []:
        if isinstance(detail, dict) and detail.get("reason"):
            reasons.add(str(detail["reason"]))
    for item in error.get("errors") or []:
        if isinstance(item, dict) and item.get("reason"):
            reasons.add(str(item["reason"]))
    return reasons


def parse_google_error(response: httpx.Response) -> tuple[str | None, set[str], str]:
    """Extract (status, reasons, message) from a Google error response.

    Google REST APIs answer {"error": {"code": 403, "message": "...", "status": "...",
    "details": [{"reason": "..."}]}} while the OAuth endpoints answer
    {"error": "invalid_grant", "error_description": "..."}.
    """
    try:
        body = response.json()
    except ValueError:
        return None, set(), (response.text or "").strip() or f"HTTP {response.status_code}"

    if not isinstance(body, dict):
        return None, set(), str(body)

    error = body.get("error")
    if isinstance(error, dict):
        status = error.get("status")
        message = error.get("message") or status or f"HTTP {response.status_code}"
        return status, _error_reasons(error), f"{status}: {message}" if status else message

    if isinstance(error, str):
        description = body.get("error_description") or error
        return None, {error}, f"{error}: {description}" if description != error else error

    return None, set(), (response.text or "").strip() or f"HTTP {response.status_code}"


def classify_response(response: httpx.Response) -> BusinessDataError:
    """Map a non-success Google response onto the closed error taxonomy."""
    status, reasons, message = parse_google_error(response)
    code = response.status_code

    # www-authenticate carries error="insufficient_scope" on some 403s
    challenge = response.headers.get("www-authenticate", "")
    if "insufficient_scope" in challenge:
        reasons.add("insufficient_scope")

    if reasons & _SCOPE_REASONS:
        kind = BusinessErrorKind.INSUFFICIENT_SCOPE
    elif reasons & _AUTH_REASONS or code == 401 or status == "UNAUTHENTICATED":
        kind = BusinessErrorKind.AUTH_EXPIRED
    elif code == 403 or status == "PERMISSION_DENIED":
        kind = BusinessErrorKind.INSUFFICIENT_SCOPE
    elif code == 404 or status == "NOT_FOUND":
        kind = BusinessErrorKind.NOT_FOUND
    elif code in _TRANSIENT_STATUSES or status in {"UNAVAILABLE", "RESOURCE_EXHAUSTED", "DEADLINE_EXCEEDED"}:
        kind = BusinessErrorKind.TRANSIENT
    else:
        kind = BusinessErrorKind.UNKNOWN
    return BusinessDataError(kind, message, status_code=code)


def classify_transport_error(exc: httpx.TransportError) -> BusinessDataError:
    return BusinessDataError(
        BusinessErrorKind.TRANSIENT,
        f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__,
    )
