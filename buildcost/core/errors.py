"""Domain error hierarchy shared by services and rendered by the API."""

from typing import Any


class DomainError(Exception):
    """
    Base exception for service-layer failures.

    Each subclass maps to one error kind and HTTP status. Services raise these;
    the exception handlers in main.py render them as
    ``{"error": {"kind", "message", "details"?}}``.
    """

    kind = "error"
    status_code = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        error: dict[str, Any] = {"kind": self.kind, "message": self.message}
        if self.details:
            error["details"] = self.details
        return {"error": error}


class ValidationError(DomainError):
    """Input is well-formed but violates a business rule."""

    kind = "validation_error"
    status_code = 400


class NotAuthenticated(DomainError):
    kind = "not_authenticated"
    status_code = 401


class Forbidden(DomainError):
    """Caller lacks the role or membership required for the action."""

    kind = "forbidden"
    status_code = 403


class NotFound(DomainError):
    kind = "not_found"
    status_code = 404


class Conflict(DomainError):
    """Action clashes with existing state (duplicates, dependents)."""

    kind = "conflict"
    status_code = 409


class ResourceInUse(Conflict):
    """Catalog component or item still referenced elsewhere."""

    kind = "resource_in_use"

    def __init__(self, message: str, usage_count: int):
        super().__init__(message, details={"usage_count": usage_count})
        self.usage_count = usage_count
