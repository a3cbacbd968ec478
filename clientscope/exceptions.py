"""Exception hierarchy for clientscope."""

from __future__ import annotations


class ClientScopeError(Exception):
    """Base exception for all clientscope errors."""


class Unauthenticated(ClientScopeError):
    """Raised when no identity can be resolved for the request."""


class Forbidden(ClientScopeError):
    """Raised when an identity lacks the role a role-gated operation requires."""


class AccessDenied(ClientScopeError):
    """Raised when a scoped lookup finds nothing.

    Covers both a resource that does not exist and one that exists outside
    the caller's scope. The two causes must stay indistinguishable all the
    way to the HTTP boundary, otherwise the status code tells a caller
    which ids exist in other tenants.
    """

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found")


class NotificationError(ClientScopeError):
    """Raised when notification rows cannot be written."""


class StorageError(ClientScopeError):
    """Raised when storage operations fail."""


class ConfigError(ClientScopeError):
    """Raised when configuration is invalid."""
