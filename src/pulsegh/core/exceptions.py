"""
Exceptions - Centralized exception hierarchy for pulsegh.

All errors raised by the library derive from PulseError so callers can
catch one base type. The hierarchy mirrors the failure families of a
workspace sync:

- UsageError: required identifiers missing, rejected before any remote call
- GatewayError: the remote query gateway failed (propagated verbatim)
- IntegrityError: data that cannot be trusted (duplicate field names,
  unsorted drift input, malformed snapshot documents)
- StateError: operation not valid for the current snapshot state
- ConfigError: configuration missing or invalid

None of these are recovered locally; every one is terminal for the
operation in progress.
"""

from __future__ import annotations

from typing import Any


__all__ = [
    "AccessDeniedError",
    "AlreadyInitializedError",
    "AuthenticationError",
    "ConfigError",
    "DuplicateFieldError",
    "GatewayError",
    "GraphQLQueryError",
    "IntegrityError",
    "NotInitializedError",
    "PulseError",
    "ResourceNotFoundError",
    "SnapshotFormatError",
    "StateError",
    "TransportError",
    "UnsortedKeysError",
    "UsageError",
]


# =============================================================================
# Base
# =============================================================================


class PulseError(Exception):
    """
    Base class for all pulsegh errors.

    Attributes:
        message: Human-readable error message.
        cause: The underlying exception, if any.
    """

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message} (caused by: {self.cause})"
        return self.message


# =============================================================================
# Usage errors
# =============================================================================


class UsageError(PulseError):
    """A required identifier or argument is missing or invalid."""

    def __init__(
        self,
        message: str,
        argument: str | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message, cause=cause)
        self.argument = argument


# =============================================================================
# Gateway errors
# =============================================================================


class GatewayError(PulseError):
    """
    A remote query failed.

    Gateway errors are never retried by this library; any retry policy
    belongs to the caller.
    """

    def __init__(
        self,
        message: str,
        resource: str | None = None,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message, cause=cause)
        self.resource = resource
        self.status_code = status_code


class AuthenticationError(GatewayError):
    """The token was rejected (HTTP 401)."""


class AccessDeniedError(GatewayError):
    """The token lacks permission for the resource (HTTP 403)."""


class ResourceNotFoundError(GatewayError):
    """The resource does not exist or is not visible to the token."""


class GraphQLQueryError(GatewayError):
    """The GraphQL endpoint answered with an ``errors`` array."""

    def __init__(
        self,
        message: str,
        errors: list[dict[str, Any]] | None = None,
        resource: str | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message, resource=resource, cause=cause)
        self.errors = errors or []


class TransportError(GatewayError):
    """Connection failure or timeout talking to the remote platform."""


# =============================================================================
# Integrity errors
# =============================================================================


class IntegrityError(PulseError):
    """Data failed an integrity check; nothing is guessed or repaired."""


class DuplicateFieldError(IntegrityError):
    """Two fields in one project share a name."""

    def __init__(self, field_name: str, project: str | int | None = None):
        where = f" in project {project}" if project is not None else ""
        super().__init__(f"Duplicate field name {field_name!r}{where}")
        self.field_name = field_name
        self.project = project


class UnsortedKeysError(IntegrityError):
    """Drift detection was given keys that are not sorted and unique."""

    def __init__(self, message: str, keys: list[Any] | None = None):
        super().__init__(message)
        self.keys = keys or []


class SnapshotFormatError(IntegrityError):
    """A persisted snapshot could not be parsed into the expected shape."""

    def __init__(self, message: str, path: str | None = None, cause: BaseException | None = None):
        super().__init__(message, cause=cause)
        self.path = path


# =============================================================================
# State errors
# =============================================================================


class StateError(PulseError):
    """The operation is not valid in the current snapshot state."""


class AlreadyInitializedError(StateError):
    """initialize() was called while a snapshot already exists."""


class NotInitializedError(StateError):
    """refresh() or a snapshot read was attempted with no snapshot present."""


# =============================================================================
# Configuration errors
# =============================================================================


class ConfigError(PulseError):
    """Configuration is missing or invalid."""

    def __init__(
        self,
        message: str,
        errors: list[str] | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message, cause=cause)
        self.errors = errors or []
