"""
Domain enums - Owner kind, field category, and other enumerated types.
"""

from __future__ import annotations

from enum import Enum


class OwnerKind(Enum):
    """
    The kind of account that owns a workspace.

    Every owner-scoped query has a user variant and an organization
    variant; the kind decides which one is built.
    """

    USER = "user"
    ORGANIZATION = "organization"

    @classmethod
    def from_string(cls, value: str) -> OwnerKind:
        """
        Parse an owner kind from common spellings.

        Accepts ``user``/``User``/``viewer`` and ``org``/``organization``
        (case-insensitive).

        Raises:
            ValueError: If the value is not a known owner kind.
        """
        normalized = value.strip().lower()

        if normalized in ("user", "viewer"):
            return cls.USER
        if normalized in ("org", "organization", "organisation"):
            return cls.ORGANIZATION

        raise ValueError(f"Unknown owner kind: {value!r}")

    @property
    def display_name(self) -> str:
        """Human-readable name."""
        return "User" if self is OwnerKind.USER else "Organization"


class FieldCategory(Enum):
    """Shape of a project field."""

    PLAIN = "plain"
    SINGLE_SELECT = "single_select"
    ITERATION = "iteration"

    @classmethod
    def from_data_type(cls, data_type: str) -> FieldCategory:
        """Map a GitHub ``dataType`` (e.g. ``SINGLE_SELECT``) to a category."""
        normalized = data_type.strip().upper()
        if normalized == "SINGLE_SELECT":
            return cls.SINGLE_SELECT
        if normalized == "ITERATION":
            return cls.ITERATION
        return cls.PLAIN


class Visibility(Enum):
    """Repository visibility."""

    PUBLIC = "public"
    PRIVATE = "private"
    INTERNAL = "internal"

    @classmethod
    def from_string(cls, value: str) -> Visibility:
        """Parse visibility, case-insensitively."""
        try:
            return cls(value.strip().lower())
        except ValueError as e:
            raise ValueError(f"Unknown repository visibility: {value!r}") from e


class ChangeCategory(Enum):
    """Category of a drift report."""

    PROJECTS = "projects"
    FIELDS = "fields"
    REPOSITORIES = "repositories"


class SyncState(Enum):
    """Lifecycle state of the refresh orchestrator."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    REFRESHING = "refreshing"
