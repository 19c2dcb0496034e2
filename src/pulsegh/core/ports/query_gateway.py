"""
Query Gateway Port - Abstract interface to the remote collaboration platform.

The gateway executes parameterized queries and hands back plain JSON-shaped
results. It never retries; failures surface as GatewayError subclasses.

Implementations:
- GitHubQueryGateway: GitHub GraphQL + REST API over requests
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from pulsegh.core.domain.entities import Owner
from pulsegh.core.domain.enums import OwnerKind


__all__ = [
    "ItemsPage",
    "ProjectFields",
    "ProjectSummary",
    "QueryGatewayPort",
    "RawField",
]


@dataclass(frozen=True)
class ProjectSummary:
    """Project metadata captured from the first page of an items query."""

    id: str
    title: str
    total_count: int


@dataclass(frozen=True)
class ItemsPage:
    """
    One page of project items.

    Attributes:
        summary: Project id, title and total item count.
        items: The raw item nodes of this page, in remote order.
        next_cursor: Continuation token, or None on the last page.
        has_more: Whether the platform reports further pages.
    """

    summary: ProjectSummary
    items: list[dict[str, Any]] = field(default_factory=list)
    next_cursor: str | None = None
    has_more: bool = False


@dataclass(frozen=True)
class RawField:
    """
    A field definition as the platform returns it.

    ``data_type`` is the platform's tag (``TEXT``, ``SINGLE_SELECT``,
    ``ITERATION``...). ``options`` holds ``{"id", "name"}`` dicts for
    single-select fields, ``iterations`` holds ``{"id", "title"}`` dicts for
    iteration fields.
    """

    id: str
    name: str
    data_type: str
    options: list[dict[str, Any]] = field(default_factory=list)
    iterations: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_node(cls, node: dict[str, Any]) -> "RawField":
        """Build from a GraphQL ``fields.nodes`` entry."""
        configuration = node.get("configuration") or {}
        return cls(
            id=str(node.get("id", "")),
            name=str(node.get("name", "")),
            data_type=str(node.get("dataType", "")),
            options=list(node.get("options") or []),
            iterations=list(configuration.get("iterations") or []),
        )


@dataclass(frozen=True)
class ProjectFields:
    """Project identity plus its raw field list."""

    id: str
    title: str
    number: int
    url: str = ""
    closed: bool = False
    fields: list[RawField] = field(default_factory=list)


class QueryGatewayPort(ABC):
    """
    Abstract interface to the remote query service.

    Every owner-scoped method takes an Owner so the implementation can pick
    the user or organization variant of the query.
    """

    # -------------------------------------------------------------------------
    # Core queries
    # -------------------------------------------------------------------------

    @abstractmethod
    def query_project_items(
        self,
        owner: Owner,
        project_number: int,
        page_size: int,
        cursor: str | None = None,
    ) -> ItemsPage:
        """
        Fetch one page of a project's items.

        Args:
            owner: Owner login and kind
            project_number: Project number within the owner
            page_size: Maximum items in the page
            cursor: Continuation token from the previous page, or None

        Returns:
            The page with summary metadata and continuation info
        """
        ...

    @abstractmethod
    def query_project_fields(self, owner: Owner, project_number: int) -> ProjectFields:
        """Fetch a project's identity and its raw field definitions."""
        ...

    @abstractmethod
    def query_repository(self, owner_login: str, repo_name: str) -> dict[str, Any]:
        """
        Fetch repository metadata.

        Returns:
            Dict with ``name``, ``id``, ``full_name``, ``default_branch``
            and ``visibility``
        """
        ...

    @abstractmethod
    def query_workspace_id(self, owner: Owner) -> str:
        """Resolve the opaque node id of the workspace."""
        ...

    # -------------------------------------------------------------------------
    # Discovery
    # -------------------------------------------------------------------------

    @abstractmethod
    def resolve_owner_kind(self, login: str) -> OwnerKind:
        """Decide whether a login is an organization or a user."""
        ...

    @abstractmethod
    def discover_projects(self, owner: Owner) -> list[dict[str, Any]]:
        """
        List the owner's projects.

        Returns:
            Dicts with ``number``, ``id``, ``title``, ``url`` and ``closed``
        """
        ...

    @abstractmethod
    def discover_repositories(self, owner: Owner) -> list[dict[str, Any]]:
        """List the owner's repositories in the ``query_repository`` shape."""
        ...

    # -------------------------------------------------------------------------
    # Permissions (optional - defaults describe an unknown role)
    # -------------------------------------------------------------------------

    def get_viewer_login(self) -> str:
        """Login of the authenticated user."""
        return ""

    def get_org_role(self, org_login: str, user_login: str) -> str:
        """Role of ``user_login`` in the organization."""
        return "none"

    def get_repo_permission(self, repo_full_name: str, user_login: str) -> str:
        """Permission of ``user_login`` on the repository."""
        return "none"
