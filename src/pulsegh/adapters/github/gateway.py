"""
GitHub Query Gateway - Implements QueryGatewayPort on top of GitHubApiClient.

Projects, fields and node ids come from GraphQL; repositories, the
organization lookup and permissions come from REST.
"""

import logging
from typing import Any

from pulsegh.core.domain.entities import Owner
from pulsegh.core.domain.enums import OwnerKind
from pulsegh.core.exceptions import AccessDeniedError, GatewayError, ResourceNotFoundError
from pulsegh.core.ports.query_gateway import (
    ItemsPage,
    ProjectFields,
    ProjectSummary,
    QueryGatewayPort,
    RawField,
)

from .client import GitHubApiClient
from .queries import (
    GraphQLQuery,
    project_fields_query,
    project_items_query,
    projects_discovery_query,
    workspace_id_query,
)


def repository_from_rest(data: dict[str, Any]) -> dict[str, Any]:
    """Reduce a REST repository object to the cached repository shape."""
    return {
        "name": data.get("name", ""),
        "id": data.get("node_id", ""),
        "full_name": data.get("full_name", ""),
        "default_branch": data.get("default_branch", ""),
        "visibility": data.get("visibility", ""),
    }


class GitHubQueryGateway(QueryGatewayPort):
    """
    Remote query gateway for GitHub.

    Stateless apart from the client; every call is one (or, for REST
    collections, one per page) blocking request.
    """

    def __init__(self, client: GitHubApiClient):
        self._client = client
        self.logger = logging.getLogger("GitHubQueryGateway")

    @property
    def client(self) -> GitHubApiClient:
        return self._client

    # -------------------------------------------------------------------------
    # Core queries
    # -------------------------------------------------------------------------

    def query_project_items(
        self,
        owner: Owner,
        project_number: int,
        page_size: int,
        cursor: str | None = None,
    ) -> ItemsPage:
        query = project_items_query(owner, project_number, page_size, cursor)
        project = self._require_node(query, f"project #{project_number} of {owner.login}")

        items = project.get("items") or {}
        page_info = items.get("pageInfo") or {}

        return ItemsPage(
            summary=ProjectSummary(
                id=str(project.get("id", "")),
                title=str(project.get("title", "")),
                total_count=int(items.get("totalCount") or 0),
            ),
            items=list(items.get("nodes") or []),
            next_cursor=page_info.get("endCursor"),
            has_more=bool(page_info.get("hasNextPage")),
        )

    def query_project_fields(self, owner: Owner, project_number: int) -> ProjectFields:
        query = project_fields_query(owner, project_number)
        project = self._require_node(query, f"project #{project_number} of {owner.login}")

        # Non-field nodes of the union come back as empty objects.
        nodes = [n for n in (project.get("fields") or {}).get("nodes") or [] if n]

        return ProjectFields(
            id=str(project.get("id", "")),
            title=str(project.get("title", "")),
            number=int(project.get("number") or project_number),
            url=str(project.get("url") or ""),
            closed=bool(project.get("closed")),
            fields=[RawField.from_node(n) for n in nodes],
        )

    def query_repository(self, owner_login: str, repo_name: str) -> dict[str, Any]:
        data = self._client.get(f"repos/{owner_login}/{repo_name}")
        if not isinstance(data, dict):
            raise GatewayError(f"Unexpected repository payload for {owner_login}/{repo_name}")
        return repository_from_rest(data)

    def query_workspace_id(self, owner: Owner) -> str:
        query = workspace_id_query(owner)
        node_id = query.extract(self._client.graphql(query))
        if not node_id:
            raise ResourceNotFoundError(
                f"{owner.kind.display_name} {owner.login} not found", resource=owner.login
            )
        return str(node_id)

    # -------------------------------------------------------------------------
    # Discovery
    # -------------------------------------------------------------------------

    def resolve_owner_kind(self, login: str) -> OwnerKind:
        try:
            self._client.get(f"orgs/{login}")
        except ResourceNotFoundError:
            return OwnerKind.USER
        return OwnerKind.ORGANIZATION

    def discover_projects(self, owner: Owner) -> list[dict[str, Any]]:
        """Every project of the owner, following ``pageInfo`` cursors."""
        projects: list[dict[str, Any]] = []
        cursor: str | None = None

        while True:
            query = projects_discovery_query(owner, cursor=cursor)
            connection = query.extract(self._client.graphql(query)) or {}
            projects.extend(
                {
                    "number": int(n["number"]),
                    "id": n.get("id", ""),
                    "title": n.get("title", ""),
                    "url": n.get("url", ""),
                    "closed": bool(n.get("closed")),
                }
                for n in connection.get("nodes") or []
                if n
            )

            page_info = connection.get("pageInfo") or {}
            cursor = page_info.get("endCursor")
            if not page_info.get("hasNextPage") or not cursor:
                return projects

    def discover_repositories(self, owner: Owner) -> list[dict[str, Any]]:
        """
        Every repository of the owner.

        ``users/{login}/repos`` only lists public repositories, so a user
        workspace owned by the authenticated user is listed through
        ``user/repos`` instead, which includes private ones.
        """
        if owner.is_organization:
            rows = self._client.get_paginated(f"orgs/{owner.login}/repos")
        elif self.get_viewer_login().lower() == owner.login.lower():
            rows = self._client.get_paginated("user/repos", params={"affiliation": "owner"})
        else:
            rows = self._client.get_paginated(f"users/{owner.login}/repos")
        return [repository_from_rest(r) for r in rows]

    # -------------------------------------------------------------------------
    # Permissions
    # -------------------------------------------------------------------------

    def get_viewer_login(self) -> str:
        data = self._client.get("user")
        return str(data.get("login", "")) if isinstance(data, dict) else ""

    def get_org_role(self, org_login: str, user_login: str) -> str:
        try:
            data = self._client.get(f"orgs/{org_login}/memberships/{user_login}")
        except (ResourceNotFoundError, AccessDeniedError) as e:
            self.logger.debug(f"No membership for {user_login} in {org_login}: {e}")
            return "none"
        return str(data.get("role") or "none") if isinstance(data, dict) else "none"

    def get_repo_permission(self, repo_full_name: str, user_login: str) -> str:
        try:
            data = self._client.get(f"repos/{repo_full_name}/collaborators/{user_login}/permission")
        except (ResourceNotFoundError, AccessDeniedError) as e:
            self.logger.debug(f"No permission record for {user_login} on {repo_full_name}: {e}")
            return "none"
        return str(data.get("permission") or "none") if isinstance(data, dict) else "none"

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _require_node(self, query: GraphQLQuery, label: str) -> dict[str, Any]:
        node = query.extract(self._client.graphql(query))
        if not isinstance(node, dict):
            raise ResourceNotFoundError(f"Not found: {label}", resource=label)
        return node
