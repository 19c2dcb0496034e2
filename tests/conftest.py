"""
Shared pytest fixtures for the pulsegh test suite.

Fixture Categories:
- Gateway: an in-memory QueryGatewayPort with a small organization
- Domain: sample raw fields, workspace, snapshot
- Time: a fixed, controllable clock
- Stores: in-memory and YAML snapshot stores
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest

from pulsegh.core.domain import Owner, OwnerKind, Workspace
from pulsegh.core.exceptions import ResourceNotFoundError
from pulsegh.core.ports import (
    InMemorySnapshotStore,
    ItemsPage,
    ProjectFields,
    ProjectSummary,
    QueryGatewayPort,
    RawField,
)


# =============================================================================
# Fake Gateway
# =============================================================================


class FakeGateway(QueryGatewayPort):
    """
    In-memory workspace.

    Items are paged with cursors of the form ``"c<offset>"``. Project numbers
    and repository names in ``unlisted`` exist but are left out of discovery,
    as GitHub does past the first page or for private repositories. Every call is
    appended to ``calls`` as ``(method, args)``.
    """

    def __init__(self, login: str = "acme", kind: OwnerKind = OwnerKind.ORGANIZATION):
        self.login = login
        self.kind = kind
        self.workspace_id = "O_acme"
        self.projects: dict[int, ProjectFields] = {}
        self.items: dict[int, list[dict[str, Any]]] = {}
        self.repositories: dict[str, dict[str, Any]] = {}
        self.viewer = "octocat"
        self.org_role = "admin"
        self.repo_permissions: dict[str, str] = {}
        self.fail_on_page: int | None = None
        self.unlisted: set = set()
        self.calls: list[tuple[str, tuple]] = []

    # Setup helpers

    def add_project(
        self,
        number: int,
        title: str = "",
        fields: list[RawField] | None = None,
        closed: bool = False,
    ) -> None:
        self.projects[number] = ProjectFields(
            id=f"PVT_{number}",
            title=title or f"Project {number}",
            number=number,
            url=f"https://github.com/orgs/{self.login}/projects/{number}",
            closed=closed,
            fields=list(fields or []),
        )

    def add_repository(self, name: str, visibility: str = "private") -> None:
        self.repositories[name] = {
            "name": name,
            "id": f"R_{name}",
            "full_name": f"{self.login}/{name}",
            "default_branch": "main",
            "visibility": visibility,
        }

    # QueryGatewayPort

    def query_project_items(
        self,
        owner: Owner,
        project_number: int,
        page_size: int,
        cursor: str | None = None,
    ) -> ItemsPage:
        self.calls.append(("query_project_items", (owner.login, project_number, page_size, cursor)))
        project = self._project(project_number)

        page_index = sum(1 for name, _ in self.calls if name == "query_project_items")
        if self.fail_on_page is not None and page_index == self.fail_on_page:
            raise ResourceNotFoundError("page request failed", resource="items")

        all_items = self.items.get(project_number, [])
        offset = int(cursor[1:]) if cursor else 0
        page = all_items[offset : offset + page_size]
        end = offset + len(page)
        has_more = end < len(all_items)

        return ItemsPage(
            summary=ProjectSummary(id=project.id, title=project.title, total_count=len(all_items)),
            items=page,
            next_cursor=f"c{end}" if has_more else None,
            has_more=has_more,
        )

    def query_project_fields(self, owner: Owner, project_number: int) -> ProjectFields:
        self.calls.append(("query_project_fields", (owner.login, project_number)))
        return self._project(project_number)

    def query_repository(self, owner_login: str, repo_name: str) -> dict[str, Any]:
        self.calls.append(("query_repository", (owner_login, repo_name)))
        if repo_name not in self.repositories:
            raise ResourceNotFoundError(f"Not found: {owner_login}/{repo_name}")
        return dict(self.repositories[repo_name])

    def query_workspace_id(self, owner: Owner) -> str:
        self.calls.append(("query_workspace_id", (owner.login, owner.kind)))
        return self.workspace_id

    def resolve_owner_kind(self, login: str) -> OwnerKind:
        self.calls.append(("resolve_owner_kind", (login,)))
        return self.kind

    def discover_projects(self, owner: Owner) -> list[dict[str, Any]]:
        self.calls.append(("discover_projects", (owner.login,)))
        return [
            {"number": p.number, "id": p.id, "title": p.title, "url": p.url, "closed": p.closed}
            for p in self.projects.values()
            if p.number not in self.unlisted
        ]

    def discover_repositories(self, owner: Owner) -> list[dict[str, Any]]:
        self.calls.append(("discover_repositories", (owner.login,)))
        return [dict(r) for name, r in self.repositories.items() if name not in self.unlisted]

    def get_viewer_login(self) -> str:
        return self.viewer

    def get_org_role(self, org_login: str, user_login: str) -> str:
        return self.org_role

    def get_repo_permission(self, repo_full_name: str, user_login: str) -> str:
        return self.repo_permissions.get(repo_full_name, "write")

    def _project(self, number: int) -> ProjectFields:
        if number not in self.projects:
            raise ResourceNotFoundError(f"Not found: project #{number}")
        return self.projects[number]

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


# =============================================================================
# Domain Fixtures
# =============================================================================


@pytest.fixture
def sample_raw_fields() -> list[RawField]:
    """One field of each category, as GitHub returns them."""
    return [
        RawField(id="F_title", name="Title", data_type="TITLE"),
        RawField(
            id="F_status",
            name="Status",
            data_type="SINGLE_SELECT",
            options=[
                {"id": "O_todo", "name": "Todo"},
                {"id": "O_doing", "name": "In Progress"},
                {"id": "O_done", "name": "Done"},
            ],
        ),
        RawField(
            id="F_sprint",
            name="Sprint",
            data_type="ITERATION",
            iterations=[
                {"id": "I_1", "title": "Sprint 1"},
                {"id": "I_2", "title": "Sprint 2"},
            ],
        ),
        RawField(id="F_points", name="Points", data_type="NUMBER"),
    ]


@pytest.fixture
def workspace() -> Workspace:
    return Workspace(login="acme", kind=OwnerKind.ORGANIZATION, id="O_acme")


@pytest.fixture
def fake_gateway(sample_raw_fields) -> FakeGateway:
    """
    Organization ``acme`` with:
    - projects #1 (all sample fields) and #2 (Title only)
    - repositories ``api`` and ``web``
    - five items on project #1
    """
    gateway = FakeGateway()
    gateway.add_project(1, "Roadmap", sample_raw_fields)
    gateway.add_project(2, "Bugs", sample_raw_fields[:1])
    gateway.add_repository("api")
    gateway.add_repository("web", visibility="public")
    gateway.items[1] = [{"id": f"PVTI_{i}", "type": "ISSUE"} for i in range(5)]
    return gateway


# =============================================================================
# Time and Store Fixtures
# =============================================================================


@pytest.fixture
def fixed_clock() -> FixedClock:
    return FixedClock(datetime(2026, 1, 1, 0, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def memory_store() -> InMemorySnapshotStore:
    return InMemorySnapshotStore()


@pytest.fixture
def snapshot_path(tmp_path) -> Path:
    return tmp_path / ".pulsegh" / "config.yaml"
