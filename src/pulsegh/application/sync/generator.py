"""
Snapshot Generator - Assembles the complete workspace snapshot.

For each project number the project identity and field schema are fetched
and normalized; for each repository name its metadata is fetched. The
result is a full Snapshot; the caller persists it as a whole.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

from pulsegh.core.constants import TOOLKIT_VERSION
from pulsegh.core.domain.entities import CacheInfo, Project, Repository, Snapshot, Workspace
from pulsegh.core.domain.enums import Visibility
from pulsegh.core.domain.timestamps import utc_now
from pulsegh.core.exceptions import GatewayError, ResourceNotFoundError, UsageError
from pulsegh.core.ports.query_gateway import QueryGatewayPort

from .normalizer import normalize_fields


logger = logging.getLogger("SnapshotGenerator")


def unique_in_order(values: Iterable, label: str) -> list:
    """Drop repeated values, keeping the first occurrence; reject blanks."""
    seen: set = set()
    result = []
    for value in values:
        if value is None or value == "":
            raise UsageError(f"Empty {label} given", argument=label)
        if value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


class SnapshotGenerator:
    """
    Builds snapshots from live remote state.

    Given identical remote state, two generations produce identical
    snapshots apart from ``cache.last_synced_at`` (and ``initialized_at``
    when no previous cache block is passed).
    """

    def __init__(
        self,
        gateway: QueryGatewayPort,
        clock: Callable[[], datetime] = utc_now,
        toolkit_version: str = TOOLKIT_VERSION,
    ):
        self.gateway = gateway
        self.clock = clock
        self.toolkit_version = toolkit_version

    def build_project(self, workspace: Workspace, number: int) -> Project:
        """Fetch one project and normalize its fields."""
        raw = self.gateway.query_project_fields(workspace.owner, number)
        fields = normalize_fields(raw.fields, project=number)
        logger.debug(f"Project #{number} ({raw.title}): {len(fields)} fields")
        return Project(number=number, id=raw.id, title=raw.title, url=raw.url, fields=fields)

    def build_repository(self, workspace: Workspace, name: str) -> Repository:
        """Fetch one repository's metadata."""
        data = self.gateway.query_repository(workspace.login, name)
        visibility = str(data.get("visibility") or "")
        if visibility:
            try:
                visibility = Visibility.from_string(visibility).value
            except ValueError as e:
                raise GatewayError(str(e), resource=f"{workspace.login}/{name}", cause=e) from e
        return Repository(
            name=str(data.get("name") or name),
            id=str(data.get("id", "")),
            full_name=str(data.get("full_name") or f"{workspace.login}/{name}"),
            default_branch=str(data.get("default_branch") or ""),
            visibility=visibility,
        )

    def generate(
        self,
        workspace: Workspace,
        project_numbers: Iterable[int],
        repo_names: Iterable[str],
        previous_cache: CacheInfo | None = None,
        default_project: int | None = None,
        on_missing: Callable[[str, Any], None] | None = None,
    ) -> Snapshot:
        """
        Generate a complete snapshot.

        Args:
            workspace: Resolved workspace identity
            project_numbers: Projects to include (duplicates ignored)
            repo_names: Repositories to include (duplicates ignored)
            previous_cache: Cache block of the snapshot being replaced; its
                ``initialized_at`` is carried over
            default_project: Project number marked as the default; must be
                one of ``project_numbers``
            on_missing: Called with ``("project", number)`` or
                ``("repository", name)`` when that entry's own query reports
                it as not found; the entry is then left out. Without it a
                missing entry raises.

        Returns:
            The new snapshot

        Raises:
            UsageError: On a missing workspace login, blank identifiers or
                an unknown default project
            GatewayError: If any remote query fails
            DuplicateFieldError: If a project has two fields with one name
        """
        if not workspace.login:
            raise UsageError("Workspace login is required", argument="workspace")

        numbers = unique_in_order((int(n) for n in project_numbers), "project number")
        names = unique_in_order(repo_names, "repository name")

        if default_project is not None and default_project not in numbers:
            raise UsageError(
                f"Default project #{default_project} is not among the selected projects",
                argument="default_project",
            )

        projects = []
        for number in numbers:
            try:
                projects.append(self.build_project(workspace, number))
            except ResourceNotFoundError:
                if on_missing is None:
                    raise
                on_missing("project", number)

        repositories = []
        for name in names:
            try:
                repositories.append(self.build_repository(workspace, name))
            except ResourceNotFoundError:
                if on_missing is None:
                    raise
                on_missing("repository", name)

        if default_project is not None and all(p.number != default_project for p in projects):
            default_project = None

        now = self.clock()
        initialized_at = previous_cache.initialized_at if previous_cache else None

        snapshot = Snapshot(
            workspace=workspace,
            projects=projects,
            repositories=repositories,
            cache=CacheInfo(
                initialized_at=initialized_at or now,
                last_synced_at=now,
                toolkit_version=self.toolkit_version,
            ),
            default_project=default_project,
        )

        logger.info(
            f"Generated snapshot for {workspace.login}: {len(projects)} projects, "
            f"{len(repositories)} repositories"
        )
        return snapshot
