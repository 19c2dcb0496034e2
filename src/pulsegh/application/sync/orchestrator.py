"""
Refresh Orchestrator - Drives initialization, refresh and staleness checks.

States:
    UNINITIALIZED -> INITIALIZING -> READY
    READY -> REFRESHING -> READY

A failure during initialize or refresh leaves the persisted snapshot as it
was; the operation has to be run again from the start.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from pulsegh.core.constants import DEFAULT_PAGE_SIZE, DEFAULT_STALE_AFTER_DAYS
from pulsegh.core.domain.entities import (
    CacheInfo,
    PermissionsRecord,
    Snapshot,
    Workspace,
)
from pulsegh.core.domain.enums import OwnerKind, SyncState
from pulsegh.core.domain.timestamps import format_timestamp, utc_now
from pulsegh.core.exceptions import (
    AlreadyInitializedError,
    NotInitializedError,
    ResourceNotFoundError,
    UsageError,
)
from pulsegh.core.ports.query_gateway import QueryGatewayPort
from pulsegh.core.ports.snapshot_store import PermissionsStorePort, SnapshotStorePort

from .collector import PaginatedCollector, ProjectItems
from .drift import ChangeReport, DriftDetector, LiveState
from .generator import SnapshotGenerator


# Per-project roles are not exposed by the API; the workspace owner role is assumed.
DEFAULT_PROJECT_ROLE = "admin"


@dataclass
class RefreshResult:
    """Outcome of a refresh: what drifted and the snapshot now persisted."""

    snapshot: Snapshot
    reports: list[ChangeReport] = field(default_factory=list)
    dropped_projects: list[int] = field(default_factory=list)
    dropped_repositories: list[str] = field(default_factory=list)

    @property
    def has_drift(self) -> bool:
        return any(r.has_changes for r in self.reports)

    def to_dict(self) -> dict[str, Any]:
        return {
            "workspace": self.snapshot.workspace.login,
            "last_synced_at": self.snapshot.cache.to_dict()["last_synced_at"],
            "has_drift": self.has_drift,
            "reports": [r.to_dict() for r in self.reports],
            "dropped_projects": list(self.dropped_projects),
            "dropped_repositories": list(self.dropped_repositories),
        }


@dataclass(frozen=True)
class StalenessReport:
    """Advisory result of a staleness check."""

    stale: bool
    reason: str
    last_synced_at: datetime | None = None
    age: timedelta | None = None
    max_age_days: int = DEFAULT_STALE_AFTER_DAYS

    def to_dict(self) -> dict[str, Any]:
        return {
            "stale": self.stale,
            "reason": self.reason,
            "last_synced_at": format_timestamp(self.last_synced_at) if self.last_synced_at else None,
            "age_seconds": int(self.age.total_seconds()) if self.age is not None else None,
            "max_age_days": self.max_age_days,
        }


def check_staleness(
    store: SnapshotStorePort,
    max_age_days: int = DEFAULT_STALE_AFTER_DAYS,
    now: datetime | None = None,
) -> StalenessReport:
    """
    Report whether the stored snapshot is older than ``max_age_days``.

    Pure read: never touches the remote side or the store contents. A
    missing snapshot or a missing ``last_synced_at`` counts as stale.

    Raises:
        UsageError: If ``max_age_days`` is negative
    """
    if max_age_days < 0:
        raise UsageError("max_age_days cannot be negative", argument="max_age_days")

    snapshot = store.load()
    if snapshot is None:
        return StalenessReport(stale=True, reason="no snapshot", max_age_days=max_age_days)

    last_synced = snapshot.cache.last_synced_at
    if last_synced is None:
        return StalenessReport(
            stale=True, reason="no sync timestamp recorded", max_age_days=max_age_days
        )

    age = (now or utc_now()) - last_synced
    stale = age >= timedelta(days=max_age_days)
    reason = (
        f"last synced {age.days} days ago"
        if stale
        else f"synced within the last {max_age_days} days"
    )
    return StalenessReport(
        stale=stale,
        reason=reason,
        last_synced_at=last_synced,
        age=age,
        max_age_days=max_age_days,
    )


class RefreshOrchestrator:
    """
    Coordinates collector, generator, drift detector and snapshot store.

    Not safe for concurrent use against one store: two refreshes race and
    the last save wins.
    """

    def __init__(
        self,
        gateway: QueryGatewayPort,
        store: SnapshotStorePort,
        permissions_store: PermissionsStorePort | None = None,
        clock: Callable[[], datetime] = utc_now,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self.gateway = gateway
        self.store = store
        self.permissions_store = permissions_store
        self.clock = clock
        self.page_size = page_size
        self.generator = SnapshotGenerator(gateway, clock=clock)
        self.detector = DriftDetector()
        self.logger = logging.getLogger("RefreshOrchestrator")
        self._state: SyncState | None = None

    @property
    def state(self) -> SyncState:
        if self._state is None:
            self._state = SyncState.READY if self.store.exists() else SyncState.UNINITIALIZED
        return self._state

    # -------------------------------------------------------------------------
    # Initialization
    # -------------------------------------------------------------------------

    def initialize(
        self,
        workspace_login: str,
        project_numbers: Iterable[int],
        repo_names: Iterable[str],
        kind: OwnerKind | None = None,
        default_project: int | None = None,
    ) -> Snapshot:
        """
        Create the first snapshot of a workspace.

        Raises:
            UsageError: If the workspace login is missing
            AlreadyInitializedError: If a snapshot already exists
            GatewayError: If a remote query fails
        """
        if not workspace_login:
            raise UsageError("Workspace login is required", argument="workspace")
        if self.state is not SyncState.UNINITIALIZED:
            raise AlreadyInitializedError(
                f"Workspace already initialized at {self.store.location}; run a refresh instead"
            )

        self._state = SyncState.INITIALIZING
        try:
            owner_kind = kind or self.gateway.resolve_owner_kind(workspace_login)
            workspace = Workspace(login=workspace_login, kind=owner_kind)
            workspace_id = self.gateway.query_workspace_id(workspace.owner)
            workspace = Workspace(login=workspace_login, kind=owner_kind, id=workspace_id)

            self.logger.info(f"Initializing {owner_kind.display_name.lower()} workspace {workspace_login}")
            snapshot = self.generator.generate(
                workspace,
                project_numbers,
                repo_names,
                default_project=default_project,
            )
            self.store.save(snapshot)
        except Exception:
            self._state = SyncState.UNINITIALIZED
            raise

        self._state = SyncState.READY
        self.logger.info(f"Snapshot written to {self.store.location}")

        if self.permissions_store is not None:
            self.record_permissions(snapshot)

        return snapshot

    def record_permissions(self, snapshot: Snapshot) -> PermissionsRecord:
        """Look up the user's roles and write the permissions side-record."""
        assert self.permissions_store is not None

        user_login = self.permissions_store.user_login() or self.gateway.get_viewer_login()
        workspace = snapshot.workspace

        org_role = None
        if workspace.kind is OwnerKind.ORGANIZATION and user_login:
            org_role = self.gateway.get_org_role(workspace.login, user_login)

        repo_roles = {}
        for repo in snapshot.repositories:
            full_name = repo.full_name or f"{workspace.login}/{repo.name}"
            repo_roles[repo.name] = (
                self.gateway.get_repo_permission(full_name, user_login) if user_login else "none"
            )

        record = PermissionsRecord(
            user_login=user_login,
            org_role=org_role,
            project_roles={n: DEFAULT_PROJECT_ROLE for n in snapshot.project_numbers},
            repo_roles=repo_roles,
            permissions_checked_at=self.clock(),
        )
        self.permissions_store.save(record)
        self.logger.debug(f"Recorded permissions for {user_login or 'unknown user'}")
        return record

    # -------------------------------------------------------------------------
    # Refresh and drift
    # -------------------------------------------------------------------------

    def _require_snapshot(self) -> Snapshot:
        snapshot = self.store.load()
        if snapshot is None:
            raise NotInitializedError(
                f"No snapshot at {self.store.location}; initialize the workspace first"
            )
        return snapshot

    def collect_live_state(self, snapshot: Snapshot) -> LiveState:
        """
        Query the remote side for every identifier the snapshot tracks.

        The discovery listings supply additions. A cached project or
        repository counts as removed only when its own lookup reports it
        as not found, so an incomplete listing never hides it.
        """
        owner = snapshot.workspace.owner

        live_numbers = {int(p["number"]) for p in self.gateway.discover_projects(owner)}
        live_names = {str(r["name"]) for r in self.gateway.discover_repositories(owner)}

        project_fields: dict[int, list[str]] = {}
        for number in snapshot.project_numbers:
            try:
                raw = self.gateway.query_project_fields(owner, number)
            except ResourceNotFoundError:
                self.logger.debug(f"Project #{number} not found")
                live_numbers.discard(number)
                continue
            live_numbers.add(number)
            project_fields[number] = [f.name for f in raw.fields]

        for name in snapshot.repository_names:
            if name in live_names:
                continue
            try:
                self.gateway.query_repository(owner.login, name)
            except ResourceNotFoundError:
                self.logger.debug(f"Repository {name} not found")
                continue
            live_names.add(name)

        return LiveState(
            project_numbers=sorted(live_numbers),
            repository_names=sorted(live_names),
            project_fields=project_fields,
        )

    def detect_drift(self) -> list[ChangeReport]:
        """
        Compare the persisted snapshot with live state without rewriting it.

        Raises:
            NotInitializedError: If no snapshot exists
        """
        snapshot = self._require_snapshot()
        return self.detector.detect(snapshot, self.collect_live_state(snapshot))

    def refresh(self) -> RefreshResult:
        """
        Regenerate the snapshot over its own identifiers.

        New projects and repositories are reported, never adopted. A cached
        one is left out of the new snapshot only when its own query reports
        it as not found.

        Raises:
            NotInitializedError: If no snapshot exists
            GatewayError: If a remote query fails
        """
        snapshot = self._require_snapshot()
        dropped_projects: list[int] = []
        dropped_repos: list[str] = []

        def on_missing(kind: str, key: Any) -> None:
            if kind == "project":
                self.logger.warning(f"Project #{key} no longer exists; dropping it from the snapshot")
                dropped_projects.append(key)
            else:
                self.logger.warning(f"Repository {key} no longer exists; dropping it from the snapshot")
                dropped_repos.append(key)

        self._state = SyncState.REFRESHING
        try:
            live = self.collect_live_state(snapshot)
            reports = self.detector.detect(snapshot, live)

            regenerated = self.generator.generate(
                snapshot.workspace,
                snapshot.project_numbers,
                snapshot.repository_names,
                previous_cache=snapshot.cache,
                default_project=snapshot.default_project,
                on_missing=on_missing,
            )
            regenerated = self._keep_monotonic(regenerated, snapshot.cache)
            self.store.save(regenerated)
        finally:
            self._state = SyncState.READY

        self.logger.info(f"Refreshed snapshot at {self.store.location}")
        return RefreshResult(
            snapshot=regenerated,
            reports=reports,
            dropped_projects=dropped_projects,
            dropped_repositories=dropped_repos,
        )

    @staticmethod
    def _keep_monotonic(snapshot: Snapshot, previous: CacheInfo) -> Snapshot:
        """Never move ``last_synced_at`` backwards (clock skew)."""
        new_time = snapshot.cache.last_synced_at
        old_time = previous.last_synced_at
        if old_time is None or new_time is None or new_time >= old_time:
            return snapshot

        cache = CacheInfo(
            initialized_at=snapshot.cache.initialized_at,
            last_synced_at=old_time,
            toolkit_version=snapshot.cache.toolkit_version,
        )
        return Snapshot(
            workspace=snapshot.workspace,
            projects=snapshot.projects,
            repositories=snapshot.repositories,
            cache=cache,
            default_project=snapshot.default_project,
        )

    # -------------------------------------------------------------------------
    # Staleness and items
    # -------------------------------------------------------------------------

    def check_staleness(
        self,
        max_age_days: int = DEFAULT_STALE_AFTER_DAYS,
        now: datetime | None = None,
    ) -> StalenessReport:
        """Report whether the snapshot is older than ``max_age_days``."""
        return check_staleness(self.store, max_age_days=max_age_days, now=now or self.clock())

    def collect_items(self, project_number: int, page_size: int | None = None) -> ProjectItems:
        """
        Collect every item of a cached workspace's project.

        Raises:
            NotInitializedError: If no snapshot exists
        """
        snapshot = self._require_snapshot()
        collector = PaginatedCollector(
            self.gateway,
            snapshot.workspace.owner,
            page_size=page_size or self.page_size,
        )
        return collector.collect(project_number)
