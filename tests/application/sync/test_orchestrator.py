"""Tests for RefreshOrchestrator."""

import logging
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from pulsegh.adapters.github.client import GitHubApiClient
from pulsegh.adapters.github.gateway import GitHubQueryGateway
from pulsegh.application.sync import RefreshOrchestrator, check_staleness
from pulsegh.core.domain import OwnerKind, SyncState
from pulsegh.core.exceptions import (
    AlreadyInitializedError,
    NotInitializedError,
    ResourceNotFoundError,
    StateError,
    TransportError,
    UsageError,
)
from pulsegh.core.ports import PermissionsStorePort


class RecordingPermissionsStore(PermissionsStorePort):
    def __init__(self, login=None):
        self.login = login
        self.records = []

    def save(self, record):
        self.records.append(record)

    def user_login(self):
        return self.login


@pytest.fixture
def orchestrator(fake_gateway, memory_store, fixed_clock) -> RefreshOrchestrator:
    return RefreshOrchestrator(fake_gateway, memory_store, clock=fixed_clock)


@pytest.fixture
def initialized(orchestrator) -> RefreshOrchestrator:
    orchestrator.initialize("acme", [1, 2], ["api", "web"], default_project=2)
    return orchestrator


# =============================================================================
# Initialization
# =============================================================================


class TestInitialize:
    def test_creates_snapshot(self, orchestrator, memory_store, fake_gateway, fixed_clock):
        assert orchestrator.state is SyncState.UNINITIALIZED

        snapshot = orchestrator.initialize("acme", [1, 2], ["api", "web"])

        assert orchestrator.state is SyncState.READY
        assert memory_store.load() == snapshot
        assert memory_store.save_count == 1
        assert snapshot.workspace.id == "O_acme"
        assert snapshot.workspace.kind is OwnerKind.ORGANIZATION
        assert snapshot.cache.initialized_at == fixed_clock.now
        assert fake_gateway.count("resolve_owner_kind") == 1

    def test_explicit_kind_skips_detection(self, orchestrator, fake_gateway):
        orchestrator.initialize("acme", [1], [], kind=OwnerKind.ORGANIZATION)
        assert fake_gateway.count("resolve_owner_kind") == 0

    def test_requires_login(self, orchestrator):
        with pytest.raises(UsageError):
            orchestrator.initialize("", [1], [])

    def test_twice(self, initialized, memory_store):
        with pytest.raises(AlreadyInitializedError):
            initialized.initialize("acme", [1], [])
        assert memory_store.save_count == 1

    def test_existing_store_counts_as_initialized(self, initialized, fake_gateway, memory_store, fixed_clock):
        fresh = RefreshOrchestrator(fake_gateway, memory_store, clock=fixed_clock)

        assert fresh.state is SyncState.READY
        with pytest.raises(StateError):
            fresh.initialize("acme", [1], [])

    def test_failure_leaves_nothing(self, orchestrator, memory_store):
        with pytest.raises(ResourceNotFoundError):
            orchestrator.initialize("acme", [1, 99], [])

        assert orchestrator.state is SyncState.UNINITIALIZED
        assert not memory_store.exists()


class TestPermissions:
    def test_recorded_after_initialize(self, fake_gateway, memory_store, fixed_clock):
        permissions = RecordingPermissionsStore()
        fake_gateway.repo_permissions["acme/web"] = "read"
        orchestrator = RefreshOrchestrator(
            fake_gateway, memory_store, permissions_store=permissions, clock=fixed_clock
        )

        orchestrator.initialize("acme", [1, 2], ["api", "web"])

        [record] = permissions.records
        assert record.user_login == "octocat"
        assert record.org_role == "admin"
        assert record.project_roles == {1: "admin", 2: "admin"}
        assert record.repo_roles == {"api": "write", "web": "read"}
        assert record.permissions_checked_at == fixed_clock.now

    def test_known_login_and_user_workspace(self, fake_gateway, memory_store, fixed_clock):
        fake_gateway.kind = OwnerKind.USER
        permissions = RecordingPermissionsStore(login="hubot")
        orchestrator = RefreshOrchestrator(
            fake_gateway, memory_store, permissions_store=permissions, clock=fixed_clock
        )

        orchestrator.initialize("acme", [1], ["api"])

        record = permissions.records[0]
        assert record.user_login == "hubot"
        assert record.org_role is None


# =============================================================================
# Refresh
# =============================================================================


class TestRefresh:
    def test_requires_snapshot(self, orchestrator):
        with pytest.raises(NotInitializedError):
            orchestrator.refresh()
        with pytest.raises(NotInitializedError):
            orchestrator.detect_drift()

    def test_no_drift(self, initialized, memory_store, fixed_clock):
        initialized_at = memory_store.load().cache.initialized_at
        fixed_clock.advance(days=2)

        result = initialized.refresh()

        assert not result.has_drift
        assert result.snapshot.cache.last_synced_at == fixed_clock.now
        assert result.snapshot.cache.initialized_at == initialized_at
        assert memory_store.load() == result.snapshot
        assert initialized.state is SyncState.READY

    def test_new_project_reported_not_adopted(self, initialized, fake_gateway):
        fake_gateway.add_project(3, "New")

        result = initialized.refresh()

        assert result.reports[0].added == [3]
        assert result.snapshot.project_numbers == [1, 2]

    def test_removed_repository_dropped(self, initialized, fake_gateway, caplog):
        del fake_gateway.repositories["web"]

        with caplog.at_level(logging.WARNING):
            result = initialized.refresh()

        assert result.reports[-1].removed == ["web"]
        assert result.dropped_repositories == ["web"]
        assert result.snapshot.repository_names == ["api"]
        assert "Repository web no longer exists" in caplog.text

    def test_unlisted_entries_are_kept(self, initialized, fake_gateway):
        fake_gateway.unlisted = {2, "web"}

        result = initialized.refresh()

        assert not result.has_drift
        assert result.dropped_projects == []
        assert result.dropped_repositories == []
        assert result.snapshot.project_numbers == [1, 2]
        assert result.snapshot.repository_names == ["api", "web"]
        assert result.snapshot.default_project == 2

    def test_project_beyond_first_discovery_page_is_kept(self, memory_store, fixed_clock):
        rest_repo = {
            "name": "api",
            "node_id": "R_api",
            "full_name": "acme/api",
            "default_branch": "main",
            "visibility": "private",
        }
        numbers = list(range(1, 61))

        def graphql(query):
            if query.name == "workspace_id":
                return {"organization": {"id": "O_acme"}}
            if query.name == "project_fields":
                n = query.variables["projectNumber"]
                return {
                    "organization": {
                        "projectV2": {
                            "id": f"PVT_{n}",
                            "title": f"Project {n}",
                            "number": n,
                            "fields": {"nodes": [{"id": "F_t", "name": "Title", "dataType": "TITLE"}]},
                        }
                    }
                }
            start = int(query.variables.get("after") or 0)
            chunk = numbers[start : start + query.variables["first"]]
            end = start + len(chunk)
            return {
                "organization": {
                    "projectsV2": {
                        "pageInfo": {"hasNextPage": end < len(numbers), "endCursor": str(end)},
                        "nodes": [{"number": n} for n in chunk],
                    }
                }
            }

        client = MagicMock(spec=GitHubApiClient)
        client.graphql.side_effect = graphql
        client.get.return_value = rest_repo
        client.get_paginated.return_value = [rest_repo]
        orchestrator = RefreshOrchestrator(GitHubQueryGateway(client), memory_store, clock=fixed_clock)
        orchestrator.initialize("acme", [55], ["api"], kind=OwnerKind.ORGANIZATION)

        result = orchestrator.refresh()

        assert result.reports[0].removed == []
        assert result.dropped_projects == []
        assert result.snapshot.project_numbers == [55]

    def test_removed_default_project_cleared(self, initialized, fake_gateway):
        del fake_gateway.projects[2]

        result = initialized.refresh()

        assert result.dropped_projects == [2]
        assert result.snapshot.project_numbers == [1]
        assert result.snapshot.default_project is None
        fields_2 = [r for r in result.reports if r.project_number == 2][0]
        assert fields_2.removed == ["Title"]

    def test_last_synced_never_goes_backwards(self, initialized, memory_store, fixed_clock):
        synced = memory_store.load().cache.last_synced_at
        fixed_clock.advance(hours=-5)

        result = initialized.refresh()

        assert result.snapshot.cache.last_synced_at == synced

    def test_failure_keeps_previous_snapshot(self, initialized, fake_gateway, memory_store, monkeypatch):
        before = memory_store.load()

        def broken(owner_login, repo_name):
            raise TransportError("connection reset")

        monkeypatch.setattr(fake_gateway, "query_repository", broken)

        with pytest.raises(TransportError):
            initialized.refresh()

        assert memory_store.load() == before
        assert memory_store.save_count == 1
        assert initialized.state is SyncState.READY

    def test_detect_drift_does_not_write(self, initialized, fake_gateway, memory_store):
        fake_gateway.add_repository("docs")

        reports = initialized.detect_drift()

        assert reports[-1].added == ["docs"]
        assert memory_store.save_count == 1

    def test_to_dict(self, initialized):
        data = initialized.refresh().to_dict()

        assert data["workspace"] == "acme"
        assert data["has_drift"] is False
        assert data["last_synced_at"] == "2026-01-01T00:00:00Z"
        assert len(data["reports"]) == 4


# =============================================================================
# Staleness
# =============================================================================


class TestStaleness:
    def test_no_snapshot_is_stale(self, memory_store):
        report = check_staleness(memory_store)

        assert report.stale
        assert report.reason == "no snapshot"

    def test_within_threshold(self, initialized, fixed_clock):
        fixed_clock.advance(days=6, hours=23)

        report = initialized.check_staleness(max_age_days=7)

        assert not report.stale
        assert report.age == timedelta(days=6, hours=23)

    def test_at_threshold(self, initialized, fixed_clock):
        fixed_clock.advance(days=7)

        report = initialized.check_staleness(max_age_days=7)

        assert report.stale
        assert report.to_dict()["age_seconds"] == 7 * 24 * 3600

    def test_zero_days_always_stale(self, initialized):
        assert initialized.check_staleness(max_age_days=0).stale

    def test_negative_threshold(self, initialized):
        with pytest.raises(UsageError):
            initialized.check_staleness(max_age_days=-1)

    def test_refresh_resets_staleness(self, initialized, fixed_clock):
        fixed_clock.advance(days=10)
        assert initialized.check_staleness().stale

        initialized.refresh()

        assert not initialized.check_staleness().stale

    def test_is_read_only(self, initialized, fake_gateway, memory_store):
        calls = len(fake_gateway.calls)

        initialized.check_staleness()

        assert len(fake_gateway.calls) == calls
        assert memory_store.save_count == 1


# =============================================================================
# Items
# =============================================================================


class TestCollectItems:
    def test_requires_snapshot(self, orchestrator):
        with pytest.raises(NotInitializedError):
            orchestrator.collect_items(1)

    def test_collects_every_page(self, initialized, fake_gateway):
        result = initialized.collect_items(1, page_size=2)

        assert len(result.items) == 5
        assert result.pages == 3
        assert fake_gateway.calls[-1][1][0] == "acme"
