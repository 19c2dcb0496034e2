"""
Ports - Abstract interfaces for external dependencies.

Ports define the contracts that adapters must implement.
This enables dependency inversion and easy testing.
"""

from .config_provider import AppConfig, ConfigProviderPort, GitHubConfig, SyncConfig, WorkspaceConfig
from .query_gateway import ItemsPage, ProjectFields, ProjectSummary, QueryGatewayPort, RawField
from .snapshot_store import InMemorySnapshotStore, PermissionsStorePort, SnapshotStorePort


__all__ = [
    # Configuration
    "AppConfig",
    "ConfigProviderPort",
    "GitHubConfig",
    "SyncConfig",
    "WorkspaceConfig",
    # Gateway
    "ItemsPage",
    "ProjectFields",
    "ProjectSummary",
    "QueryGatewayPort",
    "RawField",
    # Persistence
    "InMemorySnapshotStore",
    "PermissionsStorePort",
    "SnapshotStorePort",
]
