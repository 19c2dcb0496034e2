"""
Adapters - Concrete implementations of the core ports.

- github/: GitHub GraphQL/REST query gateway
- config/: Environment and file configuration
- store/: YAML snapshot and permissions persistence
"""

from .config import EnvironmentConfigProvider
from .github import GitHubApiClient, GitHubQueryGateway
from .store import YamlPermissionsStore, YamlSnapshotStore


__all__ = [
    "EnvironmentConfigProvider",
    "GitHubApiClient",
    "GitHubQueryGateway",
    "YamlPermissionsStore",
    "YamlSnapshotStore",
]
