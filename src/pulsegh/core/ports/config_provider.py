"""
Configuration Provider Port - Abstract interface for configuration.

Implementations:
- EnvironmentConfigProvider: Load from env vars, .env and an optional
  YAML config file
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pulsegh.core.constants import (
    DEFAULT_CONFIG_DIR,
    DEFAULT_PAGE_SIZE,
    DEFAULT_STALE_AFTER_DAYS,
    DEFAULT_TIMEOUT,
    GITHUB_API_URL,
    GITHUB_GRAPHQL_URL,
    MAX_PAGE_SIZE,
    PERMISSIONS_FILENAME,
    SNAPSHOT_FILENAME,
)
from pulsegh.core.domain.enums import OwnerKind


@dataclass
class GitHubConfig:
    """Connection settings for the GitHub API."""

    token: str = ""
    api_url: str = GITHUB_API_URL
    graphql_url: str = GITHUB_GRAPHQL_URL
    timeout: float = DEFAULT_TIMEOUT

    def is_valid(self) -> bool:
        """Check if configuration is valid."""
        return bool(self.token and self.api_url and self.graphql_url)


@dataclass
class WorkspaceConfig:
    """Which workspace to sync."""

    login: str | None = None
    kind: OwnerKind | None = None  # None = detect from the API


@dataclass
class SyncConfig:
    """Configuration for sync operations."""

    config_dir: Path = field(default_factory=lambda: DEFAULT_CONFIG_DIR)
    page_size: int = DEFAULT_PAGE_SIZE
    stale_after_days: int = DEFAULT_STALE_AFTER_DAYS
    verbose: bool = False

    @property
    def snapshot_path(self) -> Path:
        return self.config_dir / SNAPSHOT_FILENAME

    @property
    def permissions_path(self) -> Path:
        return self.config_dir / PERMISSIONS_FILENAME


@dataclass
class AppConfig:
    """Complete application configuration."""

    github: GitHubConfig = field(default_factory=GitHubConfig)
    workspace: WorkspaceConfig = field(default_factory=WorkspaceConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)

    def validate(self) -> list[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not self.github.token:
            errors.append("Missing GitHub token (GITHUB_TOKEN, GH_TOKEN or `gh auth login`)")
        if not self.github.graphql_url:
            errors.append("Missing GraphQL endpoint URL")
        if not 1 <= self.sync.page_size <= MAX_PAGE_SIZE:
            errors.append(f"Page size must be between 1 and {MAX_PAGE_SIZE}")
        if self.sync.stale_after_days < 0:
            errors.append("Staleness threshold must not be negative")
        if self.github.timeout <= 0:
            errors.append("Request timeout must be positive")

        return errors


class ConfigProviderPort(ABC):
    """
    Abstract interface for configuration providers.

    Configuration can come from various sources:
    - Environment variables
    - .env files
    - YAML config files
    - Command line arguments
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the provider name."""
        ...

    @abstractmethod
    def load(self) -> AppConfig:
        """
        Load configuration from source.

        Returns:
            Complete application configuration
        """
        ...

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a specific configuration value.

        Args:
            key: Configuration key (dot notation supported)
            default: Default value if not found

        Returns:
            Configuration value
        """
        ...

    @abstractmethod
    def validate(self) -> list[str]:
        """
        Validate loaded configuration.

        Returns:
            List of validation errors
        """
        ...
