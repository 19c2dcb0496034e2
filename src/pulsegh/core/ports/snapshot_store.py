"""
Snapshot Store Port - Persistence of the workspace snapshot.

Implementations:
- YamlSnapshotStore: config.yaml on disk
- InMemorySnapshotStore: for tests and dry runs
"""

from abc import ABC, abstractmethod

from pulsegh.core.domain.entities import PermissionsRecord, Snapshot


class SnapshotStorePort(ABC):
    """
    Load and save the single persisted snapshot.

    ``save`` always replaces the whole document. There is no locking:
    concurrent writers race and the last one wins.
    """

    @property
    @abstractmethod
    def location(self) -> str:
        """Where the snapshot lives (for messages)."""
        ...

    @abstractmethod
    def exists(self) -> bool:
        """Whether a snapshot has been persisted."""
        ...

    @abstractmethod
    def load(self) -> Snapshot | None:
        """
        Load the snapshot.

        Returns:
            The snapshot, or None if none exists

        Raises:
            SnapshotFormatError: If the persisted document is malformed
        """
        ...

    @abstractmethod
    def save(self, snapshot: Snapshot) -> None:
        """Overwrite the persisted snapshot with ``snapshot``."""
        ...


class PermissionsStorePort(ABC):
    """Writes the permissions side-record produced at initialization."""

    @abstractmethod
    def save(self, record: PermissionsRecord) -> None:
        """Persist the record, merging into any existing user settings."""
        ...

    def user_login(self) -> str | None:
        """Login recorded by an earlier user setup, if any."""
        return None


class InMemorySnapshotStore(SnapshotStorePort):
    """Keeps the snapshot in memory; counts saves for inspection."""

    def __init__(self, snapshot: Snapshot | None = None):
        self._snapshot = snapshot
        self.save_count = 0

    @property
    def location(self) -> str:
        return "<memory>"

    def exists(self) -> bool:
        return self._snapshot is not None

    def load(self) -> Snapshot | None:
        return self._snapshot

    def save(self, snapshot: Snapshot) -> None:
        self._snapshot = snapshot
        self.save_count += 1
