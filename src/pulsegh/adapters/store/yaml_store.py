"""
YAML Snapshot Store - Persists the workspace snapshot as config.yaml.

The document is written with a fixed key order so that two snapshots of
the same remote state differ only in their timestamps.
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from pulsegh.core.domain.entities import PermissionsRecord, Snapshot
from pulsegh.core.exceptions import SnapshotFormatError
from pulsegh.core.ports.snapshot_store import PermissionsStorePort, SnapshotStorePort


SNAPSHOT_HEADER = """\
# pulsegh - Workspace Configuration
# This file is shared across the team and should be committed to git.
# Regenerate with `pulsegh --refresh`; manual edits are overwritten.

"""

PERMISSIONS_HEADER = """\
# pulsegh - Personal settings and permissions
# This file is specific to you and should not be committed.

"""


def dump_yaml(data: Any) -> str:
    """Serialize with stable, block-style output."""
    return yaml.safe_dump(
        data,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
        width=120,
    )


def _write_atomic(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.tmp")
    tmp_path.write_text(text, encoding="utf-8")
    os.replace(tmp_path, path)


class YamlSnapshotStore(SnapshotStorePort):
    """
    Snapshot store backed by a single YAML file.

    Example:
        >>> store = YamlSnapshotStore(Path(".pulsegh/config.yaml"))
        >>> snapshot = store.load()
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.logger = logging.getLogger("YamlSnapshotStore")

    @property
    def location(self) -> str:
        return str(self.path)

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> Snapshot | None:
        if not self.exists():
            return None

        try:
            data = yaml.safe_load(self.path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise SnapshotFormatError(f"Invalid YAML in {self.path}", path=str(self.path), cause=e) from e

        if data is None:
            raise SnapshotFormatError(f"Snapshot file is empty: {self.path}", path=str(self.path))

        snapshot = Snapshot.from_dict(data)
        self.logger.debug(
            f"Loaded snapshot {self.path}: {len(snapshot.projects)} projects, "
            f"{len(snapshot.repositories)} repositories"
        )
        return snapshot

    def render(self, snapshot: Snapshot) -> str:
        """The exact text ``save`` writes."""
        return SNAPSHOT_HEADER + dump_yaml(snapshot.to_dict())

    def save(self, snapshot: Snapshot) -> None:
        _write_atomic(self.path, self.render(snapshot))
        self.logger.info(f"Wrote snapshot to {self.path}")


class YamlPermissionsStore(PermissionsStorePort):
    """
    Writes the permissions side-record into user.yaml.

    Other keys already present in the file (``user``, preferences) are kept;
    the ``permissions`` block is replaced and ``cache.permissions_checked_at``
    updated.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.logger = logging.getLogger("YamlPermissionsStore")

    def _load(self) -> dict[str, Any]:
        if not self.path.is_file():
            return {}
        try:
            data = yaml.safe_load(self.path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise SnapshotFormatError(f"Invalid YAML in {self.path}", path=str(self.path), cause=e) from e
        return data if isinstance(data, dict) else {}

    def user_login(self) -> str | None:
        user = self._load().get("user") or {}
        login = user.get("login") if isinstance(user, dict) else None
        return str(login) if login else None

    def save(self, record: PermissionsRecord) -> None:
        data = self._load()
        rendered = record.to_dict()

        if record.user_login:
            user = data.get("user") if isinstance(data.get("user"), dict) else {}
            user.setdefault("login", record.user_login)
            data["user"] = user

        data["permissions"] = rendered["permissions"]
        cache = data.get("cache") if isinstance(data.get("cache"), dict) else {}
        cache.update(rendered["cache"])
        data["cache"] = cache

        _write_atomic(self.path, PERMISSIONS_HEADER + dump_yaml(data))
        self.logger.info(f"Wrote permissions to {self.path}")
