"""
Store adapters - File-backed persistence for the snapshot and permissions.
"""

from .yaml_store import YamlPermissionsStore, YamlSnapshotStore, dump_yaml


__all__ = ["YamlPermissionsStore", "YamlSnapshotStore", "dump_yaml"]
