"""
Domain layer - Entities and enums for workspace synchronization.
"""

from .entities import (
    CacheInfo,
    Field,
    Owner,
    PermissionsRecord,
    Project,
    Repository,
    Snapshot,
    Workspace,
)
from .enums import ChangeCategory, FieldCategory, OwnerKind, SyncState, Visibility
from .timestamps import format_timestamp, parse_timestamp, utc_now


__all__ = [
    "CacheInfo",
    "ChangeCategory",
    "Field",
    "FieldCategory",
    "Owner",
    "OwnerKind",
    "PermissionsRecord",
    "Project",
    "Repository",
    "Snapshot",
    "SyncState",
    "Visibility",
    "Workspace",
    "format_timestamp",
    "parse_timestamp",
    "utc_now",
]
