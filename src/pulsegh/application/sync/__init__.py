"""
Sync Module - Collection, normalization, snapshot generation and drift detection.
"""

from .collector import PaginatedCollector, ProjectItems
from .drift import (
    ChangeReport,
    DriftDetector,
    LiveState,
    diff_keys,
    ensure_sorted_unique,
    sorted_keys,
)
from .generator import SnapshotGenerator
from .normalizer import normalize_field, normalize_fields, to_raw_field
from .orchestrator import RefreshOrchestrator, RefreshResult, StalenessReport, check_staleness


__all__ = [
    "ChangeReport",
    "DriftDetector",
    "LiveState",
    "PaginatedCollector",
    "ProjectItems",
    "RefreshOrchestrator",
    "RefreshResult",
    "SnapshotGenerator",
    "StalenessReport",
    "check_staleness",
    "diff_keys",
    "ensure_sorted_unique",
    "normalize_field",
    "normalize_fields",
    "sorted_keys",
    "to_raw_field",
]
