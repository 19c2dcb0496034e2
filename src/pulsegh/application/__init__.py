"""
Application Layer - Use cases and orchestration.

This layer contains:
- sync/: Collector, normalizer, generator, drift detector and the refresh
  orchestrator that drives them
"""

from .sync import (
    ChangeReport,
    DriftDetector,
    PaginatedCollector,
    RefreshOrchestrator,
    RefreshResult,
    SnapshotGenerator,
    StalenessReport,
)


__all__ = [
    "ChangeReport",
    "DriftDetector",
    "PaginatedCollector",
    "RefreshOrchestrator",
    "RefreshResult",
    "SnapshotGenerator",
    "StalenessReport",
]
