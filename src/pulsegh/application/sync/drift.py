"""
Drift Detector - Compares a persisted snapshot with live remote state.

Drift is tracked per category by key existence only:
- Projects, keyed by project number
- Fields, keyed by field name, one report per cached project
- Repositories, keyed by repository name

Keys present on both sides count as unchanged whatever their attributes.
Comparison is a merge walk over sorted, duplicate-free key lists, so the
output order is deterministic; unsorted input is rejected.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from pulsegh.core.domain.entities import Snapshot
from pulsegh.core.domain.enums import ChangeCategory
from pulsegh.core.exceptions import UnsortedKeysError


logger = logging.getLogger("DriftDetector")


def sorted_keys(values: Iterable[Hashable]) -> list[Any]:
    """Sorted, duplicate-free keys, ready for ``diff_keys``."""
    return sorted(set(values))


def ensure_sorted_unique(keys: Sequence[Any], label: str = "keys") -> None:
    """
    Raises:
        UnsortedKeysError: If ``keys`` is not strictly increasing.
    """
    for previous, current in zip(keys, keys[1:]):
        if not previous < current:
            raise UnsortedKeysError(
                f"{label} must be sorted and unique: {previous!r} before {current!r}",
                keys=list(keys),
            )


def diff_keys(cached: Sequence[Any], live: Sequence[Any]) -> tuple[list[Any], list[Any]]:
    """
    Set difference over two sorted key lists.

    Returns:
        ``(added, removed)`` where ``added = live - cached`` and
        ``removed = cached - live``, both sorted

    Raises:
        UnsortedKeysError: If either list is unsorted or has duplicates
    """
    ensure_sorted_unique(cached, "cached keys")
    ensure_sorted_unique(live, "live keys")

    added: list[Any] = []
    removed: list[Any] = []
    i = j = 0

    while i < len(cached) and j < len(live):
        if cached[i] == live[j]:
            i += 1
            j += 1
        elif cached[i] < live[j]:
            removed.append(cached[i])
            i += 1
        else:
            added.append(live[j])
            j += 1

    removed.extend(cached[i:])
    added.extend(live[j:])
    return added, removed


@dataclass(frozen=True)
class ChangeReport:
    """Keys added and removed in one category."""

    category: ChangeCategory
    added: list[Any] = field(default_factory=list)
    removed: list[Any] = field(default_factory=list)
    project_number: int | None = None

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed)

    @property
    def label(self) -> str:
        if self.category is ChangeCategory.FIELDS:
            return f"Fields (project #{self.project_number})"
        return self.category.value.capitalize()

    def describe(self) -> str:
        """Human-readable summary, one line per change."""
        if not self.has_changes:
            return f"{self.label}: no changes"

        lines = [f"{self.label}:"]
        lines.extend(f"  + {key}" for key in self.added)
        lines.extend(f"  - {key}" for key in self.removed)
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "category": self.category.value,
            "added": list(self.added),
            "removed": list(self.removed),
        }
        if self.project_number is not None:
            data["project_number"] = self.project_number
        return data


@dataclass
class LiveState:
    """
    Freshly collected identifiers.

    Attributes:
        project_numbers: Every project the workspace has now
        repository_names: Every repository the workspace has now
        project_fields: Field names per cached project that still exists
    """

    project_numbers: list[int] = field(default_factory=list)
    repository_names: list[str] = field(default_factory=list)
    project_fields: dict[int, list[str]] = field(default_factory=dict)


class DriftDetector:
    """Produces one ChangeReport per category."""

    def compare(
        self,
        category: ChangeCategory,
        cached: Sequence[Any],
        live: Sequence[Any],
        project_number: int | None = None,
    ) -> ChangeReport:
        added, removed = diff_keys(cached, live)
        return ChangeReport(
            category=category,
            added=added,
            removed=removed,
            project_number=project_number,
        )

    def detect(self, snapshot: Snapshot, live: LiveState) -> list[ChangeReport]:
        """
        Compare the snapshot with live state.

        Returns:
            Projects report, then a Fields report for each cached project
            (by number), then the Repositories report
        """
        reports = [
            self.compare(
                ChangeCategory.PROJECTS,
                snapshot.project_numbers,
                sorted_keys(live.project_numbers),
            )
        ]

        for number in snapshot.project_numbers:
            project = snapshot.get_project(number)
            cached_fields = project.field_names if project else []
            # A project gone from the workspace has lost every field.
            live_fields = sorted_keys(live.project_fields.get(number, []))
            reports.append(
                self.compare(ChangeCategory.FIELDS, cached_fields, live_fields, project_number=number)
            )

        reports.append(
            self.compare(
                ChangeCategory.REPOSITORIES,
                snapshot.repository_names,
                sorted_keys(live.repository_names),
            )
        )

        changed = [r.label for r in reports if r.has_changes]
        if changed:
            logger.info(f"Drift detected in: {', '.join(changed)}")
        else:
            logger.info("No drift detected")
        return reports
