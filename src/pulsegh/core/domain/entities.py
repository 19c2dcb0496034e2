"""
Domain Entities - Workspace, projects, fields, repositories and the snapshot.

The snapshot is the persisted declarative description of a workspace.
Entities convert to and from plain dictionaries in the exact layout of the
persisted document so the store adapter only deals with serialization.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from ..constants import TOOLKIT_VERSION
from ..exceptions import SnapshotFormatError
from .enums import FieldCategory, OwnerKind, Visibility
from .timestamps import format_timestamp, parse_timestamp


@dataclass(frozen=True)
class Workspace:
    """A user or organization account that owns projects and repositories."""

    login: str
    kind: OwnerKind
    id: str = ""

    @property
    def owner(self) -> Owner:
        return Owner(login=self.login, kind=self.kind)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind.value, "login": self.login, "id": self.id}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Workspace:
        return cls(
            login=str(data["login"]),
            kind=OwnerKind.from_string(str(data["type"])),
            id=str(data.get("id") or ""),
        )


@dataclass(frozen=True)
class Owner:
    """Owner descriptor used to pick the user or organization query variant."""

    login: str
    kind: OwnerKind

    @property
    def is_organization(self) -> bool:
        return self.kind is OwnerKind.ORGANIZATION


@dataclass(frozen=True)
class Field:
    """
    A typed column on a project.

    Plain fields only carry their type (``text``, ``number``, ``date``...).
    Single-select fields carry ``options`` (name -> option id) and iteration
    fields carry ``iterations`` (title -> iteration id).

    Option and iteration sets are values, not patches: ``with_options``
    returns a field whose set is exactly the one given.
    """

    id: str
    category: FieldCategory
    type: str
    options: Mapping[str, str] = field(default_factory=dict)
    iterations: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def plain(cls, field_id: str, field_type: str) -> Field:
        return cls(id=field_id, category=FieldCategory.PLAIN, type=field_type.lower())

    @classmethod
    def single_select(cls, field_id: str, options: Mapping[str, str]) -> Field:
        return cls(
            id=field_id,
            category=FieldCategory.SINGLE_SELECT,
            type=FieldCategory.SINGLE_SELECT.value,
            options=dict(options),
        )

    @classmethod
    def iteration(cls, field_id: str, iterations: Mapping[str, str]) -> Field:
        return cls(
            id=field_id,
            category=FieldCategory.ITERATION,
            type=FieldCategory.ITERATION.value,
            iterations=dict(iterations),
        )

    def with_options(self, options: Mapping[str, str]) -> Field:
        """
        Return a copy whose option set is exactly ``options``.

        The remote platform only supports replacing the full option list,
        so options absent from ``options`` are dropped.

        Raises:
            ValueError: If this is not a single-select field.
        """
        if self.category is not FieldCategory.SINGLE_SELECT:
            raise ValueError(f"Field {self.id} is not a single-select field")
        return replace(self, options=dict(options))

    def with_option_added(self, name: str, option_id: str = "") -> Field:
        """Read-modify-write helper: current options plus one more."""
        options = dict(self.options)
        options[name] = option_id
        return self.with_options(options)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "type": self.type}
        if self.category is FieldCategory.SINGLE_SELECT:
            data["options"] = dict(self.options)
        elif self.category is FieldCategory.ITERATION:
            data["iterations"] = dict(self.iterations)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Field:
        field_type = str(data.get("type", ""))
        field_id = str(data.get("id", ""))
        if field_type == FieldCategory.SINGLE_SELECT.value:
            return cls.single_select(field_id, _str_map(data.get("options")))
        if field_type == FieldCategory.ITERATION.value:
            return cls.iteration(field_id, _str_map(data.get("iterations")))
        return cls.plain(field_id, field_type)


@dataclass(frozen=True)
class Project:
    """A project board with its normalized field schema."""

    number: int
    id: str
    title: str
    url: str = ""
    fields: Mapping[str, Field] = field(default_factory=dict)

    @property
    def field_names(self) -> list[str]:
        return sorted(self.fields)

    def to_dict(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "fields": {name: f.to_dict() for name, f in self.fields.items()},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Project:
        fields = data.get("fields") or {}
        return cls(
            number=int(data["number"]),
            id=str(data.get("id", "")),
            title=str(data.get("title", "")),
            url=str(data.get("url") or ""),
            fields={str(name): Field.from_dict(f or {}) for name, f in fields.items()},
        )


@dataclass(frozen=True)
class Repository:
    """Repository metadata cached in the snapshot."""

    name: str
    id: str
    full_name: str
    default_branch: str = ""
    visibility: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "id": self.id,
            "full_name": self.full_name,
            "default_branch": self.default_branch,
            "visibility": self.visibility,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Repository:
        visibility = str(data.get("visibility") or "")
        return cls(
            name=str(data["name"]),
            id=str(data.get("id", "")),
            full_name=str(data.get("full_name", "")),
            default_branch=str(data.get("default_branch") or ""),
            visibility=Visibility.from_string(visibility).value if visibility else "",
        )


@dataclass(frozen=True)
class CacheInfo:
    """Bookkeeping block: when the snapshot was created and last synced."""

    initialized_at: datetime | None = None
    last_synced_at: datetime | None = None
    toolkit_version: str = TOOLKIT_VERSION

    def to_dict(self) -> dict[str, Any]:
        return {
            "initialized_at": format_timestamp(self.initialized_at) if self.initialized_at else None,
            "last_synced_at": format_timestamp(self.last_synced_at) if self.last_synced_at else None,
            "toolkit_version": self.toolkit_version,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CacheInfo:
        return cls(
            initialized_at=parse_timestamp(data.get("initialized_at")),
            last_synced_at=parse_timestamp(data.get("last_synced_at")),
            toolkit_version=str(data.get("toolkit_version") or TOOLKIT_VERSION),
        )


@dataclass(frozen=True)
class Snapshot:
    """
    The persisted description of a workspace.

    Projects are unique by number and repositories by name. A snapshot is
    only ever written whole; there is no in-place patch path.
    """

    workspace: Workspace
    projects: list[Project] = field(default_factory=list)
    repositories: list[Repository] = field(default_factory=list)
    cache: CacheInfo = field(default_factory=CacheInfo)
    default_project: int | None = None

    @property
    def project_numbers(self) -> list[int]:
        """Sorted project numbers."""
        return sorted(p.number for p in self.projects)

    @property
    def repository_names(self) -> list[str]:
        """Sorted repository names."""
        return sorted(r.name for r in self.repositories)

    def get_project(self, number: int) -> Project | None:
        for project in self.projects:
            if project.number == number:
                return project
        return None

    def get_repository(self, name: str) -> Repository | None:
        for repo in self.repositories:
            if repo.name == name:
                return repo
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "workspace": self.workspace.to_dict(),
            "projects": {
                "default": self.default_project,
                "catalog": [p.to_dict() for p in self.projects],
            },
            "repositories": [r.to_dict() for r in self.repositories],
            "cache": self.cache.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Snapshot:
        """
        Build a snapshot from its document form.

        Raises:
            SnapshotFormatError: If required keys are missing, values have
                the wrong shape, or projects/repositories are duplicated.
        """
        if not isinstance(data, Mapping):
            raise SnapshotFormatError("Snapshot document must be a mapping")

        try:
            workspace = Workspace.from_dict(data["workspace"])

            projects_block = data.get("projects") or {}
            if isinstance(projects_block, list):
                catalog = projects_block
                default = None
            else:
                catalog = projects_block.get("catalog") or []
                default = projects_block.get("default")

            projects = [Project.from_dict(p) for p in catalog]
            repositories = [Repository.from_dict(r) for r in data.get("repositories") or []]
            cache = CacheInfo.from_dict(data.get("cache") or {})
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise SnapshotFormatError(f"Malformed snapshot document: {e}", cause=e) from e

        _ensure_unique([p.number for p in projects], "project number")
        _ensure_unique([r.name for r in repositories], "repository name")

        return cls(
            workspace=workspace,
            projects=projects,
            repositories=repositories,
            cache=cache,
            default_project=int(default) if default not in (None, "") else None,
        )


@dataclass
class PermissionsRecord:
    """
    The user's roles across the workspace.

    Written next to the snapshot after initialization; personal to the
    authenticated user and not shared.
    """

    user_login: str = ""
    org_role: str | None = None
    project_roles: dict[int, str] = field(default_factory=dict)
    repo_roles: dict[str, str] = field(default_factory=dict)
    permissions_checked_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        permissions: dict[str, Any] = {}
        if self.org_role is not None:
            permissions["org_role"] = self.org_role
        permissions["project_roles"] = {str(k): v for k, v in self.project_roles.items()}
        permissions["repo_roles"] = dict(self.repo_roles)
        return {
            "permissions": permissions,
            "cache": {
                "permissions_checked_at": (
                    format_timestamp(self.permissions_checked_at)
                    if self.permissions_checked_at
                    else None
                ),
            },
        }


def _str_map(value: Any) -> dict[str, str]:
    if not value:
        return {}
    return {str(k): str(v) for k, v in dict(value).items()}


def _ensure_unique(keys: list[Any], label: str) -> None:
    seen: set[Any] = set()
    for key in keys:
        if key in seen:
            raise SnapshotFormatError(f"Duplicate {label} in snapshot: {key!r}")
        seen.add(key)
