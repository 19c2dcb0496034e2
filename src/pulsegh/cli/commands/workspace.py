"""
Workspace command handlers.

- run_init: Create the first snapshot of a workspace
- run_refresh: Regenerate the snapshot and report drift
- run_drift: Report drift without rewriting the snapshot
- run_check_stale: Report whether the snapshot is older than a threshold
- run_items: Collect every item of one project

Handlers raise PulseError subclasses; ``main`` maps them to exit codes.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from pulsegh.adapters import (
    EnvironmentConfigProvider,
    GitHubApiClient,
    GitHubQueryGateway,
    YamlPermissionsStore,
    YamlSnapshotStore,
)
from pulsegh.adapters.git_remote import detect_workspace_from_remote
from pulsegh.application.sync import RefreshOrchestrator, check_staleness
from pulsegh.core.domain import Owner, SyncState
from pulsegh.core.exceptions import AlreadyInitializedError, ConfigError, UsageError
from pulsegh.core.ports import AppConfig

from ..exit_codes import ExitCode
from ..logging import get_logger
from ..output import Console


__all__ = [
    "load_config",
    "open_orchestrator",
    "run_check_stale",
    "run_drift",
    "run_init",
    "run_items",
    "run_refresh",
]


def load_config(args, require_token: bool = True) -> AppConfig:
    """
    Load configuration with CLI arguments as the highest-precedence source.

    Raises:
        ConfigError: If configuration is invalid, or no token is available
            when one is required
    """
    config_file = Path(args.config) if getattr(args, "config", None) else None
    provider = EnvironmentConfigProvider(config_file=config_file, cli_overrides=vars(args))
    config = provider.load()

    errors = config.validate()
    if not require_token:
        errors = [e for e in errors if "token" not in e.lower()]
    if errors:
        raise ConfigError("Invalid configuration", errors=errors)
    return config


def snapshot_store(config: AppConfig) -> YamlSnapshotStore:
    return YamlSnapshotStore(config.sync.snapshot_path)


@contextmanager
def open_orchestrator(config: AppConfig) -> Iterator[RefreshOrchestrator]:
    """Orchestrator over a live GitHub session; the session closes on exit."""
    with GitHubApiClient(
        token=config.github.token,
        api_url=config.github.api_url,
        graphql_url=config.github.graphql_url,
        timeout=config.github.timeout,
    ) as client:
        yield RefreshOrchestrator(
            gateway=GitHubQueryGateway(client),
            store=snapshot_store(config),
            permissions_store=YamlPermissionsStore(config.sync.permissions_path),
            page_size=config.sync.page_size,
        )


def _resolve_login(args, config: AppConfig, console: Console) -> str:
    login = getattr(args, "workspace", None) or config.workspace.login
    if login:
        return login
    login = detect_workspace_from_remote()
    console.info(f"Detected workspace from git remote: {login}")
    return login


def run_init(console: Console, args) -> int:
    """
    Initialize a workspace snapshot.

    Without ``--project`` every open project is adopted; without ``--repo``
    every repository is.
    """
    config = load_config(args)
    log = get_logger("pulsegh.cli", command="init")

    console.header("pulsegh Init")

    with open_orchestrator(config) as orchestrator:
        if orchestrator.state is not SyncState.UNINITIALIZED:
            raise AlreadyInitializedError(
                f"Workspace already initialized at {orchestrator.store.location}; run a refresh instead"
            )
        console.debug(f"Snapshot path: {orchestrator.store.location}")

        login = _resolve_login(args, config, console)
        kind = config.workspace.kind or orchestrator.gateway.resolve_owner_kind(login)
        console.info(f"Workspace: {login} ({kind.display_name})")

        project_numbers = list(getattr(args, "project", None) or [])
        repo_names = list(getattr(args, "repo", None) or [])
        owner = Owner(login=login, kind=kind)

        if not project_numbers:
            console.section("Discovering projects")
            for project in orchestrator.gateway.discover_projects(owner):
                state = "closed" if project.get("closed") else "open"
                console.item(f"#{project['number']} {project['title']}", state)
                if not project.get("closed"):
                    project_numbers.append(int(project["number"]))

        if not repo_names:
            console.section("Discovering repositories")
            for repo in orchestrator.gateway.discover_repositories(owner):
                console.item(repo["full_name"] or repo["name"], repo.get("visibility") or None)
                repo_names.append(repo["name"])

        log.info(f"Initializing with {len(project_numbers)} projects and {len(repo_names)} repositories")
        default_project = getattr(args, "default_project", None)
        if default_project is None and len(project_numbers) == 1:
            default_project = project_numbers[0]

        snapshot = orchestrator.initialize(
            login,
            project_numbers,
            repo_names,
            kind=kind,
            default_project=default_project,
        )

    console.snapshot_summary(snapshot, orchestrator.store.location)
    return ExitCode.SUCCESS


def run_refresh(console: Console, args) -> int:
    config = load_config(args)

    console.header("pulsegh Refresh")

    with open_orchestrator(config) as orchestrator:
        result = orchestrator.refresh()

    console.refresh_result(result, orchestrator.store.location)
    return ExitCode.SUCCESS


def run_drift(console: Console, args) -> int:
    """Report drift; exits successfully whether or not anything drifted."""
    config = load_config(args)

    console.header("pulsegh Drift")

    with open_orchestrator(config) as orchestrator:
        reports = orchestrator.detect_drift()

    console.drift_reports(reports)
    return ExitCode.SUCCESS


def run_check_stale(console: Console, args) -> int:
    """Exit with ``STALE`` when the snapshot needs a refresh."""
    config = load_config(args, require_token=False)

    # Staleness never touches the network; no client is opened.
    report = check_staleness(snapshot_store(config), max_age_days=config.sync.stale_after_days)

    console.staleness(report)
    return ExitCode.STALE if report.stale else ExitCode.SUCCESS


def run_items(console: Console, args) -> int:
    projects = getattr(args, "project", None) or []
    if len(projects) != 1:
        raise UsageError("--items needs exactly one --project", argument="project")
    number = projects[0]

    config = load_config(args)

    with open_orchestrator(config) as orchestrator:
        items = orchestrator.collect_items(number, page_size=config.sync.page_size)

    console.project_items(number, items)
    return ExitCode.SUCCESS
