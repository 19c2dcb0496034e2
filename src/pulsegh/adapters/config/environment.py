"""
Environment Config Provider - Load configuration from env vars, .env and YAML.

Precedence, lowest to highest:
1. Defaults
2. YAML config file (``.pulsegh.yaml`` in the working directory, or an
   explicit path)
3. ``.env`` file in the working directory
4. Process environment
5. CLI overrides

If no token is configured anywhere, the authenticated GitHub CLI is asked
for one (``gh auth token``).
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values

from pulsegh.core.domain.enums import OwnerKind
from pulsegh.core.exceptions import ConfigError
from pulsegh.core.ports.config_provider import (
    AppConfig,
    ConfigProviderPort,
    GitHubConfig,
    SyncConfig,
    WorkspaceConfig,
)


DEFAULT_CONFIG_FILES = (".pulsegh.yaml", ".pulsegh.yml")

# env var -> dotted config key
ENV_KEYS = {
    "GITHUB_TOKEN": "github.token",
    "GH_TOKEN": "github.token",
    "GITHUB_API_URL": "github.api_url",
    "GITHUB_GRAPHQL_URL": "github.graphql_url",
    "PULSEGH_TIMEOUT": "github.timeout",
    "PULSEGH_WORKSPACE": "workspace.login",
    "PULSEGH_OWNER_KIND": "workspace.type",
    "PULSEGH_CONFIG_DIR": "sync.config_dir",
    "PULSEGH_PAGE_SIZE": "sync.page_size",
    "PULSEGH_STALE_DAYS": "sync.stale_after_days",
    "PULSEGH_VERBOSE": "sync.verbose",
}

# CLI argument name -> dotted config key
CLI_KEYS = {
    "workspace": "workspace.login",
    "owner_kind": "workspace.type",
    "config_dir": "sync.config_dir",
    "page_size": "sync.page_size",
    "max_age_days": "sync.stale_after_days",
    "verbose": "sync.verbose",
    "timeout": "github.timeout",
}


def read_gh_cli_token() -> str:
    """Ask the GitHub CLI for its token; empty string if unavailable."""
    try:
        proc = subprocess.run(
            ["gh", "auth", "token"],
            check=False,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError:
        return ""
    if proc.returncode != 0:
        return ""
    return proc.stdout.strip()


def parse_env_file(path: Path) -> dict[str, str]:
    """Read a ``.env`` file; keys declared without a value are left out."""
    return {key: value for key, value in dotenv_values(path).items() if value is not None}


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


class EnvironmentConfigProvider(ConfigProviderPort):
    """
    Configuration provider backed by the environment and optional files.

    Example:
        >>> provider = EnvironmentConfigProvider(cli_overrides={"workspace": "acme"})
        >>> config = provider.load()
    """

    def __init__(
        self,
        config_file: Path | None = None,
        env_file: Path | None = None,
        cli_overrides: dict[str, Any] | None = None,
        environ: dict[str, str] | None = None,
        token_lookup: Any = read_gh_cli_token,
    ):
        """
        Initialize the provider.

        Args:
            config_file: Explicit YAML config file (must exist if given)
            env_file: Explicit .env file (defaults to ./.env when present)
            cli_overrides: Parsed CLI arguments; None values are ignored
            environ: Environment mapping (defaults to os.environ)
            token_lookup: Callable returning a token when none is configured
        """
        self.config_file = config_file
        self.env_file = env_file
        self.cli_overrides = cli_overrides or {}
        self.environ = environ if environ is not None else dict(os.environ)
        self.token_lookup = token_lookup
        self.logger = logging.getLogger("EnvironmentConfigProvider")

        self._values: dict[str, Any] = {}
        self._config: AppConfig | None = None

    @property
    def name(self) -> str:
        return "environment"

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load(self) -> AppConfig:
        if self._config is not None:
            return self._config

        self._values = {}
        self._load_file()
        self._load_env_file()
        self._apply_env(self.environ)
        self._apply_cli()

        if not self._values.get("github.token") and self.token_lookup is not None:
            token = self.token_lookup()
            if token:
                self.logger.debug("Using token from `gh auth token`")
                self._values["github.token"] = token

        self._config = self._build()
        return self._config

    def get(self, key: str, default: Any = None) -> Any:
        self.load()
        return self._values.get(key, default)

    def validate(self) -> list[str]:
        try:
            config = self.load()
        except ConfigError as e:
            return e.errors or [e.message]
        return config.validate()

    def _load_file(self) -> None:
        path = self.config_file
        if path is None:
            for candidate in DEFAULT_CONFIG_FILES:
                if Path(candidate).is_file():
                    path = Path(candidate)
                    break
        elif not Path(path).is_file():
            raise ConfigError(f"Config file not found: {path}", errors=[f"Config file not found: {path}"])

        if path is None:
            return

        try:
            data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in config file {path}", cause=e) from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")

        self.logger.debug(f"Loaded config file {path}")
        for section, values in data.items():
            if isinstance(values, dict):
                for key, value in values.items():
                    self._values[f"{section}.{key}"] = value

    def _load_env_file(self) -> None:
        path = self.env_file or Path(".env")
        if not Path(path).is_file():
            return
        self._apply_env(parse_env_file(Path(path)))

    def _apply_env(self, env: dict[str, str]) -> None:
        for env_key, config_key in ENV_KEYS.items():
            value = env.get(env_key)
            if value:
                # GITHUB_TOKEN wins over GH_TOKEN when both are set.
                if env_key == "GH_TOKEN" and env.get("GITHUB_TOKEN"):
                    continue
                self._values[config_key] = value

    def _apply_cli(self) -> None:
        for arg, config_key in CLI_KEYS.items():
            value = self.cli_overrides.get(arg)
            if value is not None and value is not False:
                self._values[config_key] = value

    def _build(self) -> AppConfig:
        v = self._values
        errors: list[str] = []

        kind: OwnerKind | None = None
        if v.get("workspace.type"):
            try:
                kind = OwnerKind.from_string(str(v["workspace.type"]))
            except ValueError as e:
                errors.append(str(e))

        github = GitHubConfig(token=str(v.get("github.token") or ""))
        if v.get("github.api_url"):
            github.api_url = str(v["github.api_url"])
        if v.get("github.graphql_url"):
            github.graphql_url = str(v["github.graphql_url"])
        elif v.get("github.api_url"):
            github.graphql_url = f"{github.api_url.rstrip('/')}/graphql"

        sync = SyncConfig()
        if v.get("sync.config_dir"):
            sync.config_dir = Path(v["sync.config_dir"])
        sync.verbose = _to_bool(v.get("sync.verbose", False))

        for key, target, attr, cast in (
            ("github.timeout", github, "timeout", float),
            ("sync.page_size", sync, "page_size", int),
            ("sync.stale_after_days", sync, "stale_after_days", int),
        ):
            if v.get(key) is None:
                continue
            try:
                setattr(target, attr, cast(v[key]))
            except (TypeError, ValueError):
                errors.append(f"Invalid value for {key}: {v[key]!r}")

        if errors:
            raise ConfigError("Invalid configuration", errors=errors)

        return AppConfig(
            github=github,
            workspace=WorkspaceConfig(login=v.get("workspace.login") or None, kind=kind),
            sync=sync,
        )
