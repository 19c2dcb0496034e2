"""
Configuration adapters.
"""

from .environment import EnvironmentConfigProvider, parse_env_file, read_gh_cli_token


__all__ = ["EnvironmentConfigProvider", "parse_env_file", "read_gh_cli_token"]
