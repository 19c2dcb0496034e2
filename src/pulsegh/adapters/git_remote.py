"""
Workspace detection from the git ``origin`` remote.
"""

import re
import subprocess

from pulsegh.core.exceptions import UsageError


# https://github.com/owner/repo(.git) and git@github.com:owner/repo(.git)
_GITHUB_REMOTE = re.compile(r"github\.com[:/]([^/]+)/")


def parse_owner_from_remote(remote_url: str) -> str:
    """
    Extract the owner login from a GitHub remote URL.

    Raises:
        UsageError: If the URL is not a GitHub remote.
    """
    match = _GITHUB_REMOTE.search(remote_url)
    if not match:
        raise UsageError(f"Could not parse GitHub owner from: {remote_url}", argument="workspace")
    return match.group(1)


def detect_workspace_from_remote(remote: str = "origin") -> str:
    """
    Owner login of the current repository's remote.

    Raises:
        UsageError: If there is no such remote or it is not on GitHub.
    """
    try:
        proc = subprocess.run(
            ["git", "remote", "get-url", remote],
            check=False,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as e:
        raise UsageError("git is not installed", argument="workspace", cause=e) from e

    if proc.returncode != 0:
        raise UsageError(f"No git remote '{remote}' found", argument="workspace")
    return parse_owner_from_remote(proc.stdout.strip())
