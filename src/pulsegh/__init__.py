"""
pulsegh - Keeps a local, diffable snapshot of a GitHub workspace.

A workspace is a user or organization account together with the Projects
(v2) boards and repositories a team works in. pulsegh records their
identifiers and field schemas in a YAML snapshot, reports drift against the
live account and warns when the snapshot goes stale.
"""

from pulsegh.core.constants import TOOLKIT_VERSION


__version__ = TOOLKIT_VERSION

__all__ = ["__version__"]
