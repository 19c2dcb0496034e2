"""
CLI Commands Package - Command handlers for the pulsegh CLI.
"""

from .workspace import (
    load_config,
    open_orchestrator,
    run_check_stale,
    run_drift,
    run_init,
    run_items,
    run_refresh,
)


__all__ = [
    "load_config",
    "open_orchestrator",
    # Snapshot lifecycle
    "run_init",
    "run_refresh",
    # Read-only reports
    "run_drift",
    "run_check_stale",
    "run_items",
]
