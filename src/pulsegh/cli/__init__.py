"""
CLI Module - Command line interface for pulsegh.
"""

from .app import main, run


__all__ = ["main", "run"]
