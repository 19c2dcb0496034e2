"""
Exit Codes - Process exit status for each outcome.

Each error family of the core exception hierarchy has its own code so
scripts can tell a stale snapshot from a broken token.
"""

from enum import IntEnum

from pulsegh.core.exceptions import (
    ConfigError,
    GatewayError,
    IntegrityError,
    PulseError,
    StateError,
    UsageError,
)


class ExitCode(IntEnum):
    """Exit codes returned by ``pulsegh``."""

    SUCCESS = 0
    ERROR = 1
    USAGE_ERROR = 2
    CONFIG_ERROR = 3
    STATE_ERROR = 4
    GATEWAY_ERROR = 5
    INTEGRITY_ERROR = 6
    STALE = 7
    SIGINT = 130

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ExitCode":
        """Map an exception to the exit code of its family."""
        if isinstance(exc, KeyboardInterrupt):
            return cls.SIGINT
        if not isinstance(exc, PulseError):
            return cls.ERROR

        for family, code in (
            (UsageError, cls.USAGE_ERROR),
            (ConfigError, cls.CONFIG_ERROR),
            (StateError, cls.STATE_ERROR),
            (GatewayError, cls.GATEWAY_ERROR),
            (IntegrityError, cls.INTEGRITY_ERROR),
        ):
            if isinstance(exc, family):
                return code
        return cls.ERROR
