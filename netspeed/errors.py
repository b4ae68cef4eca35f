"""
Exception hierarchy.

Every error that can end an operation derives from :class:`SpeedtestError`
and carries the process exit code the CLI uses for it.
"""
from __future__ import annotations


class SpeedtestError(Exception):
    """Base class for all netspeed failures."""

    exit_code = 1


class InvalidParameter(SpeedtestError, ValueError):
    """A count, size list, or setting is out of range."""

    exit_code = 2


class ConfigFetchError(SpeedtestError):
    """The client config or server list could not be fetched or parsed."""

    exit_code = 3


class ServerNotFound(SpeedtestError):
    """No catalog entry matches an explicitly requested server."""

    exit_code = 4

    def __init__(self, query: str) -> None:
        super().__init__(f"Server '{query}' not found")
        self.query = query


class NoServersAvailable(SpeedtestError):
    """The closest-server filter produced no candidates."""

    exit_code = 5


class NoReachableServer(SpeedtestError):
    """Every latency probe against a server (or every candidate) failed."""

    exit_code = 6


class TransferFailed(SpeedtestError):
    """Every transfer window in one direction failed."""

    exit_code = 7

    def __init__(self, direction: str, attempts: int) -> None:
        super().__init__(
            f"{direction.capitalize()} test failed: all {attempts} transfer windows failed"
        )
        self.direction = direction
        self.attempts = attempts


class TransportError(SpeedtestError):
    """A single probe or transfer window failed at the HTTP level."""
