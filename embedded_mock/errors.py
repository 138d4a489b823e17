"""Error catalog for the embedded mock engine.

Setup-time faults are raised from ``MockEngineBuilder.start()`` wrapped in a
``LaunchError``; runtime start faults arrive through the ``StartOutcome``.
"""

from __future__ import annotations

from typing import Any


class MockEngineError(Exception):
    """Base class for every error raised by this package."""


class LaunchError(MockEngineError):
    """Envelope for any synchronous failure while starting an engine."""


class ConfigurationConflictError(MockEngineError):
    """Both specification files and configuration directories were given."""


class ConfigurationMissingError(MockEngineError):
    """Neither specification files nor configuration directories were given."""


class ConfigurationGenerationError(MockEngineError):
    """Specification files could not be turned into a configuration directory."""


class ConfigurationResolutionError(MockEngineError):
    """A configuration directory does not resolve to an existing directory."""


class PortAllocationError(MockEngineError):
    """No ephemeral port could be obtained from the operating system."""


class EngineStartError(MockEngineError):
    """The engine runtime reported a failure while starting up."""


def error_from_exception(exc: Exception) -> dict[str, Any]:
    """Best-effort conversion of unexpected exceptions into a stable error shape.

    The server layer uses this so handler exceptions never leak as bare 500s.
    """

    return {
        "code": "UNEXPECTED_ERROR",
        "message": "Unexpected error in mock engine.",
        "details": {"type": type(exc).__name__, "message": str(exc)},
    }
