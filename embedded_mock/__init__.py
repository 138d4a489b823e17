"""Embedded HTTP mock engine for test suites.

Start a mock server in-process from OpenAPI specifications or configuration
directories and get back the URLs it can be reached at.
"""

from __future__ import annotations

from .builder import LaunchRequest, MockEngineBuilder
from .config import EngineConfiguration
from .errors import (
    ConfigurationConflictError,
    ConfigurationGenerationError,
    ConfigurationMissingError,
    ConfigurationResolutionError,
    EngineStartError,
    LaunchError,
    MockEngineError,
    PortAllocationError,
)
from .handle import MockEngine
from .outcome import StartOutcome

__all__ = [
    "__version__",
    "ConfigurationConflictError",
    "ConfigurationGenerationError",
    "ConfigurationMissingError",
    "ConfigurationResolutionError",
    "EngineConfiguration",
    "EngineStartError",
    "LaunchError",
    "LaunchRequest",
    "MockEngine",
    "MockEngineBuilder",
    "MockEngineError",
    "PortAllocationError",
    "StartOutcome",
]
__version__ = "0.1.0"
