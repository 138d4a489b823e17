"""Programmatic launcher for embedded mock engines.

Typical use from a test suite::

    engine = MockEngineBuilder().with_specification_file("petstore.yaml").start().result()
    httpx.get(engine.base_url() + "/pets")
    engine.stop()

``start()`` validates and assembles everything on the calling thread and
raises ``LaunchError`` for any setup fault. The engine itself starts on a
background thread; the returned ``StartOutcome`` settles only when it has
really started (or failed to).
"""

from __future__ import annotations

import logging
import shutil
from concurrent.futures import Future
from dataclasses import dataclass
from functools import partial
from pathlib import Path

from .config import EngineConfiguration, PathArg, PluginRef, assemble_configuration
from .errors import (
    ConfigurationConflictError,
    ConfigurationGenerationError,
    ConfigurationMissingError,
    EngineStartError,
    LaunchError,
)
from .generator import generate_config
from .handle import MockEngine
from .outcome import StartOutcome
from .ports import allocate_port
from .runtime import deploy


log = logging.getLogger("embedded_mock.builder")


@dataclass(frozen=True, slots=True)
class LaunchRequest:
    """Immutable snapshot of what a builder has accumulated."""

    specification_files: tuple[Path, ...] = ()
    configuration_dirs: tuple[Path, ...] = ()
    plugin: PluginRef = None

    def check_sources(self) -> None:
        if self.specification_files and self.configuration_dirs:
            raise ConfigurationConflictError(
                "Must specify only one of specification file or specification directory"
            )

    def generate_config_dir(self) -> Path | None:
        """Convert the specification files into a configuration directory, if any were given."""

        if not self.specification_files:
            return None
        try:
            return generate_config(self.specification_files)
        except (OSError, ValueError) as exc:
            raise ConfigurationGenerationError(
                f"Error generating configuration from {[str(p) for p in self.specification_files]}: {exc}"
            ) from exc

    def config_dirs(self, generated: Path | None = None) -> list[Path]:
        config_dirs = list(self.configuration_dirs)
        if generated is not None:
            config_dirs.append(generated)
        if not config_dirs:
            raise ConfigurationMissingError(
                "Must specify one of specification file or specification directory"
            )
        return config_dirs


class MockEngineBuilder:
    """Accumulates engine sources and starts a single engine."""

    def __init__(self) -> None:
        self._specification_files: list[Path] = []
        self._configuration_dirs: list[Path] = []
        self._plugin: PluginRef = None
        self._started = False

    def with_plugin(self, plugin: PluginRef) -> MockEngineBuilder:
        """Plugin class (or registered name) serving the configuration."""

        self._plugin = plugin
        return self

    def with_configuration_dir(self, configuration_dir: PathArg) -> MockEngineBuilder:
        """A directory containing one or more ``*-config.yaml`` files."""

        self._configuration_dirs.append(Path(configuration_dir))
        return self

    def with_specification_file(self, specification_file: PathArg) -> MockEngineBuilder:
        """An OpenAPI/Swagger specification file."""

        self._specification_files.append(Path(specification_file))
        return self

    add_configuration_directory = with_configuration_dir
    add_specification_file = with_specification_file

    def build(self) -> LaunchRequest:
        return LaunchRequest(
            specification_files=tuple(self._specification_files),
            configuration_dirs=tuple(self._configuration_dirs),
            plugin=self._plugin,
        )

    def start(self) -> StartOutcome:
        generated: Path | None = None
        try:
            if self._started:
                raise RuntimeError("This builder has already started an engine; create a new one")
            self._started = True

            request = self.build()
            request.check_sources()
            generated = request.generate_config_dir()
            configuration = assemble_configuration(
                request.config_dirs(generated),
                request.plugin,
                port_allocator=allocate_port,
            )
            completion = deploy(configuration, owned_dirs=[generated] if generated else [])
        except Exception as exc:  # noqa: BLE001
            if generated is not None:
                shutil.rmtree(generated, ignore_errors=True)
            raise LaunchError(f"Error starting mock engine: {exc}") from exc

        outcome = StartOutcome()
        completion.add_done_callback(partial(_on_deployed, outcome, configuration))
        return outcome


def _on_deployed(outcome: StartOutcome, configuration: EngineConfiguration, completion: Future) -> None:
    cause = completion.exception()
    if cause is not None:
        error = EngineStartError(f"Mock engine failed to start: {cause}")
        error.__cause__ = cause
        outcome.reject(error)
        return

    engine = MockEngine(
        host=configuration.host,
        port=configuration.listen_port,
        deployment=completion.result(),
    )
    log.info(
        "Started mock engine\n  Specification UI: %s\n  Config dir(s): %s",
        engine.specification_ui_url(),
        list(configuration.config_dirs),
    )
    outcome.resolve(engine)
