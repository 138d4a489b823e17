"""Engine runtime: serves an engine application on a background thread.

``deploy()`` returns immediately with a future that settles once, when
uvicorn reports startup complete or when startup fails.
"""

from __future__ import annotations

import logging
import shutil
import threading
from pathlib import Path
from typing import Callable, Iterable

import uvicorn

from . import settings
from .config import EngineConfiguration
from .outcome import OnceFuture
from .server import create_app


log = logging.getLogger("embedded_mock.runtime")


class _EngineServer(uvicorn.Server):
    """uvicorn server that reports a completed startup through a callback."""

    def __init__(self, config: uvicorn.Config, on_started: Callable[[], None]) -> None:
        super().__init__(config)
        self._on_started = on_started

    async def startup(self, sockets=None) -> None:
        await super().startup(sockets=sockets)
        # should_exit is set here when the lifespan startup failed.
        if not self.should_exit:
            self._on_started()


class Deployment:
    """A running (or starting) engine instance.

    ``owned_dirs`` are deleted once the engine thread has finished.
    """

    def __init__(self, configuration: EngineConfiguration, owned_dirs: Iterable[Path] = ()) -> None:
        self.configuration = configuration
        self.owned_dirs = tuple(owned_dirs)
        self.completion = OnceFuture()
        self._server: _EngineServer | None = None
        self._stopping = False
        self._thread = threading.Thread(
            target=self._serve,
            name=f"mock-engine-{configuration.listen_port}",
            daemon=True,
        )

    @property
    def address(self) -> str:
        return f"{self.configuration.host}:{self.configuration.listen_port}"

    @property
    def running(self) -> bool:
        return self._thread.is_alive() and self._server is not None and self._server.started

    def start(self) -> None:
        self._thread.start()

    def _serve(self) -> None:
        try:
            app = create_app(self.configuration)
            server = _EngineServer(
                uvicorn.Config(
                    app,
                    host=self.configuration.host,
                    port=self.configuration.listen_port,
                    log_level=settings.log_level(),
                    access_log=settings.access_log_enabled(),
                ),
                on_started=lambda: self.completion.resolve(self),
            )
            self._server = server
            if self._stopping:
                server.should_exit = True
            server.run()
        except Exception as exc:  # noqa: BLE001
            log.error("Mock engine on %s failed: %s", self.address, exc)
            self.completion.reject(exc)
        except SystemExit as exc:
            # uvicorn exits when it cannot bind the listen socket.
            log.error("Mock engine on %s exited during startup (code %s)", self.address, exc.code)
            self.completion.reject(RuntimeError(f"Mock engine on {self.address} could not be started"))
        finally:
            if not self.completion.done():
                self.completion.reject(RuntimeError(f"Mock engine on {self.address} stopped before startup completed"))
            self._remove_owned_dirs()
            log.debug("Mock engine thread for %s finished", self.address)

    def _remove_owned_dirs(self) -> None:
        for owned in self.owned_dirs:
            shutil.rmtree(owned, ignore_errors=True)
            log.debug("Removed %s", owned)

    def stop(self, timeout: float = 5.0) -> None:
        self._stopping = True
        if self._server is not None:
            self._server.should_exit = True
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout)
            if self._thread.is_alive():
                log.warning("Mock engine on %s did not stop within %.1fs", self.address, timeout)
            else:
                log.info("Stopped mock engine on %s", self.address)


def deploy(configuration: EngineConfiguration, owned_dirs: Iterable[Path] = ()) -> OnceFuture:
    deployment = Deployment(configuration, owned_dirs)
    deployment.start()
    return deployment.completion
