"""Module entrypoint: run an embedded mock engine until interrupted.

Sources are taken from the environment (see ``embedded_mock.settings``):
  MOCK_SPEC_FILES=petstore.yaml python -m embedded_mock
  MOCK_CONFIG_DIRS=./mocks python -m embedded_mock
"""

from __future__ import annotations

import logging
import sys
import threading

from . import settings
from .builder import MockEngineBuilder
from .errors import EngineStartError, LaunchError


def _wait_forever() -> None:
    threading.Event().wait()


def main() -> int:
    logging.basicConfig(
        level=settings.log_level(default="info").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    builder = MockEngineBuilder()
    for spec_file in settings.spec_files():
        builder.with_specification_file(spec_file)
    for config_dir in settings.config_dirs():
        builder.with_configuration_dir(config_dir)
    if settings.plugin_name():
        builder.with_plugin(settings.plugin_name())

    try:
        engine = builder.start().result()
    except (LaunchError, EngineStartError) as exc:
        print(f"[mock] {exc}", file=sys.stderr)
        return 1

    print(f"[mock] listening on {engine.base_url()}", file=sys.stderr)
    print(f"[mock] specification UI: {engine.specification_ui_url()}", file=sys.stderr)

    try:
        _wait_forever()
    except KeyboardInterrupt:
        pass
    finally:
        engine.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
