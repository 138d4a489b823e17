"""Turn standalone specification files into an engine configuration directory.

For every specification the generated directory holds a copy of the file and
a ``<stem>-config.yaml`` that points the ``openapi`` plugin at it.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from os import PathLike
from pathlib import Path
from typing import Any, Iterable, Union

import yaml


log = logging.getLogger("embedded_mock.generator")

CONFIG_SUFFIX = "-config.yaml"


def read_specification(path: Path) -> dict[str, Any]:
    """Parse an OpenAPI/Swagger document (YAML or JSON)."""

    with path.open("r", encoding="utf-8") as fh:
        try:
            document = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise ValueError(f"Specification {path} is not valid YAML or JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise ValueError(f"Specification {path} is not a mapping")
    if "openapi" not in document and "swagger" not in document:
        raise ValueError(f"Specification {path} has no 'openapi' or 'swagger' version key")
    return document


def _write_config(target: Path, spec_path: Path) -> None:
    read_specification(spec_path)
    shutil.copyfile(spec_path, target / spec_path.name)

    config = {"plugin": "openapi", "specFile": spec_path.name}
    config_file = target / f"{spec_path.stem}{CONFIG_SUFFIX}"
    config_file.write_text(yaml.safe_dump(config, sort_keys=False), encoding="utf-8")
    log.debug("Wrote %s for %s", config_file, spec_path)


def generate_config(specification_files: Iterable[Union[str, "PathLike[str]"]]) -> Path:
    """Write a configuration directory for the given specifications and return it.

    Raises ``OSError`` for unreadable files and ``ValueError`` for documents
    that are not OpenAPI/Swagger or share a file name. Nothing is left on
    disk when generation fails.
    """

    spec_paths = [Path(item) for item in specification_files]
    names = [p.name for p in spec_paths]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ValueError(f"Duplicate specification file name(s): {', '.join(duplicates)}")

    target = Path(tempfile.mkdtemp(prefix="embedded-mock-"))
    try:
        for spec_path in spec_paths:
            _write_config(target, spec_path)
    except BaseException:
        shutil.rmtree(target, ignore_errors=True)
        raise

    log.info("Generated configuration for %d specification(s) in %s", len(spec_paths), target)
    return target
