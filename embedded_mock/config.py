"""Engine configuration assembly.

An ``EngineConfiguration`` is built once per start and handed to the runtime
by value. Nothing mutates it afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable, Mapping, Union

from .errors import ConfigurationResolutionError
from .ports import LOOPBACK_HOST, allocate_port

if TYPE_CHECKING:
    from .plugins import Plugin


PathArg = Union[str, "PathLike[str]"]
PluginRef = Union["type[Plugin]", str, None]


@dataclass(frozen=True, slots=True)
class EngineConfiguration:
    """Everything the runtime needs to bring up one engine instance."""

    host: str
    listen_port: int
    plugin: PluginRef = None
    plugin_args: Mapping[str, str] = field(default_factory=dict)
    config_dirs: tuple[str, ...] = ()


def resolve_config_dir(path: PathArg) -> str:
    """Resolve a configuration directory to an absolute, existing location."""

    try:
        resolved = Path(path).expanduser().resolve(strict=True)
    except (OSError, RuntimeError) as exc:
        raise ConfigurationResolutionError(f"Error parsing directory: {path}") from exc
    if not resolved.is_dir():
        raise ConfigurationResolutionError(f"Not a directory: {path}")
    return str(resolved)


def assemble_configuration(
    config_dirs: Iterable[PathArg],
    plugin: PluginRef = None,
    *,
    host: str = LOOPBACK_HOST,
    port_allocator: Callable[[str], int] = allocate_port,
) -> EngineConfiguration:
    resolved = tuple(resolve_config_dir(d) for d in config_dirs)
    return EngineConfiguration(
        host=host,
        listen_port=port_allocator(host),
        plugin=plugin,
        plugin_args={},
        config_dirs=resolved,
    )
