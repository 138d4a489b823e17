"""Engine plugins.

``REGISTRY`` maps the ``plugin:`` value of a configuration file to the class
that handles it.
"""

from __future__ import annotations

from .base import Plugin
from .openapi import OpenApiPlugin
from .rest import RestPlugin


REGISTRY: dict[str, type[Plugin]] = {
    OpenApiPlugin.name: OpenApiPlugin,
    RestPlugin.name: RestPlugin,
}


def resolve_plugin(plugin: type[Plugin] | str | None) -> dict[str, type[Plugin]]:
    """Return the plugins available to an engine, keyed by name.

    ``None`` makes every registered plugin available.
    """

    if plugin is None:
        return dict(REGISTRY)
    if isinstance(plugin, str):
        try:
            return {plugin: REGISTRY[plugin]}
        except KeyError:
            raise ValueError(f"Unknown plugin: {plugin}") from None
    if isinstance(plugin, type) and issubclass(plugin, Plugin) and plugin.name:
        return {plugin.name: plugin}
    raise ValueError(f"Not a plugin: {plugin!r}")


__all__ = ["Plugin", "OpenApiPlugin", "RestPlugin", "REGISTRY", "resolve_plugin"]
