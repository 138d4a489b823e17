"""Discovery of plugin configuration files inside configuration directories."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

import yaml


CONFIG_FILE_SUFFIXES = ("-config.yaml", "-config.yml", "-config.json")


@dataclass(frozen=True, slots=True)
class PluginConfig:
    """One parsed ``*-config.*`` file."""

    plugin: str
    config_file: Path
    content: dict[str, Any]

    @property
    def config_dir(self) -> Path:
        return self.config_file.parent

    def resolve(self, relative: str) -> Path:
        """Resolve a path referenced from this config file."""

        return (self.config_dir / relative).resolve()


def _is_config_file(path: Path) -> bool:
    return path.is_file() and path.name.endswith(CONFIG_FILE_SUFFIXES)


def load_config_file(path: Path) -> PluginConfig:
    with path.open("r", encoding="utf-8") as fh:
        try:
            content = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise ValueError(f"Configuration file {path} is not valid YAML: {exc}") from exc
    if not isinstance(content, dict):
        raise ValueError(f"Configuration file {path} is not a mapping")
    plugin = str(content.get("plugin") or "").strip()
    if not plugin:
        raise ValueError(f"Configuration file {path} does not name a plugin")
    return PluginConfig(plugin=plugin, config_file=path, content=content)


def load_config_dirs(config_dirs: Iterable[str]) -> list[PluginConfig]:
    """Load every configuration file, directories in order, files sorted by name."""

    configs: list[PluginConfig] = []
    for config_dir in config_dirs:
        for path in sorted(Path(config_dir).iterdir()):
            if _is_config_file(path):
                configs.append(load_config_file(path))
    return configs
