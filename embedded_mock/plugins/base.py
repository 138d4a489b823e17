"""Base class for engine plugins."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Mapping

from fastapi import FastAPI

from ..loader import PluginConfig


class Plugin(ABC):
    """Receives the configuration files naming it and registers routes."""

    name: ClassVar[str] = ""

    def __init__(self, configs: list[PluginConfig], args: Mapping[str, str] | None = None) -> None:
        self.configs = configs
        self.args = dict(args or {})

    @abstractmethod
    def register(self, app: FastAPI) -> None:
        """Add this plugin's routes to ``app``."""

    def specifications(self) -> list[dict[str, Any]]:
        """Specification documents served by this plugin, if any."""

        return []
