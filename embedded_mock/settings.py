"""Environment-driven settings.

  MOCK_LOG_LEVEL   uvicorn log level for embedded engines (default: warning)
  MOCK_ACCESS_LOG  enable uvicorn access logging (default: off)
  MOCK_SPEC_FILES  CLI only; specification files, os.pathsep separated
  MOCK_CONFIG_DIRS CLI only; configuration directories, os.pathsep separated
  MOCK_PLUGIN      CLI only; registered plugin name
"""

from __future__ import annotations

import os


def _truthy(value: str | None) -> bool:
    v = (value or "").strip().lower()
    return v in {"1", "true", "yes", "y", "on"}


def _path_list(value: str | None) -> list[str]:
    return [p.strip() for p in (value or "").split(os.pathsep) if p.strip()]


def log_level(default: str = "warning") -> str:
    return (os.getenv("MOCK_LOG_LEVEL") or default).strip().lower()


def access_log_enabled() -> bool:
    return _truthy(os.getenv("MOCK_ACCESS_LOG"))


def spec_files() -> list[str]:
    return _path_list(os.getenv("MOCK_SPEC_FILES"))


def config_dirs() -> list[str]:
    return _path_list(os.getenv("MOCK_CONFIG_DIRS"))


def plugin_name() -> str | None:
    value = (os.getenv("MOCK_PLUGIN") or "").strip()
    return value or None
