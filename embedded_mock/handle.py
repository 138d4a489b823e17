"""Handle for a running engine instance."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .runtime import Deployment


SPECIFICATION_UI_PATH = "/_spec/"
COMBINED_SPECIFICATION_PATH = "/_spec/combined.json"


@dataclass(frozen=True, slots=True)
class MockEngine:
    """Addresses of a started engine.

    ``port`` is the port allocated for this start, never a default.
    """

    host: str
    port: int
    scheme: str = "http"
    deployment: Deployment | None = field(default=None, repr=False, compare=False)

    def base_url(self, scheme: str | None = None) -> str:
        return f"{scheme or self.scheme}://{self.host}:{self.port}"

    def specification_ui_url(self) -> str:
        return self.base_url() + SPECIFICATION_UI_PATH

    def combined_specification_url(self) -> str:
        return self.base_url() + COMBINED_SPECIFICATION_PATH

    def stop(self, timeout: float = 5.0) -> None:
        if self.deployment is not None:
            self.deployment.stop(timeout=timeout)

    def __enter__(self) -> MockEngine:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
