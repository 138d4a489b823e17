"""Response helpers shared by the plugins.

Plugins describe what to send back as a ``MockResponse``; the conversion to a
Starlette response happens in one place so content-type handling stays
consistent.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Mapping

from fastapi import Request, Response


JSON_CONTENT_TYPE = "application/json"


@dataclass(slots=True)
class MockResponse:
    """A minimal response representation used by the plugins."""

    status_code: int = 200
    content: Any = None
    content_type: str | None = None
    headers: dict[str, str] = field(default_factory=dict)

    def body(self) -> bytes:
        if self.content is None:
            return b""
        if isinstance(self.content, bytes):
            return self.content
        if isinstance(self.content, str) and not _is_json(self.content_type):
            return self.content.encode("utf-8")
        return json.dumps(self.content).encode("utf-8")

    def media_type(self) -> str | None:
        if self.content_type:
            return self.content_type
        if self.content is None:
            return None
        if isinstance(self.content, (bytes, str)):
            return "text/plain"
        return JSON_CONTENT_TYPE

    def to_response(self) -> Response:
        return Response(
            content=self.body(),
            status_code=self.status_code,
            media_type=self.media_type(),
            headers=dict(self.headers),
        )


def _is_json(content_type: str | None) -> bool:
    return bool(content_type) and "json" in content_type.lower()


def guess_content_type(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix == ".json":
        return JSON_CONTENT_TYPE
    if suffix in {".yaml", ".yml"}:
        return "application/x-yaml"
    if suffix in {".html", ".htm"}:
        return "text/html"
    if suffix == ".xml":
        return "application/xml"
    return "text/plain"


def static_file_response(
    path: Path,
    *,
    status_code: int = 200,
    content_type: str | None = None,
    headers: Mapping[str, str] | None = None,
) -> MockResponse:
    return MockResponse(
        status_code=status_code,
        content=path.read_bytes(),
        content_type=content_type or guess_content_type(path),
        headers=dict(headers or {}),
    )


def endpoint_for(response: MockResponse) -> Callable[[Request], Awaitable[Response]]:
    """Route endpoint that always answers with ``response``."""

    async def endpoint(request: Request) -> Response:
        return response.to_response()

    return endpoint
