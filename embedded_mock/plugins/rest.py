"""Plain REST plugin.

Config file shape::

    plugin: rest
    path: /example
    method: GET
    response:
      statusCode: 200
      staticFile: example.json
    resources:
      - path: /things/{id}
        method: PUT
        response:
          statusCode: 204

``response`` accepts ``statusCode``, ``staticData``, ``staticFile`` (relative
to the config file), ``contentType`` and ``headers``.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from fastapi import FastAPI

from ..loader import PluginConfig
from ..responses import MockResponse, endpoint_for, static_file_response
from .base import Plugin


log = logging.getLogger("embedded_mock.plugins.rest")


def build_response(config: PluginConfig, spec: Any) -> MockResponse:
    spec = spec if isinstance(spec, dict) else {}
    status_code = int(spec.get("statusCode") or 200)
    content_type = spec.get("contentType")
    headers = {str(k): str(v) for k, v in (spec.get("headers") or {}).items()}

    static_file = spec.get("staticFile")
    if static_file:
        return static_file_response(
            config.resolve(str(static_file)),
            status_code=status_code,
            content_type=content_type,
            headers=headers,
        )

    data = spec.get("staticData")
    if isinstance(data, str):
        data = data.encode("utf-8")
    return MockResponse(status_code=status_code, content=data, content_type=content_type, headers=headers)


def _resources(config: PluginConfig) -> Iterable[dict[str, Any]]:
    content = config.content
    if content.get("path"):
        yield content
    for resource in content.get("resources") or []:
        if isinstance(resource, dict) and resource.get("path"):
            yield resource


class RestPlugin(Plugin):
    name = "rest"

    def register(self, app: FastAPI) -> None:
        for config in self.configs:
            registered = 0
            for resource in _resources(config):
                method = str(resource.get("method") or "GET").upper()
                app.add_api_route(
                    str(resource["path"]),
                    endpoint_for(build_response(config, resource.get("response"))),
                    methods=[method],
                    include_in_schema=False,
                )
                registered += 1
            if not registered:
                log.warning("%s declares no resources", config.config_file)
