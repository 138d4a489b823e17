"""HTTP application served by an engine instance.

The application is built from an ``EngineConfiguration``:
  - configuration files are discovered in every config dir
  - each file is handed to the plugin it names
  - the combined specification and its UI are served under /_spec/
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, Response
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.middleware.cors import CORSMiddleware

from .config import EngineConfiguration
from .errors import error_from_exception
from .handle import COMBINED_SPECIFICATION_PATH, SPECIFICATION_UI_PATH
from .loader import PluginConfig, load_config_dirs
from .plugins import Plugin, resolve_plugin
from .plugins.openapi import combine_specifications


log = logging.getLogger("embedded_mock.server")

SPECIFICATION_UI_HTML = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Mock engine specification</title>
  <link rel="stylesheet" href="https://unpkg.com/swagger-ui-dist@5/swagger-ui.css">
</head>
<body>
  <div id="swagger-ui"></div>
  <script src="https://unpkg.com/swagger-ui-dist@5/swagger-ui-bundle.js"></script>
  <script>
    window.ui = SwaggerUIBundle({url: "%s", dom_id: "#swagger-ui"});
  </script>
</body>
</html>
"""


def _group_by_plugin(
    configs: list[PluginConfig],
    available: dict[str, type[Plugin]],
) -> dict[str, list[PluginConfig]]:
    grouped: dict[str, list[PluginConfig]] = {}
    for config in configs:
        if config.plugin not in available:
            raise ValueError(
                f"{config.config_file}: plugin '{config.plugin}' is not loaded "
                f"(available: {', '.join(sorted(available))})"
            )
        grouped.setdefault(config.plugin, []).append(config)
    return grouped


def load_plugins(configuration: EngineConfiguration) -> list[Plugin]:
    configs = load_config_dirs(configuration.config_dirs)
    if not configs:
        raise ValueError(f"No configuration files found in {list(configuration.config_dirs)}")

    available = resolve_plugin(configuration.plugin)
    grouped = _group_by_plugin(configs, available)
    return [
        available[name](plugin_configs, configuration.plugin_args)
        for name, plugin_configs in grouped.items()
    ]


def create_app(configuration: EngineConfiguration) -> FastAPI:
    app = FastAPI(
        title="Embedded Mock Engine",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )

    @app.middleware("http")
    async def _exception_guard(request: Request, call_next):
        """Report handler exceptions as a JSON error body."""

        try:
            response: Response = await call_next(request)
            return response
        except Exception as exc:  # noqa: BLE001
            log.exception("Unhandled error serving %s %s", request.method, request.url.path)
            return JSONResponse({"error": error_from_exception(exc)}, status_code=500)

    plugins = load_plugins(configuration)

    @app.get("/system/status")
    async def status():
        return {"status": "ok"}

    @app.get(COMBINED_SPECIFICATION_PATH)
    async def combined_specification():
        documents = [doc for plugin in plugins for doc in plugin.specifications()]
        return JSONResponse(combine_specifications(documents))

    @app.get(SPECIFICATION_UI_PATH)
    async def specification_ui():
        return HTMLResponse(SPECIFICATION_UI_HTML % COMBINED_SPECIFICATION_PATH)

    # System routes are registered first so a specification cannot shadow them.
    for plugin in plugins:
        plugin.register(app)
        log.debug("Plugin %s registered %d config file(s)", plugin.name, len(plugin.configs))

    return app
