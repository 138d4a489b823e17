"""OpenAPI/Swagger plugin.

Config file shape::

    plugin: openapi
    specFile: petstore.yaml

Every operation in the specification is served with its lowest 2xx response
(or ``default``). The body is taken from, in order: the media ``example``,
the first ``examples`` entry, the schema ``example``, or a value synthesised
from the schema.
"""

from __future__ import annotations

import copy
import logging
from typing import Any
from urllib.parse import urlparse

from fastapi import FastAPI

from ..generator import read_specification
from ..loader import PluginConfig
from ..responses import JSON_CONTENT_TYPE, MockResponse, endpoint_for
from .base import Plugin


log = logging.getLogger("embedded_mock.plugins.openapi")

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

# Guards schema synthesis against self-referencing schemas.
MAX_SCHEMA_DEPTH = 8

JsonObject = dict[str, Any]


def resolve_ref(document: JsonObject, node: Any) -> Any:
    """Follow local ``$ref`` pointers; unknown or remote refs resolve to ``{}``."""

    seen: set[str] = set()
    while isinstance(node, dict) and "$ref" in node:
        ref = str(node["$ref"])
        if not ref.startswith("#/") or ref in seen:
            return {}
        seen.add(ref)
        target: Any = document
        for part in ref[2:].split("/"):
            part = part.replace("~1", "/").replace("~0", "~")
            if not isinstance(target, dict) or part not in target:
                return {}
            target = target[part]
        node = target
    return node


def example_from_schema(document: JsonObject, schema: Any, depth: int = 0) -> Any:
    schema = resolve_ref(document, schema)
    if not isinstance(schema, dict) or depth > MAX_SCHEMA_DEPTH:
        return None

    for key in ("example", "default"):
        if key in schema:
            return schema[key]
    if schema.get("enum"):
        return schema["enum"][0]

    if "allOf" in schema:
        merged: JsonObject = {}
        for part in schema["allOf"]:
            value = example_from_schema(document, part, depth + 1)
            if isinstance(value, dict):
                merged.update(value)
        return merged
    for key in ("oneOf", "anyOf"):
        if schema.get(key):
            return example_from_schema(document, schema[key][0], depth + 1)

    schema_type = schema.get("type")
    if isinstance(schema_type, list):
        schema_type = next((t for t in schema_type if t != "null"), None)

    if schema_type == "object" or "properties" in schema:
        return {
            name: example_from_schema(document, prop, depth + 1)
            for name, prop in (schema.get("properties") or {}).items()
        }
    if schema_type == "array":
        item = example_from_schema(document, schema.get("items") or {}, depth + 1)
        return [] if item is None else [item]
    if schema_type == "string":
        return ""
    if schema_type == "integer":
        return 0
    if schema_type == "number":
        return 0.0
    if schema_type == "boolean":
        return False
    return None


def pick_response(responses: Any) -> tuple[int, JsonObject]:
    """Lowest 2xx response, else ``default`` served as 200."""

    if not isinstance(responses, dict):
        return 200, {}
    success = [
        (int(str(code)), body)
        for code, body in responses.items()
        if str(code).isdigit() and 200 <= int(str(code)) < 300
    ]
    success.sort(key=lambda pair: pair[0])
    if success:
        return success[0]
    if "default" in responses:
        return 200, responses["default"]
    return 200, {}


def _pick_media_type(content: JsonObject) -> str | None:
    if not content:
        return None
    if JSON_CONTENT_TYPE in content:
        return JSON_CONTENT_TYPE
    return next(iter(content))


def build_example_response(document: JsonObject, operation: JsonObject) -> MockResponse:
    status_code, response = pick_response(operation.get("responses"))
    response = resolve_ref(document, response)
    if not isinstance(response, dict):
        return MockResponse(status_code=status_code)

    # OpenAPI 3
    content = response.get("content")
    if isinstance(content, dict):
        media_type = _pick_media_type(content)
        if media_type is None:
            return MockResponse(status_code=status_code)
        media = content.get(media_type) or {}
        if "example" in media:
            body = media["example"]
        elif media.get("examples"):
            first = resolve_ref(document, next(iter(media["examples"].values())))
            body = first.get("value") if isinstance(first, dict) else first
        else:
            body = example_from_schema(document, media.get("schema"))
        return MockResponse(status_code=status_code, content=body, content_type=media_type)

    # Swagger 2
    produces = operation.get("produces") or document.get("produces") or [JSON_CONTENT_TYPE]
    examples = response.get("examples")
    if isinstance(examples, dict) and examples:
        media_type = JSON_CONTENT_TYPE if JSON_CONTENT_TYPE in examples else next(iter(examples))
        example = examples[media_type]
        # A string example is the literal body, already serialised.
        if isinstance(example, str):
            example = example.encode("utf-8")
        return MockResponse(status_code=status_code, content=example, content_type=media_type)
    if "schema" in response:
        return MockResponse(
            status_code=status_code,
            content=example_from_schema(document, response["schema"]),
            content_type=produces[0],
        )
    return MockResponse(status_code=status_code)


def base_path(document: JsonObject) -> str:
    if "swagger" in document:
        path = str(document.get("basePath") or "")
    else:
        servers = document.get("servers") or []
        url = str(servers[0].get("url") or "") if servers and isinstance(servers[0], dict) else ""
        path = "" if "{" in url else urlparse(url).path
    return path.rstrip("/")


class OpenApiPlugin(Plugin):
    name = "openapi"

    def __init__(self, configs: list[PluginConfig], args=None) -> None:
        super().__init__(configs, args)
        self._documents: list[tuple[str, JsonObject]] = []

    def _load(self) -> None:
        self._documents = []
        for config in self.configs:
            spec_file = config.content.get("specFile")
            if not spec_file:
                raise ValueError(f"{config.config_file}: 'specFile' is required for the openapi plugin")
            document = read_specification(config.resolve(str(spec_file)))
            self._documents.append((base_path(document), document))

    def register(self, app: FastAPI) -> None:
        self._load()
        for prefix, document in self._documents:
            paths = document.get("paths") or {}
            for path, item in paths.items():
                item = resolve_ref(document, item)
                if not isinstance(item, dict):
                    continue
                for method in HTTP_METHODS:
                    operation = item.get(method)
                    if not isinstance(operation, dict):
                        continue
                    app.add_api_route(
                        prefix + path,
                        endpoint_for(build_example_response(document, operation)),
                        methods=[method.upper()],
                        include_in_schema=False,
                    )
                    log.debug("Registered %s %s", method.upper(), prefix + path)

    def specifications(self) -> list[JsonObject]:
        return [document for _, document in self._documents]


SWAGGER_PARAMETER_SCHEMA_KEYS = ("type", "format", "items", "enum", "default", "minimum", "maximum", "pattern")


def _rewrite_refs(node: Any) -> Any:
    if isinstance(node, dict):
        rewritten = {key: _rewrite_refs(value) for key, value in node.items()}
        ref = rewritten.get("$ref")
        if isinstance(ref, str) and ref.startswith("#/definitions/"):
            rewritten["$ref"] = "#/components/schemas/" + ref[len("#/definitions/"):]
        return rewritten
    if isinstance(node, list):
        return [_rewrite_refs(value) for value in node]
    return node


def _convert_parameters(parameters: list[Any], consumes: list[str]) -> tuple[list[Any], JsonObject | None]:
    converted: list[Any] = []
    request_body: JsonObject | None = None
    for parameter in parameters:
        if not isinstance(parameter, dict) or "$ref" in parameter:
            converted.append(parameter)
            continue
        parameter = dict(parameter)
        if parameter.get("in") == "body":
            request_body = {
                "required": bool(parameter.get("required")),
                "content": {media: {"schema": parameter.get("schema") or {}} for media in consumes},
            }
            continue
        if parameter.get("in") == "formData":
            continue
        if "schema" not in parameter:
            parameter["schema"] = {k: parameter.pop(k) for k in SWAGGER_PARAMETER_SCHEMA_KEYS if k in parameter}
        converted.append(parameter)
    return converted, request_body


def _convert_response(response: Any, produces: list[str]) -> Any:
    if not isinstance(response, dict) or "$ref" in response:
        return response
    response = dict(response)
    examples = response.pop("examples", None)
    schema = response.pop("schema", None)
    content: JsonObject = {}
    if schema is not None:
        for media in produces:
            content[media] = {"schema": schema}
    if isinstance(examples, dict):
        for media, example in examples.items():
            content.setdefault(media, {})["example"] = example
    if content:
        response["content"] = content
    response.setdefault("description", "")
    return response


def swagger_to_openapi(document: JsonObject) -> JsonObject:
    """Convert a Swagger 2 document into the OpenAPI 3 shape.

    Only the parts the specification UI renders are converted: paths,
    parameters, request bodies, responses and definitions. ``basePath`` is
    left to the caller.
    """

    document = _rewrite_refs(copy.deepcopy(document))
    doc_produces = document.get("produces") or [JSON_CONTENT_TYPE]
    doc_consumes = document.get("consumes") or [JSON_CONTENT_TYPE]

    paths: JsonObject = {}
    for path, item in (document.get("paths") or {}).items():
        if not isinstance(item, dict):
            continue
        item = dict(item)
        if isinstance(item.get("parameters"), list):
            item["parameters"], _ = _convert_parameters(item["parameters"], doc_consumes)
        for method in HTTP_METHODS:
            operation = item.get(method)
            if not isinstance(operation, dict):
                continue
            operation = dict(operation)
            produces = operation.pop("produces", None) or doc_produces
            consumes = operation.pop("consumes", None) or doc_consumes
            if isinstance(operation.get("parameters"), list):
                operation["parameters"], request_body = _convert_parameters(operation["parameters"], consumes)
                if request_body is not None:
                    operation["requestBody"] = request_body
            operation["responses"] = {
                str(code): _convert_response(response, produces)
                for code, response in (operation.get("responses") or {}).items()
            }
            item[method] = operation
        paths[path] = item

    converted: JsonObject = {
        "openapi": "3.0.1",
        "info": document.get("info") or {},
        "paths": paths,
    }
    if isinstance(document.get("definitions"), dict):
        converted["components"] = {"schemas": document["definitions"]}
    return converted


def combine_specifications(documents: list[JsonObject]) -> JsonObject:
    """Merge specifications into one OpenAPI 3 document; base paths are folded into paths."""

    combined: JsonObject = {
        "openapi": "3.0.1",
        "info": {"title": "Mock engine APIs", "version": "1.0.0"},
        "paths": {},
        "components": {},
    }
    for document in documents:
        prefix = base_path(document)
        if "swagger" in document:
            document = swagger_to_openapi(document)
        for path, item in (document.get("paths") or {}).items():
            combined["paths"].setdefault(prefix + path, {}).update(copy.deepcopy(item))
        for section, entries in (document.get("components") or {}).items():
            if isinstance(entries, dict):
                combined["components"].setdefault(section, {}).update(copy.deepcopy(entries))
    return combined
