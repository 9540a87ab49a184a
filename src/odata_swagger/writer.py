"""Serialize a Document as Swagger 2.0 JSON or YAML."""

import json
from pathlib import Path
from typing import Any

import yaml

from odata_swagger.model.document import BoundOperation, BoundParameter, Document, Schema

# Keys a non-body parameter carries inline instead of under "schema".
_INLINE_SCHEMA_KEYS = ("type", "format", "items", "enum")


def _dump_schema(schema: Schema) -> dict[str, Any]:
    return schema.model_dump(by_alias=True, exclude_none=True)


def _render_parameter(parameter: BoundParameter) -> dict[str, Any]:
    out: dict[str, Any] = {"name": parameter.name, "in": parameter.location, "required": parameter.required}
    if parameter.description:
        out["description"] = parameter.description
    schema = _dump_schema(parameter.schema_)
    if parameter.location == "body":
        out["schema"] = schema
    elif "$ref" in schema:
        # Swagger 2.0 only allows references on body parameters
        out["type"] = "string"
    else:
        out.update({k: schema[k] for k in _INLINE_SCHEMA_KEYS if k in schema})
    return out


def _render_operation(operation: BoundOperation) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if operation.tags:
        out["tags"] = list(operation.tags)
    if operation.summary:
        out["summary"] = operation.summary
    if operation.description:
        out["description"] = operation.description
    out["operationId"] = operation.operation_id
    if operation.consumes:
        out["consumes"] = list(operation.consumes)
    if operation.produces:
        out["produces"] = list(operation.produces)
    out["parameters"] = [_render_parameter(p) for p in operation.parameters]
    out["responses"] = {
        status: response.model_dump(by_alias=True, exclude_none=True)
        for status, response in operation.responses.items()
    }
    if operation.deprecated:
        out["deprecated"] = True
    return out


def render_document(document: Document) -> dict[str, Any]:
    """Return *document* as a plain dict in Swagger 2.0 shape."""
    info = document.info.model_dump()
    if not info["description"]:
        del info["description"]
    out: dict[str, Any] = {"swagger": document.swagger, "info": info}
    if document.host:
        out["host"] = document.host
    if document.base_path:
        out["basePath"] = document.base_path
    if document.schemes:
        out["schemes"] = list(document.schemes)
    out["paths"] = {
        path: {method: _render_operation(op) for method, op in verbs.items()}
        for path, verbs in document.paths.items()
    }
    out["definitions"] = {name: _dump_schema(schema) for name, schema in document.definitions.items()}
    return out


def write_document(document: Document, path: Path) -> None:
    """Write JSON, or YAML when *path* ends in ``.yaml``/``.yml``."""
    data = render_document(document)
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() in (".yaml", ".yml"):
        text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    else:
        text = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    path.write_text(text, encoding="utf-8")
