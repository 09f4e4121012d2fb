"""Emit an OpenAPI 3.0 document describing the REST bridge.

One POST path per operation (``/api/<Operation>``).  Request and response
payload shapes live in ``components.schemas`` as ``<Op>Request`` /
``<Op>Response`` next to the service's complex types.  The 200 body is the
bridge result wrapper ``{operation, status, request, response}``; 500 carries
the SOAP fault.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from ..context_builder import field_required, project_field
from ..ir_builder import NameRegistry
from ..projector import COMPONENT_PREFIX, Target

logger = logging.getLogger(__name__)

OPENAPI_VERSION = "3.0.0"
FAULT_SCHEMA = "SOAPFault"

_FAULT = {
    "type": "object",
    "properties": {
        "faultcode": {"type": "string"},
        "faultstring": {"type": "string"},
        "detail": {"type": "string"},
    },
}


def _object_schema(
    fields: list[dict[str, Any]],
    context: dict[str, Any],
    registry: NameRegistry,
    where: str,
) -> dict[str, Any]:
    properties: dict[str, Any] = {}
    required: list[str] = []
    for field in fields:
        descriptor = project_field(field, Target.OPENAPI, context["type_index"], registry, where)
        name = field["ident"].field
        properties[name] = descriptor.schema
        if field_required(field, descriptor):
            required.append(name)

    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def _ref(name: str) -> dict[str, str]:
    return {"$ref": COMPONENT_PREFIX + name}


def _operation(op: dict[str, Any]) -> dict[str, Any]:
    return {
        "summary": op["name"],
        "description": op["documentation"],
        "operationId": op["name"],
        "tags": [op["port_type"]],
        "requestBody": {
            "description": f"Request for {op['name']} operation",
            "required": True,
            "content": {"application/json": {"schema": _ref(op["request_type"])}},
        },
        "responses": {
            "200": {
                "description": f"Successful response for {op['name']}",
                "content": {"application/json": {"schema": {
                    "type": "object",
                    "properties": {
                        "operation": {"type": "string"},
                        "status": {"type": "string"},
                        "request": _ref(op["request_type"]),
                        "response": _ref(op["response_type"]),
                    },
                    "required": ["operation", "status", "response"],
                }}},
            },
            "500": {
                "description": "SOAP Fault",
                "content": {"application/json": {"schema": _ref(FAULT_SCHEMA)}},
            },
        },
    }


def build_document(
    context: dict[str, Any],
    registry: NameRegistry,
    base_url: str = "http://localhost:8080",
) -> dict[str, Any]:
    """Build the OpenAPI document as a plain dict."""
    schemas: dict[str, Any] = {}

    for t in context["types"]:
        name = t["ident"].exported
        if not registry.claim(Target.OPENAPI.value, name):
            logger.warning("Duplicate schema name %s (from %s) skipped", name, t["name"])
            continue
        schemas[name] = _object_schema(t["fields"], context, registry, t["name"])

    paths: dict[str, Any] = {}
    for op in context["operations"]:
        for key, fields in (("request_type", op["input_fields"]), ("response_type", op["output_fields"])):
            registry.claim(Target.OPENAPI.value, op[key])
            schemas[op[key]] = _object_schema(fields, context, registry, op[key])
        paths[op["path"]] = {"post": _operation(op)}

    schemas[FAULT_SCHEMA] = _FAULT

    endpoints = ", ".join(s["url"] for s in context["servers"])
    description = f"API converted from WSDL: {context['namespace']}"
    if endpoints:
        description += f" (SOAP endpoints: {endpoints})"

    return {
        "openapi": OPENAPI_VERSION,
        "info": {
            "title": context["service"],
            "description": description,
            "version": "1.0.0",
        },
        "servers": [{"url": base_url, "description": "REST bridge"}],
        "paths": paths,
        "components": {"schemas": schemas},
    }


def emit(
    context: dict[str, Any],
    registry: NameRegistry,
    base_url: str = "http://localhost:8080",
) -> dict[str, str]:
    document = build_document(context, registry, base_url)
    return {"openapi.json": json.dumps(document, indent=2) + "\n"}
