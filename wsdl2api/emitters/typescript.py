"""Emit a TypeScript client for the REST bridge.

Produces three files:
  types.ts   - one interface per complex type and per request/response shape
  client.ts  - APIClient with a timeout-bounded fetch wrapper
  index.ts   - barrel re-exporting both

Paths and property names mirror the OpenAPI document one-to-one.
"""

from __future__ import annotations

import logging
from typing import Any

import jinja2

from ..codegen import render
from ..context_builder import field_required, project_field
from ..ir_builder import NameRegistry
from ..projector import Target

logger = logging.getLogger(__name__)


def _properties(
    fields: list[dict[str, Any]],
    context: dict[str, Any],
    registry: NameRegistry,
    where: str,
) -> list[dict[str, Any]]:
    props = []
    for field in fields:
        descriptor = project_field(field, Target.TYPESCRIPT, context["type_index"], registry, where)
        props.append({
            "name": field["ident"].field,
            "wire_name": field["wire_name"],
            "type": descriptor.target_syntax,
            "optional": not field_required(field, descriptor),
        })
    return props


def build_ts_context(
    context: dict[str, Any],
    registry: NameRegistry,
    timeout_ms: int = 30000,
    base_url: str = "http://localhost:8080",
) -> dict[str, Any]:
    interfaces = []
    for t in context["types"]:
        name = t["ident"].exported
        if not registry.claim(Target.TYPESCRIPT.value, name):
            logger.warning("Duplicate interface name %s (from %s) skipped", name, t["name"])
            continue
        interfaces.append({
            "name": name,
            "description": f"Complex type {t['name']}",
            "properties": _properties(t["fields"], context, registry, t["name"]),
        })

    methods = []
    for op in context["operations"]:
        for key, fields, label in (
            ("request_type", op["input_fields"], "Request"),
            ("response_type", op["output_fields"], "Response"),
        ):
            registry.claim(Target.TYPESCRIPT.value, op[key])
            interfaces.append({
                "name": op[key],
                "description": f"{label} for {op['name']}",
                "properties": _properties(fields, context, registry, op[key]),
            })
        methods.append({
            "name": op["ident"].field,
            "operation": op["name"],
            "path": op["path"],
            "documentation": op["documentation"],
            "request_type": op["request_type"],
            "response_type": op["response_type"],
        })

    return {
        "service": context["service"],
        "namespace": context["namespace"],
        "interfaces": interfaces,
        "methods": methods,
        "type_names": [i["name"] for i in interfaces],
        "timeout_ms": timeout_ms,
        "base_url": base_url,
    }


def emit(
    context: dict[str, Any],
    registry: NameRegistry,
    timeout_ms: int = 30000,
    base_url: str = "http://localhost:8080",
    env: jinja2.Environment | None = None,
) -> dict[str, str]:
    ts = build_ts_context(context, registry, timeout_ms, base_url)
    return {
        "types.ts": render("types.ts.j2", ts, env),
        "client.ts": render("client.ts.j2", ts, env),
        "index.ts": render("index.ts.j2", ts, env),
    }
