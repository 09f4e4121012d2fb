"""Emit a mock SOAP server for the service.

Output: ``mock_server.py``, a FastAPI app that answers every operation with
an envelope built by wsdl2api.soap.  Each operation starts with a default
handler returning placeholder values; tests swap in their own handlers with
``MockServer.register_handler``.
"""

from __future__ import annotations

from typing import Any

import jinja2

from ..codegen import render
from ..ir_builder import NameRegistry
from ..naming import python_name, unique_name
from ..projector import TypeIndex, project

# Placeholder text per XSD primitive; anything unlisted answers "".
PLACEHOLDERS: dict[str, str] = {
    "int": "0",
    "integer": "0",
    "long": "0",
    "short": "0",
    "byte": "0",
    "float": "0",
    "double": "0",
    "decimal": "0",
    "boolean": "false",
    "dateTime": "1970-01-01T00:00:00Z",
    "date": "1970-01-01",
    "time": "00:00:00",
}


def placeholder(field: dict[str, Any], types: TypeIndex) -> Any:
    """Value a default handler answers for one response field.

    Arrays answer empty, optional fields are left out (None) and complex
    types answer an empty element.
    """
    descriptor = project(field["type"], field["min_occurs"], field["max_occurs"], field["nillable"], types=types)
    if descriptor.is_array:
        return []
    if descriptor.is_optional:
        return None
    if descriptor.is_complex:
        return {}
    return PLACEHOLDERS.get(descriptor.base_type, "")


def build_mock_context(context: dict[str, Any], soap_version: str | None = None) -> dict[str, Any]:
    taken: set[str] = set()
    operations = []
    for op in context["operations"]:
        defaults = {f["wire_key"]: placeholder(f, context["type_index"]) for f in op["output_fields"]}
        operations.append({
            "name": op["name"],
            "handler": unique_name("mock_" + (python_name(op["ident"].snake) or "operation"), taken),
            "request_element": op["request_element"],
            "response_element": op["response_element"],
            "namespace": op["namespace"],
            "defaults": {k: v for k, v in defaults.items() if v is not None},
        })
    return {
        "service": context["service"],
        "soap_version": soap_version or context["soap_version"],
        "qualified": context["qualified"],
        "operations": operations,
    }


def emit(
    context: dict[str, Any],
    registry: NameRegistry,
    soap_version: str | None = None,
    env: jinja2.Environment | None = None,
) -> dict[str, str]:
    return {"mock_server.py": render("mock_server.py.j2", build_mock_context(context, soap_version), env)}
