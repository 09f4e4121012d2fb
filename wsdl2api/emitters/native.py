"""Emit the native Python client package.

Output layout (under ``<package_name>/``):
  models.py    - one dataclass per complex type and per request/response shape
  client.py    - Client wrapping wsdl2api.soap.SoapClient, plus new_client()
  __init__.py  - re-exports

Dataclass attributes use the exported identifier form (``IntA: int``);
methods use the snake form (``add``, ``number_to_words``).  Every expression
the templates need (annotations, defaults, conversions) is computed here so
the templates stay mechanical.
"""

from __future__ import annotations

import logging
from typing import Any

import jinja2

from ..codegen import render
from ..context_builder import field_required, project_field
from ..ir_builder import NameRegistry
from ..naming import python_name, unique_name
from ..projector import Target, TypeDescriptor

logger = logging.getLogger(__name__)

# Names defined on the generated Client class itself.
CLIENT_MEMBERS = frozenset({
    "call", "close", "set_header", "set_soap_version",
    "set_basic_auth", "set_digest_auth", "url", "soap_version",
})


def _to_wire(attr: str, descriptor: TypeDescriptor) -> str:
    value = f"self.{attr}"
    if not descriptor.is_complex:
        return value
    if descriptor.is_array:
        return f"[item.to_fields() for item in {value}]"
    return f"{value}.to_fields() if {value} is not None else None"


def _from_wire(wire_key: str, descriptor: TypeDescriptor) -> str:
    raw = f"data.get({wire_key!r})"
    if descriptor.is_complex:
        cls = descriptor.base_type
        if descriptor.is_array:
            return f"[{cls}.from_fields(as_dict(v)) for v in as_list({raw})]"
        if descriptor.is_optional:
            return f"_nested({raw}, {cls})"
        return f"{cls}.from_fields(as_dict({raw}))"
    if descriptor.primitive:
        xsd = descriptor.base_type
        if descriptor.is_array:
            return f"[from_text(v, {xsd!r}) for v in as_list({raw})]"
        return f"from_text({raw}, {xsd!r})"
    if descriptor.is_array:
        return f"as_list({raw})"
    return raw


def _dataclass(
    name: str,
    description: str,
    fields: list[dict[str, Any]],
    context: dict[str, Any],
    registry: NameRegistry,
) -> dict[str, Any]:
    taken: set[str] = set()
    attrs = []
    for f in fields:
        descriptor = project_field(f, Target.NATIVE, context["type_index"], registry, name)
        attr = unique_name(python_name(f["ident"].exported) or "Value", taken)
        required = field_required(f, descriptor)
        if descriptor.is_array:
            default = "dataclasses.field(default_factory=list)"
        elif descriptor.is_optional or not required:
            default = "None"
        else:
            default = ""
        attrs.append({
            "name": attr,
            "wire_key": f["wire_key"],
            "annotation": descriptor.target_syntax,
            "default": default,
            "to_wire": _to_wire(attr, descriptor),
            "from_wire": _from_wire(f["wire_key"], descriptor),
        })
    # Dataclasses need fields without defaults first; wire order lives in to_fields.
    ordered = [a for a in attrs if not a["default"]] + [a for a in attrs if a["default"]]
    return {"name": name, "description": description, "fields": attrs, "ordered": ordered}


def build_native_context(
    context: dict[str, Any],
    registry: NameRegistry,
    client_security: bool = True,
    soap_version: str | None = None,
) -> dict[str, Any]:
    classes = []
    for t in context["types"]:
        name = t["ident"].exported
        if not registry.claim(Target.NATIVE.value, name):
            logger.warning("Duplicate class name %s (from %s) skipped", name, t["name"])
            continue
        classes.append(_dataclass(name, f"Complex type {t['name']}.", t["fields"], context, registry))

    taken = set(CLIENT_MEMBERS)
    methods = []
    for op in context["operations"]:
        for key, fields, label in (
            ("request_type", op["input_fields"], "Request"),
            ("response_type", op["output_fields"], "Response"),
        ):
            registry.claim(Target.NATIVE.value, op[key])
            classes.append(_dataclass(op[key], f"{label} for {op['name']}.", fields, context, registry))
        methods.append({
            "name": unique_name(python_name(op["ident"].snake) or "operation", taken),
            "operation": op["name"],
            "documentation": op["documentation"],
            "soap_action": op["soap_action"],
            "element": op["request_element"],
            "namespace": op["namespace"],
            "request_type": op["request_type"],
            "response_type": op["response_type"],
        })

    return {
        "service": context["service"],
        "namespace": context["namespace"],
        "endpoint": context["endpoint"],
        "soap_version": soap_version or context["soap_version"],
        "qualified": context["qualified"],
        "client_security": client_security,
        "classes": classes,
        "class_names": [c["name"] for c in classes],
        "methods": methods,
    }


def emit(
    context: dict[str, Any],
    registry: NameRegistry,
    package_name: str = "client",
    client_security: bool = True,
    soap_version: str | None = None,
    env: jinja2.Environment | None = None,
) -> dict[str, str]:
    native = build_native_context(context, registry, client_security, soap_version)
    return {
        f"{package_name}/models.py": render("native_models.py.j2", native, env),
        f"{package_name}/client.py": render("native_client.py.j2", native, env),
        f"{package_name}/__init__.py": render("native_init.py.j2", native, env),
    }
