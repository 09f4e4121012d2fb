"""Build the emitter context from a ServiceDefinition.

Resolves each operation's messages into flat field lists, expands
document/literal wrapped parts into the wrapper element's children, and
assembles the complex-type list.  Emitters only ever see this context plus
``project_field``; none of them walks the IR on its own.
"""

from __future__ import annotations

import logging
from typing import Any

from .errors import UnresolvedReferenceError
from .ir_builder import NameRegistry
from .models import DEFAULT_NAMESPACE, ComplexType, Message, Operation, ServiceDefinition
from .naming import normalize, strip_prefix
from .projector import PRIMITIVES, Target, TypeDescriptor, TypeIndex, project

logger = logging.getLogger(__name__)

_GENERIC_TYPES = {"anyType", "anySimpleType"}


def _field(
    wire_name: str,
    type_ref: str,
    min_occurs: str = "1",
    max_occurs: str = "1",
    nillable: bool = False,
    attribute: bool = False,
) -> dict[str, Any]:
    return {
        "wire_name": wire_name,
        "wire_key": "@" + wire_name if attribute else wire_name,
        "ident": normalize(wire_name),
        "type": type_ref,
        "min_occurs": min_occurs,
        "max_occurs": max_occurs,
        "nillable": nillable,
        "attribute": attribute,
    }


def project_field(
    field: dict[str, Any],
    target: Target,
    types: TypeIndex,
    registry: NameRegistry,
    context: str = "",
) -> TypeDescriptor:
    """Project a context field for ``target`` and count opaque degradations."""
    descriptor = project(
        field["type"],
        field["min_occurs"],
        field["max_occurs"],
        field["nillable"],
        target,
        types,
    )
    if descriptor.degraded:
        where = f"{context}.{field['wire_name']}" if context else field["wire_name"]
        registry.diagnostics.record_projection(Target(target).value, field["type"], where)
    return descriptor


def field_required(field: dict[str, Any], descriptor: TypeDescriptor) -> bool:
    """Scalars are required; arrays are required unless minOccurs is 0."""
    if descriptor.is_optional:
        return False
    if descriptor.is_array:
        return field["min_occurs"] != "0"
    return True


def _type_resolves(definition: ServiceDefinition, type_ref: str) -> bool:
    local = strip_prefix(type_ref)
    if local in PRIMITIVES or local in _GENERIC_TYPES:
        return True
    if definition.simple_type_base(local) is not None:
        return True
    try:
        definition.find_complex_type(local)
    except UnresolvedReferenceError:
        return False
    return True


def _complex_fields(ct: ComplexType) -> list[dict[str, Any]]:
    fields = [
        _field(e.name, e.type, e.min_occurs, e.max_occurs, e.nillable)
        for e in ct.elements
    ]
    fields.extend(
        _field(a.name, a.type, "1" if a.use == "required" else "0", attribute=True)
        for a in ct.attributes
    )
    return fields


def message_fields(
    definition: ServiceDefinition,
    message: Message,
    registry: NameRegistry,
) -> list[dict[str, Any]]:
    """Flatten a message's parts into fields.

    A single part that points at an element of complex type is the
    document/literal wrapped style: the wrapper's children become the fields.
    """
    diagnostics = registry.diagnostics
    fields: list[dict[str, Any]] = []
    single = len(message.parts) == 1

    for part in message.parts:
        if part.element:
            try:
                element = definition.find_element(part.element)
            except UnresolvedReferenceError as exc:
                diagnostics.record_unresolved(exc, context=f"message {message.name}")
                fields.append(_field(part.name, "anyType", "0"))
                continue

            if single and element.type and not _is_simple(definition, element.type):
                try:
                    ct = definition.find_complex_type(element.type)
                except UnresolvedReferenceError as exc:
                    diagnostics.record_unresolved(exc, context=f"element {element.name}")
                    fields.append(_field(element.name, "anyType", "0"))
                    continue
                fields.extend(_complex_fields(ct))
                continue

            fields.append(_field(element.name, element.type or "anyType", nillable=element.nillable))
            continue

        if part.type and not _type_resolves(definition, part.type):
            diagnostics.record_unresolved(
                UnresolvedReferenceError("type", part.type),
                context=f"message {message.name}",
            )
        fields.append(_field(part.name, part.type or "anyType"))
    return fields


def _is_simple(definition: ServiceDefinition, type_ref: str) -> bool:
    local = strip_prefix(type_ref)
    return (
        local in PRIMITIVES
        or local in _GENERIC_TYPES
        or definition.simple_type_base(local) is not None
    )


def _wrapper_element(definition: ServiceDefinition, message: Message | None, fallback: str) -> str:
    if message is not None and len(message.parts) == 1 and message.parts[0].element:
        return strip_prefix(message.parts[0].element)
    return fallback


def _resolve_message(
    definition: ServiceDefinition,
    ref: str,
    registry: NameRegistry,
    operation: Operation,
) -> Message | None:
    if not ref:
        return None
    try:
        return definition.find_message(ref)
    except UnresolvedReferenceError as exc:
        registry.diagnostics.record_unresolved(exc, context=f"operation {operation.name}")
        return None


def _soap_port_types(definition: ServiceDefinition) -> set[str]:
    """Names of port types reached through a SOAP (1.1 or 1.2) binding."""
    names = set()
    for binding in definition.bindings:
        if binding.soap_version:
            names.add(strip_prefix(binding.type))
    return names


def build_operation(
    definition: ServiceDefinition,
    port_type_name: str,
    operation: Operation,
    registry: NameRegistry,
) -> dict[str, Any]:
    input_msg = _resolve_message(definition, operation.input, registry, operation)
    output_msg = _resolve_message(definition, operation.output, registry, operation)
    bound = definition.binding_operation(operation.name)

    namespace = (bound.namespace if bound else "") or definition.target_namespace or DEFAULT_NAMESPACE
    return {
        "name": operation.name,
        "ident": normalize(operation.name),
        "documentation": operation.documentation,
        "port_type": port_type_name,
        "soap_action": bound.soap_action if bound else "",
        "style": bound.style if bound else "",
        "namespace": namespace,
        "path": f"/api/{operation.name}",
        "input_message": input_msg.name if input_msg else strip_prefix(operation.input),
        "output_message": output_msg.name if output_msg else strip_prefix(operation.output),
        "input_parts": list(input_msg.parts) if input_msg else [],
        "output_parts": list(output_msg.parts) if output_msg else [],
        "request_element": _wrapper_element(definition, input_msg, operation.name),
        "response_element": _wrapper_element(definition, output_msg, operation.name + "Response"),
        "input_fields": message_fields(definition, input_msg, registry) if input_msg else [],
        "output_fields": message_fields(definition, output_msg, registry) if output_msg else [],
    }


def _wrapper_types(definition: ServiceDefinition, operations: list[dict[str, Any]]) -> set[str]:
    """Complex types used only as document/literal wrapper elements.

    Their children already live in the operation request/response shapes, so
    they are not emitted again unless some field refers to them.
    """
    wrappers: set[str] = set()
    for op in operations:
        for parts in (op["input_parts"], op["output_parts"]):
            if len(parts) != 1 or not parts[0].element:
                continue
            try:
                element = definition.find_element(parts[0].element)
            except UnresolvedReferenceError:
                continue
            if element.type and not _is_simple(definition, element.type):
                wrappers.add(strip_prefix(element.type))

    referenced = {
        strip_prefix(e.type)
        for ct in definition.complex_types
        for e in ct.elements
    }
    for op in operations:
        for field in op["input_fields"] + op["output_fields"]:
            referenced.add(strip_prefix(field["type"]))
    return wrappers - referenced


def _assign_shape_names(operations: list[dict[str, Any]], taken: set[str]) -> None:
    """Name each operation's request/response shape, avoiding schema type names."""
    taken = set(taken)
    for op in operations:
        for key, suffix in (("request_type", "Request"), ("response_type", "Response")):
            name = op["ident"].exported + suffix
            while name in taken:
                name += "Body"
            taken.add(name)
            op[key] = name


def build_context(definition: ServiceDefinition, registry: NameRegistry) -> dict[str, Any]:
    """Build the full emitter context."""
    soap_port_types = _soap_port_types(definition)
    operations: list[dict[str, Any]] = []
    seen: set[str] = set()

    for port_type, operation in definition.operations():
        if soap_port_types and strip_prefix(port_type.name) not in soap_port_types:
            logger.debug("Skipping %s.%s (no SOAP binding)", port_type.name, operation.name)
            continue
        if operation.name in seen:
            logger.debug("Skipping duplicate operation %s in %s", operation.name, port_type.name)
            continue
        seen.add(operation.name)
        operations.append(build_operation(definition, port_type.name, operation, registry))

    wrappers = _wrapper_types(definition, operations)
    types = [
        {
            "name": ct.name,
            "ident": normalize(ct.name),
            "fields": _complex_fields(ct),
        }
        for ct in definition.complex_types
        if strip_prefix(ct.name) not in wrappers
    ]
    _assign_shape_names(operations, {t["ident"].exported for t in types})

    return {
        "service": definition.name,
        "ident": normalize(definition.name),
        "namespace": definition.target_namespace or DEFAULT_NAMESPACE,
        "qualified": definition.qualified_elements,
        "endpoint": definition.endpoint(),
        "soap_version": definition.soap_version(),
        "servers": [
            {"url": port.address, "description": f"{service.name} - {port.name}"}
            for service in definition.services
            for port in service.ports
            if port.address
        ],
        "operations": operations,
        "operation_count": len(operations),
        "types": types,
        "type_index": TypeIndex.from_definition(definition),
    }
