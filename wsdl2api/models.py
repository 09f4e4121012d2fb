"""Canonical intermediate representation of a WSDL service.

All records are frozen dataclasses holding tuples, so a built
``ServiceDefinition`` can be shared by every emitter and by concurrent bridge
requests without copying.

Cross-references (binding -> portType, operation -> message, part -> type or
element) are kept as written in the document.  Lookups strip the namespace
prefix (``tns:Add`` -> ``Add``) and raise ``UnresolvedReferenceError`` when
nothing matches.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator

from .errors import UnresolvedReferenceError
from .naming import strip_prefix

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "http://tempuri.org/"


@dataclass(frozen=True)
class Port:
    name: str
    binding: str
    address: str


@dataclass(frozen=True)
class Service:
    name: str
    ports: tuple[Port, ...] = ()


@dataclass(frozen=True)
class BindingOperation:
    name: str
    soap_action: str = ""
    style: str = ""
    use: str = ""
    namespace: str = ""


@dataclass(frozen=True)
class Binding:
    name: str
    type: str
    soap_version: str = ""
    style: str = ""
    operations: tuple[BindingOperation, ...] = ()


@dataclass(frozen=True)
class Operation:
    name: str
    documentation: str = ""
    input: str = ""
    output: str = ""


@dataclass(frozen=True)
class PortType:
    name: str
    operations: tuple[Operation, ...] = ()


@dataclass(frozen=True)
class Part:
    name: str
    element: str = ""
    type: str = ""

    @property
    def reference(self) -> str:
        return self.element or self.type


@dataclass(frozen=True)
class Message:
    name: str
    parts: tuple[Part, ...] = ()


@dataclass(frozen=True)
class Element:
    name: str
    type: str
    min_occurs: str = "1"
    max_occurs: str = "1"
    nillable: bool = False


@dataclass(frozen=True)
class Attribute:
    name: str
    type: str
    use: str = "optional"


@dataclass(frozen=True)
class ComplexType:
    name: str
    elements: tuple[Element, ...] = ()
    attributes: tuple[Attribute, ...] = ()
    base: str = ""


@dataclass(frozen=True)
class SchemaElement:
    """A top-level ``xs:element`` declaration (document/literal parts point here)."""

    name: str
    type: str = ""
    nillable: bool = False


@dataclass(frozen=True)
class ServiceDefinition:
    name: str
    target_namespace: str
    services: tuple[Service, ...] = ()
    bindings: tuple[Binding, ...] = ()
    port_types: tuple[PortType, ...] = ()
    messages: tuple[Message, ...] = ()
    complex_types: tuple[ComplexType, ...] = ()
    elements: tuple[SchemaElement, ...] = ()
    simple_types: tuple[tuple[str, str], ...] = ()
    qualified_elements: bool = False

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_message(self, ref: str) -> Message:
        return _find(self.messages, ref, "message")

    def find_port_type(self, ref: str) -> PortType:
        return _find(self.port_types, ref, "portType")

    def find_binding(self, ref: str) -> Binding:
        return _find(self.bindings, ref, "binding")

    def find_complex_type(self, ref: str) -> ComplexType:
        return _find(self.complex_types, ref, "type")

    def find_element(self, ref: str) -> SchemaElement:
        return _find(self.elements, ref, "element")

    def operations(self) -> Iterator[tuple[PortType, Operation]]:
        """Yield every (portType, operation) pair in document order."""
        for port_type in self.port_types:
            for operation in port_type.operations:
                yield port_type, operation

    def find_operation(self, name: str) -> Operation:
        for _, operation in self.operations():
            if operation.name == name:
                return operation
        raise UnresolvedReferenceError("operation", name)

    def binding_operation(self, name: str) -> BindingOperation | None:
        """Return the first binding operation named ``name``, if any."""
        for binding in self.bindings:
            for operation in binding.operations:
                if operation.name == name:
                    return operation
        return None

    def soap_action(self, operation_name: str) -> str:
        bound = self.binding_operation(operation_name)
        return bound.soap_action if bound else ""

    def endpoint(self) -> str:
        """Address of the first port that declares one, or empty string."""
        for service in self.services:
            for port in service.ports:
                if port.address:
                    return port.address
        return ""

    def soap_version(self) -> str:
        """SOAP version of the first bound port, defaulting to 1.1."""
        for service in self.services:
            for port in service.ports:
                try:
                    binding = self.find_binding(port.binding)
                except UnresolvedReferenceError:
                    continue
                if binding.soap_version:
                    return binding.soap_version
        return "1.1"

    def simple_type_base(self, ref: str) -> str | None:
        local = strip_prefix(ref)
        for name, base in self.simple_types:
            if name == local:
                return base
        return None


def _find(items, ref: str, kind: str):
    local = strip_prefix(ref)
    for item in items:
        if strip_prefix(item.name) == local:
            return item
    raise UnresolvedReferenceError(kind, ref)


@dataclass
class Diagnostics:
    """Counted degradation events for one pipeline run."""

    unresolved: list[UnresolvedReferenceError] = field(default_factory=list)
    projection_warnings: list[str] = field(default_factory=list)

    def record_unresolved(self, error: UnresolvedReferenceError, context: str = "") -> None:
        self.unresolved.append(error)
        if context:
            logger.warning("%s (in %s); degraded to placeholder", error, context)
        else:
            logger.warning("%s; degraded to placeholder", error)

    def record_projection(self, target: str, type_ref: str, context: str = "") -> None:
        """Count an opaque projection once per (target, type, location)."""
        key = f"{target}:{type_ref}:{context}"
        if key in self.projection_warnings:
            return
        self.projection_warnings.append(key)
        logger.warning(
            "unknown type %r projected as opaque for %s%s",
            type_ref, target, f" ({context})" if context else "",
        )

    @property
    def unresolved_count(self) -> int:
        return len(self.unresolved)

    @property
    def projection_warning_count(self) -> int:
        return len(self.projection_warnings)

    def summary(self) -> dict[str, int]:
        return {
            "unresolved_references": self.unresolved_count,
            "projection_warnings": self.projection_warning_count,
        }
