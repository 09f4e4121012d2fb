"""Build the canonical ServiceDefinition from raw WSDL XML.

Handles:
- services/ports with soap, soap12 and http address elements
- bindings, with SOAP version detected from the soap/soap12 binding namespace
- portTypes, messages and parts (element= or type=)
- inline XSD schemas: named complexTypes, top-level elements with inline
  complexTypes, simpleType restrictions, complexContent extensions,
  nested anonymous types and element refs

Only a malformed top level (not XML, not ``definitions``) is fatal.  Dangling
references are recorded in the run's Diagnostics and the build goes on.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import replace
from typing import Iterator

from .errors import ParseError, UnresolvedReferenceError
from .models import (
    Attribute,
    Binding,
    BindingOperation,
    ComplexType,
    Diagnostics,
    Element,
    Message,
    Operation,
    Part,
    Port,
    PortType,
    SchemaElement,
    Service,
    ServiceDefinition,
)
from .naming import strip_prefix
from .projector import is_primitive

logger = logging.getLogger(__name__)

NS_WSDL = "http://schemas.xmlsoap.org/wsdl/"
NS_XSD = "http://www.w3.org/2001/XMLSchema"
NS_SOAP11_BINDING = "http://schemas.xmlsoap.org/wsdl/soap/"
NS_SOAP12_BINDING = "http://schemas.xmlsoap.org/wsdl/soap12/"

_BINDING_VERSIONS = {
    NS_SOAP11_BINDING: "1.1",
    NS_SOAP12_BINDING: "1.2",
}


class NameRegistry:
    """Per-run cache shared by the IR builder and every emitter.

    Tracks which type names each target has already emitted and carries the
    run's Diagnostics.
    """

    def __init__(self, diagnostics: Diagnostics | None = None) -> None:
        self.diagnostics = diagnostics or Diagnostics()
        self._claimed: dict[str, set[str]] = {}

    def claim(self, target: str, name: str) -> bool:
        """Return True the first time ``name`` is claimed for ``target``."""
        names = self._claimed.setdefault(target, set())
        if name in names:
            return False
        names.add(name)
        return True

    def claimed(self, target: str) -> frozenset[str]:
        return frozenset(self._claimed.get(target, ()))


# ---------------------------------------------------------------------------
# XML helpers
# ---------------------------------------------------------------------------

def _split_tag(tag: str) -> tuple[str, str]:
    if tag.startswith("{"):
        ns, local = tag[1:].split("}", 1)
        return ns, local
    return "", tag


def _local(el: ET.Element) -> str:
    return _split_tag(el.tag)[1]


def _children(el: ET.Element, local: str) -> Iterator[ET.Element]:
    for child in el:
        if isinstance(child.tag, str) and _local(child) == local:
            yield child


def _child(el: ET.Element, local: str) -> ET.Element | None:
    return next(_children(el, local), None)


def _text(el: ET.Element | None) -> str:
    if el is None:
        return ""
    return " ".join("".join(el.itertext()).split())


# ---------------------------------------------------------------------------
# Schema parsing
# ---------------------------------------------------------------------------

class _SchemaCollector:
    def __init__(self) -> None:
        self.complex_types: list[ComplexType] = []
        self.elements: list[SchemaElement] = []
        self.simple_types: list[tuple[str, str]] = []
        self.qualified = False

    def collect(self, schema: ET.Element) -> None:
        if schema.get("elementFormDefault") == "qualified":
            self.qualified = True
        for node in schema:
            if not isinstance(node.tag, str):
                continue
            kind = _local(node)
            name = node.get("name", "")
            if not name:
                continue
            if kind == "complexType":
                self.complex_types.append(self._complex_type(node, name))
            elif kind == "simpleType":
                self.simple_types.append((name, _simple_base(node)))
            elif kind == "element":
                self._top_level_element(node, name)

    def _top_level_element(self, node: ET.Element, name: str) -> None:
        nillable = node.get("nillable") == "true"
        if node.get("type"):
            self.elements.append(SchemaElement(name, node.get("type", ""), nillable))
            return
        inline = _child(node, "complexType")
        if inline is not None:
            self.complex_types.append(self._complex_type(inline, name))
            self.elements.append(SchemaElement(name, name, nillable))
            return
        simple = _child(node, "simpleType")
        if simple is not None:
            self.elements.append(SchemaElement(name, _simple_base(simple), nillable))
            return
        self.elements.append(SchemaElement(name, "anyType", nillable))

    def _complex_type(self, node: ET.Element, name: str) -> ComplexType:
        elements: list[Element] = []
        attributes: list[Attribute] = []
        base = ""

        content = _child(node, "complexContent")
        holder = node
        if content is not None:
            derivation = _derivation(content)
            if derivation is not None:
                base = derivation.get("base", "")
                holder = derivation
        simple_content = _child(node, "simpleContent")
        if simple_content is not None:
            derivation = _derivation(simple_content)
            if derivation is not None:
                holder = derivation

        for child in holder:
            if not isinstance(child.tag, str):
                continue
            kind = _local(child)
            if kind in ("sequence", "all", "choice"):
                self._model_group(child, name, elements, optional=kind == "choice")
            elif kind == "attribute":
                attributes.append(Attribute(
                    name=child.get("name") or strip_prefix(child.get("ref", "")),
                    type=child.get("type", "string"),
                    use=child.get("use", "optional"),
                ))
        return ComplexType(name, tuple(elements), tuple(attributes), base)

    def _model_group(
        self,
        group: ET.Element,
        owner: str,
        out: list[Element],
        optional: bool,
    ) -> None:
        for child in group:
            if not isinstance(child.tag, str):
                continue
            kind = _local(child)
            if kind in ("sequence", "all", "choice"):
                self._model_group(child, owner, out, optional or kind == "choice")
            elif kind == "element":
                out.append(self._element(child, owner, optional))

    def _element(self, node: ET.Element, owner: str, optional: bool) -> Element:
        name = node.get("name", "")
        type_ref = node.get("type", "")
        if not name and node.get("ref"):
            # Resolved against top-level elements once every schema is read.
            name = strip_prefix(node.get("ref", ""))
            type_ref = "element:" + name
        elif not type_ref:
            inline = _child(node, "complexType")
            simple = _child(node, "simpleType")
            if inline is not None:
                type_ref = f"{owner}_{name}"
                self.complex_types.append(self._complex_type(inline, type_ref))
            elif simple is not None:
                type_ref = _simple_base(simple)
            else:
                type_ref = "anyType"
        return Element(
            name=name,
            type=type_ref,
            min_occurs="0" if optional else node.get("minOccurs", "1"),
            max_occurs=node.get("maxOccurs", "1"),
            nillable=node.get("nillable") == "true",
        )


def _derivation(content: ET.Element) -> ET.Element | None:
    extension = _child(content, "extension")
    if extension is not None:
        return extension
    return _child(content, "restriction")


def _simple_base(node: ET.Element) -> str:
    restriction = _child(node, "restriction")
    if restriction is not None and restriction.get("base"):
        return strip_prefix(restriction.get("base", ""))
    return "string"


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------

class IRBuilder:
    """Convert raw WSDL into a ServiceDefinition, owning the run's registry."""

    def __init__(self, registry: NameRegistry | None = None) -> None:
        self.registry = registry or NameRegistry()

    @property
    def diagnostics(self) -> Diagnostics:
        return self.registry.diagnostics

    def build(self, raw: bytes | str) -> ServiceDefinition:
        try:
            root = ET.fromstring(raw)
        except ET.ParseError as exc:
            raise ParseError(f"failed to decode WSDL XML: {exc}") from exc

        ns, local = _split_tag(root.tag)
        if local != "definitions" or ns not in ("", NS_WSDL):
            raise ParseError(f"root element is {root.tag!r}, expected wsdl:definitions")

        schemas = _SchemaCollector()
        types = _child(root, "types")
        if types is not None:
            for schema in _children(types, "schema"):
                schemas.collect(schema)

        definition = ServiceDefinition(
            name=root.get("name", ""),
            target_namespace=root.get("targetNamespace", ""),
            services=tuple(self._service(el) for el in _children(root, "service")),
            bindings=tuple(self._binding(el) for el in _children(root, "binding")),
            port_types=tuple(self._port_type(el) for el in _children(root, "portType")),
            messages=tuple(self._message(el) for el in _children(root, "message")),
            complex_types=self._finalize_types(schemas),
            elements=tuple(schemas.elements),
            simple_types=tuple(schemas.simple_types),
            qualified_elements=schemas.qualified,
        )
        if not definition.name and definition.services:
            definition = replace(definition, name=definition.services[0].name)

        self._check_references(definition)
        logger.info(
            "Built %s: %d services, %d operations, %d types",
            definition.name or "<unnamed>",
            len(definition.services),
            sum(1 for _ in definition.operations()),
            len(definition.complex_types),
        )
        return definition

    # -- top-level WSDL constructs -----------------------------------------

    def _service(self, el: ET.Element) -> Service:
        ports = []
        for port in _children(el, "port"):
            address = _child(port, "address")
            ports.append(Port(
                name=port.get("name", ""),
                binding=port.get("binding", ""),
                address=address.get("location", "") if address is not None else "",
            ))
        return Service(el.get("name", ""), tuple(ports))

    def _binding(self, el: ET.Element) -> Binding:
        soap_version = ""
        style = ""
        for child in _children(el, "binding"):
            ns, _ = _split_tag(child.tag)
            soap_version = _BINDING_VERSIONS.get(ns, soap_version)
            style = child.get("style", "")

        operations = []
        for op in _children(el, "operation"):
            soap_op = _child(op, "operation")
            body = None
            op_input = _child(op, "input")
            if op_input is not None:
                body = _child(op_input, "body")
            operations.append(BindingOperation(
                name=op.get("name", ""),
                soap_action=soap_op.get("soapAction", "") if soap_op is not None else "",
                style=(soap_op.get("style", "") if soap_op is not None else "") or style,
                use=body.get("use", "") if body is not None else "",
                namespace=body.get("namespace", "") if body is not None else "",
            ))
        return Binding(
            name=el.get("name", ""),
            type=el.get("type", ""),
            soap_version=soap_version,
            style=style,
            operations=tuple(operations),
        )

    def _port_type(self, el: ET.Element) -> PortType:
        operations = []
        for op in _children(el, "operation"):
            op_input = _child(op, "input")
            op_output = _child(op, "output")
            operations.append(Operation(
                name=op.get("name", ""),
                documentation=_text(_child(op, "documentation")),
                input=op_input.get("message", "") if op_input is not None else "",
                output=op_output.get("message", "") if op_output is not None else "",
            ))
        return PortType(el.get("name", ""), tuple(operations))

    def _message(self, el: ET.Element) -> Message:
        parts = tuple(
            Part(
                name=part.get("name", ""),
                element=part.get("element", ""),
                type=part.get("type", ""),
            )
            for part in _children(el, "part")
        )
        return Message(el.get("name", ""), parts)

    # -- schema post-processing --------------------------------------------

    def _finalize_types(self, schemas: _SchemaCollector) -> tuple[ComplexType, ...]:
        element_types = {e.name: e.type for e in schemas.elements}
        by_name: dict[str, ComplexType] = {}
        for ct in schemas.complex_types:
            if ct.name in by_name:
                logger.debug("Duplicate complexType %s ignored", ct.name)
                continue
            elements = tuple(_resolve_element_ref(e, element_types) for e in ct.elements)
            by_name[ct.name] = ComplexType(ct.name, elements, ct.attributes, ct.base)

        resolved: dict[str, ComplexType] = {}
        for name in by_name:
            resolved[name] = self._flatten(name, by_name, resolved, set())
        return tuple(resolved.values())

    def _flatten(
        self,
        name: str,
        by_name: dict[str, ComplexType],
        done: dict[str, ComplexType],
        seen: set[str],
    ) -> ComplexType:
        if name in done:
            return done[name]
        ct = by_name[name]
        if not ct.base or is_primitive(ct.base) or name in seen:
            return ct
        base_name = strip_prefix(ct.base)
        if base_name not in by_name:
            self.diagnostics.record_unresolved(
                UnresolvedReferenceError("type", ct.base), context=f"complexType {name}",
            )
            return ct
        base = self._flatten(base_name, by_name, done, seen | {name})
        done[base_name] = base
        return ComplexType(
            name=ct.name,
            elements=base.elements + ct.elements,
            attributes=base.attributes + ct.attributes,
            base=ct.base,
        )

    # -- validation --------------------------------------------------------

    def _check_references(self, definition: ServiceDefinition) -> None:
        diagnostics = self.diagnostics
        for service in definition.services:
            for port in service.ports:
                try:
                    definition.find_binding(port.binding)
                except UnresolvedReferenceError as exc:
                    diagnostics.record_unresolved(exc, context=f"port {port.name}")

        for binding in definition.bindings:
            try:
                port_type = definition.find_port_type(binding.type)
            except UnresolvedReferenceError as exc:
                diagnostics.record_unresolved(exc, context=f"binding {binding.name}")
                continue
            for bound in binding.operations:
                matches = [op for op in port_type.operations if op.name == bound.name]
                if len(matches) != 1:
                    diagnostics.record_unresolved(
                        UnresolvedReferenceError("operation", bound.name),
                        context=f"binding {binding.name}",
                    )


def _resolve_element_ref(element: Element, element_types: dict[str, str]) -> Element:
    if not element.type.startswith("element:"):
        return element
    target = element.type.split(":", 1)[1]
    return Element(
        name=element.name,
        type=element_types.get(target, "anyType"),
        min_occurs=element.min_occurs,
        max_occurs=element.max_occurs,
        nillable=element.nillable,
    )


def build(raw: bytes | str, registry: NameRegistry | None = None) -> ServiceDefinition:
    """Build a ServiceDefinition with a fresh (or the given) registry."""
    return IRBuilder(registry).build(raw)
