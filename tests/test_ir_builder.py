"""Tests for the IR builder."""

import pytest

from wsdl2api.errors import ParseError, UnresolvedReferenceError
from wsdl2api.ir_builder import IRBuilder, NameRegistry, build


class TestCalculatorDefinition:
    """The document/literal wrapped calculator service."""

    def test_names(self, calculator):
        definition, _ = calculator
        assert definition.name == "Calculator"
        assert definition.target_namespace == "http://tempuri.org/"

    def test_services_and_ports(self, calculator):
        definition, _ = calculator
        assert [s.name for s in definition.services] == ["Calculator"]
        ports = definition.services[0].ports
        assert [p.name for p in ports] == ["CalculatorSoap", "CalculatorSoap12"]
        assert ports[0].address == "http://www.dneonline.com/calculator.asmx"

    def test_binding_versions(self, calculator):
        definition, _ = calculator
        versions = {b.name: b.soap_version for b in definition.bindings}
        assert versions == {"CalculatorSoap": "1.1", "CalculatorSoap12": "1.2"}
        assert definition.soap_version() == "1.1"

    def test_binding_operations(self, calculator):
        definition, _ = calculator
        ops = definition.find_binding("tns:CalculatorSoap").operations
        assert [(o.name, o.soap_action) for o in ops] == [
            ("Add", "http://tempuri.org/Add"),
            ("Subtract", "http://tempuri.org/Subtract"),
        ]
        assert ops[0].style == "document"
        assert ops[0].use == "literal"

    def test_port_type(self, calculator):
        definition, _ = calculator
        add = definition.find_operation("Add")
        assert add.input == "tns:AddSoapIn"
        assert add.output == "tns:AddSoapOut"
        assert add.documentation.startswith("Adds two integers.")

    def test_messages(self, calculator):
        definition, _ = calculator
        msg = definition.find_message("tns:AddSoapIn")
        assert [(p.name, p.element) for p in msg.parts] == [("parameters", "tns:Add")]

    def test_inline_element_types(self, calculator):
        definition, _ = calculator
        add = definition.find_complex_type("Add")
        assert [(e.name, e.type, e.min_occurs, e.max_occurs) for e in add.elements] == [
            ("intA", "s:int", "1", "1"),
            ("intB", "s:int", "1", "1"),
        ]
        assert definition.find_element("tns:Add").type == "Add"

    def test_qualified(self, calculator):
        definition, _ = calculator
        assert definition.qualified_elements

    def test_no_diagnostics(self, calculator):
        _, registry = calculator
        assert registry.diagnostics.unresolved_count == 0

    def test_endpoint(self, calculator):
        definition, _ = calculator
        assert definition.endpoint() == "http://www.dneonline.com/calculator.asmx"

    def test_definition_is_immutable(self, calculator):
        definition, _ = calculator
        with pytest.raises(AttributeError):
            definition.name = "Other"


class TestDirectoryDefinition:
    """Named complex types, extensions, simple types and dangling references."""

    def test_name_from_definitions(self, directory):
        definition, _ = directory
        assert definition.name == "DirectoryService"

    def test_soap12_only(self, directory):
        definition, _ = directory
        assert definition.soap_version() == "1.2"

    def test_not_qualified(self, directory):
        definition, _ = directory
        assert not definition.qualified_elements

    def test_simple_type(self, directory):
        definition, _ = directory
        assert definition.simple_type_base("tns:Status") == "string"

    def test_person(self, directory):
        definition, _ = directory
        person = definition.find_complex_type("tns:Person")
        assert [e.name for e in person.elements] == ["name", "age", "email", "home_address"]
        email = person.elements[2]
        assert (email.min_occurs, email.max_occurs) == ("0", "unbounded")
        assert person.elements[3].nillable
        assert [(a.name, a.use) for a in person.attributes] == [("id", "required")]

    def test_extension_flattened(self, directory):
        definition, _ = directory
        employee = definition.find_complex_type("Employee")
        assert [e.name for e in employee.elements] == [
            "name", "age", "email", "home_address", "employee-id",
        ]
        assert [a.name for a in employee.attributes] == ["id"]
        assert employee.base == "tns:Person"

    def test_rpc_binding_namespace(self, directory):
        definition, _ = directory
        ping = definition.binding_operation("Ping")
        assert ping.style == "rpc"
        assert ping.namespace == "urn:example:directory:rpc"

    def test_binding_style_inherited(self, directory):
        definition, _ = directory
        assert definition.binding_operation("FindPerson").style == "document"

    def test_orphan_binding_operation_recorded(self, directory):
        _, registry = directory
        unresolved = registry.diagnostics.unresolved
        assert [(e.kind, e.name) for e in unresolved] == [("operation", "Orphan")]

    def test_lookup_errors_are_raised_lazily(self, directory):
        definition, _ = directory
        with pytest.raises(UnresolvedReferenceError) as exc_info:
            definition.find_message("tns:LookupOut")
        assert exc_info.value.kind == "message"
        with pytest.raises(UnresolvedReferenceError):
            definition.find_element("tns:Missing")


class TestSchemaShapes:
    def _build(self, schema: str):
        raw = f"""<definitions xmlns="http://schemas.xmlsoap.org/wsdl/"
            xmlns:xs="http://www.w3.org/2001/XMLSchema" xmlns:tns="urn:t"
            targetNamespace="urn:t" name="T">
          <types><xs:schema targetNamespace="urn:t">{schema}</xs:schema></types>
        </definitions>"""
        registry = NameRegistry()
        return IRBuilder(registry).build(raw), registry

    def test_choice_members_optional(self):
        definition, _ = self._build("""
          <xs:complexType name="Either"><xs:choice>
            <xs:element name="a" type="xs:string"/>
            <xs:element name="b" type="xs:int"/>
          </xs:choice></xs:complexType>""")
        either = definition.find_complex_type("Either")
        assert [e.min_occurs for e in either.elements] == ["0", "0"]

    def test_nested_anonymous_type(self):
        definition, _ = self._build("""
          <xs:complexType name="Order"><xs:sequence>
            <xs:element name="line"><xs:complexType><xs:sequence>
              <xs:element name="sku" type="xs:string"/>
            </xs:sequence></xs:complexType></xs:element>
          </xs:sequence></xs:complexType>""")
        order = definition.find_complex_type("Order")
        assert order.elements[0].type == "Order_line"
        assert [e.name for e in definition.find_complex_type("Order_line").elements] == ["sku"]

    def test_element_ref_resolved(self):
        definition, _ = self._build("""
          <xs:element name="code" type="xs:int"/>
          <xs:complexType name="Box"><xs:sequence>
            <xs:element ref="tns:code" maxOccurs="unbounded"/>
          </xs:sequence></xs:complexType>""")
        element = definition.find_complex_type("Box").elements[0]
        assert (element.name, element.type, element.max_occurs) == ("code", "xs:int", "unbounded")

    def test_unknown_extension_base_recorded(self):
        _, registry = self._build("""
          <xs:complexType name="Child"><xs:complexContent>
            <xs:extension base="tns:Nowhere"><xs:sequence>
              <xs:element name="x" type="xs:string"/>
            </xs:sequence></xs:extension>
          </xs:complexContent></xs:complexType>""")
        assert [(e.kind, e.name) for e in registry.diagnostics.unresolved] == [("type", "tns:Nowhere")]

    def test_untyped_element_is_any_type(self):
        definition, _ = self._build("""
          <xs:complexType name="Loose"><xs:sequence>
            <xs:element name="blob"/>
          </xs:sequence></xs:complexType>""")
        assert definition.find_complex_type("Loose").elements[0].type == "anyType"


class TestMalformed:
    def test_not_xml(self):
        with pytest.raises(ParseError):
            build(b"this is not xml")

    def test_wrong_root(self):
        with pytest.raises(ParseError):
            build(b"<html><body/></html>")

    def test_wrong_root_namespace(self):
        with pytest.raises(ParseError):
            build(b'<definitions xmlns="urn:other"/>')

    def test_empty_definitions_is_fine(self):
        definition = build(b'<definitions xmlns="http://schemas.xmlsoap.org/wsdl/"/>')
        assert definition.services == ()
        assert definition.soap_version() == "1.1"
        assert definition.endpoint() == ""
