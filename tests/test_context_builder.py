"""Tests for the context_builder module."""

from wsdl2api.context_builder import build_context, field_required, project_field
from wsdl2api.ir_builder import NameRegistry, build
from wsdl2api.projector import Target


def _fields(fields):
    return [(f["wire_name"], f["type"], f["min_occurs"], f["max_occurs"]) for f in fields]


class TestCalculatorContext:
    """Wrapped document/literal operations expand into their element children."""

    def test_service(self, calculator_context):
        ctx, _ = calculator_context
        assert ctx["service"] == "Calculator"
        assert ctx["namespace"] == "http://tempuri.org/"
        assert ctx["soap_version"] == "1.1"
        assert ctx["qualified"] is True
        assert ctx["operation_count"] == 2

    def test_operations_deduplicated_across_bindings(self, calculator_context):
        ctx, _ = calculator_context
        assert [op["name"] for op in ctx["operations"]] == ["Add", "Subtract"]

    def test_add_fields(self, calculator_context):
        ctx, _ = calculator_context
        add = ctx["operations"][0]
        assert _fields(add["input_fields"]) == [
            ("intA", "s:int", "1", "1"),
            ("intB", "s:int", "1", "1"),
        ]
        assert _fields(add["output_fields"]) == [("AddResult", "s:int", "1", "1")]

    def test_add_wire_details(self, calculator_context):
        ctx, _ = calculator_context
        add = ctx["operations"][0]
        assert add["soap_action"] == "http://tempuri.org/Add"
        assert add["namespace"] == "http://tempuri.org/"
        assert add["request_element"] == "Add"
        assert add["response_element"] == "AddResponse"
        assert add["path"] == "/api/Add"
        assert add["input_message"] == "AddSoapIn"

    def test_shape_names(self, calculator_context):
        ctx, _ = calculator_context
        add = ctx["operations"][0]
        assert (add["request_type"], add["response_type"]) == ("AddRequest", "AddResponse")

    def test_wrapper_types_not_emitted(self, calculator_context):
        ctx, _ = calculator_context
        assert ctx["types"] == []

    def test_servers(self, calculator_context):
        ctx, _ = calculator_context
        assert [s["url"] for s in ctx["servers"]] == [
            "http://www.dneonline.com/calculator.asmx",
            "http://www.dneonline.com/calculator.asmx",
        ]


class TestDirectoryContext:
    def test_types(self, directory_context):
        ctx, _ = directory_context
        assert [t["name"] for t in ctx["types"]] == ["Address", "Person", "Employee"]

    def test_attribute_fields(self, directory_context):
        ctx, _ = directory_context
        person = next(t for t in ctx["types"] if t["name"] == "Person")
        id_field = person["fields"][-1]
        assert id_field["attribute"]
        assert id_field["wire_key"] == "@id"
        assert id_field["min_occurs"] == "1"

    def test_rpc_parts_become_fields(self, directory_context):
        ctx, _ = directory_context
        ping = next(op for op in ctx["operations"] if op["name"] == "Ping")
        assert [f["wire_name"] for f in ping["input_fields"]] == ["message", "count"]
        assert ping["request_element"] == "Ping"
        assert ping["namespace"] == "urn:example:directory:rpc"
        assert ping["style"] == "rpc"

    def test_dangling_references_degrade(self, directory_context):
        ctx, registry = directory_context
        lookup = next(op for op in ctx["operations"] if op["name"] == "Lookup")
        assert _fields(lookup["input_fields"]) == [("parameters", "anyType", "0", "1")]
        assert lookup["output_fields"] == []
        kinds = [(e.kind, e.name) for e in registry.diagnostics.unresolved]
        assert ("element", "tns:Missing") in kinds
        assert ("message", "tns:LookupOut") in kinds

    def test_unresolved_total(self, directory_context):
        _, registry = directory_context
        # Orphan binding operation, missing element, missing output message.
        assert registry.diagnostics.unresolved_count == 3


class TestFieldRequired:
    def _descriptor(self, ctx, registry, field):
        return project_field(field, Target.OPENAPI, ctx["type_index"], registry)

    def test_person_required_fields(self, directory_context):
        ctx, registry = directory_context
        person = next(t for t in ctx["types"] if t["name"] == "Person")
        required = [
            f["wire_name"] for f in person["fields"]
            if field_required(f, self._descriptor(ctx, registry, f))
        ]
        assert required == ["name", "id"]

    def test_unknown_type_counted_once_per_location(self, directory_context):
        ctx, registry = directory_context
        op = next(op for op in ctx["operations"] if op["name"] == "GetEmployee")
        manager = op["output_fields"][1]
        for _ in range(3):
            descriptor = project_field(manager, Target.TYPESCRIPT, ctx["type_index"], registry, "GetEmployeeResponse")
        assert descriptor.degraded
        assert registry.diagnostics.projection_warning_count == 1


class TestNoSoapBinding:
    def test_http_only_port_types_skipped(self):
        raw = b"""<definitions xmlns="http://schemas.xmlsoap.org/wsdl/"
            xmlns:soap="http://schemas.xmlsoap.org/wsdl/soap/"
            xmlns:http="http://schemas.xmlsoap.org/wsdl/http/"
            xmlns:tns="urn:t" targetNamespace="urn:t" name="T">
          <message name="In"><part name="x" type="xsd:string"/></message>
          <portType name="SoapPort"><operation name="A"><input message="tns:In"/></operation></portType>
          <portType name="HttpPort"><operation name="B"><input message="tns:In"/></operation></portType>
          <binding name="S" type="tns:SoapPort"><soap:binding/><operation name="A"/></binding>
          <binding name="H" type="tns:HttpPort"><http:binding verb="GET"/><operation name="B"/></binding>
        </definitions>"""
        ctx = build_context(build(raw), NameRegistry())
        assert [op["name"] for op in ctx["operations"]] == ["A"]
