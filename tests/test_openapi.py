"""Tests for the OpenAPI emitter."""

import json

from conftest import CALCULATOR_WSDL
from wsdl2api.context_builder import build_context
from wsdl2api.emitters.openapi import build_document, emit
from wsdl2api.ir_builder import IRBuilder, NameRegistry


class TestCalculatorDocument:
    @classmethod
    def setup_class(cls):
        """Build the document once for all tests."""
        registry = NameRegistry()
        definition = IRBuilder(registry).build(CALCULATOR_WSDL.read_bytes())
        cls.doc = build_document(build_context(definition, registry), registry)
        cls.schemas = cls.doc["components"]["schemas"]

    def test_version_and_info(self):
        assert self.doc["openapi"] == "3.0.0"
        assert self.doc["info"]["title"] == "Calculator"
        assert self.doc["info"]["description"].startswith("API converted from WSDL: http://tempuri.org/")

    def test_servers(self):
        assert self.doc["servers"] == [{"url": "http://localhost:8080", "description": "REST bridge"}]

    def test_one_post_path_per_operation(self):
        assert set(self.doc["paths"]) == {"/api/Add", "/api/Subtract"}
        assert list(self.doc["paths"]["/api/Add"]) == ["post"]

    def test_add_request_schema(self):
        """Add(intA:int, intB:int): both required integers."""
        assert self.schemas["AddRequest"] == {
            "type": "object",
            "properties": {
                "intA": {"type": "integer", "format": "int32"},
                "intB": {"type": "integer", "format": "int32"},
            },
            "required": ["intA", "intB"],
        }

    def test_add_response_schema(self):
        assert self.schemas["AddResponse"]["properties"] == {
            "addResult": {"type": "integer", "format": "int32"},
        }
        assert self.schemas["AddResponse"]["required"] == ["addResult"]

    def test_operation(self):
        op = self.doc["paths"]["/api/Add"]["post"]
        assert op["operationId"] == "Add"
        assert op["tags"] == ["CalculatorSoap"]
        assert op["description"].startswith("Adds two integers.")
        assert op["requestBody"]["content"]["application/json"]["schema"] == {
            "$ref": "#/components/schemas/AddRequest",
        }

    def test_success_response_wraps_result(self):
        ok = self.doc["paths"]["/api/Add"]["post"]["responses"]["200"]
        schema = ok["content"]["application/json"]["schema"]
        assert schema["properties"]["response"] == {"$ref": "#/components/schemas/AddResponse"}
        assert schema["properties"]["status"] == {"type": "string"}

    def test_fault_response(self):
        fault = self.doc["paths"]["/api/Add"]["post"]["responses"]["500"]
        assert fault["description"] == "SOAP Fault"
        assert fault["content"]["application/json"]["schema"] == {"$ref": "#/components/schemas/SOAPFault"}
        assert set(self.schemas["SOAPFault"]["properties"]) == {"faultcode", "faultstring", "detail"}

    def test_every_ref_resolves(self):
        text = json.dumps(self.doc)
        prefix = "#/components/schemas/"
        for chunk in text.split('"$ref": "')[1:]:
            ref = chunk.split('"', 1)[0]
            assert ref.startswith(prefix)
            assert ref[len(prefix):] in self.schemas


class TestDirectoryDocument:
    def test_complex_components(self, directory_context):
        ctx, registry = directory_context
        schemas = build_document(ctx, registry)["components"]["schemas"]
        assert {"Address", "Person", "Employee"} <= set(schemas)
        person = schemas["Person"]
        assert person["required"] == ["name", "id"]
        assert person["properties"]["age"] == {"type": "integer", "format": "int32", "nullable": True}
        assert person["properties"]["email"] == {"type": "array", "items": {"type": "string"}}
        assert person["properties"]["homeAddress"] == {
            "allOf": [{"$ref": "#/components/schemas/Address"}], "nullable": True,
        }

    def test_extension_fields(self, directory_context):
        ctx, registry = directory_context
        employee = build_document(ctx, registry)["components"]["schemas"]["Employee"]
        assert employee["properties"]["employeeId"] == {"type": "integer", "format": "int64"}

    def test_optional_string_is_nullable(self, directory_context):
        ctx, registry = directory_context
        request = build_document(ctx, registry)["components"]["schemas"]["FindPersonRequest"]
        assert request["properties"]["name"] == {"type": "string", "nullable": True}
        assert request["required"] == ["status"]

    def test_array_of_complex(self, directory_context):
        ctx, registry = directory_context
        response = build_document(ctx, registry)["components"]["schemas"]["FindPersonResponse"]
        assert response["properties"]["person"] == {
            "type": "array", "items": {"$ref": "#/components/schemas/Person"},
        }

    def test_unknown_type_counted(self, directory_context):
        ctx, registry = directory_context
        schemas = build_document(ctx, registry)["components"]["schemas"]
        assert schemas["GetEmployeeResponse"]["properties"]["manager"] == {"type": "object", "nullable": True}
        assert registry.diagnostics.projection_warning_count == 1

    def test_custom_base_url(self, directory_context):
        ctx, registry = directory_context
        doc = build_document(ctx, registry, base_url="https://bridge.example.com")
        assert doc["servers"][0]["url"] == "https://bridge.example.com"
        assert "https://directory.example.com/soap" in doc["info"]["description"]


def test_emit_writes_json(calculator_context):
    ctx, registry = calculator_context
    files = emit(ctx, registry)
    assert list(files) == ["openapi.json"]
    assert json.loads(files["openapi.json"])["openapi"] == "3.0.0"
