"""REST bridge: JSON over HTTP in, SOAP over HTTP out.

Routes:
  GET  /health              liveness
  GET  /info                services, ports and the operation catalog
  POST /api/{operation}     flat JSON -> SOAP call -> {operation, status, request, response}
  GET  /api/{operation}/info  parts, SOAP action and a curl example

The ServiceDefinition is read-only and shared by every request, as is the
outbound httpx.AsyncClient owned by the app lifespan.  No lock is held across
an upstream call.
"""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from ..config import Settings, get_settings
from ..context_builder import build_context
from ..errors import EnvelopeError, SoapFault, TransportError
from ..ir_builder import NameRegistry
from ..models import ServiceDefinition
from ..soap import AsyncSoapClient, BodyPayload, Credential, Mode, SoapVersion
from .flatten import from_wire, to_wire

logger = logging.getLogger(__name__)

HEADER_USERNAME = "X-WSSE-Username"
HEADER_PASSWORD = "X-WSSE-Password"
HEADER_MODE = "X-WSSE-Mode"


class Bridge:
    """Per-app routing table built once from the definition."""

    def __init__(self, definition: ServiceDefinition, settings: Settings) -> None:
        self.definition = definition
        self.context = build_context(definition, NameRegistry())
        self.operations: dict[str, dict[str, Any]] = {
            op["name"]: op for op in self.context["operations"]
        }
        self.endpoint = settings.soap_endpoint or self.context["endpoint"]
        self.version = SoapVersion(settings.soap_version or self.context["soap_version"])
        self.qualified = self.context["qualified"]
        self.types: dict[str, list[dict[str, Any]]] = {
            t["ident"].exported: t["fields"] for t in self.context["types"]
        }
        self.base_url = settings.bridge_url

    def operation(self, name: str) -> dict[str, Any]:
        op = self.operations.get(name)
        if op is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown operation: {name}")
        return op

    def response_fields(self, op: dict[str, Any], fields: dict[str, Any]) -> dict[str, Any]:
        """Decoded response keyed the way the OpenAPI ``<Op>Response`` schema declares it."""
        return from_wire(fields, op["output_fields"], self.types, self.context["type_index"])

    def info(self) -> dict[str, Any]:
        operations = [
            {
                "name": op["name"],
                "documentation": op["documentation"],
                "endpoint": op["path"],
                "method": "POST",
            }
            for op in self.context["operations"]
        ]
        return {
            "name": self.definition.name,
            "targetNamespace": self.definition.target_namespace,
            "soapVersion": self.version.value,
            "services": [
                {
                    "name": svc.name,
                    "ports": [
                        {"name": p.name, "binding": p.binding, "address": p.address}
                        for p in svc.ports
                    ],
                }
                for svc in self.definition.services
            ],
            "operations": operations,
            "totalOperations": len(operations),
        }

    def operation_info(self, op: dict[str, Any]) -> dict[str, Any]:
        example = {f["ident"].field or f["wire_name"]: "value" for f in op["input_fields"]}
        return {
            "operation": op["name"],
            "documentation": op["documentation"],
            "soapAction": op["soap_action"],
            "namespace": op["namespace"],
            "endpoint": op["path"],
            "method": "POST",
            "input": {
                "message": op["input_message"],
                "element": op["request_element"],
                "parts": [_part(p) for p in op["input_parts"]],
            },
            "output": {
                "message": op["output_message"],
                "element": op["response_element"],
                "parts": [_part(p) for p in op["output_parts"]],
            },
            "example": {
                "curl": (
                    f"curl -X POST {self.base_url}{op['path']} \\\n"
                    f"  -H \"Content-Type: application/json\" \\\n"
                    f"  -d '{json.dumps(example)}'"
                ),
            },
        }


def _part(part) -> dict[str, str]:
    return {"name": part.name, "type": part.type, "element": part.element}


def _credential(request: Request) -> Credential | None:
    username = request.headers.get(HEADER_USERNAME)
    if not username:
        return None
    mode = request.headers.get(HEADER_MODE, Mode.PLAINTEXT.value).lower()
    try:
        return Credential(username, request.headers.get(HEADER_PASSWORD, ""), Mode(mode))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{HEADER_MODE} must be 'plaintext' or 'digest'",
        ) from None


async def _json_body(request: Request) -> dict[str, Any]:
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        body = json.loads(raw)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid request body: {exc}") from exc
    if not isinstance(body, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Request body must be a JSON object")
    return body


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    http_exc = exc if isinstance(exc, HTTPException) else HTTPException(status_code=500, detail=str(exc))
    return JSONResponse(
        status_code=http_exc.status_code,
        content={
            "error": http_exc.detail,
            "operation": request.path_params.get("operation"),
            "status_code": http_exc.status_code,
        },
    )


async def soap_fault_handler(request: Request, exc: SoapFault) -> JSONResponse:
    operation = request.path_params.get("operation")
    logger.warning("SOAP fault from %s: %s", operation, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "SOAP Fault",
            "operation": operation,
            "faultcode": exc.code,
            "faultstring": exc.string,
            "detail": exc.detail,
        },
    )


async def upstream_error_handler(request: Request, exc: Exception) -> JSONResponse:
    operation = request.path_params.get("operation")
    logger.error("SOAP call for %s failed: %s", operation, exc)
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={
            "error": "SOAP call failed",
            "operation": operation,
            "details": str(exc),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(SoapFault, soap_fault_handler)
    app.add_exception_handler(TransportError, upstream_error_handler)
    app.add_exception_handler(EnvelopeError, upstream_error_handler)


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app(
    definition: ServiceDefinition,
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Build the bridge app.  A given ``http_client`` is used as-is and never closed."""
    settings = settings or get_settings()
    bridge = Bridge(definition, settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if http_client is not None:
            yield
            return
        async with httpx.AsyncClient(timeout=settings.soap_timeout) as client:
            app.state.http_client = client
            logger.info(
                "Bridge for %s ready: %d operations -> %s",
                definition.name, len(bridge.operations), bridge.endpoint or "<no endpoint>",
            )
            yield

    app = FastAPI(
        title=f"{definition.name or 'SOAP'} REST bridge",
        description=f"API converted from WSDL: {definition.target_namespace}",
        lifespan=lifespan,
    )
    app.state.bridge = bridge
    app.state.http_client = http_client
    register_exception_handlers(app)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "healthy", "service": definition.name}

    @app.get("/info")
    async def service_info() -> dict[str, Any]:
        return bridge.info()

    @app.get("/api/{operation}/info")
    async def operation_info(operation: str) -> dict[str, Any]:
        return bridge.operation_info(bridge.operation(operation))

    @app.post("/api/{operation}")
    async def call_operation(operation: str, request: Request) -> dict[str, Any]:
        op = bridge.operation(operation)
        body = await _json_body(request)
        credential = _credential(request)
        if not bridge.endpoint:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="SOAP endpoint not configured",
            )

        payload = BodyPayload(op["request_element"], op["namespace"], to_wire(body, op["input_fields"]))
        soap = AsyncSoapClient(request.app.state.http_client, bridge.version)
        response = await soap.call(
            bridge.endpoint, op["soap_action"], payload,
            qualified=bridge.qualified,
            credential=credential,
        )
        return {
            "operation": op["name"],
            "status": "success",
            "request": body,
            "response": bridge.response_fields(op, response.fields if response is not None else {}),
        }

    return app
