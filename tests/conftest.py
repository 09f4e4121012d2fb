"""Shared fixtures: WSDL documents, built definitions, emitter contexts and
mocked SOAP upstreams.

Tests marked ``integration`` talk to the public dneonline calculator and are
skipped when it cannot be reached.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import httpx
import pytest

from wsdl2api.context_builder import build_context
from wsdl2api.ir_builder import IRBuilder, NameRegistry

FIXTURES = Path(__file__).parent / "fixtures"
CALCULATOR_WSDL = FIXTURES / "calculator.wsdl"
DIRECTORY_WSDL = FIXTURES / "directory.wsdl"

CALCULATOR_LIVE_URL = "http://www.dneonline.com/calculator.asmx"


# ---------------------------------------------------------------------------
# WSDL documents and IR
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def calculator_raw() -> bytes:
    return CALCULATOR_WSDL.read_bytes()


@pytest.fixture(scope="session")
def directory_raw() -> bytes:
    return DIRECTORY_WSDL.read_bytes()


@pytest.fixture
def calculator(calculator_raw):
    """(definition, registry) for the calculator service, fresh per test."""
    registry = NameRegistry()
    return IRBuilder(registry).build(calculator_raw), registry


@pytest.fixture
def directory(directory_raw):
    """(definition, registry) for the directory service, fresh per test."""
    registry = NameRegistry()
    return IRBuilder(registry).build(directory_raw), registry


@pytest.fixture
def calculator_context(calculator):
    definition, registry = calculator
    return build_context(definition, registry), registry


@pytest.fixture
def directory_context(directory):
    definition, registry = directory
    return build_context(definition, registry), registry


# ---------------------------------------------------------------------------
# SOAP responses
# ---------------------------------------------------------------------------

def soap11_response(body: str) -> bytes:
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        '<soap:Envelope xmlns:soap="http://schemas.xmlsoap.org/soap/envelope/">'
        f"<soap:Body>{body}</soap:Body>"
        "</soap:Envelope>"
    ).encode()


def soap12_response(body: str) -> bytes:
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        '<env:Envelope xmlns:env="http://www.w3.org/2003/05/soap-envelope">'
        f"<env:Body>{body}</env:Body>"
        "</env:Envelope>"
    ).encode()


SOAP11_FAULT = soap11_response(
    "<soap:Fault>"
    "<faultcode>soap:Client</faultcode>"
    "<faultstring>Server was unable to read request.</faultstring>"
    "<detail>Input string was not in a correct format.</detail>"
    "</soap:Fault>"
)

SOAP12_FAULT = soap12_response(
    "<env:Fault>"
    "<env:Code><env:Value>env:Sender</env:Value></env:Code>"
    "<env:Reason><env:Text xml:lang=\"en\">Invalid id</env:Text></env:Reason>"
    "<env:Detail><code>42</code></env:Detail>"
    "</env:Fault>"
)


class Recorder:
    """httpx handler that records requests and replays a canned response."""

    def __init__(self, content: bytes, status_code: int = 200) -> None:
        self.content = content
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, content=self.content)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def recorder() -> Callable[..., Recorder]:
    return Recorder


# ---------------------------------------------------------------------------
# Live service check for integration tests
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def calculator_available():
    """Skip integration tests if the public calculator is unreachable."""
    try:
        resp = httpx.get(f"{CALCULATOR_LIVE_URL}?WSDL", timeout=5)
        if resp.status_code != 200:
            pytest.skip(f"calculator WSDL returned {resp.status_code}")
    except httpx.HTTPError:
        pytest.skip(f"calculator not reachable at {CALCULATOR_LIVE_URL}")
