"""SOAP envelope codec, WS-Security headers and the httpx transport."""

from .client import AsyncSoapClient, SoapClient
from .envelope import (
    BodyPayload,
    SoapEnvelope,
    SoapVersion,
    decode,
    decode_envelope,
    encode,
    encode_fault,
    http_headers,
)
from .security import Credential, Mode, SecurityHeader, build_security_header

__all__ = [
    "AsyncSoapClient",
    "BodyPayload",
    "Credential",
    "Mode",
    "SecurityHeader",
    "SoapClient",
    "SoapEnvelope",
    "SoapVersion",
    "build_security_header",
    "decode",
    "decode_envelope",
    "encode",
    "encode_fault",
    "http_headers",
]
