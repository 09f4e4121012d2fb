"""SOAP transport over httpx, shared by generated clients and the REST bridge.

No default timeout is applied: whatever the caller configures on the client
(or passes as ``timeout``) is what bounds a call.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..errors import EnvelopeError, TransportError
from .envelope import BodyPayload, SoapVersion, decode, encode, http_headers
from .security import Credential, build_security_header

logger = logging.getLogger(__name__)

_OK_STATUSES = (200, 202)


def prepare_request(
    version: SoapVersion | str,
    soap_action: str,
    payload: BodyPayload | None,
    credential: Credential | None = None,
    qualified: bool = False,
    extra_headers: dict[str, str] | None = None,
) -> tuple[bytes, dict[str, str]]:
    """Return (body bytes, HTTP headers) for one SOAP call."""
    version = SoapVersion(version)
    security = build_security_header(credential) if credential is not None else None
    content = encode(version, security, payload, qualified=qualified)
    headers = http_headers(version, soap_action)
    if extra_headers:
        headers.update(extra_headers)
    return content, headers


def handle_response(resp: httpx.Response, version: SoapVersion | str) -> BodyPayload | None:
    """Decode a SOAP response, raising SoapFault or TransportError."""
    status = resp.status_code
    if status in _OK_STATUSES:
        if not resp.content.strip():
            return None
        try:
            return decode(resp.content, version)
        except EnvelopeError as exc:
            raise TransportError(f"invalid SOAP response: {exc}", status, resp.text) from exc

    message = f"SOAP request failed with status {status}"
    if resp.content.strip():
        # Faults ride on 500 (SOAP 1.1) or 4xx/5xx (SOAP 1.2); decode raises SoapFault for them.
        try:
            decode(resp.content, version)
        except EnvelopeError as exc:
            raise TransportError(message, status, resp.text) from exc

    raise TransportError(message, status, resp.text)


class SoapClient:
    """Blocking SOAP client."""

    def __init__(
        self,
        url: str,
        version: SoapVersion | str = SoapVersion.V11,
        credential: Credential | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.url = url
        self.version = SoapVersion(version)
        self.credential = credential
        self.headers: dict[str, str] = dict(headers or {})
        self._client = http_client or httpx.Client(timeout=timeout)
        self._owns_client = http_client is None

    def call(
        self,
        soap_action: str,
        payload: BodyPayload | None,
        qualified: bool = False,
        credential: Credential | None = None,
    ) -> BodyPayload | None:
        content, headers = prepare_request(
            self.version, soap_action, payload,
            credential=credential or self.credential,
            qualified=qualified,
            extra_headers=self.headers,
        )
        logger.debug("POST %s (SOAPAction=%s, SOAP %s)", self.url, soap_action, self.version.value)
        try:
            resp = self._client.post(self.url, content=content, headers=headers)
        except httpx.HTTPError as exc:
            raise TransportError(f"SOAP call to {self.url} failed: {exc}") from exc
        return handle_response(resp, self.version)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "SoapClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class AsyncSoapClient:
    """Non-blocking SOAP client over a shared ``httpx.AsyncClient``."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        version: SoapVersion | str = SoapVersion.V11,
    ) -> None:
        self._client = http_client
        self.version = SoapVersion(version)

    async def call(
        self,
        url: str,
        soap_action: str,
        payload: BodyPayload | None,
        qualified: bool = False,
        credential: Credential | None = None,
    ) -> BodyPayload | None:
        content, headers = prepare_request(
            self.version, soap_action, payload,
            credential=credential,
            qualified=qualified,
        )
        logger.debug("POST %s (SOAPAction=%s, SOAP %s)", url, soap_action, self.version.value)
        try:
            resp = await self._client.post(url, content=content, headers=headers)
        except httpx.HTTPError as exc:
            raise TransportError(f"SOAP call to {url} failed: {exc}") from exc
        return handle_response(resp, self.version)
