"""Build and parse SOAP 1.1 / 1.2 envelopes.

Encoding:
  1.1 -> soap:Envelope, http://schemas.xmlsoap.org/soap/envelope/
  1.2 -> env:Envelope,  http://www.w3.org/2003/05/soap-envelope
  A Header element is written only when a security header is supplied.

Decoding tries the hinted version first and falls back to the other one,
since a responder may answer in a different envelope form than it was asked.
A Fault inside Body is always raised as ``SoapFault``.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..errors import EnvelopeError, SoapFault
from .security import SecurityHeader
from .values import to_text

NS_SOAP11 = "http://schemas.xmlsoap.org/soap/envelope/"
NS_SOAP12 = "http://www.w3.org/2003/05/soap-envelope"
NS_XSI = "http://www.w3.org/2001/XMLSchema-instance"

XML_DECLARATION = b'<?xml version="1.0" encoding="utf-8"?>\n'

# Text content of an element that also carries attributes.
TEXT_KEY = "#text"


class SoapVersion(str, Enum):
    V11 = "1.1"
    V12 = "1.2"

    @property
    def namespace(self) -> str:
        return NS_SOAP11 if self is SoapVersion.V11 else NS_SOAP12

    @property
    def prefix(self) -> str:
        return "soap" if self is SoapVersion.V11 else "env"

    @property
    def content_type(self) -> str:
        if self is SoapVersion.V11:
            return "text/xml; charset=utf-8"
        return "application/soap+xml; charset=utf-8"

    @property
    def other(self) -> "SoapVersion":
        return SoapVersion.V12 if self is SoapVersion.V11 else SoapVersion.V11


@dataclass(frozen=True)
class BodyPayload:
    """The single element carried in Body: its name, namespace and children.

    Field values are strings, nested dicts for elements with children, or
    lists for repeated elements.
    """

    name: str
    namespace: str = ""
    fields: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SoapEnvelope:
    version: SoapVersion
    body: BodyPayload | None = None
    security: SecurityHeader | None = None
    has_header: bool = False


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

def http_headers(version: SoapVersion | str, soap_action: str = "") -> dict[str, str]:
    """Transport headers for a request; SOAPAction is sent only for 1.1."""
    version = SoapVersion(version)
    if version is SoapVersion.V11:
        return {
            "Content-Type": version.content_type,
            "SOAPAction": f'"{soap_action}"',
        }
    content_type = version.content_type
    if soap_action:
        content_type += f'; action="{soap_action}"'
    return {"Content-Type": content_type}


def _append_fields(parent: ET.Element, fields: dict[str, Any], prefix: str) -> None:
    for key, value in fields.items():
        if key.startswith("@"):
            if value is not None:
                parent.set(key[1:], to_text(value))
            continue
        if key == TEXT_KEY:
            parent.text = to_text(value)
            continue
        values = value if isinstance(value, list) else [value]
        for item in values:
            if item is None:
                continue
            child = ET.SubElement(parent, f"{prefix}{key}")
            if isinstance(item, dict):
                _append_fields(child, item, prefix)
            else:
                child.text = to_text(item)


def build_envelope(
    version: SoapVersion | str,
    security: SecurityHeader | None,
    body: BodyPayload | None,
    qualified: bool = False,
) -> ET.Element:
    version = SoapVersion(version)
    p = version.prefix
    envelope = ET.Element(f"{p}:Envelope", {f"xmlns:{p}": version.namespace})
    if security is not None:
        header = ET.SubElement(envelope, f"{p}:Header")
        header.append(security.to_element())
    body_el = ET.SubElement(envelope, f"{p}:Body")

    if body is not None:
        if body.namespace:
            payload = ET.SubElement(body_el, f"tns:{body.name}", {"xmlns:tns": body.namespace})
        else:
            payload = ET.SubElement(body_el, body.name)
        child_prefix = "tns:" if qualified and body.namespace else ""
        _append_fields(payload, body.fields, child_prefix)
    return envelope


def encode(
    version: SoapVersion | str,
    security: SecurityHeader | None,
    body: BodyPayload | None,
    qualified: bool = False,
) -> bytes:
    """Serialize an envelope to UTF-8 bytes with an XML declaration."""
    envelope = build_envelope(version, security, body, qualified)
    return XML_DECLARATION + ET.tostring(envelope, encoding="utf-8", xml_declaration=False)


def encode_fault(version: SoapVersion | str, fault: SoapFault) -> bytes:
    """Serialize ``fault`` as a Fault envelope, in the shape ``decode`` reads back."""
    version = SoapVersion(version)
    p = version.prefix
    envelope = ET.Element(f"{p}:Envelope", {f"xmlns:{p}": version.namespace})
    fault_el = ET.SubElement(ET.SubElement(envelope, f"{p}:Body"), f"{p}:Fault")

    if version is SoapVersion.V11:
        ET.SubElement(fault_el, "faultcode").text = fault.code
        ET.SubElement(fault_el, "faultstring").text = fault.string
        if fault.actor:
            ET.SubElement(fault_el, "faultactor").text = fault.actor
        if fault.detail:
            ET.SubElement(fault_el, "detail").text = fault.detail
    else:
        ET.SubElement(ET.SubElement(fault_el, f"{p}:Code"), f"{p}:Value").text = fault.code
        reason = ET.SubElement(fault_el, f"{p}:Reason")
        ET.SubElement(reason, f"{p}:Text", {"xml:lang": "en"}).text = fault.string
        if fault.actor:
            ET.SubElement(fault_el, f"{p}:Role").text = fault.actor
        if fault.detail:
            ET.SubElement(fault_el, f"{p}:Detail").text = fault.detail
    return XML_DECLARATION + ET.tostring(envelope, encoding="utf-8", xml_declaration=False)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

def _split(tag: str) -> tuple[str, str]:
    if tag.startswith("{"):
        ns, local = tag[1:].split("}", 1)
        return ns, local
    return "", tag


def _elements(el: ET.Element) -> list[ET.Element]:
    return [child for child in el if isinstance(child.tag, str)]


def _find_local(el: ET.Element, local: str) -> ET.Element | None:
    for child in _elements(el):
        if _split(child.tag)[1] == local:
            return child
    return None


def _text(el: ET.Element | None) -> str:
    if el is None:
        return ""
    return "".join(el.itertext()).strip()


def _is_nil(el: ET.Element) -> bool:
    return el.get(f"{{{NS_XSI}}}nil") in ("true", "1")


def element_to_fields(el: ET.Element) -> dict[str, Any]:
    """Children become keys; repeats become lists; nested elements become dicts.

    Attributes are kept under "@name" keys, with the text of such an element
    under "#text"; xsi:nil elements decode to None.
    """
    fields: dict[str, Any] = {}
    for name, value in el.attrib.items():
        ns, local = _split(name)
        if ns == NS_XSI:
            continue
        fields["@" + local] = value
    for child in _elements(el):
        key = _split(child.tag)[1]
        value: Any
        if _is_nil(child):
            value = None
        elif _elements(child) or any(_split(a)[0] != NS_XSI for a in child.attrib):
            value = element_to_fields(child)
            if not _elements(child) and child.text and child.text.strip():
                value[TEXT_KEY] = child.text
        else:
            value = child.text or ""
        if key in fields:
            existing = fields[key]
            if isinstance(existing, list):
                existing.append(value)
            else:
                fields[key] = [existing, value]
        else:
            fields[key] = value
    return fields


def _fault(fault: ET.Element, version: SoapVersion) -> SoapFault:
    if _find_local(fault, "faultcode") is not None or _find_local(fault, "faultstring") is not None:
        return SoapFault(
            code=_text(_find_local(fault, "faultcode")),
            string=_text(_find_local(fault, "faultstring")),
            actor=_text(_find_local(fault, "faultactor")),
            detail=_text(_find_local(fault, "detail")),
        )

    code_el = _find_local(fault, "Code")
    reason = _find_local(fault, "Reason")
    return SoapFault(
        code=_text(_find_local(code_el, "Value")) if code_el is not None else "",
        string=_text(_find_local(reason, "Text")) if reason is not None else "",
        actor=_text(_find_local(fault, "Node")) or _text(_find_local(fault, "Role")),
        detail=_text(_find_local(fault, "Detail")),
    )


def _match_version(root: ET.Element, hint: SoapVersion) -> SoapVersion | None:
    ns, local = _split(root.tag)
    if local != "Envelope":
        return None
    for candidate in (hint, hint.other):
        if ns == candidate.namespace:
            return candidate
    return None


def decode_envelope(data: bytes | str, version_hint: SoapVersion | str = SoapVersion.V11) -> SoapEnvelope:
    """Parse an envelope, raising ``SoapFault`` when Body carries a Fault."""
    hint = SoapVersion(version_hint)
    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        raise EnvelopeError(f"response is not XML: {exc}") from exc

    version = _match_version(root, hint)
    if version is None:
        raise EnvelopeError(f"not a SOAP envelope: root element {root.tag!r}")

    header = root.find(f"{{{version.namespace}}}Header")
    body = root.find(f"{{{version.namespace}}}Body")
    if body is None:
        raise EnvelopeError(f"SOAP {version.value} envelope without Body")

    children = _elements(body)
    if not children:
        return SoapEnvelope(version=version, body=None, has_header=header is not None)

    # A Fault anywhere in Body wins over any sibling payload.
    for child in children:
        if _split(child.tag)[1] == "Fault":
            raise _fault(child, version)

    first = children[0]
    ns, local = _split(first.tag)
    payload = BodyPayload(name=local, namespace=ns, fields=element_to_fields(first))
    return SoapEnvelope(version=version, body=payload, has_header=header is not None)


def decode(data: bytes | str, version_hint: SoapVersion | str = SoapVersion.V11) -> BodyPayload | None:
    """Return the body payload of a response (None for an empty Body)."""
    return decode_envelope(data, version_hint).body
