"""Map JSON keys to SOAP wire names on the way in, and back on the way out.

Inbound, only one level is supported: every value becomes XSD text.  Nested
objects and arrays are forwarded as JSON text with a warning.  ``None`` values
are dropped so the element is omitted rather than sent empty.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from ..projector import TypeIndex, project
from ..soap.values import to_text

logger = logging.getLogger(__name__)


def flatten(payload: dict[str, Any]) -> dict[str, str]:
    flat: dict[str, str] = {}
    for key, value in payload.items():
        if value is None:
            continue
        if isinstance(value, (dict, list)):
            logger.warning("Field %r is nested; forwarding it as JSON text", key)
            flat[key] = json.dumps(value, separators=(",", ":"))
            continue
        flat[key] = to_text(value)
    return flat


def key_map(fields: list[dict[str, Any]]) -> dict[str, str]:
    """Accepted JSON key -> wire key, for both the field form and the wire name."""
    mapping: dict[str, str] = {}
    for f in fields:
        mapping.setdefault(f["wire_name"], f["wire_key"])
        mapping.setdefault(f["wire_key"], f["wire_key"])
        if f["ident"].field:
            mapping.setdefault(f["ident"].field, f["wire_key"])
    return mapping


def to_wire(payload: dict[str, Any], fields: list[dict[str, Any]]) -> dict[str, str]:
    """Flatten ``payload`` and rename its keys to the operation's wire names.

    Declared fields come out in schema order (xs:sequence is ordered); keys
    the operation does not declare follow unchanged.
    """
    mapping = key_map(fields)
    renamed: dict[str, str] = {}
    for key, value in flatten(payload).items():
        renamed[mapping.get(key, key)] = value

    wire: dict[str, str] = {}
    for f in fields:
        if f["wire_key"] in renamed:
            wire[f["wire_key"]] = renamed.pop(f["wire_key"])
    wire.update(renamed)
    return wire


def from_wire(
    data: dict[str, Any],
    fields: list[dict[str, Any]],
    types: dict[str, list[dict[str, Any]]],
    type_index: TypeIndex | None = None,
) -> dict[str, Any]:
    """Rename decoded response keys to the field form the generated schemas declare.

    ``types`` maps an exported complex-type name to its fields so nested
    objects are renamed too.  Declared arrays always come back as lists, even
    when the element occurred once.  Values stay XSD text; keys the schema
    does not declare are kept as decoded.
    """
    out: dict[str, Any] = {}
    by_wire = {f["wire_key"]: f for f in fields}
    for key, value in data.items():
        f = by_wire.get(key)
        if f is None:
            out[key] = value
            continue
        descriptor = project(f["type"], f["min_occurs"], f["max_occurs"], f["nillable"], types=type_index)
        nested = types.get(descriptor.base_type) if descriptor.is_complex else None
        if descriptor.is_array and value is not None and not isinstance(value, list):
            value = [value]
        if nested is not None:
            if isinstance(value, list):
                value = [
                    from_wire(v, nested, types, type_index) if isinstance(v, dict) else v
                    for v in value
                ]
            elif isinstance(value, dict):
                value = from_wire(value, nested, types, type_index)
        out[f["ident"].field or f["wire_name"]] = value
    return out
