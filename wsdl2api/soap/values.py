"""Convert between Python values and XSD lexical text."""

from __future__ import annotations

import base64
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

_INTEGERS = {"int", "integer", "long", "short", "byte"}
_FLOATS = {"float", "double"}


def to_text(value: Any) -> str | None:
    """Render a scalar as XSD text; None stays None (the element is omitted)."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


def from_text(text: Any, xsd_type: str) -> Any:
    """Parse XSD text into the Python type the native client declares."""
    if text is None or not isinstance(text, str):
        return text
    if xsd_type in _INTEGERS:
        return int(text) if text.strip() else None
    if xsd_type in _FLOATS:
        return float(text) if text.strip() else None
    if xsd_type == "decimal":
        return Decimal(text) if text.strip() else None
    if xsd_type == "boolean":
        return text.strip().lower() in ("true", "1")
    if xsd_type == "base64Binary":
        return base64.b64decode(text)
    if xsd_type == "hexBinary":
        return bytes.fromhex(text.strip())
    return text


def as_list(value: Any) -> list[Any]:
    """A repeated element decodes to a list only when it occurs twice or more."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def as_dict(value: Any) -> dict[str, Any]:
    """An empty complex element decodes to "" rather than a dict."""
    return value if isinstance(value, dict) else {}
