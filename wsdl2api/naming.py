"""Convert WSDL/XSD names into identifiers.

A raw name is split on ``_``, ``-``, ``.`` and spaces after its namespace
prefix is dropped.  Each segment keeps its own casing apart from the first
letter, so already-normalized names pass through unchanged.

Examples:
  tns:Add              -> Add / add / add
  intA                 -> IntA / intA / int_a
  get-user_info.v2     -> GetUserInfoV2 / getUserInfoV2 / get_user_info_v2
  NumberToWords        -> NumberToWords / numberToWords / number_to_words
  ""                   -> "" / "" / ""
"""

from __future__ import annotations

import keyword
import re
from dataclasses import dataclass

_SEPARATORS = re.compile(r"[_\-. ]+")
_INVALID = re.compile(r"[^0-9A-Za-z]")


@dataclass(frozen=True)
class Identifier:
    raw: str
    exported: str
    field: str
    snake: str


def strip_prefix(name: str) -> str:
    """Drop a namespace prefix: ``prefix:local`` -> ``local``."""
    if ":" in name:
        return name.rsplit(":", 1)[1]
    return name


def _camel_to_snake(name: str) -> str:
    """Convert camelCase or PascalCase to snake_case."""
    s1 = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    return re.sub(r"([a-z\d])([A-Z])", r"\1_\2", s1).lower()


def _segments(name: str) -> list[str]:
    parts = _SEPARATORS.split(strip_prefix(name).strip())
    return [p for p in (_INVALID.sub("", part) for part in parts) if p]


def normalize(raw: str) -> Identifier:
    """Normalize a WSDL/XSD name into exported, field and snake forms."""
    segments = _segments(raw)
    if not segments:
        return Identifier(raw=raw, exported="", field="", snake="")

    exported = "".join(s[0].upper() + s[1:] for s in segments)
    if exported[0].isdigit():
        exported = "_" + exported
    field = exported[0].lower() + exported[1:]
    snake = "_".join(_camel_to_snake(s) for s in segments)
    if snake[0].isdigit():
        snake = "_" + snake
    return Identifier(raw=raw, exported=exported, field=field, snake=snake)


def exported_name(raw: str) -> str:
    return normalize(raw).exported


def field_name(raw: str) -> str:
    return normalize(raw).field


def python_name(name: str) -> str:
    """Suffix Python keywords (``class`` -> ``class_``, ``None`` -> ``None_``)."""
    if keyword.iskeyword(name):
        return name + "_"
    return name


def unique_name(name: str, taken: set[str]) -> str:
    """Return ``name``, or ``name_2``, ``name_3``... if taken; the result is added to ``taken``."""
    candidate = name
    n = 2
    while candidate in taken:
        candidate = f"{name}_{n}"
        n += 1
    taken.add(candidate)
    return candidate
