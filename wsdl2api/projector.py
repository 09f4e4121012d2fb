"""Project an XSD type reference plus multiplicity onto a target type system.

``project()`` is the only place where XSD types become Python annotations,
OpenAPI schemas or TypeScript types.  Every emitter calls it with the same
arguments it would give any other emitter, so the three outputs cannot drift.

Steps:
  1. strip the namespace prefix
  2. look the name up in the primitive table (simpleType restrictions are
     followed down to their primitive base)
  3. otherwise treat it as a complex-type reference; unknown references become
     an opaque generic type with ``degraded=True`` so callers can count them
  4. wrap: array when maxOccurs is "unbounded" or > 1; otherwise optional when
     minOccurs is "0" or the element is nillable
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .naming import exported_name, strip_prefix


class Target(str, Enum):
    NATIVE = "native"
    OPENAPI = "openapi"
    TYPESCRIPT = "typescript"


class Kind(str, Enum):
    SCALAR = "scalar"
    ARRAY = "array"
    OPTIONAL = "optional"


PRIMITIVES: tuple[str, ...] = (
    "string", "int", "integer", "long", "short", "byte", "boolean",
    "float", "double", "decimal", "dateTime", "date", "time",
    "base64Binary", "hexBinary",
)

# Generic XSD types that are opaque on purpose and are not counted as degraded.
_GENERIC = ("anyType", "anySimpleType")

_NATIVE: dict[str, str] = {
    "string": "str",
    "int": "int",
    "integer": "int",
    "long": "int",
    "short": "int",
    "byte": "int",
    "boolean": "bool",
    "float": "float",
    "double": "float",
    "decimal": "Decimal",
    "dateTime": "str",
    "date": "str",
    "time": "str",
    "base64Binary": "bytes",
    "hexBinary": "bytes",
}

_TYPESCRIPT: dict[str, str] = {
    "string": "string",
    "int": "number",
    "integer": "number",
    "long": "number",
    "short": "number",
    "byte": "number",
    "boolean": "boolean",
    "float": "number",
    "double": "number",
    "decimal": "number",
    "dateTime": "string",
    "date": "string",
    "time": "string",
    "base64Binary": "string",
    "hexBinary": "string",
}

_OPENAPI: dict[str, dict[str, str]] = {
    "string": {"type": "string"},
    "int": {"type": "integer", "format": "int32"},
    "integer": {"type": "integer"},
    "long": {"type": "integer", "format": "int64"},
    "short": {"type": "integer", "format": "int32"},
    "byte": {"type": "integer", "format": "int32"},
    "boolean": {"type": "boolean"},
    "float": {"type": "number", "format": "float"},
    "double": {"type": "number", "format": "double"},
    "decimal": {"type": "number"},
    "dateTime": {"type": "string", "format": "date-time"},
    "date": {"type": "string", "format": "date"},
    "time": {"type": "string", "format": "time"},
    "base64Binary": {"type": "string", "format": "byte"},
    "hexBinary": {"type": "string"},
}

_OPAQUE = {
    Target.NATIVE: "Any",
    Target.TYPESCRIPT: "any",
}

COMPONENT_PREFIX = "#/components/schemas/"


@dataclass(frozen=True)
class TypeIndex:
    """Names the projector may resolve beyond the primitive table."""

    complex_types: frozenset[str] = frozenset()
    simple_types: tuple[tuple[str, str], ...] = ()

    @classmethod
    def from_definition(cls, definition) -> "TypeIndex":
        return cls(
            complex_types=frozenset(strip_prefix(ct.name) for ct in definition.complex_types),
            simple_types=definition.simple_types,
        )

    def simple_base(self, name: str) -> str | None:
        for alias, base in self.simple_types:
            if alias == name:
                return strip_prefix(base)
        return None


@dataclass(frozen=True)
class TypeDescriptor:
    kind: Kind
    base_type: str
    target_syntax: str
    primitive: bool = False
    degraded: bool = False

    @property
    def is_array(self) -> bool:
        return self.kind is Kind.ARRAY

    @property
    def is_optional(self) -> bool:
        return self.kind is Kind.OPTIONAL

    @property
    def is_complex(self) -> bool:
        return not self.primitive and bool(self.base_type)

    @property
    def schema(self) -> dict[str, Any]:
        """OpenAPI descriptors carry their schema as JSON text."""
        return json.loads(self.target_syntax)


def is_primitive(type_ref: str) -> bool:
    return strip_prefix(type_ref) in PRIMITIVES


def is_array(max_occurs: str) -> bool:
    if max_occurs == "unbounded":
        return True
    return max_occurs.isdigit() and int(max_occurs) > 1


def _resolve(type_ref: str, types: TypeIndex | None) -> tuple[str, bool, bool]:
    """Return (base_type, primitive, degraded) for a type reference."""
    name = strip_prefix(type_ref)
    seen: set[str] = set()
    while types is not None and name not in PRIMITIVES and name not in seen:
        seen.add(name)
        base = types.simple_base(name)
        if base is None:
            break
        name = base

    if name in PRIMITIVES:
        return name, True, False
    if not name or name in _GENERIC:
        return "", False, False
    if types is None or name in types.complex_types:
        return exported_name(name), False, False
    return "", False, True


def _base_syntax(base_type: str, primitive: bool, target: Target) -> Any:
    if target is Target.OPENAPI:
        if primitive:
            return dict(_OPENAPI[base_type])
        if base_type:
            return {"$ref": COMPONENT_PREFIX + base_type}
        return {"type": "object"}
    if primitive:
        table = _NATIVE if target is Target.NATIVE else _TYPESCRIPT
        return table[base_type]
    return base_type or _OPAQUE[target]


def _wrap(syntax: Any, kind: Kind, target: Target) -> str:
    if target is Target.OPENAPI:
        if kind is Kind.ARRAY:
            syntax = {"type": "array", "items": syntax}
        elif kind is Kind.OPTIONAL:
            if "$ref" in syntax:
                syntax = {"allOf": [syntax], "nullable": True}
            else:
                syntax = {**syntax, "nullable": True}
        return json.dumps(syntax, sort_keys=True)

    if kind is Kind.ARRAY:
        return f"list[{syntax}]" if target is Target.NATIVE else f"{syntax}[]"
    if kind is Kind.OPTIONAL:
        return f"{syntax} | None" if target is Target.NATIVE else f"{syntax} | null"
    return syntax


def project(
    type_ref: str,
    min_occurs: str = "1",
    max_occurs: str = "1",
    nillable: bool = False,
    target: Target = Target.NATIVE,
    types: TypeIndex | None = None,
) -> TypeDescriptor:
    """Project one XSD type reference onto ``target``.

    ``types`` lists the complex and simple types of the service; without it
    every non-primitive reference is trusted as a complex type.
    """
    target = Target(target)
    base_type, primitive, degraded = _resolve(type_ref, types)

    if is_array(max_occurs or "1"):
        kind = Kind.ARRAY
    elif min_occurs == "0" or nillable:
        kind = Kind.OPTIONAL
    else:
        kind = Kind.SCALAR

    syntax = _wrap(_base_syntax(base_type, primitive, target), kind, target)
    return TypeDescriptor(
        kind=kind,
        base_type=base_type,
        target_syntax=syntax,
        primitive=primitive,
        degraded=degraded,
    )
