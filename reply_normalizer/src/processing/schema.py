"""Structural descriptions of expected output, used by the strict validator.

A description is a tree of ``FieldSpec`` nodes. It can be derived from any
type pydantic can build a JSON schema for, or written by hand in the registry
form ``{"field": {"type": "string", "required": True}}``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from pydantic import TypeAdapter

ANY = "any"

JSON_TYPES = ("string", "integer", "number", "boolean", "array", "object", "null", ANY)

_TYPE_ALIASES = {
    "str": "string",
    "int": "integer",
    "float": "number",
    "double": "number",
    "bool": "boolean",
    "list": "array",
    "dict": "object",
    "none": "null",
}


@dataclass(frozen=True)
class FieldSpec:
    type: str = ANY
    required: bool = True
    nullable: bool = False
    items: Optional["FieldSpec"] = None
    properties: Optional[Dict[str, "FieldSpec"]] = None

    @property
    def accepted_types(self) -> Tuple[str, ...]:
        return tuple(part.strip() for part in self.type.split("|") if part.strip()) or (ANY,)


def _resolve(node: Mapping[str, Any], defs: Mapping[str, Any]) -> Mapping[str, Any]:
    seen = set()
    while isinstance(node, Mapping) and "$ref" in node:
        ref = node["$ref"]
        if ref in seen:
            return {}
        seen.add(ref)
        node = defs.get(ref.rsplit("/", 1)[-1], {})
    if isinstance(node, Mapping) and len(node.get("allOf", ())) == 1:
        return _resolve(node["allOf"][0], defs)
    return node if isinstance(node, Mapping) else {}


def _node_to_spec(node: Mapping[str, Any], defs: Mapping[str, Any], required: bool = True) -> FieldSpec:
    node = _resolve(node, defs)

    if variants := node.get("anyOf") or node.get("oneOf"):
        resolved = [_resolve(v, defs) for v in variants]
        non_null = [v for v in resolved if v.get("type") != "null"]
        nullable = len(non_null) < len(resolved)
        if len(non_null) == 1:
            spec = _node_to_spec(non_null[0], defs, required)
            return replace(spec, nullable=spec.nullable or nullable)
        types = [v.get("type") for v in non_null]
        joined = "|".join(types) if types and all(isinstance(t, str) for t in types) else ANY
        return FieldSpec(type=joined, required=required, nullable=nullable)

    node_type = node.get("type", ANY)
    nullable = False
    if isinstance(node_type, list):
        nullable = "null" in node_type
        node_type = "|".join(t for t in node_type if t != "null") or ANY

    items = None
    if isinstance(node.get("items"), Mapping):
        items = _node_to_spec(node["items"], defs)

    properties = None
    if isinstance(node.get("properties"), Mapping):
        required_names = set(node.get("required", ()))
        properties = {
            name: _node_to_spec(sub, defs, name in required_names)
            for name, sub in node["properties"].items()
        }

    return FieldSpec(type=node_type, required=required, nullable=nullable, items=items, properties=properties)


def describe_json_schema(schema: Mapping[str, Any]) -> FieldSpec:
    """Convert a JSON schema document into a ``FieldSpec`` tree."""
    defs = {**schema.get("definitions", {}), **schema.get("$defs", {})}
    return _node_to_spec(schema, defs)


def describe_type(target: Any) -> FieldSpec:
    """Describe any pydantic-compatible type via its JSON schema."""
    return describe_json_schema(TypeAdapter(target).json_schema())


def _registry_type(name: Any) -> str:
    """Map a registry type name (``int``, ``str``, ``integer|null``) to JSON-schema names."""
    if not isinstance(name, str):
        raise TypeError(f"unsupported field type: {name!r}")
    parts = []
    for part in name.split("|"):
        part = part.strip().lower()
        part = _TYPE_ALIASES.get(part, part)
        if part not in JSON_TYPES:
            raise TypeError(f"unsupported field type: {name!r}")
        parts.append(part)
    return "|".join(parts)


def _spec_from_registry(entry: Any) -> FieldSpec:
    if isinstance(entry, FieldSpec):
        return entry
    if isinstance(entry, str):
        return FieldSpec(type=_registry_type(entry))
    if not isinstance(entry, Mapping):
        raise TypeError(f"unsupported field description: {type(entry).__name__}")
    items = entry.get("items")
    properties = entry.get("properties")
    return FieldSpec(
        type=_registry_type(entry.get("type", ANY)),
        required=bool(entry.get("required", True)),
        nullable=bool(entry.get("nullable", False)),
        items=_spec_from_registry(items) if items is not None else None,
        properties={k: _spec_from_registry(v) for k, v in properties.items()} if properties is not None else None,
    )


def coerce_description(description: Any) -> FieldSpec:
    """Accept a ``FieldSpec``, a JSON schema, or the registry field map."""
    if isinstance(description, FieldSpec):
        return description
    if not isinstance(description, Mapping):
        raise TypeError(f"unsupported schema description: {type(description).__name__}")
    if "$defs" in description or "properties" in description or isinstance(description.get("type"), str):
        return describe_json_schema(description)
    return FieldSpec(type="object", properties={name: _spec_from_registry(entry) for name, entry in description.items()})


def json_type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def type_matches(spec: FieldSpec, value: Any) -> bool:
    accepted = spec.accepted_types
    observed = json_type_name(value)
    if ANY in accepted or observed in accepted:
        return True
    if observed == "integer" and "number" in accepted:
        return True
    return observed == "number" and "integer" in accepted and float(value).is_integer()


def format_path(parts: Iterable[Any]) -> str:
    """Render a location such as ``("items", 0, "name")`` as ``items[0].name``."""
    path = ""
    for part in parts:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path = f"{path}.{part}" if path else str(part)
    return path


__all__ = [
    "FieldSpec",
    "describe_json_schema",
    "describe_type",
    "coerce_description",
    "json_type_name",
    "type_matches",
    "format_path",
]
