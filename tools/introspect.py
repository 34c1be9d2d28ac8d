"""
Capability Converter
--------------------
Turns a schema description into the JSON-Schema-style descriptor that
is advertised to the model.

Error policy: never raise. Anything unrecognized, or any node that
fails to convert, degrades to {"type": "string"}.
"""

from typing import Any, Dict, List, Type
from enum import Enum
import logging
import math

from pydantic import BaseModel

from .models import describe_model
from .schema import ObjectNode, SchemaNode, is_optional

logger = logging.getLogger("aac.tools.introspect")

# Bounds at or past these are treated as "unbounded" sentinels.
MAX_SAFE_INTEGER = 2 ** 53 - 1
MIN_SAFE_INTEGER = -MAX_SAFE_INTEGER

_STRING_FORMATS = {"email": "email", "uuid": "uuid", "uri": "uri", "url": "uri"}


def to_input_schema(model: Type[BaseModel]) -> Dict[str, Any]:
    """Descriptor for a tool's pydantic input model."""
    return convert_object(describe_model(model))


def convert_object(node: ObjectNode) -> Dict[str, Any]:
    """
    Convert an object node to {type, properties, required?}.

    "required" lists fields in declaration order and is left out
    entirely when no field qualifies.
    """
    properties: Dict[str, Any] = {}
    required: List[str] = []

    for name, field_node in getattr(node, "fields", {}).items():
        properties[name] = convert(field_node)
        if not is_optional(field_node):
            required.append(name)

    result: Dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        result["required"] = required
    return result


def convert(node: SchemaNode) -> Dict[str, Any]:
    """Convert any node. Always returns a dict with "type" or "anyOf"."""
    try:
        return _convert(node)
    except Exception as e:
        logger.warning(f"Falling back to string for unconvertible schema node: {e}")
        return {"type": "string"}


def _convert(node: SchemaNode) -> Dict[str, Any]:
    kind = getattr(node, "kind", None)

    if kind in ("optional", "default"):
        return convert(node.inner)

    if kind == "nullable":
        return {**convert(node.inner), "nullable": True}

    if kind == "string":
        result: Dict[str, Any] = {"type": "string"}
        if node.min_length is not None:
            result["minLength"] = node.min_length
        if node.max_length is not None:
            result["maxLength"] = node.max_length
        fmt = _STRING_FORMATS.get(node.format or "")
        if fmt:
            result["format"] = fmt
        return _described(result, node)

    if kind == "number":
        result = {"type": "integer" if node.integer else "number"}
        if _is_bound(node.minimum) and node.minimum > MIN_SAFE_INTEGER:
            result["minimum"] = _number(node.minimum)
        if _is_bound(node.maximum) and node.maximum < MAX_SAFE_INTEGER:
            result["maximum"] = _number(node.maximum)
        return _described(result, node)

    if kind == "boolean":
        return _described({"type": "boolean"}, node)

    if kind == "array":
        return _described({"type": "array", "items": convert(node.items)}, node)

    if kind == "enum":
        return _described({"type": "string", "enum": [_plain(v) for v in node.values]}, node)

    if kind == "literal":
        value = _plain(node.value)
        return _described({"type": _json_type(value), "const": value}, node)

    if kind == "object":
        return convert_object(node)

    if kind == "union":
        options = list(node.options)
        if options and all(getattr(o, "kind", None) == "literal" for o in options):
            return {"type": "string", "enum": [_plain(o.value) for o in options]}
        return {"anyOf": [convert(o) for o in options]}

    if kind == "date":
        return {"type": "string", "format": "date-time"}

    return {"type": "string"}


def _described(result: Dict[str, Any], node: SchemaNode) -> Dict[str, Any]:
    if node.description:
        result["description"] = node.description
    return result


def _is_bound(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def _number(value: Any) -> Any:
    if isinstance(value, (int, float)):
        return value
    return float(value)


def _plain(value: Any) -> Any:
    """Enum members advertise their underlying value."""
    return value.value if isinstance(value, Enum) else value


def _json_type(value: Any) -> str:
    """JSON type name for a literal value."""
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if value is None:
        return "null"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return "string"
