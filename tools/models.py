"""
Pydantic Front-End
------------------
Translates pydantic models (the input declarations tools are written
with) into the schema description protocol, and turns pydantic
validation failures into the dispatcher's one-line error message.

The translator never raises: anything it cannot read becomes an
unknown node, which the converter advertises as a plain string.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Type, Union, get_args, get_origin
import logging
import types
import uuid

from pydantic import AnyUrl, BaseModel, EmailStr, HttpUrl, ValidationError
from pydantic.fields import FieldInfo

from .schema import (
    ArrayNode,
    BooleanNode,
    DateNode,
    DefaultNode,
    EnumNode,
    LiteralNode,
    NullableNode,
    NumberNode,
    ObjectNode,
    OptionalNode,
    SchemaNode,
    StringNode,
    UnionNode,
)

logger = logging.getLogger("aac.tools.models")

_URL_TYPES = (AnyUrl, HttpUrl)
_ARRAY_ORIGINS = (list, set, frozenset, tuple)
_UNION_TYPES = (Union, types.UnionType)


def describe_model(model: Type[BaseModel], description: Optional[str] = None) -> ObjectNode:
    """Translate a pydantic model class into an object node."""
    fields: Dict[str, SchemaNode] = {}
    try:
        model_fields = model.model_fields
    except AttributeError:
        logger.warning(f"Not a pydantic model: {model!r}")
        return ObjectNode(description=description)

    for name, info in model_fields.items():
        try:
            node = _describe(info.annotation, list(info.metadata), info.description)
            if not info.is_required():
                default = info.get_default(call_default_factory=True)
                if default is None:
                    node = OptionalNode(inner=node)
                else:
                    node = DefaultNode(inner=node, value=default)
        except Exception as e:
            logger.warning(f"Could not describe field {model.__name__}.{name}: {e}")
            node = SchemaNode(description=info.description)
        fields[info.alias or name] = node

    return ObjectNode(fields=fields, description=description)


def _describe(annotation: Any, metadata: List[Any], description: Optional[str]) -> SchemaNode:
    origin = get_origin(annotation)

    if origin is Annotated:
        inner, *extra = get_args(annotation)
        nested = [m for m in extra if not isinstance(m, str)]
        if description is None:
            # Field(description=...) inside a nested alias is not lifted by pydantic
            description = next((m.description for m in extra if isinstance(m, FieldInfo) and m.description), None)
        return _describe(inner, metadata + _flatten(nested), description)

    if origin in _UNION_TYPES:
        args = get_args(annotation)
        members = [a for a in args if a is not type(None)]
        if len(members) < len(args):
            if len(members) == 1:
                inner = _describe(members[0], metadata, description)
            else:
                inner = _describe(Union[tuple(members)], metadata, description)
            return NullableNode(inner=inner, description=description)
        return UnionNode(
            options=tuple(_describe(m, [], None) for m in members),
            description=description,
        )

    if origin is Literal:
        values = get_args(annotation)
        if len(values) == 1:
            return LiteralNode(value=values[0], description=description)
        return UnionNode(
            options=tuple(LiteralNode(value=v) for v in values),
            description=description,
        )

    if origin in _ARRAY_ORIGINS:
        args = [a for a in get_args(annotation) if a is not Ellipsis]
        items = _describe(args[0], [], None) if args else SchemaNode()
        return ArrayNode(items=items, description=description)

    if origin is not None:
        return SchemaNode(description=description)

    if annotation is bool:
        return BooleanNode(description=description)

    if annotation is int:
        minimum, maximum = _bounds(metadata)
        return NumberNode(integer=True, minimum=minimum, maximum=maximum, description=description)

    if annotation in (float, Decimal):
        minimum, maximum = _bounds(metadata)
        return NumberNode(minimum=minimum, maximum=maximum, description=description)

    if annotation in (datetime, date):
        return DateNode(description=description)

    if annotation is uuid.UUID:
        return StringNode(format="uuid", description=description)

    if annotation is EmailStr:
        return StringNode(format="email", description=description)

    if isinstance(annotation, type) and issubclass(annotation, _URL_TYPES):
        return StringNode(format="uri", description=description)

    if annotation is str:
        min_length, max_length = _lengths(metadata)
        return StringNode(min_length=min_length, max_length=max_length, description=description)

    if isinstance(annotation, type) and issubclass(annotation, Enum):
        return EnumNode(values=tuple(m.value for m in annotation), description=description)

    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return describe_model(annotation, description=description)

    return SchemaNode(description=description)


def _flatten(metadata: List[Any]) -> List[Any]:
    """Expand grouped constraints (StringConstraints, Field(...)) into their parts."""
    flat: List[Any] = []
    for item in metadata:
        inner = getattr(item, "metadata", None)
        if isinstance(inner, list):
            flat.extend(inner)
        flat.append(item)
    return flat


def _first(metadata: List[Any], *attrs: str) -> Optional[Any]:
    for item in metadata:
        for attr in attrs:
            value = getattr(item, attr, None)
            if value is not None:
                return value
    return None


def _lengths(metadata: List[Any]) -> Tuple[Optional[int], Optional[int]]:
    return _first(metadata, "min_length"), _first(metadata, "max_length")


def _bounds(metadata: List[Any]) -> Tuple[Optional[float], Optional[float]]:
    return _first(metadata, "ge", "gt"), _first(metadata, "le", "lt")


def format_validation_error(error: ValidationError) -> str:
    """
    Join every violation into one message:
    "Invalid input: path1: msg1; path2: msg2"
    """
    issues = []
    for item in error.errors():
        path = ".".join(str(part) for part in item.get("loc", ()))
        message = item.get("msg", "Invalid value")
        issues.append(f"{path}: {message}" if path else message)
    return f"Invalid input: {'; '.join(issues)}"
