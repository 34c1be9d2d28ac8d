"""
Schema Description Protocol
---------------------------
A small, closed vocabulary for describing tool arguments.

Validation front-ends translate their own schema objects into these
nodes; the capability converter reads nothing else. Every node carries
a `kind` tag so consumers can dispatch on it without isinstance chains.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class SchemaNode:
    """Base node. Subclasses fix `kind`."""
    kind: str = field(default="unknown", init=False)
    description: Optional[str] = field(default=None, kw_only=True)


@dataclass(frozen=True)
class StringNode(SchemaNode):
    kind: str = field(default="string", init=False)
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    format: Optional[str] = None  # email | uuid | uri


@dataclass(frozen=True)
class NumberNode(SchemaNode):
    kind: str = field(default="number", init=False)
    integer: bool = False
    minimum: Optional[float] = None
    maximum: Optional[float] = None


@dataclass(frozen=True)
class BooleanNode(SchemaNode):
    kind: str = field(default="boolean", init=False)


@dataclass(frozen=True)
class DateNode(SchemaNode):
    kind: str = field(default="date", init=False)


@dataclass(frozen=True)
class ArrayNode(SchemaNode):
    kind: str = field(default="array", init=False)
    items: SchemaNode = field(default_factory=SchemaNode)


@dataclass(frozen=True)
class EnumNode(SchemaNode):
    kind: str = field(default="enum", init=False)
    values: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class LiteralNode(SchemaNode):
    kind: str = field(default="literal", init=False)
    value: Any = None


@dataclass(frozen=True)
class UnionNode(SchemaNode):
    kind: str = field(default="union", init=False)
    options: Tuple[SchemaNode, ...] = ()


@dataclass(frozen=True)
class ObjectNode(SchemaNode):
    kind: str = field(default="object", init=False)
    fields: Dict[str, SchemaNode] = field(default_factory=dict)


@dataclass(frozen=True)
class OptionalNode(SchemaNode):
    """May be absent."""
    kind: str = field(default="optional", init=False)
    inner: SchemaNode = field(default_factory=SchemaNode)


@dataclass(frozen=True)
class NullableNode(SchemaNode):
    """May be null. Still required unless also wrapped in optional/default."""
    kind: str = field(default="nullable", init=False)
    inner: SchemaNode = field(default_factory=SchemaNode)


@dataclass(frozen=True)
class DefaultNode(SchemaNode):
    """May be absent; `value` fills in."""
    kind: str = field(default="default", init=False)
    inner: SchemaNode = field(default_factory=SchemaNode)
    value: Any = None


WRAPPER_KINDS = frozenset({"optional", "nullable", "default"})


def is_optional(node: SchemaNode) -> bool:
    """A field is optional when its outermost wrapper allows absence."""
    return node.kind in ("optional", "default")
