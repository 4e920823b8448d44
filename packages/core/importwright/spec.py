"""Core data model for import planning.

Requests, schemas, bindings and rendered blocks all live here. Attribute sets
themselves are plain dicts: they come from remote clients as JSON-like data
and are only ever read after reconciliation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from importwright.errors import InvalidAddress

AttributeSet = dict[str, Any]

_ID_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_-]*$")
_COLLECTION_PATTERN = re.compile(r"^(list|set|map)\((.+)\)$")
_SCALAR_TYPES = ("string", "number", "bool", "any")


def parse_address(address: str) -> tuple[str, str]:
    """Split `<resource_type>.<local_name>` into its two parts."""
    parts = address.split(".")
    if len(parts) != 2 or not all(_ID_PATTERN.match(p) for p in parts):
        raise InvalidAddress(address)
    return parts[0], parts[1]


def is_identifier(name: str) -> bool:
    return bool(_ID_PATTERN.match(name))


# Type expressions


@dataclass(frozen=True)
class TypeExpr:
    kind: str  # string | number | bool | any | list | set | map | block
    element: TypeExpr | None = None

    @property
    def is_collection(self) -> bool:
        return self.kind in ("list", "set", "map")

    def __str__(self) -> str:
        if self.element is not None:
            return f"{self.kind}({self.element})"
        return self.kind


@lru_cache(maxsize=256)
def parse_type(expr: str, allow_block: bool = True) -> TypeExpr:
    """Parse a type expression such as ``list(map(string))``."""
    text = expr.replace(" ", "")
    if text in _SCALAR_TYPES:
        return TypeExpr(text)
    if text == "block" and allow_block:
        return TypeExpr("block")
    m = _COLLECTION_PATTERN.match(text)
    if m:
        return TypeExpr(m.group(1), parse_type(m.group(2), allow_block=False))
    raise ValueError(f"Unknown type expression {expr!r}")


@dataclass(frozen=True)
class Expression:
    """A raw HCL expression, e.g. a ``var.db_password`` reference."""

    text: str

    def __str__(self) -> str:
        return self.text


# Schemas


class AttributeSpec(BaseModel):
    name: str
    type: str = "string"
    required: bool = False
    optional: bool = False
    computed: bool = False
    sensitive: bool = False
    default: Any = None
    description: str = ""
    # Only meaningful when type == "block"
    nesting: Literal["single", "list"] = "list"
    attributes: list[AttributeSpec] = Field(default_factory=list)

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        parse_type(v)
        return v

    @model_validator(mode="after")
    def check_flags(self) -> AttributeSpec:
        if self.required and self.computed:
            raise ValueError(f"Attribute {self.name!r} cannot be both required and computed")
        if self.is_block and not self.attributes:
            raise ValueError(f"Block {self.name!r} declares no attributes")
        if not self.is_block and self.attributes:
            raise ValueError(f"Attribute {self.name!r} has nested attributes but is not a block")
        if not self.required and not self.computed:
            self.optional = True
        return self

    @property
    def type_expr(self) -> TypeExpr:
        return parse_type(self.type)

    @property
    def is_block(self) -> bool:
        return self.type_expr.kind == "block"

    @property
    def computed_only(self) -> bool:
        return self.computed and not self.optional

    def get(self, name: str) -> AttributeSpec | None:
        for attr in self.attributes:
            if attr.name == name:
                return attr
        return None


class AttributeSchema(BaseModel):
    """Ordered attribute catalog for one resource type."""

    resource_type: str
    description: str = ""
    attributes: list[AttributeSpec] = Field(default_factory=list)

    @field_validator("attributes")
    @classmethod
    def unique_names(cls, v: list[AttributeSpec]) -> list[AttributeSpec]:
        seen: set[str] = set()
        for attr in v:
            if attr.name in seen:
                raise ValueError(f"Duplicate attribute {attr.name!r}")
            seen.add(attr.name)
        return v

    def get(self, name: str) -> AttributeSpec | None:
        for attr in self.attributes:
            if attr.name == name:
                return attr
        return None

    def names(self) -> list[str]:
        return [a.name for a in self.attributes]


# Requests and bindings


class ImportRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: str
    external_id: str

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        parse_address(v)
        return v

    @field_validator("external_id")
    @classmethod
    def validate_external_id(cls, v: str) -> str:
        if not v:
            raise ValueError("external_id must not be empty")
        return v

    @property
    def resource_type(self) -> str:
        return parse_address(self.address)[0]

    @property
    def local_name(self) -> str:
        return parse_address(self.address)[1]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Binding(BaseModel):
    """Association of a declared address with a real-world object."""

    model_config = ConfigDict(frozen=True)

    address: str
    external_id: str
    fetched_at: datetime = Field(default_factory=_utcnow)


class LedgerEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: Literal["bind", "unbind"]
    binding: Binding
    recorded_at: datetime = Field(default_factory=_utcnow)


# Rendered output


@dataclass(frozen=True)
class RenderedAttribute:
    name: str
    literal: str


@dataclass
class RenderedBlock:
    """One declarative block, ready to print. Purely derived from its inputs."""

    block_type: str
    labels: list[str] = field(default_factory=list)
    items: list[Union[RenderedAttribute, RenderedBlock]] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)

    def attribute(self, name: str) -> str | None:
        for item in self.items:
            if isinstance(item, RenderedAttribute) and item.name == name:
                return item.literal
        return None

    def blocks(self, block_type: str) -> list[RenderedBlock]:
        return [i for i in self.items if isinstance(i, RenderedBlock) and i.block_type == block_type]

    def to_hcl(self) -> str:
        from importwright.exporter.hcl import format_block

        return format_block(self)


AttributeSpec.model_rebuild()
