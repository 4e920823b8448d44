"""Schema registry — loads YAML attribute catalogs for resource types.

Catalog data lives in one or more ``*.yaml`` files, each with a top-level
``resources:`` mapping of resource type -> attribute definitions. The order of
attributes in the YAML mapping is the order blocks are emitted in.

The registry is built once at startup and passed explicitly to whatever needs
it; there is no module-level instance.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable

import yaml
from pydantic import ValidationError

from importwright.errors import SchemaError, UnknownType
from importwright.spec import AttributeSchema, AttributeSpec

logger = logging.getLogger(__name__)

_BUNDLED_DIR = Path(__file__).parent / "data" / "schemas"


def _attribute_list(attributes: dict[str, Any] | None) -> list[dict[str, Any]]:
    """Turn a YAML ``{name: {...}}`` mapping into an ordered list of attribute dicts."""
    result = []
    for name, body in (attributes or {}).items():
        body = dict(body or {})
        body["name"] = name
        if "attributes" in body:
            body["attributes"] = _attribute_list(body["attributes"])
        result.append(body)
    return result


def _parse_schema(resource_type: str, body: dict[str, Any], source: str) -> AttributeSchema:
    if not isinstance(body, dict):
        raise SchemaError(f"{source}: {resource_type}: expected a mapping, got {type(body).__name__}")
    try:
        return AttributeSchema(
            resource_type=resource_type,
            description=body.get("description", ""),
            attributes=_attribute_list(body.get("attributes")),
        )
    except ValidationError as exc:
        raise SchemaError(f"{source}: {resource_type}: {exc}") from exc


class SchemaRegistry:
    """Read-only lookup of attribute schemas by resource type."""

    def __init__(self, schemas: Iterable[AttributeSchema] = ()):
        self._schemas: dict[str, AttributeSchema] = {}
        for schema in schemas:
            self._add(schema, "<memory>")

    def _add(self, schema: AttributeSchema, source: str) -> None:
        if schema.resource_type in self._schemas:
            raise SchemaError(f"{source}: resource type {schema.resource_type!r} is defined more than once")
        self._schemas[schema.resource_type] = schema

    @classmethod
    def from_directory(cls, directory: str | Path) -> SchemaRegistry:
        """Load every ``*.yaml`` catalog file in a directory (sorted by name)."""
        path = Path(directory)
        if not path.is_dir():
            raise SchemaError(f"Schema directory not found: {path}")
        registry = cls()
        for yaml_path in sorted(path.glob("*.yaml")):
            registry.load_file(yaml_path)
        logger.debug("Loaded %d resource schemas from %s", len(registry), path)
        return registry

    def load_file(self, path: str | Path) -> None:
        p = Path(path)
        try:
            data = yaml.safe_load(p.read_text()) or {}
        except yaml.YAMLError as exc:
            raise SchemaError(f"{p.name}: invalid YAML: {exc}") from exc
        resources = data.get("resources") if isinstance(data, dict) else None
        if not isinstance(resources, dict):
            raise SchemaError(f"{p.name}: missing top-level 'resources' mapping")
        for resource_type, body in resources.items():
            self._add(_parse_schema(resource_type, body, p.name), p.name)

    def lookup(self, resource_type: str) -> AttributeSchema:
        try:
            return self._schemas[resource_type]
        except KeyError:
            raise UnknownType(resource_type) from None

    def __contains__(self, resource_type: object) -> bool:
        return resource_type in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)

    def list_types(self) -> list[str]:
        return sorted(self._schemas)

    def stats(self) -> dict[str, Any]:
        """Summary counts for the loaded catalog."""
        schemas = self._schemas.values()
        return {
            "resource_types": len(self._schemas),
            "attributes": sum(_count(s.attributes) for s in schemas),
            "sensitive_attributes": sum(_count(s.attributes, lambda a: a.sensitive) for s in schemas),
        }


def _count(attributes: list[AttributeSpec], pred=lambda a: True) -> int:
    total = 0
    for attr in attributes:
        if pred(attr):
            total += 1
        total += _count(attr.attributes, pred)
    return total


def load_registry(schema_dir: str | Path | None = None, extra_dirs: Iterable[str | Path] = ()) -> SchemaRegistry:
    """Build a registry from ``schema_dir`` (bundled sample catalog if None) plus any extra dirs."""
    registry = SchemaRegistry.from_directory(schema_dir or _BUNDLED_DIR)
    for extra in extra_dirs:
        for yaml_path in sorted(Path(extra).glob("*.yaml")):
            registry.load_file(yaml_path)
    return registry
