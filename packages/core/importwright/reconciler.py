"""Merge fetched attributes against a resource schema.

The result contains only schema-declared attributes, in schema order, with
values coerced to their declared types. Computed-only attributes are taken
verbatim; nothing is ever defaulted.
"""

from __future__ import annotations

import logging
import math
from typing import Any

from importwright.errors import MissingRequiredAttribute, TypeMismatch
from importwright.spec import AttributeSchema, AttributeSet, AttributeSpec, Expression, TypeExpr

logger = logging.getLogger(__name__)

_ABSENT = object()


def reconcile(schema: AttributeSchema, fetched: dict[str, Any]) -> AttributeSet:
    """Validate and coerce a fetched attribute mapping against ``schema``."""
    return _reconcile_attrs(schema.attributes, fetched, prefix="", resource_type=schema.resource_type)


def _reconcile_attrs(
    specs: list[AttributeSpec], fetched: dict[str, Any], prefix: str, resource_type: str
) -> AttributeSet:
    result: AttributeSet = {}
    declared = {spec.name for spec in specs}

    for spec in specs:
        path = f"{prefix}{spec.name}"
        value = _present(fetched.get(spec.name, _ABSENT))

        if spec.computed_only:
            if value is not _ABSENT:
                result[spec.name] = value
            continue

        if value is _ABSENT:
            if spec.required:
                raise MissingRequiredAttribute(path)
            continue

        if spec.is_block:
            block = _reconcile_block(spec, value, path, resource_type)
            if block is not _ABSENT:
                result[spec.name] = block
            elif spec.required:
                raise MissingRequiredAttribute(path)
            continue

        result[spec.name] = coerce(value, spec.type_expr, path)

    extra = sorted(k for k in fetched if k not in declared)
    if extra:
        logger.debug("%s: ignoring undeclared attributes at %r: %s", resource_type, prefix or ".", ", ".join(extra))
    return result


def _present(value: Any) -> Any:
    return _ABSENT if value is None else value


def _reconcile_block(spec: AttributeSpec, value: Any, path: str, resource_type: str) -> Any:
    if isinstance(value, Expression):
        return value

    if spec.nesting == "single":
        # State files store single blocks as one-element lists
        if isinstance(value, (list, tuple)):
            if len(value) > 1:
                raise TypeMismatch(path, "a single block", f"{len(value)} blocks")
            value = value[0] if value else {}
        if not isinstance(value, dict):
            raise TypeMismatch(path, "block", type(value).__name__)
        if not value:
            return _ABSENT
        body = _reconcile_attrs(spec.attributes, value, f"{path}.", resource_type)
        return body if body else _ABSENT

    if isinstance(value, dict):
        value = [value]
    if not isinstance(value, (list, tuple)):
        raise TypeMismatch(path, "list of blocks", type(value).__name__)

    blocks = []
    for i, item in enumerate(value):
        if not isinstance(item, dict):
            raise TypeMismatch(f"{path}[{i}]", "block", type(item).__name__)
        body = _reconcile_attrs(spec.attributes, item, f"{path}[{i}].", resource_type)
        if body:
            blocks.append(body)
    return blocks if blocks else _ABSENT


# Type coercion


def coerce(value: Any, type_expr: TypeExpr, path: str) -> Any:
    """Coerce ``value`` to ``type_expr``; raise TypeMismatch naming ``path`` on failure."""
    if isinstance(value, Expression):
        return value

    kind = type_expr.kind
    if kind == "any":
        return value
    if kind == "string":
        return _to_string(value, path)
    if kind == "number":
        return _to_number(value, path)
    if kind == "bool":
        return _to_bool(value, path)

    element = type_expr.element
    if element is None:
        raise TypeMismatch(path, str(type_expr), "a collection type without an element type")

    if kind == "list":
        if not isinstance(value, (list, tuple)):
            raise TypeMismatch(path, str(type_expr), type(value).__name__)
        return [coerce(v, element, f"{path}[{i}]") for i, v in enumerate(value)]

    if kind == "set":
        if not isinstance(value, (list, tuple, set, frozenset)):
            raise TypeMismatch(path, str(type_expr), type(value).__name__)
        items = [coerce(v, element, f"{path}[{i}]") for i, v in enumerate(value)]
        unique: dict[str, Any] = {}
        for item in items:
            unique.setdefault(_sort_key(item), item)
        return [unique[k] for k in sorted(unique)]

    if kind == "map":
        if not isinstance(value, dict):
            raise TypeMismatch(path, str(type_expr), type(value).__name__)
        result = {}
        for k in sorted(value, key=str):
            if not isinstance(k, str):
                raise TypeMismatch(f"{path}[{k!r}]", "string key", type(k).__name__)
            result[k] = coerce(value[k], element, f"{path}[{k!r}]")
        return result

    raise TypeMismatch(path, str(type_expr), type(value).__name__)


def _sort_key(value: Any) -> str:
    from importwright.exporter.hcl import literal

    return literal(value)


def _to_string(value: Any, path: str) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    raise TypeMismatch(path, "string", type(value).__name__)


def _to_number(value: Any, path: str) -> int | float:
    if isinstance(value, bool):
        raise TypeMismatch(path, "number", "bool")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return _finite(value, value, path)
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            raise TypeMismatch(path, "number", f"non-numeric string {value!r}") from None
        return _finite(number, value, path)
    raise TypeMismatch(path, "number", type(value).__name__)


def _finite(number: float, original: Any, path: str) -> float:
    if not math.isfinite(number):
        raise TypeMismatch(path, "number", f"non-finite value {original!r}")
    return number


def _to_bool(value: Any, path: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    raise TypeMismatch(path, "bool", type(value).__name__ if not isinstance(value, str) else f"string {value!r}")


def sensitive_paths(schema: AttributeSchema, attrs: AttributeSet) -> list[str]:
    """Paths of sensitive attributes present in a reconciled set, in schema order."""
    return _sensitive(schema.attributes, attrs, "")


def _sensitive(specs: list[AttributeSpec], attrs: AttributeSet, prefix: str) -> list[str]:
    paths: list[str] = []
    for spec in specs:
        if spec.name not in attrs:
            continue
        value = attrs[spec.name]
        path = f"{prefix}{spec.name}"
        if spec.sensitive:
            paths.append(path)
        elif spec.is_block and isinstance(value, dict):
            paths.extend(_sensitive(spec.attributes, value, f"{path}."))
        elif spec.is_block and isinstance(value, list):
            for i, item in enumerate(value):
                paths.extend(_sensitive(spec.attributes, item, f"{path}[{i}]."))
    return paths
