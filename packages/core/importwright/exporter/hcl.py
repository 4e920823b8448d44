"""HCL text formatting for rendered blocks.

Output is deterministic: map keys are sorted, attribute order is whatever the
RenderedBlock carries, and ``=`` signs are aligned within each run of
consecutive single-line attributes the way ``terraform fmt`` does.
"""

from __future__ import annotations

import math
from typing import Any, Iterable

from importwright.spec import Expression, RenderedAttribute, RenderedBlock, is_identifier

_INDENT = "  "


def quote(value: str) -> str:
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace("${", "$${")
        .replace("%{", "%%{")
    )
    return f'"{escaped}"'


def _key(name: str) -> str:
    return name if is_identifier(name) else quote(name)


def literal(value: Any) -> str:
    """Render a Python value as an HCL expression. Maps span multiple lines."""
    if isinstance(value, Expression):
        return value.text
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"Cannot render non-finite number {value!r}")
        return repr(value)
    if isinstance(value, str):
        return quote(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(_inline(v) for v in value) + "]"
    if isinstance(value, dict):
        if not value:
            return "{}"
        keys = sorted(value, key=str)
        width = max(len(_key(str(k))) for k in keys)
        lines = ["{"]
        for k in keys:
            rendered = _indent_continuation(literal(value[k]), _INDENT)
            lines.append(f"{_INDENT}{_key(str(k)).ljust(width)} = {rendered}")
        lines.append("}")
        return "\n".join(lines)
    raise TypeError(f"Cannot render {type(value).__name__} as HCL")


def _inline(value: Any) -> str:
    """Single-line rendering, used for list elements."""
    if isinstance(value, dict):
        if not value:
            return "{}"
        pairs = ", ".join(f"{_key(str(k))} = {_inline(value[k])}" for k in sorted(value, key=str))
        return "{ " + pairs + " }"
    return literal(value)


def _indent_continuation(text: str, pad: str) -> str:
    first, *rest = text.split("\n")
    return "\n".join([first, *(pad + line for line in rest)])


def format_block(block: RenderedBlock, depth: int = 0) -> str:
    pad = _INDENT * depth
    inner = pad + _INDENT
    lines = [f"{pad}# {note}" for note in block.notes]

    header = " ".join([block.block_type, *(quote(label) for label in block.labels)])
    if not block.items:
        lines.append(f"{pad}{header} {{}}")
        return "\n".join(lines)

    lines.append(f"{pad}{header} {{")
    for run in _runs(block.items):
        if isinstance(run, RenderedBlock):
            lines.append(format_block(run, depth + 1))
            continue
        width = max(len(_key(a.name)) for a in run)
        for attr in run:
            value = _indent_continuation(attr.literal, inner)
            lines.append(f"{inner}{_key(attr.name).ljust(width)} = {value}")
    lines.append(f"{pad}}}")
    return "\n".join(lines)


def _runs(items: list) -> Iterable[RenderedBlock | list[RenderedAttribute]]:
    """Group consecutive single-line attributes; multi-line ones and blocks stand alone."""
    run: list[RenderedAttribute] = []
    for item in items:
        if isinstance(item, RenderedAttribute) and "\n" not in item.literal:
            run.append(item)
            continue
        if run:
            yield run
            run = []
        yield [item] if isinstance(item, RenderedAttribute) else item
    if run:
        yield run


def render_hcl(blocks: Iterable[RenderedBlock]) -> str:
    """Join blocks into one document, separated by blank lines."""
    text = "\n\n".join(b.to_hcl() for b in blocks)
    return text + "\n" if text else ""
