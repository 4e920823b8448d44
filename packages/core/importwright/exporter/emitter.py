"""Turn a reconciled attribute set into a resource block."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from importwright.exporter.hcl import literal, quote
from importwright.spec import (
    AttributeSet,
    AttributeSpec,
    Expression,
    ImportRequest,
    RenderedAttribute,
    RenderedBlock,
)

if TYPE_CHECKING:
    from importwright.registry import SchemaRegistry

_VAR_UNSAFE = re.compile(r"[^a-zA-Z0-9_-]+")


class ConfigEmitter:
    """Renders resource and import blocks in schema-declared order.

    Computed-only attributes are left out since they cannot be set in
    configuration. Sensitive values are replaced by a ``var.`` placeholder and
    a note unless ``reveal_sensitive`` is set.
    """

    def __init__(self, registry: SchemaRegistry, reveal_sensitive: bool = False):
        self._registry = registry
        self.reveal_sensitive = reveal_sensitive

    def render(self, resource_type: str, local_name: str, attrs: AttributeSet) -> RenderedBlock:
        schema = self._registry.lookup(resource_type)
        notes: list[str] = []
        ctx = _RenderContext(resource_type, local_name, self.reveal_sensitive, notes)
        items = ctx.items(schema.attributes, attrs, "")
        return RenderedBlock(block_type="resource", labels=[resource_type, local_name], items=items, notes=notes)

    def render_import(self, request: ImportRequest) -> RenderedBlock:
        return RenderedBlock(
            block_type="import",
            items=[
                RenderedAttribute("to", request.address),
                RenderedAttribute("id", quote(request.external_id)),
            ],
        )


class _RenderContext:
    def __init__(self, resource_type: str, local_name: str, reveal: bool, notes: list[str]):
        self.resource_type = resource_type
        self.local_name = local_name
        self.reveal = reveal
        self.notes = notes

    def items(self, specs: list[AttributeSpec], attrs: AttributeSet, prefix: str) -> list:
        items: list[RenderedAttribute | RenderedBlock] = []
        for spec in specs:
            if spec.name not in attrs or spec.computed_only:
                continue
            value = attrs[spec.name]
            path = f"{prefix}{spec.name}"

            # A sensitive block is replaced as a whole
            if spec.sensitive and not self.reveal:
                placeholder = self.placeholder(path)
                items.append(RenderedAttribute(spec.name, placeholder))
                self.notes.append(
                    f"sensitive: {self.resource_type}.{self.local_name}.{path} is not shown; set {placeholder}"
                )
                continue

            if spec.is_block and not isinstance(value, Expression):
                bodies = [value] if isinstance(value, dict) else list(value)
                for i, body in enumerate(bodies):
                    sub_prefix = f"{path}." if spec.nesting == "single" else f"{path}[{i}]."
                    sub_items = self.items(spec.attributes, body, sub_prefix)
                    if sub_items:
                        items.append(RenderedBlock(block_type=spec.name, items=sub_items))
                continue

            items.append(RenderedAttribute(spec.name, literal(value)))
        return items

    def placeholder(self, path: str) -> str:
        name = _VAR_UNSAFE.sub("_", f"{self.resource_type}_{self.local_name}_{path}").strip("_")
        return f"var.{name}"
