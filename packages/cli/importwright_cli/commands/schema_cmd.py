from __future__ import annotations

import json
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from importwright_cli.utils import ctx_obj, get_registry, get_settings, handle_error

console = Console()

schema_app = typer.Typer(
    name="schema",
    help="Browse the resource schema catalog.",
    no_args_is_help=True,
)


@schema_app.command("list")
def schema_list(ctx: typer.Context) -> None:
    """List registered resource types."""
    try:
        registry = get_registry(get_settings(ctx))
        types = registry.list_types()

        if ctx_obj(ctx).get("json"):
            print(json.dumps({"resource_types": types, "stats": registry.stats()}))
            return

        table = Table(title=f"Resource types ({len(types)})")
        table.add_column("Type", style="cyan", no_wrap=True)
        table.add_column("Attributes", justify="right")
        table.add_column("Description", style="dim")
        for name in types:
            schema = registry.lookup(name)
            table.add_row(name, str(len(schema.attributes)), schema.description)
        console.print(table)
    except Exception as e:
        handle_error(ctx, e)


@schema_app.command("show")
def schema_show(
    ctx: typer.Context,
    resource_type: Annotated[str, typer.Argument(help="Resource type, e.g. aws_s3_bucket")],
) -> None:
    """Show the attributes of one resource type, in emission order."""
    try:
        schema = get_registry(get_settings(ctx)).lookup(resource_type)

        if ctx_obj(ctx).get("json"):
            print(schema.model_dump_json(indent=2))
            return

        table = Table(title=resource_type)
        table.add_column("Attribute", style="cyan", no_wrap=True)
        table.add_column("Type")
        table.add_column("Flags", style="dim")
        for name, attr in _flatten(schema.attributes):
            flags = [
                flag
                for flag, on in (
                    ("required", attr.required),
                    ("computed", attr.computed),
                    ("sensitive", attr.sensitive),
                )
                if on
            ]
            type_label = f"block ({attr.nesting})" if attr.is_block else attr.type
            table.add_row(name, type_label, ", ".join(flags))
        console.print(table)
    except Exception as e:
        handle_error(ctx, e)


def _flatten(attributes, prefix: str = ""):
    for attr in attributes:
        name = f"{prefix}{attr.name}"
        yield name, attr
        if attr.is_block:
            yield from _flatten(attr.attributes, f"{name}.")
