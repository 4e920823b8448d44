from __future__ import annotations

import asyncio
import json
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from importwright_cli.utils import ctx_obj, get_settings, handle_error

console = Console()

bindings_app = typer.Typer(
    name="bindings",
    help="Inspect and manage recorded address bindings.",
    no_args_is_help=True,
)


def _ledger(ctx: typer.Context):
    from importwright.ledger import BindingLedger

    settings = get_settings(ctx)
    return BindingLedger(settings.ledger_path, shards=settings.lock_shards)


@bindings_app.command("list")
def bindings_list(ctx: typer.Context) -> None:
    """List current bindings."""
    try:
        bindings = _ledger(ctx).bindings()

        if ctx_obj(ctx).get("json"):
            print(json.dumps([b.model_dump(mode="json") for b in bindings], indent=2))
            return

        if not bindings:
            console.print("[yellow]No bindings recorded.[/yellow]")
            return

        table = Table(title="Bindings")
        table.add_column("Address", style="cyan", no_wrap=True)
        table.add_column("External ID")
        table.add_column("Fetched at", style="dim")
        for b in bindings:
            table.add_row(b.address, b.external_id, b.fetched_at.isoformat())
        console.print(table)
    except Exception as e:
        handle_error(ctx, e)


@bindings_app.command("history")
def bindings_history(
    ctx: typer.Context,
    address: Annotated[str | None, typer.Argument(help="Only show entries for this address")] = None,
) -> None:
    """Show the bind/unbind audit trail."""
    try:
        entries = _ledger(ctx).history(address)

        if ctx_obj(ctx).get("json"):
            print(json.dumps([e.model_dump(mode="json") for e in entries], indent=2))
            return

        if not entries:
            console.print("[yellow]No history.[/yellow]")
            return

        table = Table(title=f"History: {address}" if address else "History")
        table.add_column("Recorded at", style="dim")
        table.add_column("Action")
        table.add_column("Address", style="cyan", no_wrap=True)
        table.add_column("External ID")
        for e in entries:
            color = "green" if e.action == "bind" else "red"
            table.add_row(
                e.recorded_at.isoformat(),
                f"[{color}]{e.action}[/{color}]",
                e.binding.address,
                e.binding.external_id,
            )
        console.print(table)
    except Exception as e:
        handle_error(ctx, e)


@bindings_app.command("unbind")
def bindings_unbind(
    ctx: typer.Context,
    address: Annotated[str, typer.Argument(help="Address to unbind, e.g. aws_s3_bucket.logs")],
) -> None:
    """Remove the current binding for an address (history is kept)."""
    try:
        removed = asyncio.run(_ledger(ctx).unbind(address))
        if ctx_obj(ctx).get("json"):
            print(json.dumps({"unbound": removed.model_dump(mode="json")}))
            return
        console.print(f"[green]Unbound[/green] {removed.address} (was {removed.external_id})")
    except Exception as e:
        handle_error(ctx, e)
