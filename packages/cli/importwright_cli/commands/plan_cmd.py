"""Generate resource blocks for the import blocks in a file."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from importwright_cli.utils import ctx_obj, get_registry, get_settings, handle_error

console = Console()
_err_console = Console(stderr=True)


def plan(
    ctx: typer.Context,
    import_file: Annotated[Path, typer.Argument(help="File containing import { to = ..., id = ... } blocks")],
    source: Annotated[
        str,
        typer.Option(
            "--source",
            "-s",
            help="Remote system: a .tfstate file, a YAML/JSON fixture, an http(s) URL, or a client plugin name",
        ),
    ],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write generated configuration to this file instead of stdout"),
    ] = None,
    reveal: Annotated[bool, typer.Option("--reveal", help="Render sensitive values instead of placeholders")] = False,
    no_record: Annotated[bool, typer.Option("--no-record", help="Do not record bindings in the ledger")] = False,
    no_import_blocks: Annotated[
        bool, typer.Option("--no-import-blocks", help="Omit the import blocks from the output")
    ] = False,
) -> None:
    """Fetch each import target, reconcile it against its schema and print the generated configuration."""
    try:
        from importwright.adapters import load_client
        from importwright.exporter import export_report
        from importwright.fetcher import RemoteStateFetcher
        from importwright.ledger import BindingLedger
        from importwright.planner import ImportPlanner

        if not import_file.exists():
            raise FileNotFoundError(str(import_file))

        settings = get_settings(ctx)
        if reveal:
            settings = settings.model_copy(update={"reveal_sensitive": True})

        registry = get_registry(settings)
        fetcher = RemoteStateFetcher(load_client(source), settings)
        ledger = BindingLedger(settings.ledger_path, shards=settings.lock_shards)
        planner = ImportPlanner(registry, fetcher, ledger, settings=settings)

        with console.status(f"Planning imports from {import_file.name}..."):
            report = asyncio.run(planner.plan_file(import_file, record=not no_record))

        if ctx_obj(ctx).get("json"):
            print(export_report(report, "json"))
        else:
            include_imports = settings.include_import_blocks and not no_import_blocks
            content = report.to_hcl(include_import_blocks=include_imports)
            if output:
                output.write_text(content)
                console.print(f"[green]Planned[/green] {len(report.results)} import(s) → [bold]{output}[/bold]")
            else:
                sys.stdout.write(content)
            if report.failures:
                _print_failures(report.failures)

        if not report.ok:
            raise typer.Exit(1)

    except typer.Exit:
        raise
    except Exception as e:
        handle_error(ctx, e)


def _print_failures(failures) -> None:
    table = Table(title=f"{len(failures)} import(s) failed", title_style="bold red")
    table.add_column("Address", style="cyan", no_wrap=True)
    table.add_column("External ID")
    table.add_column("Error", style="yellow")
    table.add_column("Detail", style="dim")
    for f in failures:
        table.add_row(f.address, f.external_id, f.error, f.message)
    _err_console.print(table)
