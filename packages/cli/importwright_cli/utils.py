from __future__ import annotations

import json
import logging

import typer
from importwright.config import ImportSettings
from importwright.errors import ImportwrightError
from importwright.registry import SchemaRegistry
from rich.console import Console
from rich.logging import RichHandler

_err_console = Console(stderr=True)


def ctx_obj(ctx: typer.Context) -> dict:
    """Resolve ctx.obj through the parent chain when invoked via a sub-app."""
    while ctx is not None:
        if ctx.obj:
            return ctx.obj
        ctx = ctx.parent
    return {}


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=_err_console, show_path=False)],
        force=True,
    )


def get_settings(ctx: typer.Context) -> ImportSettings:
    from importwright_cli.project import resolve_settings

    obj = ctx_obj(ctx)
    if "settings" not in obj:
        obj["settings"] = resolve_settings(obj.get("config"))
    return obj["settings"]


def get_registry(settings: ImportSettings) -> SchemaRegistry:
    from importwright.plugins import discover_schema_dirs
    from importwright.registry import load_registry

    return load_registry(settings.schema_dir, extra_dirs=discover_schema_dirs())


def handle_error(ctx: typer.Context, e: Exception) -> None:
    """Print a clean error message and exit 1."""
    import yaml

    obj = ctx_obj(ctx)
    verbose = obj.get("verbose", False)
    json_mode = obj.get("json", False)

    if isinstance(e, ImportwrightError):
        msg = str(e)
    elif isinstance(e, FileNotFoundError):
        msg = f"File not found: {e}"
    elif isinstance(e, yaml.YAMLError):
        msg = f"Invalid YAML: {e}"
    elif "validation" in type(e).__name__.lower():
        msg = f"Invalid settings: {e}"
    elif isinstance(e, ValueError):
        msg = str(e)
    else:
        msg = f"Error: {e}"

    if json_mode:
        print(json.dumps({"error": msg, "kind": getattr(e, "kind", type(e).__name__)}))
    else:
        _err_console.print(f"[red]Error:[/red] {msg}")

    if verbose:
        _err_console.print_exception()

    raise typer.Exit(1)
