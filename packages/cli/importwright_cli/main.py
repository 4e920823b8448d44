import typer

from importwright_cli import __version__
from importwright_cli.commands.bindings_cmd import bindings_app
from importwright_cli.commands.plan_cmd import plan
from importwright_cli.commands.schema_cmd import schema_app
from importwright_cli.utils import configure_logging


def _version_callback(value: bool) -> None:
    if value:
        print(f"importwright {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="importwright",
    help="Generate configuration for existing infrastructure and track what it is bound to",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", "-V", help="Show version", callback=_version_callback, is_eager=True
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    config: str | None = typer.Option(None, "--config", "-c", help="Settings file (default: .importwright/config.yaml)"),
) -> None:
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["json"] = json_output
    ctx.obj["config"] = config
    configure_logging(verbose)


app.command()(plan)
app.add_typer(bindings_app, name="bindings")
app.add_typer(schema_app, name="schema")
