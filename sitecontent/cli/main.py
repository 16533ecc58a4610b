"""Main CLI entry point and application setup."""

import logging
import sys
from dataclasses import dataclass
from pathlib import Path

import click
import msgspec
from click.exceptions import Exit
from rich.console import Console
from rich.table import Table

from sitecontent import __version__
from sitecontent.cli.commands import body, content, migrate
from sitecontent.config import load_config
from sitecontent.storage.system import ContentStore


@dataclass
class Context:
    """CLI context that holds shared resources."""

    store: ContentStore
    console: Console
    debug: bool = False


def setup_logging(
    verbose: bool = False, quiet: bool = False, debug: bool = False
) -> None:
    """Configure logging based on CLI flags."""
    if quiet:
        level = logging.WARNING
    elif verbose or debug:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s"
        if not debug
        else "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_console(no_color: bool = False, width: int | None = None) -> Console:
    """Create Rich console with appropriate settings."""
    return Console(
        no_color=no_color,
        width=width or 120,
        highlight=not no_color,
        color_system=None if no_color else "auto",
    )


class SiteContentGroup(click.Group):
    """Custom group that reports errors and handles KeyboardInterrupt."""

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except KeyboardInterrupt:
            console = getattr(ctx.obj, "console", None) if ctx.obj else None
            if console:
                console.print("[yellow]Interrupted[/yellow]")
            ctx.exit(130)
        except (click.ClickException, click.Abort, Exit, SystemExit):
            raise
        except Exception as e:
            debug = getattr(ctx.obj, "debug", False) if ctx.obj else False
            if debug:
                raise
            console = getattr(ctx.obj, "console", None) if ctx.obj else None
            if console:
                console.print(f"[red]Error:[/red] {e}")
            else:
                click.echo(f"Error: {e}", err=True)
            ctx.exit(1)


@click.group(cls=SiteContentGroup)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-error output")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.option("--debug", is_flag=True, help="Enable debug mode with full tracebacks")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
@click.option(
    "--data-dir",
    "-d",
    type=click.Path(path_type=Path),
    help="Override local data directory",
)
@click.option(
    "--driver",
    type=click.Choice(["github", "blob", "filesystem", "sqlite", "memory"]),
    help="Override storage driver",
)
@click.version_option(
    version=__version__,
    prog_name="sitecontent",
    message="sitecontent version %(version)s",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    no_color: bool,
    debug: bool,
    config: Path | None,
    data_dir: Path | None,
    driver: str | None,
) -> None:
    """Site content storage tool.

    Reads and writes the content collections of a site through the
    configured storage backend, and migrates legacy content.
    """
    setup_logging(verbose=verbose, quiet=quiet, debug=debug)
    console = create_console(no_color=no_color)

    try:
        storage_config = load_config(config)
        overrides = {}
        if data_dir:
            overrides["data_dir"] = str(data_dir)
        if driver:
            overrides["driver"] = driver
        if overrides:
            storage_config = msgspec.structs.replace(storage_config, **overrides)

        store = ContentStore.from_config(storage_config)
    except Exception as e:
        if debug:
            raise
        console.print(f"[red]Error initializing storage:[/red] {e}")
        ctx.exit(1)

    ctx.call_on_close(store.close)
    ctx.obj = Context(store=store, console=console, debug=debug)


# Command: info
@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def info(ctx: click.Context, as_json: bool) -> None:
    """Show the selected storage driver."""
    console = ctx.obj.console
    details = ctx.obj.store.describe()

    if as_json:
        console.print_json(msgspec.json.encode(details).decode())
        return

    table = Table(title="Storage", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for name, value in details.items():
        if name == "warnings":
            continue
        table.add_row(name, str(value))
    console.print(table)

    for warning in details["warnings"]:
        console.print(f"[yellow]Warning:[/yellow] {warning}")


cli.add_command(content.content)
cli.add_command(body.body)
cli.add_command(migrate.migrate)


def main() -> None:
    """Main entry point for the CLI application."""
    try:
        cli()
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
