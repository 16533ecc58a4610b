"""Body artifact CLI commands."""

import click

from sitecontent.cli.commands.content import COLLECTION_KEYS, get_store
from sitecontent.cli.output import print_success
from sitecontent.storage.bodies import excerpt


@click.group()
def body():
    """Read and write externalized record bodies."""
    pass


# Command: get
@body.command(name="get")
@click.argument("key", type=COLLECTION_KEYS)
@click.argument("record_id")
@click.option("--excerpt", "as_excerpt", is_flag=True, help="Show a plain-text excerpt")
@click.pass_context
def get_body(ctx: click.Context, key: str, record_id: str, as_excerpt: bool) -> None:
    """Print the HTML body of a record."""
    html = get_store(ctx).read_body(key, record_id)
    if not html:
        ctx.obj.console.print(f"[yellow]No body stored for {key}/{record_id}[/yellow]")
        return
    click.echo(excerpt(html) if as_excerpt else html)


# Command: put
@body.command(name="put")
@click.argument("key", type=COLLECTION_KEYS)
@click.argument("record_id")
@click.argument("source", type=click.File("r", encoding="utf-8"))
@click.pass_context
def put_body(ctx: click.Context, key: str, record_id: str, source) -> None:
    """Store the HTML body of a record from SOURCE ('-' for stdin)."""
    console = ctx.obj.console
    result = get_store(ctx).write_body(key, record_id, source.read())
    if not result.success:
        console.print(f"[red]Error ({result.error}):[/red] {result.message}")
        ctx.exit(1)
    print_success(console, f"Stored body as {result.message}")


# Command: rm
@body.command(name="rm")
@click.argument("key", type=COLLECTION_KEYS)
@click.argument("record_id")
@click.pass_context
def remove_body(ctx: click.Context, key: str, record_id: str) -> None:
    """Delete the HTML body of a record."""
    console = ctx.obj.console
    result = get_store(ctx).delete_body(key, record_id)
    if not result.success:
        console.print(f"[red]Error ({result.error}):[/red] {result.message}")
        ctx.exit(1)
    print_success(console, result.message)
