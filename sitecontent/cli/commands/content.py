"""Content collection CLI commands."""

import click
import msgspec
from rich.table import Table

from sitecontent.cli.output import (
    print_json,
    print_success,
    record_title,
    records_table,
)
from sitecontent.core.models import COLLECTIONS, get_collection

COLLECTION_KEYS = click.Choice(sorted(COLLECTIONS))


def get_store(ctx):
    """Get the content store from context."""
    return ctx.obj.store


def _parse_fields(fields: tuple[str, ...]) -> dict[str, str]:
    parsed = {}
    for item in fields:
        name, sep, value = item.partition("=")
        if not sep or not name:
            raise click.BadParameter(f"expected NAME=VALUE, got {item!r}")
        parsed[name] = value
    return parsed


def _decode(data: bytes):
    try:
        return msgspec.json.decode(data)
    except msgspec.DecodeError as e:
        raise click.ClickException(f"Input is not valid JSON: {e}") from e


@click.group()
def content():
    """Read and write content collections."""
    pass


# Command: show
@content.command()
@click.argument("key", type=COLLECTION_KEYS)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def show(ctx: click.Context, key: str, as_json: bool) -> None:
    """Show one collection."""
    console = ctx.obj.console
    value = get_store(ctx).fetch(key)
    spec = get_collection(key)

    if as_json or not spec.is_list:
        print_json(console, value)
        return

    if not value:
        console.print(f"[yellow]No records in {key}[/yellow]")
        return
    console.print(records_table(spec.label, value))


# Command: get
@content.command()
@click.argument("key", type=COLLECTION_KEYS)
@click.argument("record_id")
@click.option("--no-body", is_flag=True, help="Do not load the record body")
@click.pass_context
def get(ctx: click.Context, key: str, record_id: str, no_body: bool) -> None:
    """Show one record, with its body."""
    console = ctx.obj.console
    record = get_store(ctx).repository.get_record(key, record_id, hydrate=not no_body)
    if record is None:
        console.print(f"[red]Record '{record_id}' not found in {key}[/red]")
        ctx.exit(1)
    print_json(console, record)


# Command: save
@content.command()
@click.argument("key", type=COLLECTION_KEYS)
@click.argument("source", type=click.File("rb"))
@click.pass_context
def save(ctx: click.Context, key: str, source) -> None:
    """Replace a whole collection with JSON from SOURCE ('-' for stdin)."""
    console = ctx.obj.console
    value = _decode(source.read())

    result = get_store(ctx).submit(key, value)
    if not result.success:
        console.print(f"[red]Error ({result.error}):[/red] {result.message}")
        ctx.exit(1)
    print_success(console, result.message)


# Command: add
@content.command()
@click.argument("key", type=COLLECTION_KEYS)
@click.option("--title", "-t", help="Record title")
@click.option(
    "--field", "-f", "fields", multiple=True, help="Extra field as NAME=VALUE"
)
@click.option(
    "--body-file",
    type=click.File("r", encoding="utf-8"),
    help="HTML body stored as the record's content file",
)
@click.pass_context
def add(ctx: click.Context, key: str, title: str | None, fields, body_file) -> None:
    """Add a record to a list collection."""
    console = ctx.obj.console
    spec = get_collection(key)

    record = _parse_fields(fields)
    if title:
        record["title"] = title
    if body_file is not None:
        record[spec.body_field or "content"] = body_file.read()

    stored = get_store(ctx).repository.add_record(key, record)
    slug = f" ({stored['slug']})" if stored.get("slug") else ""
    print_success(console, f"Added {stored['id']}{slug} to {key}")


# Command: delete
@content.command()
@click.argument("key", type=COLLECTION_KEYS)
@click.argument("record_id")
@click.pass_context
def delete(ctx: click.Context, key: str, record_id: str) -> None:
    """Delete a record and its content file."""
    console = ctx.obj.console
    if not get_store(ctx).repository.delete_record(key, record_id):
        console.print(f"[yellow]Record '{record_id}' not found in {key}[/yellow]")
        ctx.exit(1)
    print_success(console, f"Deleted {record_id} from {key}")


# Command: reorder
@content.command()
@click.argument("key", type=COLLECTION_KEYS)
@click.argument("record_ids", nargs=-1, required=True)
@click.pass_context
def reorder(ctx: click.Context, key: str, record_ids: tuple[str, ...]) -> None:
    """Put records first, in the given order."""
    console = ctx.obj.console
    records = get_store(ctx).repository.reorder_records(key, list(record_ids))
    console.print(records_table(get_collection(key).label, records))


# Command: search
@content.command()
@click.argument("query")
@click.option(
    "--key",
    "-k",
    "keys",
    multiple=True,
    type=COLLECTION_KEYS,
    help="Limit to collection",
)
@click.option("--limit", "-n", type=int, default=20, help="Maximum results to show")
@click.pass_context
def search(ctx: click.Context, query: str, keys: tuple[str, ...], limit: int) -> None:
    """Search records across collections."""
    console = ctx.obj.console
    hits = get_store(ctx).repository.search(query, keys=keys or None)

    if not hits:
        console.print(f"[yellow]No results for '{query}'[/yellow]")
        return

    table = Table(title=f"Results for '{query}'")
    table.add_column("Collection", style="cyan")
    table.add_column("ID")
    table.add_column("Title")
    table.add_column("Relevance", justify="right")
    for hit in hits[:limit]:
        table.add_row(
            hit.key,
            str(hit.record.get("id", "")),
            record_title(hit.record),
            str(hit.relevance),
        )
    console.print(table)
