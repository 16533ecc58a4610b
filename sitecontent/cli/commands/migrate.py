"""Legacy migration CLI commands."""

import click
from rich.table import Table

from sitecontent.cli.commands.content import COLLECTION_KEYS, get_store
from sitecontent.cli.output import print_json
from sitecontent.storage.migrations import CONFLICT, ERROR, SUCCESS, MigrationState

STATUS_STYLES = {
    SUCCESS: "green",
    CONFLICT: "yellow",
    ERROR: "red",
}


@click.group()
def migrate():
    """Migrate legacy content into per-collection storage."""
    pass


# Command: status
@migrate.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def status(ctx: click.Context, as_json: bool) -> None:
    """Show whether the legacy document still needs migrating."""
    console = ctx.obj.console
    report = get_store(ctx).migration_status()

    if as_json:
        print_json(console, report.to_dict())
        return

    style = "yellow" if report.state is MigrationState.NEEDED else "green"
    recommendation = f"[{style}]{report.recommendation}[/{style}]"
    console.print(f"\n[bold]Migration:[/bold] {recommendation}")
    if report.legacy_keys:
        console.print(f"Legacy keys: {', '.join(report.legacy_keys)}")

    table = Table(title="Collections")
    table.add_column("Collection", style="cyan")
    table.add_column("Exists", justify="center")
    table.add_column("Items", justify="right")
    for key, details in report.collections.items():
        table.add_row(
            key,
            "✓" if details.get("exists") else "",
            str(details.get("item_count", "")),
        )
    console.print(table)


# Command: run
@migrate.command()
@click.option(
    "--workers", "-w", type=int, default=1, help="Collections migrated in parallel"
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def run(ctx: click.Context, workers: int, as_json: bool) -> None:
    """Copy legacy collections to their own artifacts."""
    console = ctx.obj.console
    store = get_store(ctx)
    store.migrations.max_workers = max(1, workers)
    summary = store.run_migration()

    if as_json:
        print_json(console, summary.to_dict())
    elif not summary.results:
        console.print("[green]Migration not needed[/green]")
    else:
        table = Table(title="Migration")
        table.add_column("Legacy key", style="cyan")
        table.add_column("Collection")
        table.add_column("Status")
        table.add_column("Items", justify="right")
        table.add_column("Details", style="dim")
        for result in summary.results:
            style = STATUS_STYLES.get(result.status, "dim")
            table.add_row(
                result.legacy_key,
                result.collection or "",
                f"[{style}]{result.status}[/{style}]",
                str(result.item_count),
                result.reason or "",
            )
        console.print(table)

    if summary.failed:
        ctx.exit(1)


# Command: bodies
@migrate.command()
@click.option(
    "--key",
    "-k",
    "keys",
    multiple=True,
    type=COLLECTION_KEYS,
    help="Limit to collection",
)
@click.pass_context
def bodies(ctx: click.Context, keys: tuple[str, ...]) -> None:
    """Move inline record bodies into content files."""
    console = ctx.obj.console
    counts = get_store(ctx).repository.externalize_bodies(keys or None)
    for key, count in counts.items():
        console.print(f"{key}: {count} bodies externalized")
