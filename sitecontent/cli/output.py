"""CLI output utilities."""

from typing import Any

import msgspec
from rich.console import Console
from rich.table import Table

from sitecontent.core.models import Record


def print_json(console: Console, value: Any) -> None:
    """Print a value as highlighted JSON."""
    console.print_json(msgspec.json.encode(value).decode("utf-8"))


def print_success(console: Console, message: str) -> None:
    console.print(f"[green]✓[/green] {message}")


def record_title(record: Record) -> str:
    """Best human-readable label of a record."""
    return str(record.get("title") or record.get("name") or "")


def records_table(title: str, records: list[Record]) -> Table:
    """Build a table summarizing list records.

    Args:
        title: Table title
        records: Records of one list collection

    Returns:
        Rich table with one row per record
    """
    table = Table(title=title)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Slug", style="magenta")
    table.add_column("Title")
    table.add_column("Order", justify="right")
    table.add_column("Body", justify="center")
    table.add_column("Updated", style="dim")

    for record in records:
        order = record.get("order")
        table.add_row(
            str(record.get("id", "")),
            record.get("slug") or "",
            record_title(record),
            "" if order is None else f"{order:g}",
            "✓" if record.get("content_file") else "",
            record.get("updated_at") or "",
        )
    return table
