"""Rich-powered table rendering for SD records and summaries."""
from __future__ import annotations

from typing import Any, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..reader.sdf_reader import SDFRecord

_console = Console()

BASE_COLUMNS = ["#", "line", "variant", "title", "atoms", "bonds"]


def record_row(record: SDFRecord, fields: Sequence[str]) -> list[str]:
    """Table cells for one record: base columns followed by the requested data items."""
    s = record.structure
    if s is None:
        cells = [str(record.index), str(record.start_line), str(record.variant),
                 f"[red]failed: {escape(record.error or '')}[/red]", "-", "-"]
    else:
        cells = [str(record.index), str(record.start_line), str(record.variant),
                 escape(s.title), str(s.atom_count), str(s.bond_count)]
    return cells + [escape(record.properties.get(f, "")) for f in fields]


def print_records_table(
    records: list[SDFRecord],
    fields: Sequence[str] = (),
    title: str = "Records",
    max_rows: int = 100,
) -> None:
    """Render records as a Rich table.

    Args:
        records:   Records to display; failed records are shown in red.
        fields:    Data item names to add as columns.
        title:     Table title shown in the header.
        max_rows:  Hard cap — large files are truncated with a notice.
    """
    if not records:
        _console.print("[yellow]No records to display.[/yellow]")
        return

    table = Table(title=title, box=box.ROUNDED, show_lines=False)
    for col in [*BASE_COLUMNS, *fields]:
        justify = "right" if col in ("#", "line", "atoms", "bonds") else "left"
        table.add_column(col, overflow="fold", max_width=60, justify=justify)

    for record in records[:max_rows]:
        table.add_row(*record_row(record, fields))

    _console.print(table)
    if len(records) > max_rows:
        _console.print(
            f"[dim]... and {len(records) - max_rows} more rows (use --limit to adjust)[/dim]"
        )


def print_counter_table(
    counts: list[tuple[str, int]],
    title: str = "Top values",
    value_col: str = "Value",
    count_col: str = "Count",
) -> None:
    """Render a PropertyCounter.top() result as a Rich table."""
    table = Table(title=title, box=box.SIMPLE_HEAVY)
    table.add_column("#", style="dim", width=4)
    table.add_column(value_col)
    table.add_column(count_col, justify="right", style="cyan")

    for rank, (value, count) in enumerate(counts, start=1):
        table.add_row(str(rank), escape(value), str(count))

    _console.print(table)


def print_summary(summary: dict[str, Any], title: str = "Summary") -> None:
    """Render the output of aggregators.summary.summarize()."""
    table = Table(title=title, box=box.MINIMAL_DOUBLE_HEAD)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right", style="cyan")

    table.add_row("records", str(summary["records"]))
    failed_style = "red" if summary["failed"] else "cyan"
    table.add_row("failed", f"[{failed_style}]{summary['failed']}[/{failed_style}]")
    table.add_row("lines", str(summary["lines"]))
    table.add_row("mean atoms", f"{summary['mean_atoms']:.2f}")
    for variant, count in sorted(summary["variants"].items()):
        table.add_row(f"variant {variant}", str(count))
    if summary.get("fatal"):
        table.add_row("[bold red]ended with read error[/bold red]", "yes")

    _console.print(table)
