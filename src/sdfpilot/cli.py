"""sdfpilot CLI — entry point.

Commands:
    sdfpilot read    <file>   List records (failed ones included unless --skip)
    sdfpilot stats   <file>   Record counts, failures, dialects, top data values
    sdfpilot filter  <file>   List records passing structure filters
"""
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Iterable, Iterator

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from .config import settings
from .errors import StreamReadError
from .reader.sdf_reader import SDFReader, SDFRecord

console = Console()
err_console = Console(stderr=True)

# ── Helpers ─────────────────────────────────────────────────────────────────


def _setup_logging(verbose: int) -> None:
    level = {0: settings.log_level.upper(), 1: "INFO"}.get(verbose, "DEBUG")
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _record_json(record: SDFRecord, fields: list[str]) -> dict[str, Any]:
    s = record.structure
    props = record.properties
    return {
        "index": record.index,
        "start_line": record.start_line,
        "end_line": record.end_line,
        "variant": str(record.variant),
        "ok": s is not None,
        "error": record.error,
        "title": s.title if s is not None else None,
        "atoms": s.atom_count if s is not None else None,
        "bonds": s.bond_count if s is not None else None,
        "properties": {k: props[k] for k in fields if k in props} if fields else props,
    }


def _stream_line(record: SDFRecord) -> str:
    s = record.structure
    head = f"[dim]{record.index:>6} l.{record.start_line:<8}[/dim] {str(record.variant):6}"
    if s is None:
        return f"{head} [red]FAILED[/red] {escape(record.error or '')}"
    return f"{head} [green]{escape(s.title) or '(untitled)'}[/green] atoms={s.atom_count} bonds={s.bond_count}"


def _take(records: Iterable[SDFRecord], limit: int) -> Iterator[SDFRecord]:
    """Yield at most limit records (0 = all) without pulling one past the limit."""
    if limit <= 0:
        yield from records
        return
    for count, record in enumerate(records, start=1):
        yield record
        if count == limit:
            return


def _emit(records: Iterable[SDFRecord], file: Path, output_fmt: str, limit: int, fields: list[str]) -> int:
    """Write records in the chosen format; return how many were shown."""
    from .visualization.tables import print_records_table

    records = _take(records, limit)
    if output_fmt == "table":
        collected = list(records)
        print_records_table(collected, fields=fields, title=file.name, max_rows=limit or 100)
        return len(collected)

    count = 0
    for record in records:
        if output_fmt == "json":
            click.echo(json.dumps(_record_json(record, fields), default=str))
        else:
            console.print(_stream_line(record))
        count += 1
    return count


def _split_fields(fields: str) -> list[str]:
    return [f.strip() for f in fields.split(",") if f.strip()]


_output_option = click.option(
    "--output", "-o", "output_fmt", default="stream",
    type=click.Choice(["table", "stream", "json"], case_sensitive=False),
    help="Output format.",
    show_default=True,
)


# ── CLI root ─────────────────────────────────────────────────────────────────


@click.group()
@click.version_option(version="1.0.0", prog_name="sdfpilot")
@click.option("--verbose", "-v", count=True, help="-v for info, -vv for debug logging.")
def main(verbose: int) -> None:
    """sdfpilot — fault-tolerant SD file reader."""
    _setup_logging(verbose)


# ── read ─────────────────────────────────────────────────────────────────────


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--skip/--no-skip", default=settings.skip_failed, help="Skip records that fail to decode.",
              show_default=True)
@_output_option
@click.option("--limit", "-n", default=0, type=int, help="Max records to display (0 = all).")
@click.option("--fields", default="", help="Comma-separated data items to include.")
def read(file: Path, skip: bool, output_fmt: str, limit: int, fields: str) -> None:
    """List the records of an SD file.

    \b
    Examples:
      sdfpilot read library.sdf
      sdfpilot read library.sdf.gz --skip --output table --fields ID,NAME
      sdfpilot read library.sdf --output json --limit 100
    """
    with SDFReader.open(file, skip=skip, encoding=settings.encoding) as reader:
        try:
            shown = _emit(reader, file, output_fmt, limit, _split_fields(fields))
        except StreamReadError as exc:
            err_console.print(f"[red]Read error in {file}:[/red] {escape(str(exc))}")
            sys.exit(1)
        err_console.print(
            f"[dim]{shown} shown · {reader.records_seen} records read · "
            f"{reader.failed_records} failed · {reader.current_line} lines[/dim]"
        )


# ── stats ────────────────────────────────────────────────────────────────────


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--by", "-b", default="", help="Data item to count values of.")
@click.option("--top", "-t", default=10, type=int, help="Show top N values.", show_default=True)
@click.option("--no-cache", is_flag=True, help="Do not read or write the Redis cache.")
def stats(file: Path, by: str, top: int, no_cache: bool) -> None:
    """Show record counts, failures, dialects and top data item values.

    \b
    Examples:
      sdfpilot stats library.sdf
      sdfpilot stats library.sdf --by SOURCE --top 5
    """
    from .aggregators.summary import summarize
    from .cache.redis_cache import SummaryCache, file_params, make_cache_key
    from .visualization.tables import print_counter_table, print_summary

    cache = None if no_cache else SummaryCache(url=settings.redis_url, ttl=settings.cache_ttl)
    key = make_cache_key(str(file.resolve()), file_params(str(file), by=by, top=top))

    summary = cache.get(key) if cache is not None else None
    if summary is None:
        with SDFReader.open(file, skip=False, encoding=settings.encoding) as reader:
            try:
                summary = summarize(reader, by=by or None, top=top)
            except StreamReadError as exc:
                err_console.print(f"[red]Read error in {file}:[/red] {escape(str(exc))}")
                sys.exit(1)
        if cache is not None:
            cache.set(key, summary)
    else:
        err_console.print("[dim](cached)[/dim]")

    print_summary(summary, title=file.name)
    if by:
        print_counter_table(
            [tuple(pair) for pair in summary["top"]],
            title=f"Top {top} by '{by}'", value_col=by, count_col="Records",
        )


# ── filter ───────────────────────────────────────────────────────────────────


@main.command("filter")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--min-atoms", type=int, default=None)
@click.option("--max-atoms", type=int, default=None)
@click.option("--min-heavy-atoms", type=int, default=None)
@click.option("--max-heavy-atoms", type=int, default=None)
@click.option("--min-bonds", type=int, default=None)
@click.option("--max-bonds", type=int, default=None)
@click.option("--no-pseudo-atoms", is_flag=True, help="Drop structures with R groups, *, A, Q, ...")
@click.option("--has-property", "has_property", multiple=True, help="Require this data item (repeatable).")
@_output_option
@click.option("--limit", "-n", default=0, type=int, help="Max records to display (0 = all).")
@click.option("--fields", default="", help="Comma-separated data items to include.")
def filter_cmd(
    file: Path,
    min_atoms: int | None,
    max_atoms: int | None,
    min_heavy_atoms: int | None,
    max_heavy_atoms: int | None,
    min_bonds: int | None,
    max_bonds: int | None,
    no_pseudo_atoms: bool,
    has_property: tuple[str, ...],
    output_fmt: str,
    limit: int,
    fields: str,
) -> None:
    """List decoded records that pass every given filter.

    \b
    Examples:
      sdfpilot filter library.sdf --max-heavy-atoms 30 --no-pseudo-atoms
      sdfpilot filter library.sdf --has-property ID --output json
    """
    from .search import structure_filters as sf
    from .search.filter_chain import FilterChain

    chain = FilterChain()
    thresholds = [
        (min_atoms, sf.MinAtomCount), (max_atoms, sf.MaxAtomCount),
        (min_heavy_atoms, sf.MinHeavyAtomCount), (max_heavy_atoms, sf.MaxHeavyAtomCount),
        (min_bonds, sf.MinBondCount), (max_bonds, sf.MaxBondCount),
    ]
    try:
        for value, cls in thresholds:
            if value is not None:
                chain.add(cls(value))
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc
    if no_pseudo_atoms:
        chain.add(sf.ContainsNoPseudoAtoms())
    for name in has_property:
        chain.add(sf.HasProperty(name))

    with SDFReader.open(file, skip=True, encoding=settings.encoding) as reader:
        try:
            shown = _emit(chain.apply(reader), file, output_fmt, limit, _split_fields(fields))
        except StreamReadError as exc:
            err_console.print(f"[red]Read error in {file}:[/red] {escape(str(exc))}")
            sys.exit(1)
        err_console.print(
            f"[dim]{shown} of {reader.records_seen} records passed {len(chain)} filters "
            f"({reader.failed_records} failed to decode)[/dim]"
        )


if __name__ == "__main__":
    main()
