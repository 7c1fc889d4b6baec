"""CLI entry point for gamedata-export."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table as RichTable

from gamedata_export import DEFAULT_MAX_DEPTH, OUTPUT_PREFIX, __version__
from gamedata_export.errors import ExportError
from gamedata_export.exporter import export_schema
from gamedata_export.io import load_schema
from gamedata_export.manifest import build_manifest, utcnow_iso, write_manifest
from gamedata_export.models import Escaping, ExportConfig, Table, TableReport

app = typer.Typer(
    name="gdexport",
    help="gamedata-export — Turn game-design spreadsheets into runtime JSON tables.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {escape(msg)}")


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"gamedata-export v{__version__}")
        raise typer.Exit()


def _build_config(**options: object) -> ExportConfig:
    try:
        return ExportConfig(**options)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        _err(str(exc))
        raise typer.Exit(code=2)


def _print_report(report: TableReport, echo: Callable[..., None]) -> None:
    sheet = report.sheet or "-"
    echo(
        f"  {report.table}: sheet {sheet}, {report.records_out} records "
        f"({report.dropped_rows} rows dropped)"
    )
    for w in report.warnings:
        echo(f"  [yellow]![/yellow] {escape(w)}")
    if report.output:
        echo(f"  Output -> {report.output}")


def _summary_table(reports: list[TableReport]) -> RichTable:
    tbl = RichTable(title="Validation Summary", show_lines=True)
    tbl.add_column("Table", style="bold")
    tbl.add_column("Sheet")
    tbl.add_column("Rows", justify="right")
    tbl.add_column("Records", justify="right")
    tbl.add_column("Warnings")
    for report in reports:
        warnings = "\n".join(escape(w) for w in report.warnings) or "[green]none[/green]"
        tbl.add_row(
            report.table,
            report.sheet or "[yellow]-[/yellow]",
            str(report.rows_in),
            str(report.records_out),
            warnings,
        )
    return tbl


def _run(config: ExportConfig, *, quiet: bool, manifest: Path | None) -> list[TableReport]:
    """Load the schema and export every table; exits non-zero on the first failure."""
    echo = _printer(quiet)
    created_at = utcnow_iso()
    reports: list[TableReport] = []

    def _fail(message: str, code: int) -> typer.Exit:
        _err(message)
        if manifest is not None:
            failed = build_manifest(config, reports, created_at=created_at, error_message=message)
            console.print(f"  Manifest -> {write_manifest(manifest, failed)}")
        return typer.Exit(code=code)

    def _on_table(table: Table) -> None:
        echo(f"[blue]>[/blue] Exporting {table.name} …")

    def _on_report(report: TableReport) -> None:
        reports.append(report)
        _print_report(report, echo)

    # ── Schema ───────────────────────────────────────────────────
    echo("[blue]>[/blue] Loading schema …")
    try:
        schema = load_schema(config.schema_path)
    except ExportError as exc:
        raise _fail(str(exc), 2)
    echo(f"  {len(schema.tables)} tables declared in {config.schema_path}")

    # ── Tables ───────────────────────────────────────────────────
    try:
        export_schema(schema, config, on_table=_on_table, on_report=_on_report)
    except ExportError as exc:
        raise _fail(str(exc), 2)
    except Exception as exc:
        raise _fail(f"Unexpected internal error: {exc}", 1)

    if manifest is not None:
        path = write_manifest(manifest, build_manifest(config, reports, created_at=created_at))
        echo(f"  Manifest -> {path}")
    return reports


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """gamedata-export CLI."""


# ── export command ───────────────────────────────────────────────


@app.command()
def export(
    schema_dir: Path = typer.Option(
        Path("."), "--schema-dir", "-s",
        help="Directory containing schema.json.",
    ),
    excel_dir: Path = typer.Option(
        Path("."), "--excel-dir", "-e",
        help="Directory containing one <Table>.xlsx workbook per table.",
    ),
    json_dir: Path = typer.Option(
        Path("."), "--json-dir", "-j",
        help="Output directory for the exported JSON files.",
    ),
    prefix: str = typer.Option(
        OUTPUT_PREFIX, "--prefix",
        help="File name prefix for outputs: <prefix><Table>.json.",
    ),
    max_depth: int = typer.Option(
        DEFAULT_MAX_DEPTH, "--max-depth",
        help="Maximum nesting depth of JSON embedded in array cells.",
    ),
    escaping: Escaping = typer.Option(
        Escaping.relaxed, "--escaping",
        help="Text escaping: relaxed keeps non-ASCII text, strict escapes it.",
    ),
    manifest: Path | None = typer.Option(
        None, "--manifest",
        help="Also write a JSON run manifest to this path.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; errors are still shown.",
    ),
) -> None:
    """Export every table declared in schema.json to JSON."""
    config = _build_config(
        schema_dir=schema_dir,
        excel_dir=excel_dir,
        json_dir=json_dir,
        output_prefix=prefix,
        max_depth=max_depth,
        escaping=escaping,
    )
    if not quiet:
        console.print(Panel(
            f"[bold]gamedata-export[/bold] v{__version__}\n"
            f"Schema: {config.schema_path}\nExcel:  {excel_dir}\nOutput: {json_dir}",
            title="Export Start", border_style="blue",
        ))

    reports = _run(config, quiet=quiet, manifest=manifest)

    if not quiet:
        total = sum(r.records_out for r in reports)
        console.print(Panel(
            f"[green]Done[/green] — {len(reports)} tables, {total} records -> {json_dir}",
            title="Export Complete", border_style="green",
        ))
    console.print("[yellow]Export Success![/yellow]")


# ── validate command ─────────────────────────────────────────────


@app.command()
def validate(
    schema_dir: Path = typer.Option(
        Path("."), "--schema-dir", "-s",
        help="Directory containing schema.json.",
    ),
    excel_dir: Path = typer.Option(
        Path("."), "--excel-dir", "-e",
        help="Directory containing one <Table>.xlsx workbook per table.",
    ),
    max_depth: int = typer.Option(
        DEFAULT_MAX_DEPTH, "--max-depth",
        help="Maximum nesting depth of JSON embedded in array cells.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress the summary table; errors are still shown.",
    ),
) -> None:
    """Check every table converts cleanly without writing any output.

    Exit 0 = OK, exit 2 = bad schema or sheet data.
    """
    config = _build_config(
        schema_dir=schema_dir,
        excel_dir=excel_dir,
        max_depth=max_depth,
        dry_run=True,
    )
    if not quiet:
        console.print(Panel(
            f"[bold]gamedata-export[/bold] v{__version__}  [dim]validate mode[/dim]\n"
            f"Schema: {config.schema_path}\nExcel:  {excel_dir}",
            title="Validate", border_style="cyan",
        ))

    reports = _run(config, quiet=quiet, manifest=None)

    if not quiet:
        console.print(_summary_table(reports))
    console.print("[green]PASS[/green]")
