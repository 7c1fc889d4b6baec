"""Export driver: tables x sheets, one JSON document per table."""

from __future__ import annotations

import io
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TextIO

from gamedata_export import ID_COLUMN
from gamedata_export.emitter import RecordEmitter
from gamedata_export.header import parse_header_row
from gamedata_export.io import open_output, open_workbook, read_sheet, sheet_marker
from gamedata_export.models import ExportConfig, Schema, SheetData, Table, TableReport
from gamedata_export.projector import cell_text, project_rows
from gamedata_export.schema import missing_columns, select_columns


def marker_name(table: Table) -> str:
    """Origin-cell text that marks a sheet as the source of *table*."""
    return f"{table.name}.json"


@contextmanager
def _output_stream(config: ExportConfig, table: Table) -> Iterator[TextIO]:
    if config.dry_run:
        yield io.StringIO()
        return
    with open_output(config.output_path(table)) as fh:
        yield fh


def _project_sheet(
    table: Table, sheet: SheetData, emitter: RecordEmitter, config: ExportConfig
) -> tuple[int, int, list[str]]:
    specs = parse_header_row(
        sheet.header, sheet=sheet.title, row=sheet.header_row, first_col=sheet.first_col
    )
    selected = select_columns(table, specs)

    warnings: list[str] = []
    absent = missing_columns(table, specs)
    if absent:
        warnings.append(f"Schema columns not found in sheet {sheet.title!r}: {', '.join(absent)}")
    chosen = [spec.key_name for spec, keep in zip(specs, selected) if keep]
    if ID_COLUMN not in chosen:
        warnings.append(f"No {ID_COLUMN!r} column selected; no records exported")
    elif chosen[0] != ID_COLUMN:
        skipped = chosen[: chosen.index(ID_COLUMN)]
        warnings.append(
            f"Columns left of {ID_COLUMN!r} are never exported: {', '.join(skipped)}"
        )

    stats = project_rows(
        sheet.rows,
        specs,
        selected,
        emitter,
        sheet=sheet.title,
        first_row=sheet.data_row,
        first_col=sheet.first_col,
        max_depth=config.max_depth,
    )
    return stats.rows_in, stats.records_out, warnings


def export_table(table: Table, config: ExportConfig) -> TableReport:
    """Export one table from its workbook and return the per-table report.

    The first worksheet whose origin cell reads ``<Table>.json`` is projected;
    when none does the output document is ``{}``. Any :class:`ExportError`
    propagates and leaves no output file for this table behind.
    """
    workbook_path = config.workbook_path(table)
    output_path = config.output_path(table)
    expected = marker_name(table)
    warnings: list[str] = []
    rows_in = records_out = 0
    sheet_title = ""

    with open_workbook(workbook_path) as wb:
        matches = [ws for ws in wb.worksheets if cell_text(sheet_marker(ws)).strip() == expected]
        if not matches:
            warnings.append(f"No sheet in {workbook_path.name} is marked {expected!r}")
        elif len(matches) > 1:
            ignored = ", ".join(repr(ws.title) for ws in matches[1:])
            warnings.append(f"Several sheets are marked {expected!r}; ignored {ignored}")

        with _output_stream(config, table) as stream:
            emitter = RecordEmitter(stream, escaping=config.escaping)
            emitter.begin()
            if matches:
                sheet = read_sheet(matches[0])
                sheet_title = sheet.title
                rows_in, records_out, sheet_warnings = _project_sheet(
                    table, sheet, emitter, config
                )
                warnings.extend(sheet_warnings)
            emitter.finish()

    if emitter.duplicate_ids:
        dupes = ", ".join(sorted(set(emitter.duplicate_ids)))
        warnings.append(f"Duplicate Id values (last one wins when loaded): {dupes}")

    return TableReport(
        table=table.name,
        sheet=sheet_title,
        workbook=str(workbook_path),
        output="" if config.dry_run else str(output_path),
        rows_in=rows_in,
        records_out=records_out,
        dropped_rows=rows_in - records_out,
        warnings=warnings,
    )


def export_schema(
    schema: Schema,
    config: ExportConfig,
    *,
    on_table: Callable[[Table], None] | None = None,
    on_report: Callable[[TableReport], None] | None = None,
) -> list[TableReport]:
    """Export every table in schema order; stops at the first error.

    *on_table* is called before a table starts and *on_report* once its
    output is complete, so callers can report progress as it happens.
    """
    reports: list[TableReport] = []
    for table in schema.tables:
        if on_table is not None:
            on_table(table)
        report = export_table(table, config)
        reports.append(report)
        if on_report is not None:
            on_report(report)
    return reports
