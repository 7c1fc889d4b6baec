"""I/O helpers — load the schema and workbooks, write JSON artifacts."""

from __future__ import annotations

import json
import zipfile
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Any, TextIO

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from gamedata_export.errors import ConfigError, ResourceError
from gamedata_export.models import Schema, SheetData

# ── Loading ──────────────────────────────────────────────────────


def load_schema(path: Path) -> Schema:
    """Read ``schema.json`` and return the parsed :class:`Schema`.

    Raises
    ------
    ConfigError
        If *path* is missing, unreadable, not JSON, or not shaped like
        ``{"tables": [{"name": ..., "columns": [...]}]}``.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Schema file not found: {path}")
    if path.is_dir():
        raise ConfigError(f"Schema path is a directory, not a file: {path}")
    try:
        text = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Cannot read schema {path}: {exc}") from exc
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Schema {path} is not valid JSON: {exc}") from exc
    try:
        return Schema.from_dict(data)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Schema {path} is malformed: {exc}") from exc


@contextmanager
def open_workbook(path: Path) -> Iterator[Workbook]:
    """Open an ``.xlsx`` workbook with cached formula values; always closed on exit.

    Raises
    ------
    ResourceError
        If the file is missing or is not a readable workbook.
    """
    path = Path(path)
    if not path.exists():
        raise ResourceError(f"Workbook not found: {path}")
    try:
        wb = load_workbook(path, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        raise ResourceError(f"Cannot open workbook {path}: {exc}") from exc
    try:
        yield wb
    finally:
        wb.close()


def sheet_marker(ws: Worksheet) -> Any:
    """Value of the cell at the origin of the sheet's used range."""
    return ws.cell(row=ws.min_row, column=ws.min_column).value


def read_sheet(ws: Worksheet) -> SheetData:
    """Split the used range of *ws* into marker, header row and data rows.

    Trailing columns with an empty header cell (often left behind by cell
    formatting) are not part of the table.
    """
    first_row, first_col = ws.min_row, ws.min_column
    last_row, last_col = ws.max_row, ws.max_column
    header: list[Any] = []
    if last_row >= first_row + 1:
        header = [
            ws.cell(row=first_row + 1, column=c).value for c in range(first_col, last_col + 1)
        ]
        while header and header[-1] is None:
            header.pop()
        last_col = first_col + len(header) - 1
    rows: list[tuple[Any, ...]] = []
    if header and last_row >= first_row + 2:
        rows = list(
            ws.iter_rows(
                min_row=first_row + 2,
                max_row=last_row,
                min_col=first_col,
                max_col=last_col,
                values_only=True,
            )
        )
    return SheetData(
        title=ws.title,
        first_row=first_row,
        first_col=first_col,
        marker=sheet_marker(ws),
        header=header,
        rows=rows,
    )


# ── Writing ──────────────────────────────────────────────────────


@contextmanager
def open_output(path: Path) -> Iterator[TextIO]:
    """Yield a text stream whose contents replace *path* only on success.

    Data is written to ``<path>.tmp`` and renamed over *path* when the block
    exits cleanly; on error the temp file is removed and *path* is untouched.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        with tmp_path.open("w", encoding="utf-8", newline="\n") as fh:
            yield fh
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    tmp_path.replace(path)


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic + deterministic)."""
    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
        default=_json_default,
    ) + "\n"
    with open_output(path) as fh:
        fh.write(payload)
    return Path(path)
