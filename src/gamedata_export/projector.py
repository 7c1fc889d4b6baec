"""Row projector — group data rows into Id-keyed records and coerce cells."""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any

from openpyxl.utils import get_column_letter

from gamedata_export import DEFAULT_MAX_DEPTH, ID_COLUMN
from gamedata_export.embedded import parse_embedded_json
from gamedata_export.emitter import RecordEmitter
from gamedata_export.errors import ArrayParseError, CoercionError
from gamedata_export.models import ColumnSpec, KeyType

# ── Cell coercion ───────────────────────────────────────────────


def cell_text(value: object) -> str:
    """Render a raw cell value as text; empty cells become ``""``."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


def _to_string(value: object) -> str:
    return cell_text(value)


def _to_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        token = value.strip().lower()
        if token == "true":
            return True
        if token == "false":
            return False
    raise CoercionError(f"{value!r} is not a boolean")


def _to_float(value: object) -> float:
    if isinstance(value, bool) or value is None:
        raise CoercionError(f"{value!r} is not a number")
    if isinstance(value, (int, float)):
        result = float(value)
    elif isinstance(value, str):
        try:
            result = float(value.strip())
        except ValueError:
            raise CoercionError(f"{value!r} is not a number") from None
    else:
        raise CoercionError(f"{value!r} is not a number")
    if not math.isfinite(result):
        raise CoercionError(f"{value!r} is not a finite number")
    return result


def _to_int(value: object) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    result = _to_float(value)
    if not result.is_integer():
        raise CoercionError(f"{value!r} is not a whole number")
    return int(result)


_COERCERS: dict[KeyType, Callable[[object], Any]] = {
    KeyType.string: _to_string,
    KeyType.bool: _to_bool,
    KeyType.int: _to_int,
    KeyType.float: _to_float,
}


def coerce_cell(value: object, key_type: KeyType) -> Any:
    """Convert a raw cell value to the Python value written for *key_type*.

    Raises
    ------
    CoercionError
        If the value cannot be read as *key_type*. ``string`` never fails.
    """
    return _COERCERS[KeyType(key_type)](value)


# ── Projection ──────────────────────────────────────────────────


@dataclass
class ProjectionStats:
    rows_in: int = 0
    records_out: int = 0


def project_rows(
    rows: Iterable[Sequence[object]],
    specs: Sequence[ColumnSpec],
    selected: Sequence[bool],
    emitter: RecordEmitter,
    *,
    sheet: str,
    first_row: int,
    first_col: int = 1,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> ProjectionStats:
    """Stream every data row through *emitter* as an Id-keyed record.

    Each row is scanned left to right. Nothing is written until the selected
    ``Id`` column opens a record, so selected columns to the left of ``Id``
    never reach the output. A row whose Id is empty is dropped as soon as the
    Id column is reached. ``first_row``/``first_col`` are the sheet
    coordinates of the first data cell, used only in error messages.
    """
    stats = ProjectionStats()
    for offset, row in enumerate(rows):
        stats.rows_in += 1
        row_number = first_row + offset
        in_record = False
        for index, spec in enumerate(specs):
            if not selected[index]:
                continue
            value = row[index] if index < len(row) else None

            if spec.key_name == ID_COLUMN:
                record_id = cell_text(value).strip()
                if not record_id:
                    break
                emitter.open_record(record_id)
                in_record = True
                stats.records_out += 1
                continue

            if not in_record:
                continue

            coord = f"{sheet}!{get_column_letter(first_col + index)}{row_number}"
            if spec.is_array:
                text = cell_text(value).strip()
                if not text:
                    continue
                try:
                    parsed = parse_embedded_json(text, max_depth=max_depth)
                except ArrayParseError as exc:
                    raise ArrayParseError(f"{coord} ({spec.key_name}): {exc}") from exc
                emitter.write_fragment(spec.key_name, parsed)
                continue

            try:
                coerced = coerce_cell(value, spec.key_type)
            except CoercionError as exc:
                raise CoercionError(
                    f"{coord} ({spec.key_name}:{spec.key_type.value}): {exc}"
                ) from exc
            emitter.write_field(spec, coerced)

        if in_record:
            emitter.close_record()
    return stats
