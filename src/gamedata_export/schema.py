"""Decide which header columns a table exports."""

from __future__ import annotations

from collections.abc import Sequence

from gamedata_export.errors import MalformedHeaderError
from gamedata_export.models import ColumnSpec, Table


def select_columns(table: Table, specs: Sequence[ColumnSpec]) -> list[bool]:
    """Return one flag per column index: is its key name in ``table.columns``?

    Raises
    ------
    MalformedHeaderError
        If two selected columns share a key name.
    """
    selected = [spec.key_name in table.columns for spec in specs]
    seen: set[str] = set()
    for spec, keep in zip(specs, selected):
        if not keep:
            continue
        if spec.key_name in seen:
            raise MalformedHeaderError(
                f"column {spec.key_name!r} appears more than once in the {table.name} header"
            )
        seen.add(spec.key_name)
    return selected


def missing_columns(table: Table, specs: Sequence[ColumnSpec]) -> list[str]:
    """Schema columns that no header cell declares, sorted."""
    present = {spec.key_name for spec in specs}
    return sorted(table.columns - present)
