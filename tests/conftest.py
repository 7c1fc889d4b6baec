from __future__ import annotations

import json
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pytest
from openpyxl import Workbook

SheetRows = Sequence[Sequence[Any]]


def _write_workbook(path: Path, sheets: dict[str, SheetRows]) -> Path:
    wb = Workbook()
    wb.remove(wb.active)
    for title, rows in sheets.items():
        ws = wb.create_sheet(title)
        for row in rows:
            ws.append(list(row))
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(path)
    return path


@pytest.fixture
def make_workbook(tmp_path: Path) -> Callable[..., Path]:
    """Build ``<tmp>/excel/<name>.xlsx`` from ``{sheet_title: rows}``."""

    def _make(name: str, sheets: dict[str, SheetRows]) -> Path:
        return _write_workbook(tmp_path / "excel" / f"{name}.xlsx", sheets)

    return _make


@pytest.fixture
def make_schema(tmp_path: Path) -> Callable[..., Path]:
    """Write ``<tmp>/schema/schema.json`` for ``{table: [columns]}``."""

    def _make(tables: dict[str, list[str]]) -> Path:
        path = tmp_path / "schema" / "schema.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"tables": [{"name": n, "columns": c} for n, c in tables.items()]}
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return _make

