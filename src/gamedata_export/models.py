"""Data models / typed records used across the package."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from numbers import Integral
from pathlib import Path
from typing import Any

from gamedata_export import DEFAULT_MAX_DEPTH, OUTPUT_PREFIX, SCHEMA_FILENAME


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_string_list(values: Sequence[Any] | None, field_name: str) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return normalized


# ── Column metadata ─────────────────────────────────────────────


class KeyType(str, Enum):
    """Declared value type of a sheet column."""

    string = "string"
    bool = "bool"
    int = "int"
    float = "float"


class Escaping(str, Enum):
    """How the JSON writer escapes text.

    ``relaxed`` keeps non-ASCII characters as-is so exported strings stay close
    to what designers typed; ``strict`` escapes everything outside ASCII.
    """

    relaxed = "relaxed"
    strict = "strict"


@dataclass(frozen=True)
class ColumnSpec:
    """Decoded ``keyName:keyType[:array]`` header cell."""

    key_name: str
    key_type: KeyType
    is_array: bool = False


# ── Schema ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class Table:
    """One exported table and the allow-list of columns it exports."""

    name: str
    columns: frozenset[str] = frozenset()

    @classmethod
    def from_dict(cls, data: Any) -> Table:
        if not isinstance(data, Mapping):
            raise TypeError("table entries must be objects")
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValueError("table name must be a non-empty string")
        columns = _to_string_list(data.get("columns"), f"columns of table {name!r}")
        return cls(name=name.strip(), columns=frozenset(columns))


@dataclass(frozen=True)
class Schema:
    """Ordered table declarations, loaded once per run."""

    tables: tuple[Table, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> Schema:
        if not isinstance(data, Mapping):
            raise TypeError("schema root must be an object")
        tables = data.get("tables")
        if tables is None or isinstance(tables, (str, Mapping)) or not isinstance(tables, Sequence):
            raise TypeError("schema 'tables' must be a list")
        return cls(tables=tuple(Table.from_dict(item) for item in tables))


# ── Sheet contents ──────────────────────────────────────────────


@dataclass
class SheetData:
    """Used range of one worksheet, split into marker, header and data rows.

    ``first_row``/``first_col`` are the 1-based origin of the used range; the
    header lives on ``first_row + 1`` and data starts on ``first_row + 2``.
    """

    title: str
    first_row: int
    first_col: int
    marker: Any = None
    header: list[Any] = field(default_factory=list)
    rows: list[tuple[Any, ...]] = field(default_factory=list)

    @property
    def header_row(self) -> int:
        return self.first_row + 1

    @property
    def data_row(self) -> int:
        return self.first_row + 2


# ── Run configuration ───────────────────────────────────────────


@dataclass(frozen=True)
class ExportConfig:
    """Everything one export run needs; built once from CLI options."""

    schema_dir: Path = Path(".")
    excel_dir: Path = Path(".")
    json_dir: Path = Path(".")
    output_prefix: str = OUTPUT_PREFIX
    max_depth: int = DEFAULT_MAX_DEPTH
    escaping: Escaping = Escaping.relaxed
    dry_run: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.max_depth, bool) or not isinstance(self.max_depth, int):
            raise TypeError("max_depth must be an integer")
        if self.max_depth < 1:
            raise ValueError("max_depth must be >= 1")
        if "/" in self.output_prefix or "\\" in self.output_prefix:
            raise ValueError("output_prefix must not contain path separators")

    @property
    def schema_path(self) -> Path:
        return Path(self.schema_dir) / SCHEMA_FILENAME

    def workbook_path(self, table: Table) -> Path:
        return Path(self.excel_dir) / f"{table.name}.xlsx"

    def output_path(self, table: Table) -> Path:
        return Path(self.json_dir) / f"{self.output_prefix}{table.name}.json"


# ── Reports ─────────────────────────────────────────────────────


@dataclass
class TableReport:
    """Per-table export report.

    Contract invariant: ``dropped_rows == rows_in - records_out``.
    """

    table: str
    sheet: str = ""
    workbook: str = ""
    output: str = ""
    rows_in: int = 0
    records_out: int = 0
    dropped_rows: int = 0
    warnings: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.rows_in = _to_non_negative_int(self.rows_in, "rows_in")
        self.records_out = _to_non_negative_int(self.records_out, "records_out")
        self.dropped_rows = _to_non_negative_int(self.dropped_rows, "dropped_rows")
        self.warnings = _to_string_list(self.warnings, "warnings")
        if self.records_out > self.rows_in:
            raise ValueError("records_out must be <= rows_in")
        if self.dropped_rows != self.rows_in - self.records_out:
            raise ValueError("dropped_rows must equal rows_in - records_out")

    def to_dict(self) -> dict[str, Any]:
        return {
            "table": self.table,
            "sheet": self.sheet,
            "workbook": self.workbook,
            "output": self.output,
            "rows_in": self.rows_in,
            "records_out": self.records_out,
            "dropped_rows": self.dropped_rows,
            "warnings": list(self.warnings),
        }


@dataclass
class ExportManifest:
    """Audit-trail manifest for a single export run."""

    tool: str = "gamedata-export"
    version: str = ""
    schema_path: str = ""
    output_dir: str = ""
    created_at_utc: str = ""
    status: str = "success"
    error_message: str = ""
    tables: list[dict[str, Any]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.status not in {"success", "failed"}:
            raise ValueError("status must be 'success' or 'failed'")

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "version": self.version,
            "schema_path": self.schema_path,
            "output_dir": self.output_dir,
            "created_at_utc": self.created_at_utc,
            "status": self.status,
            "error_message": self.error_message,
            "tables": [dict(entry) for entry in self.tables],
        }
