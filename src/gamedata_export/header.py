"""Header row decoding — ``keyName:keyType[:array]`` cells into ColumnSpecs."""

from __future__ import annotations

import re
from collections.abc import Sequence

from openpyxl.utils import get_column_letter

from gamedata_export.errors import MalformedHeaderError
from gamedata_export.models import ColumnSpec, KeyType

_TOKEN_SPLIT_RE = re.compile(r"[: ]")
_KNOWN_TYPES = ", ".join(t.value for t in KeyType)


def parse_column_spec(text: object) -> ColumnSpec:
    """Decode one header cell.

    The text is split on ``:`` and spaces (empty tokens are ignored). The first
    token is the key name, the second the case-insensitive key type; any third
    token marks the column as an embedded JSON array.

    Raises
    ------
    MalformedHeaderError
        If the cell is empty, has fewer than two tokens, or names an unknown
        type.
    """
    if text is None:
        raise MalformedHeaderError("empty header cell")
    tokens = [tok for tok in _TOKEN_SPLIT_RE.split(str(text).strip()) if tok]
    if len(tokens) < 2:
        raise MalformedHeaderError(
            f"header {str(text)!r} must look like name:type or name:type:array"
        )
    try:
        key_type = KeyType(tokens[1].lower())
    except ValueError:
        raise MalformedHeaderError(
            f"header {str(text)!r} has unknown type {tokens[1]!r} (expected {_KNOWN_TYPES})"
        ) from None
    return ColumnSpec(key_name=tokens[0], key_type=key_type, is_array=len(tokens) > 2)


def parse_header_row(
    cells: Sequence[object], *, sheet: str, row: int, first_col: int = 1
) -> list[ColumnSpec]:
    """Decode every header cell of a sheet, one ColumnSpec per column index."""
    specs: list[ColumnSpec] = []
    for offset, cell in enumerate(cells):
        try:
            specs.append(parse_column_spec(cell))
        except MalformedHeaderError as exc:
            coord = f"{get_column_letter(first_col + offset)}{row}"
            raise MalformedHeaderError(f"{sheet}!{coord}: {exc}") from exc
    return specs
