"""Parse-and-splice for cells that embed JSON text."""

from __future__ import annotations

import json
from typing import Any

from gamedata_export import DEFAULT_MAX_DEPTH
from gamedata_export.errors import ArrayParseError


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def json_depth(value: Any) -> int:
    """Nesting depth of *value*: scalars are 0, ``[]`` and ``{}`` are 1."""
    deepest = 0
    stack: list[tuple[Any, int]] = [(value, 0)]
    while stack:
        node, depth = stack.pop()
        if isinstance(node, dict):
            children = list(node.values())
        elif isinstance(node, list):
            children = node
        else:
            continue
        depth += 1
        deepest = max(deepest, depth)
        stack.extend((child, depth) for child in children)
    return deepest


def parse_embedded_json(text: str, *, max_depth: int = DEFAULT_MAX_DEPTH) -> Any:
    """Parse *text* as a JSON value no deeper than *max_depth*.

    Raises
    ------
    ArrayParseError
        If the text is not valid JSON (NaN/Infinity included) or nests deeper
        than *max_depth*.
    """
    try:
        value = json.loads(text, parse_constant=_reject_constant)
    except RecursionError:
        raise ArrayParseError(f"JSON nesting exceeds depth {max_depth}") from None
    except ValueError as exc:
        raise ArrayParseError(f"invalid JSON {text!r}: {exc}") from exc
    depth = json_depth(value)
    if depth > max_depth:
        raise ArrayParseError(f"JSON nesting depth {depth} exceeds limit {max_depth}")
    return value
