"""Event-based JSON writer producing indented, well-formed objects."""

from __future__ import annotations

import json
import math
from typing import Any, TextIO

from gamedata_export.models import Escaping


class JsonWriterError(RuntimeError):
    """Write calls arrived in an order that cannot produce valid JSON."""


class JsonWriter:
    """Write one top-level JSON object to *stream* as a sequence of events.

    Members are written as soon as they arrive; nothing is buffered beyond the
    stream itself. ``close()`` checks the document is complete.
    """

    def __init__(
        self, stream: TextIO, *, escaping: Escaping = Escaping.relaxed, indent: int = 2
    ) -> None:
        self._stream = stream
        self._ensure_ascii = Escaping(escaping) is Escaping.strict
        self._indent = indent
        # Member count of every open object, innermost last.
        self._open: list[int] = []
        self._done = False

    def _dumps(self, value: Any, *, indent: int | None = None) -> str:
        return json.dumps(
            value, ensure_ascii=self._ensure_ascii, allow_nan=False, indent=indent
        )

    def _newline(self) -> str:
        return "\n" + " " * (self._indent * len(self._open))

    def _begin_value(self, name: str | None) -> None:
        if self._done:
            raise JsonWriterError("document already has a top-level value")
        if not self._open:
            if name is not None:
                raise JsonWriterError("the top-level value cannot have a property name")
            return
        if name is None:
            raise JsonWriterError("object members need a property name")
        if self._open[-1]:
            self._stream.write(",")
        self._open[-1] += 1
        self._stream.write(self._newline())
        self._stream.write(self._dumps(str(name)) + ": ")

    def start_object(self, name: str | None = None) -> None:
        self._begin_value(name)
        self._stream.write("{")
        self._open.append(0)

    def end_object(self) -> None:
        if not self._open:
            raise JsonWriterError("no open object to end")
        members = self._open.pop()
        if members:
            self._stream.write(self._newline())
        self._stream.write("}")
        if not self._open:
            self._done = True

    def write_string(self, name: str, value: str) -> None:
        if not isinstance(value, str):
            raise JsonWriterError(f"{name}: expected str, got {type(value).__name__}")
        self._begin_value(name)
        self._stream.write(self._dumps(value))

    def write_bool(self, name: str, value: bool) -> None:
        if not isinstance(value, bool):
            raise JsonWriterError(f"{name}: expected bool, got {type(value).__name__}")
        self._begin_value(name)
        self._stream.write("true" if value else "false")

    def write_number(self, name: str, value: int | float) -> None:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise JsonWriterError(f"{name}: expected a number, got {type(value).__name__}")
        if isinstance(value, float) and not math.isfinite(value):
            raise JsonWriterError(f"{name}: {value!r} cannot be written as JSON")
        self._begin_value(name)
        self._stream.write(self._dumps(value))

    def write_fragment(self, name: str, value: Any) -> None:
        """Splice an already-parsed JSON value under *name*, re-indented in place."""
        try:
            text = self._dumps(value, indent=self._indent)
        except (TypeError, ValueError) as exc:
            raise JsonWriterError(f"{name}: value is not JSON serializable: {exc}") from exc
        self._begin_value(name)
        self._stream.write(text.replace("\n", self._newline()))

    def close(self) -> None:
        if self._open:
            raise JsonWriterError(f"{len(self._open)} object(s) left open")
        if not self._done:
            raise JsonWriterError("nothing was written")
        self._stream.write("\n")
