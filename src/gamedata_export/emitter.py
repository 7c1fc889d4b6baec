"""Record emitter: one JSON object per table, keyed by record Id."""

from __future__ import annotations

from typing import Any, TextIO

from gamedata_export.models import ColumnSpec, Escaping, KeyType
from gamedata_export.writer import JsonWriter


class RecordEmitter:
    """Forward record events from the projector to a :class:`JsonWriter`.

    ``begin()`` and ``finish()`` wrap the whole document in a single object, so
    the output is ``{}`` when no record was opened.
    """

    def __init__(self, stream: TextIO, *, escaping: Escaping = Escaping.relaxed) -> None:
        self._writer = JsonWriter(stream, escaping=escaping)
        self._ids: set[str] = set()
        self.records = 0
        self.duplicate_ids: list[str] = []

    def begin(self) -> None:
        self._writer.start_object()

    def open_record(self, record_id: str) -> None:
        if record_id in self._ids:
            self.duplicate_ids.append(record_id)
        self._ids.add(record_id)
        self._writer.start_object(record_id)
        self.records += 1

    def write_field(self, spec: ColumnSpec, value: Any) -> None:
        """Write a coerced scalar under ``spec.key_name`` according to its type."""
        if spec.key_type is KeyType.string:
            self._writer.write_string(spec.key_name, value)
        elif spec.key_type is KeyType.bool:
            self._writer.write_bool(spec.key_name, value)
        else:
            self._writer.write_number(spec.key_name, value)

    def write_fragment(self, name: str, value: Any) -> None:
        self._writer.write_fragment(name, value)

    def close_record(self) -> None:
        self._writer.end_object()

    def finish(self) -> None:
        self._writer.end_object()
        self._writer.close()
