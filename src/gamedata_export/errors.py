"""Error taxonomy: every fatal export failure derives from ExportError."""

from __future__ import annotations


class ExportError(ValueError):
    """Base class for failures caused by bad input data or configuration."""


class ConfigError(ExportError):
    """Schema file missing, unreadable or malformed."""


class ResourceError(ExportError):
    """A workbook declared by the schema cannot be opened."""


class MalformedHeaderError(ExportError):
    """A header cell does not decode into ``name:type[:array]``."""


class CoercionError(ExportError):
    """A scalar cell cannot be converted to its declared type."""


class ArrayParseError(ExportError):
    """An array cell is not valid JSON or nests deeper than allowed."""
