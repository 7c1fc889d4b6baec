"""Run manifest — audit trail of what an export run produced."""

from __future__ import annotations

import hashlib
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path

from gamedata_export import __version__
from gamedata_export.io import write_json
from gamedata_export.models import ExportConfig, ExportManifest, TableReport


def sha256_file(path: Path) -> str:
    """Return the hex SHA-256 digest of *path*."""
    h = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


def utcnow_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def build_manifest(
    config: ExportConfig,
    reports: Sequence[TableReport],
    *,
    created_at: str,
    error_message: str = "",
) -> ExportManifest:
    tables = []
    for report in reports:
        entry = report.to_dict()
        entry["sha256"] = ""
        if report.output:
            try:
                entry["sha256"] = sha256_file(Path(report.output))
            except OSError:
                pass
        tables.append(entry)
    return ExportManifest(
        version=__version__,
        schema_path=str(config.schema_path.resolve()),
        output_dir=str(Path(config.json_dir).resolve()),
        created_at_utc=created_at,
        status="failed" if error_message else "success",
        error_message=error_message,
        tables=tables,
    )


def write_manifest(path: Path, manifest: ExportManifest) -> Path:
    """Write *manifest* to *path* and return the path."""
    return write_json(path, manifest.to_dict())
