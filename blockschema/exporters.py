# File: blockschema/exporters.py
"""
Content Block Schema - Collection Exporter
============================================

Writes a compiled ``TableDefinitionCollection`` to disk (or a string) as
JSON or YAML, together with a small manifest describing what was written.
Files are written atomically via ``blockschema.utils.write_file``.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from blockschema.registry import TableDefinitionCollection
from blockschema.utils import Timer, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("blockschema.exporters")

SUPPORTED_FORMATS: Tuple[str, ...] = ("json", "yaml")


# ---------------------------------------------------------------------------
# Result records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ExportManifest:
    """What was written, for reproducibility checks."""

    path: str
    format: str
    table_names: Tuple[str, ...]
    size_bytes: int
    sha256: str
    export_timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "format": self.format,
            "table_names": list(self.table_names),
            "size_bytes": self.size_bytes,
            "sha256": self.sha256,
            "export_timestamp": self.export_timestamp,
        }


@dataclass(frozen=True, slots=True)
class ExportResult:
    """Final result of ``CollectionExporter.export()``."""

    success: bool
    manifest: Optional[ExportManifest]
    errors: Tuple[str, ...] = field(default_factory=tuple)
    elapsed_seconds: float = 0.0


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def format_from_path(path: Path) -> str:
    """``.yaml``/``.yml`` → yaml, anything else → json."""
    return "yaml" if path.suffix.lower() in (".yaml", ".yml") else "json"


def render_collection(collection: TableDefinitionCollection, fmt: str = "json") -> str:
    """Serialize *collection* to text, keeping table, field and element order."""
    if fmt not in SUPPORTED_FORMATS:
        raise ValueError(
            f"Unsupported export format '{fmt}'. Expected one of {SUPPORTED_FORMATS}."
        )
    data: Dict[str, Any] = collection.to_dict()
    if fmt == "yaml":
        return yaml.safe_dump(
            data, sort_keys=False, default_flow_style=False, allow_unicode=True
        )
    # YAML input may carry dates and other non-JSON scalars.
    return json.dumps(data, indent=2, ensure_ascii=False, default=str) + "\n"


# ---------------------------------------------------------------------------
# Exporter
# ---------------------------------------------------------------------------


class CollectionExporter:
    """
    Writes one compiled collection to one file.

    Usage::

        exporter = CollectionExporter()
        result = exporter.export(collection, Path("tables.json"))
    """

    def __init__(self, *, atomic: bool = True) -> None:
        self._atomic: bool = atomic

    def export(
        self,
        collection: TableDefinitionCollection,
        path: Path,
        fmt: Optional[str] = None,
    ) -> ExportResult:
        fmt = fmt or format_from_path(path)
        errors: List[str] = []
        manifest: Optional[ExportManifest] = None

        with Timer("export") as t:
            try:
                content: str = render_collection(collection, fmt)
                size: int = write_file(path, content, atomic=self._atomic)
                manifest = ExportManifest(
                    path=str(path),
                    format=fmt,
                    table_names=tuple(collection.table_names),
                    size_bytes=size,
                    sha256=hashlib.sha256(content.encode("utf-8")).hexdigest(),
                    export_timestamp=datetime.now(timezone.utc).isoformat(),
                )
            except (OSError, TypeError, ValueError) as exc:
                logger.error("Export to %s failed: %s", path, exc)
                errors.append(str(exc))

        if manifest is not None:
            logger.info(
                "Exported %d table(s) to %s (%d bytes).",
                len(manifest.table_names),
                path,
                manifest.size_bytes,
            )

        return ExportResult(
            success=not errors,
            manifest=manifest,
            errors=tuple(errors),
            elapsed_seconds=t.elapsed,
        )


__all__: List[str] = [
    "SUPPORTED_FORMATS",
    "ExportManifest",
    "ExportResult",
    "CollectionExporter",
    "format_from_path",
    "render_collection",
]

logger.debug("blockschema.exporters loaded.")
