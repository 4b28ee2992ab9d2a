# File: blockschema/utils.py
"""
Content Block Schema - Utility Functions & Helpers
====================================================
Naming rules for generated tables and columns, a step timer, and the file
I/O helpers used by the exporter.

The naming helpers are the single place that decides how generated names
are glued together; the compiler never concatenates names itself.
"""

from __future__ import annotations

import functools
import logging
import os
import shutil
import tempfile
import time
from pathlib import Path
from typing import Optional, Tuple

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("blockschema.utils")

NAME_SEPARATOR: str = "_"


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def normalize_package_name(composer_name: str) -> str:
    """
    Make a composer name usable inside table and column names.

    Examples:
        >>> normalize_package_name("foo/bar")
        'foo-bar'
        >>> normalize_package_name("t3ce/example")
        't3ce-example'
    """
    return composer_name.replace("/", "-")


def split_package_name(composer_name: str) -> Tuple[str, str]:
    """``"vendor/package"`` → ``("vendor", "package")``; missing parts are ``""``."""
    vendor, _, package = composer_name.partition("/")
    return vendor, package


def collection_table_name(prefix: str, owner_table: str, identifier: str) -> str:
    """
    Name of the child table generated for a collection field.

    Examples:
        >>> collection_table_name("cb_foo-bar", "tt_content", "slides")
        'cb_foo-bar_tt_content_slides'
        >>> collection_table_name("", "cb_foo-bar_tt_content_slides", "links")
        'cb_foo-bar_tt_content_slides_links'
    """
    if prefix:
        return NAME_SEPARATOR.join((prefix, owner_table, identifier))
    return NAME_SEPARATOR.join((owner_table, identifier))


def root_column_name(prefix: str, identifier: str) -> str:
    """
    Column a package field occupies on the shared root table.

    Examples:
        >>> root_column_name("cb_foo-bar", "header")
        'cb_foo-bar_header'
    """
    return f"{prefix}{NAME_SEPARATOR}{identifier}"


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> None:
    """Create directory (and parents) if it doesn't exist."""
    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)


def write_file(path: Path, content: str, atomic: bool = True) -> int:
    """
    Write *content* to *path*.

    When *atomic* is True, writes to a temporary file first then renames,
    so readers never see a half-written file.

    Returns the number of bytes written.
    """
    ensure_directory(path.parent)

    encoded: bytes = content.encode("utf-8")
    byte_count: int = len(encoded)

    if atomic:
        fd: int
        tmp_path: str
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(encoded)
            shutil.move(tmp_path, str(path))
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
    else:
        path.write_bytes(encoded)

    logger.debug("Wrote %d bytes to %s", byte_count, path)
    return byte_count


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Simple context-manager timer for pipeline steps.

    Usage:
        with Timer("compile") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.debug("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


__all__ = [
    "NAME_SEPARATOR",
    "normalize_package_name",
    "split_package_name",
    "collection_table_name",
    "root_column_name",
    "ensure_directory",
    "write_file",
    "Timer",
]

logger.debug("blockschema.utils loaded.")
