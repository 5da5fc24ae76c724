"""Deterministic record path derivation."""

from __future__ import annotations

from pathlib import Path
from urllib.parse import quote

from depman.errors import ValidationError

INTEGRITY_DIR = "integrity"
SOURCES_DIR = "sources"
BUNDLES_DIR = "bundles"
RECORD_SUFFIX = ".json"

_SAFE_CHARS = "-_.~@+"

# Common file system limit on one name, in bytes, with room for RECORD_SUFFIX.
MAX_SEGMENT_BYTES = 255 - len(RECORD_SUFFIX)


def escape_segment(value: str, *, what: str) -> str:
    """Encode a key component as exactly one path segment.

    Identical input always yields the identical segment; there is no case
    folding or unicode normalization, and ``/`` is encoded rather than
    treated as a separator.
    """
    if not isinstance(value, str) or not value:
        raise ValidationError(f"{what} must be a non-empty string.")
    escaped = quote(value, safe=_SAFE_CHARS)
    if escaped.startswith("."):
        # Record names never start with a dot: no "."/".." segments and no
        # overlap with the store's temp files.
        escaped = "%2E" + escaped[1:]
    if len(escaped) > MAX_SEGMENT_BYTES:
        raise ValidationError(
            f"{what} is too long to be stored as a record key.",
            hint=f"Escaped key components are limited to {MAX_SEGMENT_BYTES} bytes.",
            context={"key": what, "value": value[:64], "length": str(len(escaped))},
        )
    return escaped


def source_info_path(root: str | Path, source: str, version: str) -> Path:
    return Path(
        root,
        INTEGRITY_DIR,
        SOURCES_DIR,
        escape_segment(source, what="source"),
        escape_segment(version, what="version") + RECORD_SUFFIX,
    )


def bundle_info_path(root: str | Path, app_code: str, version: str) -> Path:
    return Path(
        root,
        INTEGRITY_DIR,
        BUNDLES_DIR,
        escape_segment(app_code, what="app code"),
        escape_segment(version, what="version") + RECORD_SUFFIX,
    )


__all__ = ["MAX_SEGMENT_BYTES", "bundle_info_path", "escape_segment", "source_info_path"]
