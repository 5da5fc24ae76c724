"""JSON sidecar load/persist with atomic replacement."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from depman.errors import RecordNotFoundError, StorageError

TEMP_PREFIX = ".tmp-"


def read_json(path: str | Path) -> dict[str, Any]:
    """Read a JSON object from *path*.

    Raises :class:`RecordNotFoundError` when the file does not exist and
    :class:`StorageError` for every other stat/read/parse failure.
    """
    record_path = Path(path)
    try:
        raw = record_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise RecordNotFoundError(
            "Integrity record does not exist.",
            context={"operation": "read_record", "path": str(record_path)},
        ) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise StorageError(
            "Integrity record could not be read.",
            hint=str(exc),
            context={"operation": "read_record", "path": str(record_path)},
        ) from exc

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise StorageError(
            "Integrity record is not valid JSON.",
            hint="Remove the corrupted record and refetch the dependency.",
            context={"operation": "read_record", "path": str(record_path)},
        ) from exc
    if not isinstance(parsed, dict):
        raise StorageError(
            "Integrity record has invalid structure.",
            hint="Remove the corrupted record and refetch the dependency.",
            context={"operation": "read_record", "path": str(record_path)},
        )
    return parsed


def write_json(path: str | Path, payload: dict[str, Any]) -> Path:
    """Serialize *payload* to *path* via a temp file and ``os.replace``."""
    record_path = Path(path)
    try:
        record_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise StorageError(
            "Unable to create integrity record directory.",
            hint=str(exc),
            context={"operation": "write_record", "path": str(record_path.parent)},
        ) from exc

    try:
        encoded = json.dumps(payload, indent=2, sort_keys=True) + "\n"
    except (TypeError, ValueError) as exc:
        raise StorageError(
            "Integrity record is not JSON serializable.",
            hint=str(exc),
            context={"operation": "write_record", "path": str(record_path)},
        ) from exc

    temp_path: Path | None = None
    try:
        fd, temp_name = tempfile.mkstemp(
            prefix=TEMP_PREFIX,
            suffix=".json",
            dir=str(record_path.parent),
        )
        temp_path = Path(temp_name)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(encoded)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_path, record_path)
        temp_path = None
    except OSError as exc:
        raise StorageError(
            "Unable to write integrity record.",
            hint=str(exc),
            context={"operation": "write_record", "path": str(record_path)},
        ) from exc
    finally:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
    return record_path


__all__ = ["TEMP_PREFIX", "read_json", "write_json"]
