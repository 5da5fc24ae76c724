"""Default directory-tree digest for materialized bundles.

The digest covers every regular file and symlink below the root, keyed by
its POSIX path relative to the root. Each entry contributes one line
``<sha256>  <path>\\n`` where the path is the raw file system name bytes;
lines are sorted by path bytes and the summary is the base64 SHA-256 of
their concatenation, prefixed with ``h1:``. Empty directories do not
contribute. FIFOs, sockets and device nodes are rejected, never opened.
"""

from __future__ import annotations

import base64
import hashlib
import os
import stat
from pathlib import Path

from depman.errors import StorageError, ValidationError

DIGEST_PREFIX = "h1:"

_CHUNK_SIZE = 1 << 16


def compute_directory_hash(directory: str | Path) -> str:
    root = Path(directory)
    if not root.is_dir():
        raise ValidationError(
            "Bundle directory does not exist.",
            context={"operation": "compute_directory_hash", "path": str(root)},
        )

    lines: list[bytes] = []
    try:
        for rel_path, entry_digest in sorted(_iter_entries(root)):
            if b"\n" in rel_path:
                raise ValidationError(
                    "Bundle file names must not contain newlines.",
                    context={"operation": "compute_directory_hash", "path": os.fsdecode(rel_path)},
                )
            lines.append(entry_digest.encode("ascii") + b"  " + rel_path + b"\n")
    except OSError as exc:
        raise StorageError(
            "Unable to hash bundle directory.",
            hint=str(exc),
            context={"operation": "compute_directory_hash", "path": str(root)},
        ) from exc

    summary = hashlib.sha256(b"".join(lines)).digest()
    return DIGEST_PREFIX + base64.b64encode(summary).decode("ascii")


def _iter_entries(root: Path) -> list[tuple[bytes, str]]:
    entries: list[tuple[bytes, str]] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
        current = Path(dirpath)
        # os.walk does not descend into directory symlinks; record them as links.
        for name in [*dirnames, *filenames]:
            path = current / name
            rel_path = os.fsencode(path.relative_to(root).as_posix())
            mode = path.lstat().st_mode
            if stat.S_ISLNK(mode):
                target = os.readlink(path)
                entries.append((rel_path, _sha256_bytes(b"symlink:" + os.fsencode(target))))
            elif stat.S_ISREG(mode):
                entries.append((rel_path, _sha256_file(path)))
            elif not stat.S_ISDIR(mode):
                raise ValidationError(
                    "Bundle contains a special file.",
                    hint="Bundles may only hold regular files, directories and symlinks.",
                    context={"operation": "compute_directory_hash", "path": str(path)},
                )
    return entries


def _raise(exc: OSError) -> None:
    raise exc


def _sha256_file(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def _sha256_bytes(payload: bytes) -> str:
    return hashlib.sha256(payload).hexdigest()


__all__ = ["DIGEST_PREFIX", "compute_directory_hash"]
