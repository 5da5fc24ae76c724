"""Integrity record persistence APIs."""

from .integrity import IntegrityStore
from .io import read_json, write_json
from .locks import KeyedLocks, process_locks
from .paths import bundle_info_path, source_info_path

__all__ = [
    "IntegrityStore",
    "KeyedLocks",
    "bundle_info_path",
    "process_locks",
    "read_json",
    "source_info_path",
    "write_json",
]
