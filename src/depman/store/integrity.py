"""Key-value store for source and bundle integrity records."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from depman.errors import StorageError, ValidationError
from depman.origin import Origin
from depman.records import BundleIntegrityInfo, SourceIntegrityInfo
from depman.store.io import read_json, write_json
from depman.store.locks import KeyedLocks, process_locks
from depman.store.paths import bundle_info_path, source_info_path


class IntegrityStore:
    """Integrity records rooted under a dependency cache directory.

    Reads raise :class:`~depman.errors.RecordNotFoundError` for an absent key
    and :class:`~depman.errors.StorageError` for anything unreadable.
    """

    def __init__(self, root: str | Path, *, locks: KeyedLocks | None = None) -> None:
        self.root = Path(root)
        self.locks = locks if locks is not None else process_locks()

    def source_info_path(self, source: str, version: str) -> Path:
        return source_info_path(self.root, source, version)

    def bundle_info_path(self, app_code: str, version: str) -> Path:
        return bundle_info_path(self.root, app_code, version)

    def read_source_info(self, source: str, version: str, *, origin: Origin) -> SourceIntegrityInfo:
        path = self.source_info_path(source, version)
        payload = read_json(path)
        try:
            return SourceIntegrityInfo.from_payload(payload, origin=origin)
        except ValidationError as exc:
            raise _corrupted(path, exc) from exc

    def write_source_info(self, source: str, version: str, info: SourceIntegrityInfo) -> Path:
        return write_json(self.source_info_path(source, version), info.to_payload())

    def read_bundle_info(self, app_code: str, version: str) -> BundleIntegrityInfo:
        path = self.bundle_info_path(app_code, version)
        payload = read_json(path)
        try:
            return BundleIntegrityInfo.from_payload(payload)
        except ValidationError as exc:
            raise _corrupted(path, exc) from exc

    def write_bundle_info(self, app_code: str, version: str, info: BundleIntegrityInfo) -> Path:
        return write_json(self.bundle_info_path(app_code, version), info.to_payload())

    @contextmanager
    def lock_source(self, source: str, version: str) -> Iterator[None]:
        with self.locks.hold(self.source_info_path(source, version)):
            yield

    @contextmanager
    def lock_bundle(self, app_code: str, version: str) -> Iterator[None]:
        with self.locks.hold(self.bundle_info_path(app_code, version)):
            yield


def _corrupted(path: Path, exc: ValidationError) -> StorageError:
    return StorageError(
        "Integrity record has invalid structure.",
        hint=exc.message,
        context={"operation": "read_record", "path": str(path)},
    )


__all__ = ["IntegrityStore"]
