"""Cache verification for fetched dependencies.

Two records back every cached dependency:

* a source integrity record, keyed by (source, version), holding the origin
  observed on the first fetch;
* a bundle integrity record, keyed by (app code, version), holding the digest
  of the materialized bundle directory on the first cache.

Both follow trust-on-first-use: the first observation of a key is recorded
without any check and becomes the baseline every later observation must
reproduce. A dependency that was already compromised on its very first
fetch is therefore accepted; only later deviation is detected.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from depman.dirhash import compute_directory_hash
from depman.errors import (
    DepmanError,
    IntegrityViolationError,
    RecordNotFoundError,
    StorageError,
    ValidationError,
)
from depman.observability import StructuredLogger
from depman.origin import Origin, describe
from depman.policy import IntegrityPolicy, format_fetch_time
from depman.records import BundleIndex, BundleIntegrityInfo, SourceIntegrityInfo
from depman.storage import Storage
from depman.store import IntegrityStore

DirectoryHasher = Callable[[Path], str]


class SourceStatus(StrEnum):
    ESTABLISHED = "established"
    VALIDATED = "validated"
    TRUSTED = "trusted"


class SourceCheck(StrEnum):
    NO_RECORD = "no_record"
    VALIDATED = "validated"


class BundleStatus(StrEnum):
    ESTABLISHED = "established"
    VERIFIED = "verified"


class BundleCheck(StrEnum):
    NO_RECORD = "no_record"
    VERIFIED = "verified"


@dataclass(frozen=True, slots=True)
class CacheUpdate:
    source_status: SourceStatus
    bundle_status: BundleStatus
    source_info: SourceIntegrityInfo
    bundle_info: BundleIntegrityInfo
    bundle_hash: str


class CacheVerifier:
    """Reconcile freshly fetched dependencies with their integrity records."""

    def __init__(
        self,
        store: IntegrityStore,
        storage: Storage,
        *,
        hasher: DirectoryHasher = compute_directory_hash,
        policy: IntegrityPolicy | None = None,
        logger: StructuredLogger | None = None,
    ) -> None:
        self.store = store
        self.storage = storage
        self.hasher = hasher
        self.policy = policy or IntegrityPolicy()
        self.logger = logger if logger is not None else StructuredLogger()

    def update_dependency_cache(
        self,
        source: str,
        version: str,
        origin: Origin,
        bundle_dir: str | Path,
        index: BundleIndex,
    ) -> CacheUpdate:
        """Establish or check both integrity records for one fetched dependency.

        Call after the dependency has been fetched and extracted into
        *bundle_dir*. A (source, version) or (app code, version) seen for the
        first time is recorded as-is (trust on first use). Afterwards the
        bundle directory must hash to the recorded digest, and with the
        default ``existing_source="validate"`` policy the observed origin must
        match the recorded one.

        Raises :class:`IntegrityViolationError` on any mismatch and
        :class:`StorageError` when a record cannot be read, written, or the
        bundle cannot be hashed. An origin of another kind than the storage
        backend's is an integrity violation; one with empty required fields
        is a :class:`ValidationError`, and neither is ever recorded. Nothing
        is retried.
        """
        source_status, source_info = self._reconcile_source(source, version, origin)
        bundle_status, bundle_info, bundle_hash = self._reconcile_bundle(
            source=source,
            app_code=index.app_code,
            version=version,
            bundle_dir=Path(bundle_dir),
        )
        return CacheUpdate(
            source_status=source_status,
            bundle_status=bundle_status,
            source_info=source_info,
            bundle_info=bundle_info,
            bundle_hash=bundle_hash,
        )

    def validate_source_information(self, source: str, version: str, origin: Origin) -> SourceCheck:
        """Check *origin* against the recorded provenance without writing anything.

        Returns :attr:`SourceCheck.NO_RECORD` when nothing is recorded yet.
        """
        try:
            recorded = self.store.read_source_info(source, version, origin=self.storage.origin())
        except RecordNotFoundError:
            self._log("validate_source", "source", source, version, "No source record to validate.")
            return SourceCheck.NO_RECORD
        self._check_origin(source, version, recorded, origin, operation="validate_source")
        return SourceCheck.VALIDATED

    def verify_bundle(self, app_code: str, version: str, bundle_dir: str | Path) -> BundleCheck:
        """Re-hash *bundle_dir* and compare it with the recorded digest, if any."""
        try:
            recorded = self.store.read_bundle_info(app_code, version)
        except RecordNotFoundError:
            self._log("verify_bundle", "bundle", app_code, version, "No bundle record to verify.")
            return BundleCheck.NO_RECORD
        actual = self._hash_bundle(Path(bundle_dir))
        self._check_bundle_hash(app_code, version, recorded, actual, operation="verify_bundle")
        return BundleCheck.VERIFIED

    def _reconcile_source(
        self,
        source: str,
        version: str,
        origin: Origin,
    ) -> tuple[SourceStatus, SourceIntegrityInfo]:
        with self.store.lock_source(source, version):
            try:
                recorded = self.store.read_source_info(
                    source, version, origin=self.storage.origin()
                )
            except RecordNotFoundError:
                self._ensure_recordable(source, version, origin)
                info = SourceIntegrityInfo(
                    version=version,
                    time=format_fetch_time(self.policy.clock()),
                    origin=origin,
                )
                self.store.write_source_info(source, version, info)
                self._log(
                    "update_dependency_cache",
                    "source",
                    source,
                    version,
                    "Established source record on first fetch.",
                    extra={"origin": describe(origin)},
                )
                return SourceStatus.ESTABLISHED, info

        if self.policy.existing_source == "trust":
            self._log(
                "update_dependency_cache",
                "source",
                source,
                version,
                "Trusted existing source record without validation.",
            )
            return SourceStatus.TRUSTED, recorded

        self._check_origin(source, version, recorded, origin, operation="update_dependency_cache")
        return SourceStatus.VALIDATED, recorded

    def _reconcile_bundle(
        self,
        *,
        source: str,
        app_code: str,
        version: str,
        bundle_dir: Path,
    ) -> tuple[BundleStatus, BundleIntegrityInfo, str]:
        with self.store.lock_bundle(app_code, version):
            actual = self._hash_bundle(bundle_dir)
            try:
                recorded = self.store.read_bundle_info(app_code, version)
            except RecordNotFoundError:
                info = BundleIntegrityInfo(source=source, version=version, hash=actual)
                self.store.write_bundle_info(app_code, version, info)
                self._log(
                    "update_dependency_cache",
                    "bundle",
                    app_code,
                    version,
                    "Established bundle record on first cache.",
                    extra={"hash": actual, "source": source},
                )
                return BundleStatus.ESTABLISHED, info, actual

        self._check_bundle_hash(
            app_code, version, recorded, actual, operation="update_dependency_cache"
        )
        return BundleStatus.VERIFIED, recorded, actual

    def _ensure_recordable(self, source: str, version: str, origin: Origin) -> None:
        """Reject an origin the configured storage backend could not read back."""
        expected = self.storage.origin()
        if type(origin) is not type(expected):
            raise IntegrityViolationError(
                "Origin kind does not match the storage backend.",
                hint="Fetch the dependency through the storage backend it is recorded for.",
                context={
                    "operation": "update_dependency_cache",
                    "source": source,
                    "version": version,
                    "field": "VCS",
                    "expected": expected.vcs,
                    "actual": str(getattr(origin, "vcs", type(origin).__name__)),
                },
            )
        try:
            expected.parse(origin.to_payload())
        except ValidationError as exc:
            raise ValidationError(
                "Observed origin cannot be recorded.",
                hint=exc.message,
                context={
                    "operation": "update_dependency_cache",
                    "source": source,
                    "version": version,
                    "origin": describe(origin),
                },
            ) from exc

    def _check_origin(
        self,
        source: str,
        version: str,
        recorded: SourceIntegrityInfo,
        observed: Origin,
        *,
        operation: str,
    ) -> None:
        try:
            recorded.origin.validate(observed)
        except IntegrityViolationError as exc:
            self._log(
                operation,
                "source",
                source,
                version,
                "Source integrity check failed.",
                level="error",
                extra=dict(exc.context),
            )
            raise IntegrityViolationError(
                "Source integrity check failed.",
                hint="The dependency now claims a different origin than on its first fetch.",
                context={
                    "operation": operation,
                    "source": source,
                    "version": version,
                    "field": exc.context.get("field", ""),
                    "expected": exc.context.get("expected", ""),
                    "actual": exc.context.get("actual", ""),
                    "path": str(self.store.source_info_path(source, version)),
                },
            ) from exc
        self._log(operation, "source", source, version, "Source origin matches record.")

    def _check_bundle_hash(
        self,
        app_code: str,
        version: str,
        recorded: BundleIntegrityInfo,
        actual: str,
        *,
        operation: str,
    ) -> None:
        if actual != recorded.hash:
            self._log(
                operation,
                "bundle",
                app_code,
                version,
                "Bundle integrity check failed.",
                level="error",
                extra={"expected": recorded.hash, "actual": actual},
            )
            raise IntegrityViolationError(
                "Bundle integrity check failed.",
                hint="Do not use the cached bundle; remove it and refetch from a trusted source.",
                context={
                    "operation": operation,
                    "app_code": app_code,
                    "version": version,
                    "source": recorded.source,
                    "expected": recorded.hash,
                    "actual": actual,
                    "path": str(self.store.bundle_info_path(app_code, version)),
                },
            )
        self._log(operation, "bundle", app_code, version, "Bundle digest matches record.")

    def _hash_bundle(self, bundle_dir: Path) -> str:
        try:
            return self.hasher(bundle_dir)
        except StorageError:
            raise
        except DepmanError as exc:
            raise StorageError(
                "Unable to compute bundle directory hash.",
                hint=exc.message,
                context={"operation": "compute_directory_hash", "path": str(bundle_dir)},
            ) from exc
        except OSError as exc:
            raise StorageError(
                "Unable to compute bundle directory hash.",
                hint=str(exc),
                context={"operation": "compute_directory_hash", "path": str(bundle_dir)},
            ) from exc

    def _log(
        self,
        operation: str,
        kind: str,
        key: str,
        version: str,
        message: str,
        *,
        level: str = "info",
        extra: dict[str, str] | None = None,
    ) -> None:
        self.logger.log(
            operation=operation,
            kind=kind,
            key=key,
            version=version,
            message=message,
            level=level,
            extra=extra,
        )


__all__ = [
    "BundleCheck",
    "BundleStatus",
    "CacheUpdate",
    "CacheVerifier",
    "DirectoryHasher",
    "SourceCheck",
    "SourceStatus",
]
