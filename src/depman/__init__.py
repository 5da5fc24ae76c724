"""Integrity verification for cached dependency bundles."""

from .dirhash import compute_directory_hash
from .errors import (
    DepmanError,
    ErrorCode,
    IntegrityViolationError,
    RecordNotFoundError,
    StorageError,
    ValidationError,
)
from .observability import StructuredLogger
from .origin import ArchiveOrigin, GitOrigin, Origin
from .policy import IntegrityPolicy
from .records import BundleIndex, BundleIntegrityInfo, SourceIntegrityInfo
from .storage import ArchiveStorage, GitStorage, Storage, storage_for
from .store import IntegrityStore
from .verifier import (
    BundleCheck,
    BundleStatus,
    CacheUpdate,
    CacheVerifier,
    SourceCheck,
    SourceStatus,
)

__all__ = [
    "ArchiveOrigin",
    "ArchiveStorage",
    "BundleCheck",
    "BundleIndex",
    "BundleIntegrityInfo",
    "BundleStatus",
    "CacheUpdate",
    "CacheVerifier",
    "DepmanError",
    "ErrorCode",
    "GitOrigin",
    "GitStorage",
    "IntegrityPolicy",
    "IntegrityStore",
    "IntegrityViolationError",
    "Origin",
    "RecordNotFoundError",
    "SourceCheck",
    "SourceIntegrityInfo",
    "SourceStatus",
    "Storage",
    "StorageError",
    "StructuredLogger",
    "ValidationError",
    "compute_directory_hash",
    "storage_for",
]
