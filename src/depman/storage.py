"""Storage backend descriptors consumed by the integrity layer.

Fetching itself lives elsewhere; the integrity layer only needs to know which
origin variant the active backend produces so stored records parse into the
right type.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol

from depman.errors import ValidationError
from depman.origin import ArchiveOrigin, GitOrigin, Origin

StorageKind = Literal["git", "archive"]


class Storage(Protocol):
    def origin(self) -> Origin: ...


@dataclass(frozen=True, slots=True)
class GitStorage:
    def origin(self) -> GitOrigin:
        return GitOrigin()


@dataclass(frozen=True, slots=True)
class ArchiveStorage:
    def origin(self) -> ArchiveOrigin:
        return ArchiveOrigin()


def storage_for(kind: str) -> Storage:
    if kind == "git":
        return GitStorage()
    if kind == "archive":
        return ArchiveStorage()
    raise ValidationError(
        f"Unsupported storage kind: {kind}",
        hint="Use one of: archive, git.",
        context={"operation": "storage_for", "kind": kind},
    )


__all__ = ["ArchiveStorage", "GitStorage", "Storage", "StorageKind", "storage_for"]
