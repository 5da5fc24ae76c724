"""Provenance descriptors for fetched dependency sources.

Each storage backend owns one origin variant. Variants are plain frozen
dataclasses with the same three capabilities:

* ``validate(candidate)`` - raise :class:`IntegrityViolationError` unless
  *candidate* describes the same provenance;
* ``to_payload()`` - the JSON object persisted under ``"Origin"``;
* ``parse(payload)`` - build a fresh instance of the same variant from JSON.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Protocol, runtime_checkable

from depman.errors import IntegrityViolationError, ValidationError


@runtime_checkable
class Origin(Protocol):
    @property
    def vcs(self) -> str: ...

    def validate(self, candidate: Origin) -> None: ...

    def to_payload(self) -> dict[str, str]: ...

    def parse(self, payload: Any) -> Origin: ...


@dataclass(frozen=True, slots=True)
class GitOrigin:
    """Content checked out from a git repository at a resolved revision."""

    KIND: ClassVar[str] = "git"

    url: str = ""
    hash: str = ""
    ref: str = ""

    @property
    def vcs(self) -> str:
        return self.KIND

    def validate(self, candidate: Origin) -> None:
        if not isinstance(candidate, GitOrigin):
            raise _kind_mismatch(self, candidate)
        _ensure_fields_match(
            self,
            candidate,
            fields={
                "URL": (self.url, candidate.url),
                "Hash": (self.hash, candidate.hash),
                "Ref": (self.ref, candidate.ref),
            },
        )

    def to_payload(self) -> dict[str, str]:
        return {"VCS": self.KIND, "URL": self.url, "Hash": self.hash, "Ref": self.ref}

    def parse(self, payload: Any) -> GitOrigin:
        fields = _parse_payload(
            payload,
            kind=self.KIND,
            required=("URL", "Hash"),
            optional=("Ref",),
        )
        return GitOrigin(url=fields["URL"], hash=fields["Hash"], ref=fields["Ref"])


@dataclass(frozen=True, slots=True)
class ArchiveOrigin:
    """Content unpacked from an archive pinned by its digest."""

    KIND: ClassVar[str] = "archive"

    url: str = ""
    hash: str = ""

    @property
    def vcs(self) -> str:
        return self.KIND

    def validate(self, candidate: Origin) -> None:
        if not isinstance(candidate, ArchiveOrigin):
            raise _kind_mismatch(self, candidate)
        _ensure_fields_match(
            self,
            candidate,
            fields={"URL": (self.url, candidate.url), "Hash": (self.hash, candidate.hash)},
        )

    def to_payload(self) -> dict[str, str]:
        return {"VCS": self.KIND, "URL": self.url, "Hash": self.hash}

    def parse(self, payload: Any) -> ArchiveOrigin:
        fields = _parse_payload(payload, kind=self.KIND, required=("URL", "Hash"), optional=())
        return ArchiveOrigin(url=fields["URL"], hash=fields["Hash"])


def describe(origin: Origin) -> str:
    payload = origin.to_payload()
    return " ".join(f"{key}={payload[key]}" for key in sorted(payload) if payload[key])


def _kind_mismatch(recorded: Origin, candidate: object) -> IntegrityViolationError:
    return IntegrityViolationError(
        "Origin kind does not match the recorded origin.",
        context={
            "field": "VCS",
            "expected": recorded.vcs,
            "actual": str(getattr(candidate, "vcs", type(candidate).__name__)),
        },
    )


def _ensure_fields_match(
    recorded: Origin,
    candidate: Origin,
    *,
    fields: dict[str, tuple[str, str]],
) -> None:
    mismatched = [name for name, (expected, actual) in fields.items() if expected != actual]
    if not mismatched:
        return
    raise IntegrityViolationError(
        "Origin does not match the recorded origin.",
        context={
            "field": ",".join(mismatched),
            "expected": describe(recorded),
            "actual": describe(candidate),
        },
    )


def _parse_payload(
    payload: Any,
    *,
    kind: str,
    required: tuple[str, ...],
    optional: tuple[str, ...],
) -> dict[str, str]:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid origin payload type.")
    vcs = payload.get("VCS")
    if vcs != kind:
        raise ValidationError(
            "Origin payload kind does not match the storage backend.",
            context={"expected": kind, "actual": str(vcs)},
        )
    parsed: dict[str, str] = {}
    for key in required:
        value = payload.get(key)
        if not isinstance(value, str) or not value:
            raise ValidationError(f"Invalid origin `{key}` value.")
        parsed[key] = value
    for key in optional:
        value = payload.get(key, "")
        if not isinstance(value, str):
            raise ValidationError(f"Invalid origin `{key}` value.")
        parsed[key] = value
    return parsed


__all__ = ["ArchiveOrigin", "GitOrigin", "Origin", "describe"]
