"""Integrity record model types and their JSON payload form."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from depman.errors import ValidationError
from depman.origin import Origin


@dataclass(frozen=True, slots=True)
class SourceIntegrityInfo:
    """Provenance trusted for a (source, version) pair on first fetch."""

    version: str
    time: str
    origin: Origin

    def to_payload(self) -> dict[str, Any]:
        return {
            "Version": self.version,
            "Time": self.time,
            "Origin": self.origin.to_payload(),
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any], *, origin: Origin) -> SourceIntegrityInfo:
        """Parse *payload*, decoding ``Origin`` with the *origin* descriptor's variant."""
        return cls(
            version=_required_str(payload, "Version"),
            time=_required_str(payload, "Time"),
            origin=origin.parse(payload.get("Origin")),
        )


@dataclass(frozen=True, slots=True)
class BundleIntegrityInfo:
    """Digest pinned for an (app code, version) bundle on first cache."""

    source: str
    version: str
    hash: str

    def to_payload(self) -> dict[str, Any]:
        return {"Source": self.source, "Version": self.version, "Hash": self.hash}

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> BundleIntegrityInfo:
        return cls(
            source=_required_str(payload, "Source"),
            version=_required_str(payload, "Version"),
            hash=_required_str(payload, "Hash"),
        )


@dataclass(frozen=True, slots=True)
class BundleIndex:
    """The part of a parsed bundle index the cache verifier needs."""

    app_code: str


def _required_str(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value:
        raise ValidationError(f"Invalid integrity record `{key}` value.")
    return value


__all__ = ["BundleIndex", "BundleIntegrityInfo", "SourceIntegrityInfo"]
