"""Integrity policy configuration and enforcement helpers."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Literal, cast

from depman.errors import ValidationError

ExistingSourcePolicy = Literal["validate", "trust"]

EXISTING_SOURCE_POLICIES: tuple[ExistingSourcePolicy, ...] = ("validate", "trust")


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class IntegrityPolicy:
    """How the cache verifier treats records that already exist.

    ``existing_source="validate"`` compares a known source's recorded origin
    with every newly observed one. ``"trust"`` accepts the record without
    comparison and only establishes missing ones; callers choosing it should
    run :meth:`CacheVerifier.validate_source_information` themselves.
    """

    existing_source: ExistingSourcePolicy = "validate"
    clock: Callable[[], datetime] = field(default=utc_now)

    def __post_init__(self) -> None:
        ensure_existing_source_policy(self.existing_source)


def ensure_existing_source_policy(value: str) -> ExistingSourcePolicy:
    if value in EXISTING_SOURCE_POLICIES:
        return cast(ExistingSourcePolicy, value)
    raise ValidationError(
        f"Unsupported existing_source policy value: {value}",
        hint=f"Use one of: {', '.join(EXISTING_SOURCE_POLICIES)}.",
        context={"operation": "policy", "existing_source": str(value)},
    )


def format_fetch_time(moment: datetime) -> str:
    """Render *moment* as RFC 3339 UTC with second precision."""
    if moment.tzinfo is None:
        raise ValidationError("Fetch time must be timezone-aware.")
    return moment.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


__all__ = [
    "EXISTING_SOURCE_POLICIES",
    "ExistingSourcePolicy",
    "IntegrityPolicy",
    "ensure_existing_source_policy",
    "format_fetch_time",
    "utc_now",
]
