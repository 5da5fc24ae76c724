"""Typed integrity error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable error identifiers surfaced to the dependency orchestrator."""

    VALIDATION = "E_VALIDATION"
    NOT_FOUND = "E_NOT_FOUND"
    STORAGE = "E_STORAGE"
    INTEGRITY = "E_INTEGRITY"


class DepmanError(Exception):
    """Base error class that carries code, optional hint, and context."""

    code: str
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code.value
        self.hint = hint
        self.context = dict(context or {})

    @property
    def message(self) -> str:
        return super().__str__()

    def __str__(self) -> str:
        parts = [self.message]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        if self.context:
            for k, v in self.context.items():
                if v:
                    parts.append(f"  {k}: {v}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": self.message,
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class ValidationError(DepmanError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.VALIDATION, hint=hint, context=context)


class RecordNotFoundError(DepmanError):
    """No integrity record exists for a key yet.

    Not a failure for callers of the verifier: it means "establish now".
    """

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.NOT_FOUND, hint=hint, context=context)


class StorageError(DepmanError):
    """I/O or (de)serialization failure unrelated to content correctness."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.STORAGE, hint=hint, context=context)


class IntegrityViolationError(DepmanError):
    """Recorded provenance or digest does not match what was observed.

    Never retry this error: it is a content mismatch, not a transient fault.
    """

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.INTEGRITY, hint=hint, context=context)


__all__ = [
    "DepmanError",
    "ErrorCode",
    "IntegrityViolationError",
    "RecordNotFoundError",
    "StorageError",
    "ValidationError",
]
