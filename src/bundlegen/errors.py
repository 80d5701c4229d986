"""Typed generator error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable error identifiers used across API surfaces."""

    USAGE = "E_USAGE"
    VALIDATION = "E_VALIDATION"
    LOCKFILE = "E_LOCKFILE"
    GEMFILE = "E_GEMFILE"
    BUILDIFIER = "E_BUILDIFIER"


class BundlegenError(Exception):
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

    def __str__(self) -> str:
        parts = [super().__str__()]
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
            "message": str(self),
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class ArgumentCountError(BundlegenError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.USAGE, hint=hint, context=context)


class ValidationError(BundlegenError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.VALIDATION, hint=hint, context=context)


class LockfileError(BundlegenError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.LOCKFILE, hint=hint, context=context)


class GemfileError(BundlegenError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.GEMFILE, hint=hint, context=context)


class BuildifierError(BundlegenError):
    """Formatting the generated BUILD file did not succeed."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.BUILDIFIER, hint=hint, context=context)


class BuildifierNotFoundError(BuildifierError):
    pass


class BuildifierFailedError(BuildifierError):
    pass


class BuildifierNoBuildFileError(BuildifierError):
    pass


__all__ = [
    "ArgumentCountError",
    "BuildifierError",
    "BuildifierFailedError",
    "BuildifierNoBuildFileError",
    "BuildifierNotFoundError",
    "BundlegenError",
    "ErrorCode",
    "GemfileError",
    "LockfileError",
    "ValidationError",
]
