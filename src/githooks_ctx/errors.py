"""Domain-specific error types for hook context operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Supported error codes exposed by the hook context."""

    PARSE_ERROR = "PARSE_ERROR"
    CONFIG_ERROR = "CONFIG_ERROR"
    UNDEFINED_GROUP = "UNDEFINED_GROUP"
    NOT_FOUND = "NOT_FOUND"
    RETRIEVAL_ERROR = "RETRIEVAL_ERROR"
    ENVIRONMENT_ERROR = "ENVIRONMENT_ERROR"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    INVALID_INPUT = "INVALID_INPUT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass
class HookError(Exception):
    """Structured exception carrying a stable error contract."""

    code: ErrorCode
    message: str
    suggestion: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message

    def to_payload(self) -> dict[str, Any]:
        return {
            "status": "error",
            "error_code": self.code.value,
            "message": self.message,
            "suggestion": self.suggestion or "",
            "details": self.details,
        }


class _CodedHookError(HookError):
    default_code = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(self.default_code, message, suggestion, details or {})


class ParseError(_CodedHookError):
    """Malformed config variable name or group spec line."""

    default_code = ErrorCode.PARSE_ERROR


class ConfigError(_CodedHookError):
    """Duplicate group definition, unknown nested group or missing option."""

    default_code = ErrorCode.CONFIG_ERROR


class UndefinedGroupError(_CodedHookError):
    """Membership query against a group that was never defined."""

    default_code = ErrorCode.UNDEFINED_GROUP


class NotFoundError(_CodedHookError):
    """Range or commits requested for a ref that was never recorded."""

    default_code = ErrorCode.NOT_FOUND


class RetrievalError(_CodedHookError):
    """A repository query failed or the requested object is missing."""

    default_code = ErrorCode.RETRIEVAL_ERROR


class HookEnvironmentError(_CodedHookError):
    """Required ambient context (HOME, user variable) is missing."""

    default_code = ErrorCode.ENVIRONMENT_ERROR
