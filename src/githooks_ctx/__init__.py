"""Session-scoped runtime context for Git hook plugins."""

from .errors import (
    ConfigError,
    ErrorCode,
    HookEnvironmentError,
    HookError,
    NotFoundError,
    ParseError,
    RetrievalError,
    UndefinedGroupError,
)
from .session import HookSession

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "ErrorCode",
    "HookEnvironmentError",
    "HookError",
    "HookSession",
    "NotFoundError",
    "ParseError",
    "RetrievalError",
    "UndefinedGroupError",
]
