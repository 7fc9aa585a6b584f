"""
Error handling for the oauthredis storage adapter.

Every failure raised by the storage carries a structured error code, the
logical step that failed and the underlying cause. Lookup misses are not
errors: reads return ``None`` instead.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    """Structured error codes for storage operations."""

    STORAGE_ERROR = "storage_error"
    ENCODE_FAILED = "encode_failed"
    DECODE_FAILED = "decode_failed"
    NOT_FOUND = "not_found"


class StorageError(Exception):
    """
    Base exception class for all storage errors.

    Wraps the underlying Redis or codec failure and names the logical
    operation that was attempted (e.g. ``"failed to save access"``).
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.STORAGE_ERROR,
        key: Optional[str] = None,
        cause: Optional[BaseException] = None
    ):
        self.message = message
        self.code = code
        self.key = key
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        result = {
            "error": self.code.value,
            "error_description": self.message,
            "timestamp": self.timestamp.isoformat(),
        }

        if self.key:
            result["key"] = self.key

        if self.cause:
            result["caused_by"] = str(self.cause)

        return result

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message


class EncodeError(StorageError):
    """Raised when a record cannot be serialized for storage."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, code=ErrorCode.ENCODE_FAILED, **kwargs)


class DecodeError(StorageError):
    """Raised when stored bytes do not decode into the expected record."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, code=ErrorCode.DECODE_FAILED, **kwargs)


class AccessNotFoundError(StorageError):
    """
    Raised when removing a grant by a token that resolves to nothing.

    Removal needs the full record to find the paired keys, so an
    unresolvable token is reported instead of being treated as a miss.
    """

    def __init__(self, message: str, token_kind: Optional[str] = None, **kwargs):
        self.token_kind = token_kind
        super().__init__(message, code=ErrorCode.NOT_FOUND, **kwargs)


__all__ = [
    "ErrorCode",
    "StorageError",
    "EncodeError",
    "DecodeError",
    "AccessNotFoundError",
]
