"""Custom exceptions for the FitBody client.

Network-facing operations never raise these to their callers; they are
converted into result objects at the adapter and store boundaries. They are
raised for local faults only (bad configuration, unwritable storage).
"""

from typing import Any, Dict, Optional


class FitBodyError(Exception):
    """Base exception for all FitBody client errors.

    Attributes:
        message: Human-readable error description
        context: Dictionary of relevant error context
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON output.

        Returns:
            Dictionary with error type, message, and context
        """
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class ConfigError(FitBodyError):
    """Raised when client configuration is missing or invalid."""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message, {"key": key} if key else None)
        self.key = key


class StorageError(FitBodyError):
    """Raised when the durable key-value storage cannot be written."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Failed to persist '{key}': {reason}", {"key": key})
        self.key = key
