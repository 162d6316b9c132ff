"""Custom exception hierarchy for upload-manager."""

from __future__ import annotations


class UploadManagerError(Exception):
    """Base exception for all upload-manager errors."""

    def __init__(self, message: str, details: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(UploadManagerError):
    """Raised when configuration is invalid or missing."""
    pass


class PatternCompileError(UploadManagerError):
    """Raised when a file mask cannot be turned into a regular expression."""
    pass


class StorageKeyError(UploadManagerError):
    """Raised when a path does not name a file inside the storage location."""
    pass
