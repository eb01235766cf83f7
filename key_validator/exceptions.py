"""
Custom exception hierarchy for the key validator.

The core components never raise for bad data: unfixable keys and empty
input are reported as findings. These exceptions belong to the boundary
(reading sources, writing output) and carry a machine-readable code so the
CLI and API can map them to exit codes and HTTP statuses.
"""

from __future__ import annotations


class KeyValidatorError(Exception):
    """Base exception for all key validator failures."""

    def __init__(self, code: str, message: str, details: dict | None = None):
        self.code = code
        self.details = details or {}
        super().__init__(message)


class EmptyInputError(KeyValidatorError):
    """The source held no text to extract keys from."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("EMPTY_INPUT", message, details)


class SourceNotFoundError(KeyValidatorError):
    """The requested source file does not exist."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("SOURCE_NOT_FOUND", message, details)


class PersistenceError(KeyValidatorError):
    """Reading or writing a file failed; the message carries the OS cause."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("PERSISTENCE_FAILED", message, details)
