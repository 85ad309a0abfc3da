"""File-level errors raised by the decoders."""

from typing import Any


class ConciliationError(Exception):
    """Base exception for the reconciliation core."""
    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidFileError(ConciliationError):
    """The extract has no recognizable header or trailer."""


class UnsupportedLayoutError(InvalidFileError):
    """An explicit layout version is not registered."""


class UnsupportedFormatError(ConciliationError):
    """The statement file extension has no decoding strategy."""
