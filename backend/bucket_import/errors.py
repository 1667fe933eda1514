"""
Error types raised while turning an uploaded CSV file into an import.

Parsing never raises; everything here is a local validation failure or a
failure reported by the external import service.
"""

from typing import Optional


class CsvImportError(Exception):
    """Base class for all import errors with a user-facing message."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InputRejected(CsvImportError):
    """The uploaded file is not a CSV file (or cannot be read as text)."""


class ValidationFailure(CsvImportError):
    """Submission was attempted with incomplete input."""


class MissingBucketError(ValidationFailure):
    pass


class NoDataError(ValidationFailure):
    pass


class UnknownFieldError(ValidationFailure):
    pass


class RemoteFailure(CsvImportError):
    """The import service answered with a non-2xx status or was unreachable."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
