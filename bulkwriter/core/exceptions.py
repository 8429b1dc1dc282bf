"""
Bulk Writer Core Exceptions

Custom exception classes for the bulk writer core.
Database failures are split by the phase they happen in, so callers can tell
a rolled-back batch from a commit whose side effects may already be visible.
"""

from typing import List, Optional


class BulkWriterError(Exception):
    """Base exception for all bulk writer errors."""

    def __init__(self, message: str, details: Optional[str] = None):
        self.message = message
        self.details = details
        super().__init__(message)

    def to_dict(self):
        """Convert exception to dictionary for API responses."""
        result = {
            'error': self.__class__.__name__,
            'message': self.message
        }
        if self.details:
            result['details'] = self.details
        return result


class ValidationError(BulkWriterError):
    """Raised for invalid parameters or options."""
    pass


class ConfigError(BulkWriterError):
    """Raised when the settings file cannot be read or holds invalid values."""
    pass


class EncodingError(BulkWriterError):
    """Raised when a field value has no textual form."""
    pass


class DatabaseError(BulkWriterError):
    """Raised for database connectivity and statement failures."""
    pass


class SetupError(DatabaseError):
    """Raised when a table write cannot start (column lookup, transaction begin)."""
    pass


class StatementError(DatabaseError):
    """Raised when a batch statement fails. The batch has been rolled back."""
    pass


class CommitError(DatabaseError):
    """Raised when a batch commit fails. Some side effects may be visible."""
    pass


class GlobalModeError(DatabaseError):
    """Raised when the server-wide local_infile setting cannot be read or changed."""
    pass


class TeardownError(DatabaseError):
    """Raised when closing a session fails.

    ``errors`` holds every failure seen during teardown so that a failed
    restore of ``local_infile`` is never hidden behind a failed dispose.
    """

    def __init__(self, message: str, errors: List[Exception], details: Optional[str] = None):
        self.errors = list(errors)
        if details is None:
            details = "; ".join(str(e) for e in self.errors) or None
        super().__init__(message, details)
