"""
Domain exceptions for the directory service.

Every error raised by the stores and services derives from DirectoryError.
The API layer maps them to HTTP responses in src.utils.error_handler.
"""

from datetime import datetime
from typing import Optional


class DirectoryError(Exception):
    """Base exception for directory operations"""

    status_code = 500

    def __init__(self, message: str = "Directory operation failed"):
        super().__init__(message)
        self.message = message


class NotFoundError(DirectoryError):
    """Raised when an account or notification does not exist"""

    status_code = 404


class UnauthorizedError(DirectoryError):
    """Raised when a session is missing, invalid, expired or its account is inactive"""

    status_code = 401


class InvalidTransitionError(DirectoryError):
    """Raised when responding to a notification that is no longer pending"""

    status_code = 409


class AccountLockedError(DirectoryError):
    """Raised when a login is refused because the account is locked"""

    status_code = 423

    def __init__(self, message: str, locked_until: Optional[datetime] = None):
        super().__init__(message)
        self.locked_until = locked_until


class ValidationFailedError(DirectoryError):
    """Raised when required fields are missing or malformed"""

    status_code = 400


class DuplicateAccountError(DirectoryError):
    """Raised when an email or bar number is already registered"""

    status_code = 409


class StorageFailure(DirectoryError):
    """Raised when the record store cannot complete a read or write"""

    status_code = 503
