"""Error types raised by the data access layer and the form boundary."""

from __future__ import annotations

from typing import Optional

# Postgres unique_violation; the SQLite client reports the same code.
UNIQUE_VIOLATION = "23505"


class BudgetTrackerError(Exception):
    """Base class for every error surfaced to the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BudgetTrackerError):
    """A form field could not be converted into a valid value."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class BackendError(BudgetTrackerError):
    """The query backend rejected or failed a request."""

    def __init__(self, message: str, code: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.code = code
        self.status = status


class ConflictError(BackendError):
    """A unique constraint was violated."""

    def __init__(self, message: str, code: str = UNIQUE_VIOLATION, status: Optional[int] = 409):
        super().__init__(message, code=code, status=status)


class NotFoundError(BudgetTrackerError):
    """A referenced record does not exist."""


class AuthError(BudgetTrackerError):
    """Invalid credentials or a missing session."""
