"""Custom exception hierarchy."""

from typing import Optional


class AppError(Exception):
    """Base exception for application errors."""
    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ValidationError(AppError):
    """Raised when input is missing, malformed or breaks a business rule."""
    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        original_error: Exception = None,
    ):
        super().__init__(message, original_error=original_error)
        self.field = field


class ConflictError(AppError):
    """Raised when a unique key is already taken."""
    pass


class NotFoundError(AppError):
    """Raised when a referenced entity does not exist."""
    pass


class EmptyResultError(AppError):
    """Raised when a query legitimately has no data to work from."""
    pass


class InternalError(AppError):
    """Raised when infrastructure fails; reported without internals."""
    pass


class DatabaseError(InternalError):
    """Raised when a document store operation fails."""
    pass


class CacheError(InternalError):
    """Raised when the ranking cache or sequence store fails."""
    pass


class PipelineError(InternalError):
    """Raised when an aggregation pipeline stage fails."""
    def __init__(self, message: str, stage: Optional[str] = None, original_error: Exception = None):
        super().__init__(message, original_error=original_error)
        self.stage = stage


class ReportQueryError(InternalError):
    """Raised when a reporting view cannot be produced."""
    pass
