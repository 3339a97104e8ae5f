"""Memory-related exceptions."""

from .base import BaseAppException


class MemoryNotFoundError(BaseAppException):
    """Raised when a memory is not found."""

    def __init__(self, message: str = "Memory not found"):
        super().__init__(message=message, status_code=404, error_code="MEMORY_NOT_FOUND")


class MemoryPermissionError(BaseAppException):
    """Raised when user doesn't have permission to access a memory."""

    def __init__(self, message: str = "You don't have permission to access this memory"):
        super().__init__(message=message, status_code=403, error_code="MEMORY_PERMISSION_DENIED")
