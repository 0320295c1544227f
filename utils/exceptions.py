"""
Application exceptions
"""
from typing import Optional


class FinAssistException(Exception):
    """Base exception for FinAssist"""
    def __init__(self, message: str, error_code: Optional[str] = None):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)


class DatabaseError(FinAssistException):
    """Database failure"""
    pass


class ValidationError(FinAssistException):
    """Invalid input data"""
    pass


class AuthenticationError(FinAssistException):
    """Caller could not be authenticated"""
    pass


class AuthorizationError(FinAssistException):
    """Caller is not allowed to perform the action"""
    pass


class RateLimitError(FinAssistException):
    """Request budget exhausted"""
    pass


class ConfigurationError(FinAssistException):
    """Invalid or missing configuration"""
    pass


class NotFoundError(FinAssistException):
    """Requested record does not exist"""
    pass


class QueryTimeoutError(FinAssistException):
    """Query did not finish within the allowed time"""
    pass
