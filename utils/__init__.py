"""
Shared utilities
"""
from .logger import logger, setup_logger
from .exceptions import (
    FinAssistException,
    DatabaseError,
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    RateLimitError,
    ConfigurationError,
    NotFoundError,
    QueryTimeoutError
)
from .validators import Validator, SECURITY_LIMITS
from .rate_limiter import RateLimiter, rate_limiter, check_rate_limit
from .retry import retry

__all__ = [
    'logger',
    'setup_logger',
    'FinAssistException',
    'DatabaseError',
    'ValidationError',
    'AuthenticationError',
    'AuthorizationError',
    'RateLimitError',
    'ConfigurationError',
    'NotFoundError',
    'QueryTimeoutError',
    'Validator',
    'SECURITY_LIMITS',
    'RateLimiter',
    'rate_limiter',
    'check_rate_limit',
    'retry'
]
