"""
Custom exceptions for the kdb+ datasource client
"""

from typing import Optional


class KdbClientError(Exception):
    """Base exception for all client errors"""
    pass


class ConfigurationError(KdbClientError):
    """Raised when there's an issue with the client configuration"""
    pass


class ConnectionError(KdbClientError):
    """Raised when there's an issue connecting to the host or the datasource"""
    pass


class ValidationError(KdbClientError):
    """Raised when input validation fails"""
    pass


class QueryExecutionError(KdbClientError):
    """Raised when a query could not be executed by the backend"""
    pass


class ResponseShapeError(QueryExecutionError):
    """Raised when a query response does not have the expected structure"""
    pass


class ResolutionError(KdbClientError):
    """
    Failure while resolving a variable query.

    Never escapes the resolver; it is logged and replaced by the sentinel value.
    `handled` mirrors the host flag that suppresses a second user-facing alert.
    """

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause
        self.handled = True
