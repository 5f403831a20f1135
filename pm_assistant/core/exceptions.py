# exceptions.py
"""Custom exceptions for the project assistant."""

from typing import Optional


class AssistantError(Exception):
    """Base exception for project assistant errors"""
    pass


class ConfigurationError(AssistantError):
    """Raised when configuration is invalid"""
    pass


class DatabaseError(AssistantError):
    """Raised when database operations fail"""
    pass


class VectorServiceError(AssistantError):
    """Raised when vector index operations fail"""
    pass


class RateLimitError(AssistantError):
    """Raised when an external service rejects a call because of load"""

    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class EmbeddingRetryError(AssistantError):
    """Raised when an embedding batch still fails after all retries"""

    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts


class ClassifierError(AssistantError):
    """Raised when the remote intent classifier fails"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class InvalidCredentialsError(ClassifierError):
    """Raised when the classifier rejects the configured credentials"""
    pass


class ClassifierBusyError(ClassifierError):
    """Raised when the classifier is rate limiting us"""
    pass


class ServiceUnavailableError(ClassifierError):
    """Raised when the classifier is temporarily down"""
    pass


class ClassifierParseError(ClassifierError):
    """Raised when the classifier response is not a valid intent object"""
    pass


class UpstreamServiceError(AssistantError):
    """Raised when weather, nameday or generation services fail"""
    pass


class SyncInProgressError(AssistantError):
    """Raised when a rebuild is requested while one is already running"""
    pass
