"""
Base exceptions for Fare Funnel.
"""


class FareFunnelError(Exception):
    """
    Base exception for all Fare Funnel errors.
    
    All custom exceptions inherit from this class, making it easy
    to catch any error from the library.
    
    Attributes:
        message: Human-readable error message
        details: Optional additional error details
    """
    
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
    
    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class ConfigurationError(FareFunnelError):
    """
    Error in configuration.
    
    Raised when there's an issue with settings, environment variables,
    configuration files, or a malformed target state definition.
    """
    pass


class Cancelled(FareFunnelError):
    """
    A bounded wait was aborted from outside.
    
    Raised when the run's cancel token fires (overall run timeout, Ctrl+C).
    Deliberately not a timeout: callers must not retry on it.
    """
    
    def __init__(self, message: str, operation: str | None = None):
        super().__init__(message, {"operation": operation})
        self.operation = operation
