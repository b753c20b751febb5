"""
Custom exception classes for the ERGI glacier attribute view system.

This module defines domain-specific exceptions to provide clear error handling
and debugging information throughout the system.
"""

from typing import Optional, Dict, Any


class ERGIBaseException(Exception):
    """Base exception class for all ERGI view exceptions."""
    
    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}
    
    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (Context: {context_str})"
        return self.message


class ERGIConfigurationError(ERGIBaseException):
    """
    Exception raised when configuration loading or validation fails.
    
    This exception is raised when:
    - Configuration files are missing or invalid
    - Environment configuration is malformed
    - Required configuration values are missing
    """
    pass


class ERGIValidationError(ERGIBaseException):
    """
    Exception raised when data validation fails.
    
    This exception is raised when:
    - Field mapping validation fails
    - Source columns are missing from an input table
    - Schema validation fails
    """
    pass


class ERGIProcessingError(ERGIBaseException):
    """
    Exception raised when view processing fails.
    
    This exception is raised when:
    - Spatial joins fail
    - Materialized rows violate integrity checks
    - A snapshot refresh cannot be completed
    """
    pass
