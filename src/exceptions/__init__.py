"""
Custom exceptions for the ERGI glacier attribute view system.

This module provides domain-specific exception classes for error handling
and debugging throughout the system.
"""

from .custom_exceptions import (
    ERGIBaseException,
    ERGIConfigurationError,
    ERGIValidationError,
    ERGIProcessingError,
)

__all__ = [
    "ERGIBaseException",
    "ERGIConfigurationError",
    "ERGIValidationError",
    "ERGIProcessingError",
]
