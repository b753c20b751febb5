"""
Utility modules for the ERGI glacier attribute view system.

This module provides utility functions and setup for logging, performance
timing and other common functionality used throughout the system.
"""

from .logging_setup import setup_logging, get_logger, log_performance, log_phase

__all__ = ["setup_logging", "get_logger", "log_performance", "log_phase"] 