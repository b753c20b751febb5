"""
ERGI View Framework Core Package

This package contains the core infrastructure for the ERGI glacier attribute
view utilities, providing shared configuration, logging, exceptions and the
processing interfaces used by the view modules.
"""

from .interfaces import ModuleProcessor, ProcessingResult, ModuleStatus

__version__ = "1.0.0"
__all__ = ['ModuleProcessor', 'ProcessingResult', 'ModuleStatus']
