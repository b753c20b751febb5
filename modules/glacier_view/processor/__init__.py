"""Glacier View Processing Logic

This package contains the main processing implementation for the glacier view
module, including the GlacierViewBuilder class that implements the
ModuleProcessor interface.
"""

from .glacier_view_builder import GlacierViewBuilder
from .view_config import ViewConfig, ProcessingSettings, load_view_config

__all__ = ['GlacierViewBuilder', 'ViewConfig', 'ProcessingSettings', 'load_view_config']
