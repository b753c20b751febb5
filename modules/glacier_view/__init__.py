"""Glacier View Module

Materializes the ERGI glacier attribute view: one row per glacier carrying
its static fields, the terminus type and surge flag decoded from the packed
RGI classification code, and one region label per configured region family.
"""

from .processor import GlacierViewBuilder
from .refresh import ReadOnlyView, RefreshController, ViewState

__all__ = ['GlacierViewBuilder', 'ReadOnlyView', 'RefreshController', 'ViewState']
