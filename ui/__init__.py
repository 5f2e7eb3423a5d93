"""
UI module for NetMonitor.

This module provides the user interface components for the application.
"""

from .app import NetMonitorApp
from .widgets.request_table import RequestTable
from .widgets.request_details import RequestDetails
from .themes.default import DEFAULT_THEME

__all__ = [
    'NetMonitorApp',
    'RequestTable',
    'RequestDetails',
    'DEFAULT_THEME'
]
