"""
Widgets module for NetMonitor UI.

This module provides the widget components for the application.
"""

from .request_table import RequestTable
from .request_details import RequestDetails

__all__ = [
    'RequestTable',
    'RequestDetails'
]
