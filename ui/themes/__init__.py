"""
Themes module for NetMonitor UI.
"""

from .default import DEFAULT_THEME

__all__ = [
    'DEFAULT_THEME'
]
