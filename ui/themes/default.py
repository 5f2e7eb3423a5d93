"""
Default theme module for NetMonitor Textual UI.

Dark colours in the spirit of browser developer tools.
"""

from textual.theme import Theme


DEFAULT_THEME = Theme(
    name="netmonitor-dark",
    primary="#2196F3",
    secondary="#6C757D",
    warning="#FF9800",
    error="#F44336",
    success="#4CAF50",
    accent="#17A2B8",
    background="#1E1E1E",
    surface="#252526",
    panel="#2D2D2D",
    dark=True,
)
