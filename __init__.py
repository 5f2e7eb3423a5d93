"""
NetMonitor - A live network request viewer for React Native apps.

This package reads network instrumentation lines from the device log,
streams them as typed events and rebuilds full request/response records
for a terminal dashboard.
"""

__version__ = "0.1.0"

# Import main modules for easy access
from . import config
from . import core
from . import parsers
from . import utils

__all__ = [
    "config",
    "core",
    "parsers",
    "utils",
    "__version__"
]


def main():
    """Main entry point for the CLI."""
    from .cli import main as cli_main
    return cli_main()
