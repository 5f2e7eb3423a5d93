"""Utilities module for NetMonitor."""

from .formatting import FormattingUtils
from .log_setup import setup_logging

__all__ = ['FormattingUtils', 'setup_logging']
