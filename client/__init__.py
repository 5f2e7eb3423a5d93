"""Consumer-side connection handling for NetMonitor."""

from .connection import ConnectionManager, ConnectionStatus

__all__ = ['ConnectionManager', 'ConnectionStatus']
