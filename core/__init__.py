"""Core functionality module for NetMonitor."""

from .models import (
    NetworkEvent,
    RequestEvent,
    ResponseEvent,
    RequestBodyEvent,
    ResponseBodyEvent,
    RequestRecord,
)
from .line_buffer import LineBuffer
from .event_bus import EventBus
from .request_store import RequestStore

__all__ = [
    'NetworkEvent',
    'RequestEvent',
    'ResponseEvent',
    'RequestBodyEvent',
    'ResponseBodyEvent',
    'RequestRecord',
    'LineBuffer',
    'EventBus',
    'RequestStore',
]
