"""
Event bus module for NetMonitor.

This module fans classified network events out to every connected
consumer.
"""

import asyncio
import logging
from typing import Any, List, Optional, Protocol, Set

from ..config.settings import Settings
from .models import NetworkEvent


class EventConsumer(Protocol):
    """
    Anything the bus can deliver to, typically an aiohttp WebSocketResponse.
    """

    @property
    def closed(self) -> bool: ...

    async def send_str(self, data: str) -> None: ...


class EventBus:
    """
    Fan-out of events to the currently connected consumers.

    Delivery is best effort: a consumer that is not ready when an event is
    published misses it. There is no per-consumer queue and no retry. A
    consumer that does not accept an event within ``send_timeout`` seconds
    is dropped, so one stalled client cannot hold up the others.
    """

    def __init__(self, send_timeout: Optional[float] = None):
        """
        Initialize the event bus.

        Args:
            send_timeout: Seconds allowed for one send to one consumer
        """
        self.send_timeout = (send_timeout if send_timeout is not None
                             else Settings().DEFAULT_SEND_TIMEOUT)
        self._consumers: Set[Any] = set()
        self.logger = logging.getLogger(__name__)

    def subscribe(self, consumer: EventConsumer):
        """
        Register a consumer.

        Args:
            consumer: Consumer to deliver events to
        """
        self._consumers.add(consumer)
        self.logger.debug(f"Consumer subscribed ({len(self._consumers)} total)")

    def unsubscribe(self, consumer: EventConsumer):
        """
        Remove a consumer. Removing an absent consumer is a no-op.

        Args:
            consumer: Consumer to remove
        """
        self._consumers.discard(consumer)

    @property
    def consumers(self) -> List[EventConsumer]:
        return list(self._consumers)

    def __len__(self) -> int:
        return len(self._consumers)

    async def publish(self, event: NetworkEvent) -> int:
        """
        Deliver an event to every ready consumer.

        Args:
            event: Event to deliver

        Returns:
            Number of consumers the event was delivered to
        """
        message = event.to_json()
        ready = [consumer for consumer in self._consumers if not consumer.closed]
        if not ready:
            return 0

        self.logger.debug(f"Publishing {event.type} event {event.id} to {len(ready)} consumer(s)")
        results = await asyncio.gather(
            *(asyncio.wait_for(consumer.send_str(message), self.send_timeout) for consumer in ready),
            return_exceptions=True,
        )

        delivered = 0
        for consumer, result in zip(ready, results):
            if isinstance(result, BaseException):
                self.logger.warning(f"Dropping consumer after send failure: {type(result).__name__} {result}")
                self.unsubscribe(consumer)
            else:
                delivered += 1
        return delivered

    def clear_subscribers(self):
        """Remove every consumer."""
        self._consumers.clear()
        self.logger.debug("Cleared all subscribers")
