"""
Connection management for NetMonitor consumers.

Keeps one WebSocket link to the event server, reconnecting after a fixed
delay whenever the link fails or closes, and reports its status to
observers.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, List, Optional

import aiohttp

from ..config.settings import Settings
from ..core.models import EventDecodeError, NetworkEvent, event_from_json


class ConnectionStatus(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


class ConnectionManager:
    """
    Single logical link to the event server.

    States move ``disconnected -> connecting -> connected``. A close or
    failure while connected moves to ``disconnected``; a failure while
    connecting moves to ``error``. Both schedule one reconnect after
    ``reconnect_delay`` seconds, without backoff and without a retry limit.
    At most one reconnect timer is pending at any time.
    """

    def __init__(self, url: str, on_event: Callable[[NetworkEvent], None],
                 reconnect_delay: Optional[float] = None,
                 loop: Optional[asyncio.AbstractEventLoop] = None):
        """
        Initialize the connection manager.

        Args:
            url: WebSocket URL of the event server
            on_event: Called with every decoded event
            reconnect_delay: Seconds between a failure and the next attempt
            loop: Event loop used for tasks and timers, the running loop by default
        """
        self.url = url
        self.on_event = on_event
        self.reconnect_delay = (reconnect_delay if reconnect_delay is not None
                                else Settings().DEFAULT_RECONNECT_DELAY)
        self.logger = logging.getLogger(__name__)

        self._loop = loop
        self._status = ConnectionStatus.DISCONNECTED
        self._status_callbacks: List[Callable[[ConnectionStatus], None]] = []
        self._reconnect_handle: Optional[Any] = None
        self._task: Optional[Any] = None
        self._stopped = False
        self.attempts = 0

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_handle is not None

    def register_status_callback(self, callback: Callable[[ConnectionStatus], None]):
        """
        Register a callback to be called when the status changes.

        Args:
            callback: Function called with the new status
        """
        self._status_callbacks.append(callback)

    def _set_status(self, status: ConnectionStatus):
        if status == self._status:
            return
        self._status = status
        self.logger.debug(f"Connection status: {status.value}")
        for callback in self._status_callbacks:
            try:
                callback(status)
            except Exception as e:
                self.logger.error(f"Error in status callback: {str(e)}")

    def start(self):
        """Open the link. Does nothing if the manager was stopped."""
        self._stopped = False
        self._connect()

    def _connect(self):
        self._reconnect_handle = None
        if self._stopped:
            return
        self.attempts += 1
        self._set_status(ConnectionStatus.CONNECTING)
        self._task = self.loop.create_task(self._run())

    async def _run(self):
        try:
            async with aiohttp.ClientSession() as session:
                try:
                    ws = await session.ws_connect(self.url)
                except (aiohttp.ClientError, OSError, asyncio.TimeoutError) as e:
                    self.handle_error(e)
                    return

                self.handle_open()
                try:
                    async for msg in ws:
                        if msg.type == aiohttp.WSMsgType.TEXT:
                            self.handle_message(msg.data)
                        elif msg.type == aiohttp.WSMsgType.ERROR:
                            self.handle_error(ws.exception())
                            return
                finally:
                    await ws.close()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.handle_error(e)
            return
        self.handle_close()

    def handle_open(self):
        self.logger.info(f"Connected to {self.url}")
        self._set_status(ConnectionStatus.CONNECTED)

    def handle_message(self, data: str):
        """Decode one text message and hand the event to ``on_event``."""
        try:
            event = event_from_json(data)
        except EventDecodeError as e:
            self.logger.warning(f"Ignoring malformed message: {e}")
            return
        try:
            self.on_event(event)
        except Exception as e:
            self.logger.error(f"Error handling {event.type} event {event.id}: {str(e)}")

    def handle_close(self):
        self.logger.info("Disconnected from event server")
        self._set_status(ConnectionStatus.DISCONNECTED)
        self._schedule_reconnect()

    def handle_error(self, error: Optional[BaseException] = None):
        if self._status == ConnectionStatus.CONNECTING:
            self.logger.error(f"Could not connect to {self.url}: {error}")
            self._set_status(ConnectionStatus.ERROR)
        else:
            self.logger.error(f"Connection error: {error}")
            self._set_status(ConnectionStatus.DISCONNECTED)
        self._schedule_reconnect()

    def _schedule_reconnect(self):
        if self._stopped or self._reconnect_handle is not None:
            return
        self.logger.info(f"Reconnecting in {self.reconnect_delay:g}s")
        self._reconnect_handle = self.loop.call_later(self.reconnect_delay, self._connect)

    def stop(self):
        """
        Tear the link down. Safe to call repeatedly or with no open link.
        """
        self._stopped = True
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None
        if self._task is not None:
            if not self._task.done():
                self._task.cancel()
            self._task = None
        self._set_status(ConnectionStatus.DISCONNECTED)
