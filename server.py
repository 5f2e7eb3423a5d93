"""
Event server for NetMonitor.

Runs the log source and publishes every classified network event to the
WebSocket clients connected at that moment.
"""

import asyncio
import logging
from typing import Optional

from aiohttp import WSMsgType, web

from .config.config import Config
from .core.event_bus import EventBus
from .core.log_processor import StreamingLogProcessor
from .core.log_source import LogcatSource
from .core.models import NetworkEvent


class NetworkLogServer:
    """
    One producer session: owns the event bus, the processor and the source.
    """

    def __init__(self, config: Config, event_bus: Optional[EventBus] = None,
                 processor: Optional[StreamingLogProcessor] = None):
        """
        Initialize the server session.

        Args:
            config: Application configuration
            event_bus: Fan-out used for connected clients
            processor: Log stream processor
        """
        self.config = config
        self.event_bus = event_bus or EventBus(send_timeout=config.server.send_timeout)
        self.processor = processor or StreamingLogProcessor(config)
        self.logger = logging.getLogger(__name__)
        self.source: Optional[LogcatSource] = None
        self._source_task: Optional[asyncio.Task] = None

    def create_app(self) -> web.Application:
        """Build the aiohttp application serving the event stream."""
        app = web.Application()
        app.router.add_get('/', self.websocket_handler)
        app.router.add_get('/stats', self.stats_handler)
        return app

    async def websocket_handler(self, request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse()
        await ws.prepare(request)

        self.event_bus.subscribe(ws)
        self.logger.info(f"Client connected from {request.remote}")
        try:
            async for msg in ws:
                # Clients only listen; anything they send is ignored
                if msg.type == WSMsgType.ERROR:
                    self.logger.warning(f"Client connection error: {ws.exception()}")
        finally:
            self.event_bus.unsubscribe(ws)
            self.logger.info("Client disconnected")
        return ws

    async def stats_handler(self, request: web.Request) -> web.Response:
        stats = self.processor.get_statistics()
        stats['clients'] = len(self.event_bus)
        stats['source_running'] = bool(self.source and self.source.running)
        return web.json_response(stats)

    async def publish(self, event: NetworkEvent):
        self.logger.info(f"Sending {event.type} event {event.id}: {event.raw}")
        await self.event_bus.publish(event)

    async def _start_source(self, app: web.Application):
        self.source = LogcatSource(self.config, self.processor, self.publish)
        self._source_task = asyncio.create_task(self.source.run())

    async def _stop_source(self, app: web.Application):
        if self.source is not None:
            self.source.stop()
        if self._source_task is not None:
            self._source_task.cancel()
            try:
                await self._source_task
            except asyncio.CancelledError:
                pass
            self._source_task = None
        for ws in self.event_bus.consumers:
            await ws.close()
        self.event_bus.clear_subscribers()

    def run(self):
        """Serve until interrupted."""
        app = self.create_app()
        app.on_startup.append(self._start_source)
        app.on_shutdown.append(self._stop_source)

        host, port = self.config.server.host, self.config.server.port
        self.logger.info(f"Logcat WebSocket server running on ws://{host}:{port}")
        web.run_app(app, host=host, port=port, print=None)
