"""
Log source module for NetMonitor.

This module runs the external log-producing command (``adb logcat`` by
default) and pumps its output through the streaming log processor.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from .log_processor import StreamingLogProcessor
from .models import NetMonitorError, NetworkEvent


class LogSourceError(NetMonitorError):
    """Raised when the log source is misconfigured."""
    pass


EventHandler = Callable[[NetworkEvent], Awaitable[None]]


class LogcatSource:
    """
    Streams a subprocess's stdout into network events.

    A failing or exiting subprocess is reported through logging only;
    the owner keeps running and simply receives no further events.
    """

    def __init__(self, config, processor: StreamingLogProcessor, on_event: EventHandler,
                 command: Optional[List[str]] = None):
        """
        Initialize the log source.

        Args:
            config: Application configuration
            processor: Processor turning chunks into events
            on_event: Coroutine function awaited for every event, in order
            command: Command line overriding ``config.source.command``
        """
        self.config = config
        self.processor = processor
        self.on_event = on_event
        self.command = list(command or config.source.command)
        self.chunk_size = config.source.chunk_size
        self.logger = logging.getLogger(__name__)

        self.process: Optional[asyncio.subprocess.Process] = None
        self.running = False

        if not self.command:
            raise LogSourceError("Log source command is empty")

    async def run(self) -> Optional[int]:
        """
        Run the command until it exits or the source is stopped.

        Returns:
            The command's exit code, or None if it could not be started
        """
        self.logger.info(f"Starting log source: {' '.join(self.command)}")
        try:
            self.process = await asyncio.create_subprocess_exec(
                *self.command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            self.logger.error(f"Could not start log source {self.command[0]!r}: {e}")
            return None

        self.running = True
        try:
            await asyncio.gather(
                self.pump(self.process.stdout),
                self._drain_errors(self.process.stderr),
            )
            return_code = await self.process.wait()
        finally:
            self.running = False

        if return_code != 0:
            self.logger.error(f"Log source exited with code {return_code}")
        else:
            self.logger.info("Log source exited")
        return return_code

    async def pump(self, reader: asyncio.StreamReader) -> int:
        """
        Feed chunks from a stream reader to the processor until EOF.

        Args:
            reader: Stream to read raw log data from

        Returns:
            Number of events delivered
        """
        delivered = 0
        while True:
            chunk = await reader.read(self.chunk_size)
            if not chunk:
                break
            for event in self.processor.feed(chunk):
                await self.on_event(event)
                delivered += 1

        for event in self.processor.finish():
            await self.on_event(event)
            delivered += 1
        return delivered

    async def _drain_errors(self, reader: asyncio.StreamReader):
        while True:
            line = await reader.readline()
            if not line:
                break
            message = line.decode('utf-8', errors='replace').rstrip()
            if message:
                self.logger.error(f"ADB error: {message}")

    def stop(self):
        """Terminate the command if it is still running."""
        if self.process is not None and self.process.returncode is None:
            try:
                self.process.terminate()
            except ProcessLookupError:
                pass
            self.logger.info("Log source stopped")
