"""
Log processing module for NetMonitor.

This module turns the raw chunked log stream into network events with
streaming support: chunks are reassembled into lines, filtered and
classified in arrival order.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Union

from .line_buffer import LineBuffer
from .models import NetworkEvent
from ..parsers.event_parser import EventParser
from ..parsers.line_filter import LineFilter


class StreamingLogProcessor:
    """
    Handles processing of the log stream with real-time callbacks.
    """

    def __init__(self, config=None, parser: Optional[EventParser] = None):
        """
        Initialize the streaming log processor with configuration.

        Args:
            config: Application configuration (optional)
            parser: Event parser, built from the configured channel tag by default
        """
        self.config = config
        self.logger = logging.getLogger(__name__)

        if parser is None:
            channel_tag = config.source.channel_tag if config else None
            parser = EventParser(LineFilter(channel_tag))
        self.parser = parser
        self.line_buffer = LineBuffer()

        # Callbacks for real-time processing
        self.stream_callbacks: List[Callable[[NetworkEvent], None]] = []

        self.stats = {
            'lines': 0,
            'channel_lines': 0,
            'events': 0,
            'discarded': 0,
        }

    def register_stream_callback(self, callback: Callable[[NetworkEvent], None]):
        """
        Register a callback to receive every classified event.

        Args:
            callback: Function called with each new event
        """
        self.stream_callbacks.append(callback)

    def unregister_stream_callback(self, callback: Callable[[NetworkEvent], None]):
        """
        Unregister a previously registered callback.

        Args:
            callback: Function to remove from callbacks
        """
        if callback in self.stream_callbacks:
            self.stream_callbacks.remove(callback)

    def process_line(self, line: str) -> Optional[NetworkEvent]:
        """
        Process one complete log line.

        Args:
            line: Raw log line without terminator

        Returns:
            The classified event, or None if the line was dropped
        """
        self.stats['lines'] += 1

        payload = self.parser.line_filter.extract_payload(line)
        if payload is None:
            return None
        self.stats['channel_lines'] += 1

        event = self.parser.parse(payload)
        if event is None:
            self.stats['discarded'] += 1
            self.logger.debug(f"Unmatched payload: {payload!r}")
            return None

        self.stats['events'] += 1
        self.logger.debug(f"Classified {event.type} event for id {event.id}")

        for callback in self.stream_callbacks:
            try:
                callback(event)
            except Exception as e:
                self.logger.error(f"Error in stream callback: {str(e)}")

        return event

    def feed(self, chunk: Union[bytes, str]) -> List[NetworkEvent]:
        """
        Process a chunk of raw stream data.

        Lines split across chunks are completed by later chunks.

        Args:
            chunk: Data as read from the log source

        Returns:
            Events classified from the lines completed by this chunk
        """
        events = []
        for line in self.line_buffer.feed(chunk):
            event = self.process_line(line)
            if event is not None:
                events.append(event)
        return events

    def finish(self) -> List[NetworkEvent]:
        """
        Process whatever fragment remains once the stream has ended.

        Returns:
            Zero or one event
        """
        remainder = self.line_buffer.flush()
        if remainder is None:
            return []
        event = self.process_line(remainder)
        return [event] if event is not None else []

    def get_statistics(self) -> Dict[str, Any]:
        """
        Get processing statistics.

        Returns:
            Dictionary with line and event counters
        """
        stats = dict(self.stats)
        stats['pending_fragment'] = len(self.line_buffer.pending)
        return stats
