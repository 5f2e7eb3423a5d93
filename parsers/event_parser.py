"""
Event parser module for NetMonitor.

This module classifies log payloads into typed network events using an
ordered list of marker/pattern rules.
"""

import re
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from ..config.settings import Settings
from ..core.models import (
    NetworkEvent,
    RequestEvent,
    ResponseEvent,
    RequestBodyEvent,
    ResponseBodyEvent,
)
from .line_filter import LineFilter


EventBuilder = Callable[[re.Match, str, datetime], NetworkEvent]


@dataclass(frozen=True)
class ClassificationRule:
    """
    One classification rule.

    The marker decides whether the rule applies; the pattern then has to
    capture every field or the payload is dropped.
    """
    name: str
    marker: str
    pattern: re.Pattern
    build: EventBuilder


def _build_request_body(match: re.Match, raw: str, timestamp: datetime) -> NetworkEvent:
    return RequestBodyEvent(id=match.group(1), body=match.group(2), raw=raw, timestamp=timestamp)


def _build_response_body(match: re.Match, raw: str, timestamp: datetime) -> NetworkEvent:
    return ResponseBodyEvent(id=match.group(1), body=match.group(2), raw=raw, timestamp=timestamp)


def _build_request(match: re.Match, raw: str, timestamp: datetime) -> NetworkEvent:
    return RequestEvent(id=match.group(1), method=match.group(2), url=match.group(3),
                        raw=raw, timestamp=timestamp)


def _build_response(match: re.Match, raw: str, timestamp: datetime) -> NetworkEvent:
    return ResponseEvent(id=match.group(1), status=match.group(2),
                         duration_text=match.group(3) + "ms", raw=raw, timestamp=timestamp)


_settings = Settings()

# Body markers contain the plain markers as prefixes, so they must come first.
CLASSIFICATION_RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule(
        name='request_body',
        marker=_settings.REQUEST_BODY_MARKER,
        pattern=re.compile(r'NETWORK_REQUEST_BODY\s+(\d+)\s+(.+)'),
        build=_build_request_body,
    ),
    ClassificationRule(
        name='response_body',
        marker=_settings.RESPONSE_BODY_MARKER,
        pattern=re.compile(r'NETWORK_RESPONSE_BODY\s+(\d+)\s+(.+)'),
        build=_build_response_body,
    ),
    ClassificationRule(
        name='request',
        marker=_settings.REQUEST_MARKER,
        pattern=re.compile(r'NETWORK_REQUEST\s+(\d+)\s+(\w+)\s+(.+)'),
        build=_build_request,
    ),
    ClassificationRule(
        name='response',
        marker=_settings.RESPONSE_MARKER,
        pattern=re.compile(r'NETWORK_RESPONSE\s+(\d+)\s+(\d+)\s+(.+?)ms'),
        build=_build_response,
    ),
)


class EventParser:
    """
    Classifier turning log payloads into network events.
    """

    def __init__(self, line_filter: Optional[LineFilter] = None,
                 rules: Tuple[ClassificationRule, ...] = CLASSIFICATION_RULES,
                 clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize the event parser.

        Args:
            line_filter: Filter used by ``parse_line``
            rules: Ordered classification rules; the first applicable one wins
            clock: Source of event timestamps, UTC now by default
        """
        self.line_filter = line_filter or LineFilter()
        self.rules = rules
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.logger = logging.getLogger(__name__)

    def find_rule(self, payload: str) -> Optional[ClassificationRule]:
        """Return the first rule whose marker occurs in the payload."""
        for rule in self.rules:
            if rule.marker in payload:
                return rule
        return None

    def parse(self, payload: str) -> Optional[NetworkEvent]:
        """
        Classify a payload into exactly one event.

        Args:
            payload: Payload text with the logcat prefix removed

        Returns:
            A NetworkEvent, or None if no rule applies or the applicable
            rule's fields cannot all be captured
        """
        rule = self.find_rule(payload)
        if rule is None:
            return None

        match = rule.pattern.search(payload)
        if not match:
            self.logger.debug(f"Discarding malformed {rule.name} payload: {payload!r}")
            return None

        return rule.build(match, payload, self.clock())

    def parse_line(self, line: str) -> Optional[NetworkEvent]:
        """
        Filter and classify a raw log line.

        Args:
            line: Raw log line

        Returns:
            A NetworkEvent or None
        """
        payload = self.line_filter.extract_payload(line)
        if payload is None:
            return None
        return self.parse(payload)

    def parse_lines(self, lines: List[str]) -> List[NetworkEvent]:
        """Classify several lines, keeping only those producing an event."""
        events = []
        for line in lines:
            event = self.parse_line(line)
            if event is not None:
                events.append(event)
        return events
