"""
Line filter module for NetMonitor.

Selects the log lines written by the monitored application's JS runtime
and strips the logcat prefix from them.
"""

import re
import logging
from typing import Optional

from ..config.settings import Settings


class LineFilter:
    """
    Pass-through filter for lines carrying the channel tag.

    A logcat line looks like::

        10-19 12:00:00.123  4242  4267 I ReactNativeJS: 'NETWORK_REQUEST 7 GET https://a.b/c'

    Only the text after ``<tag>:`` is kept, without the quotes the JS
    console adds around strings.
    """

    def __init__(self, channel_tag: Optional[str] = None):
        """
        Initialize the line filter.

        Args:
            channel_tag: Logcat tag identifying the monitored channel
        """
        self.channel_tag = channel_tag or Settings().DEFAULT_CHANNEL_TAG
        self.logger = logging.getLogger(__name__)
        # "brief" logcat output puts the pid between tag and colon: "ReactNativeJS( 4242):"
        self._payload_pattern = re.compile(
            re.escape(self.channel_tag) + r"(?:\(\s*\d+\))?:\s*'?(.*?)'?\s*$"
        )

    def matches(self, line: str) -> bool:
        """Return True if the line belongs to the monitored channel."""
        return self.channel_tag in line

    def extract_payload(self, line: str) -> Optional[str]:
        """
        Extract the payload text from a raw log line.

        Args:
            line: Raw log line

        Returns:
            Payload string, or None if the line is not from the channel
        """
        if not self.matches(line):
            return None

        match = self._payload_pattern.search(line)
        if not match:
            self.logger.debug(f"Channel tag without payload: {line!r}")
            return None

        return match.group(1)
