"""
Formatting utilities module for NetMonitor.

This module provides the display formatting shared by the dashboard and
the headless monitor.
"""

import json
import re
from datetime import datetime
from typing import Optional, Union

from rich.json import JSON
from rich.text import Text

from ..client.connection import ConnectionStatus


_ORIGIN_PATTERN = re.compile(r'(https?://[^/]+/)')


class FormattingUtils:
    """
    Utility class for formatting operations.
    """

    STATUS_STYLES = {
        ConnectionStatus.CONNECTED: "bold green",
        ConnectionStatus.CONNECTING: "bold dark_orange",
        ConnectionStatus.ERROR: "bold red",
        ConnectionStatus.DISCONNECTED: "bold grey62",
    }

    METHOD_STYLES = {
        'GET': "green",
        'POST': "dark_orange",
        'PUT': "blue",
        'PATCH': "magenta",
        'DELETE': "red",
    }

    @staticmethod
    def format_connection_status(status: ConnectionStatus) -> Text:
        """
        Render a connection status badge.

        Args:
            status: Current connection status

        Returns:
            Styled text such as "Status: CONNECTED"
        """
        style = FormattingUtils.STATUS_STYLES.get(status, "bold")
        return Text(f"Status: {status.value.upper()}", style=style)

    @staticmethod
    def format_method(method: str) -> Text:
        if not method:
            return Text("?", style="dim")
        return Text(method, style=FormattingUtils.METHOD_STYLES.get(method.upper(), "bold"))

    @staticmethod
    def format_url(url: str) -> str:
        """
        Shorten a URL for table display by removing scheme and host.

        Args:
            url: Full request URL

        Returns:
            Path part of the URL, or "Loading..." when unknown
        """
        if not url:
            return "Loading..."
        return _ORIGIN_PATTERN.sub("", url, count=1)

    @staticmethod
    def format_status(status: str) -> Text:
        """
        Render an HTTP status, with an hourglass while the call is pending.
        """
        if status == "Pending":
            return Text("⏳")
        if status.startswith(("2", "3")):
            return Text(status, style="green")
        if status.startswith(("4", "5")):
            return Text(status, style="red")
        return Text(status)

    @staticmethod
    def format_duration(duration_text: str, placeholder: str = "-") -> str:
        return duration_text or placeholder

    @staticmethod
    def format_time(timestamp: Optional[datetime]) -> str:
        """
        Format an event timestamp as local wall-clock time.
        """
        if timestamp is None:
            return "-"
        return timestamp.astimezone().strftime("%H:%M:%S")

    @staticmethod
    def format_body(body: str) -> Union[JSON, Text]:
        """
        Pretty-print a request or response body.

        Empty bodies render as ``{}``; bodies that are not JSON are shown
        verbatim.

        Args:
            body: Raw body text as logged by the app

        Returns:
            A rich renderable
        """
        try:
            return JSON(body or "{}")
        except json.JSONDecodeError:
            return Text(body)
