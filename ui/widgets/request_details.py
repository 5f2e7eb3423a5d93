"""
Request details widget module for NetMonitor Textual UI.
"""

from typing import Optional

from rich.console import Group
from rich.text import Text
from textual.containers import VerticalScroll
from textual.widgets import Static

from ...core.models import RequestRecord
from ...utils.formatting import FormattingUtils


class RequestDetails(VerticalScroll):
    """
    Detail panel for the selected request, bodies pretty-printed.
    """

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.summary = Static(id="details-summary")
        self.request_body = Static(id="details-request-body", classes="json-viewer")
        self.response_body = Static(id="details-response-body", classes="json-viewer")

    def compose(self):
        yield Static("Request Details", classes="section-title")
        yield self.summary
        yield Static("Request Body", classes="section-title")
        yield self.request_body
        yield Static("Response Body", classes="section-title")
        yield self.response_body

    def show_record(self, record: Optional[RequestRecord]) -> None:
        """
        Display a record, or hide the panel when there is none.
        """
        self.display = record is not None
        if record is None:
            return

        self.summary.update(Group(
            Text.assemble(("ID: ", "bold"), record.id),
            Text.assemble(("Method: ", "bold"), FormattingUtils.format_method(record.method)),
            Text.assemble(("URL: ", "bold"), record.url),
            Text.assemble(("Status: ", "bold"), record.status),
            Text.assemble(("Duration: ", "bold"),
                          FormattingUtils.format_duration(record.duration_text, "Pending")),
        ))
        self.request_body.update(FormattingUtils.format_body(record.request_body))
        self.response_body.update(FormattingUtils.format_body(record.response_body))
