"""
Main Textual application UI for NetMonitor.

This module provides the live dashboard: it connects to the event server,
feeds the request store and redraws whenever a record changes.
"""

from typing import Optional
import logging

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widgets import DataTable, Footer, Header, Static

from ..client.connection import ConnectionManager, ConnectionStatus
from ..config.config import Config
from ..core.models import NetworkEvent, RequestRecord
from ..core.request_store import RequestStore
from ..utils.formatting import FormattingUtils
from .themes.default import DEFAULT_THEME
from .widgets.request_details import RequestDetails
from .widgets.request_table import RequestTable


class NetMonitorApp(App):
    """
    Main Textual application for NetMonitor.
    """

    TITLE = "NetMonitor"
    SUB_TITLE = "React Native network requests from logcat"

    CSS = """
    #status-bar {
        height: 1;
        padding: 0 1;
    }
    #main-container {
        height: 1fr;
    }
    RequestTable {
        width: 3fr;
    }
    RequestDetails {
        width: 2fr;
        border: round $secondary;
        padding: 0 1;
    }
    .section-title {
        text-style: bold;
        margin-top: 1;
    }
    .json-viewer {
        background: $panel;
        padding: 0 1;
    }
    #empty-state {
        padding: 1 2;
        color: $text-muted;
    }
    """

    BINDINGS = [
        Binding("escape", "clear_selection", "Close details"),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(self, config: Config, store: Optional[RequestStore] = None,
                 connection: Optional[ConnectionManager] = None):
        """
        Initialize the application.

        Args:
            config: Application configuration
            store: Request store, a fresh one per session by default
            connection: Connection manager, created on mount by default
        """
        self.config = config
        self.store = store or RequestStore(config)
        self.connection = connection
        self.logger = logging.getLogger(__name__)
        self.connection_status = ConnectionStatus.DISCONNECTED
        self._view_ready = False

        self.store.register_change_callback(self._on_record_changed)

        super().__init__()

    def compose(self) -> ComposeResult:
        """Create child widgets for the app."""
        yield Header()
        yield Static(id="status-bar")
        yield Horizontal(
            RequestTable(id="requests"),
            RequestDetails(id="details"),
            id="main-container",
        )
        yield Static(id="empty-state")
        yield Footer()

    def on_mount(self) -> None:
        """Called when app is mounted."""
        self.register_theme(DEFAULT_THEME)
        self.theme = DEFAULT_THEME.name

        if self.connection is None:
            self.connection = ConnectionManager(
                self.config.client.url,
                on_event=self.handle_event,
                reconnect_delay=self.config.client.reconnect_delay,
            )
        self.connection.register_status_callback(self._on_status_changed)
        self._view_ready = True
        self.connection.start()
        self.refresh_view()

    def on_unmount(self) -> None:
        self._view_ready = False
        if self.connection is not None:
            self.connection.stop()

    def handle_event(self, event: NetworkEvent) -> None:
        self.store.upsert(event)

    def _on_record_changed(self, record: RequestRecord, event: NetworkEvent) -> None:
        if self._view_ready:
            self.refresh_view()

    def _on_status_changed(self, status: ConnectionStatus) -> None:
        self.connection_status = status
        if self._view_ready:
            self.refresh_view()

    def refresh_view(self) -> None:
        """Redraw status bar, table and details from the store."""
        records = self.store.records
        selected = self.store.selected

        status_text = FormattingUtils.format_connection_status(self.connection_status)
        status_text.append(f"   Total Requests: {len(records)}", style="default")
        self.query_one("#status-bar", Static).update(status_text)

        self.query_one(RequestTable).populate(records, selected.id if selected else None)
        self.query_one(RequestDetails).show_record(selected)

        empty_state = self.query_one("#empty-state", Static)
        empty_state.display = not records
        if self.connection_status != ConnectionStatus.CONNECTED:
            empty_state.update(
                "Waiting for connection...\n"
                f"Make sure the event server is running: netmonitor serve ({self.config.client.url})"
            )
        else:
            empty_state.update(
                "No network requests detected.\n"
                "Make network calls in your React Native app to see them here."
            )

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        """Handle row selection in the request table."""
        record_id = event.row_key.value
        if self.store.select(record_id) is not None:
            self.query_one(RequestDetails).show_record(self.store.selected)

    def action_clear_selection(self) -> None:
        self.store.clear_selection()
        self.query_one(RequestDetails).show_record(None)
