"""
Request table widget module for NetMonitor Textual UI.

This module provides the table listing reconstructed network requests.
"""

from typing import List, Optional

from textual.widgets import DataTable
from textual.widgets.data_table import CellDoesNotExist

from ...core.models import RequestRecord
from ...utils.formatting import FormattingUtils


class RequestTable(DataTable):
    """
    Table of request records, most recent first.
    """

    COLUMNS = ("Method", "URL", "Status", "Duration", "Time")

    def __init__(self, **kwargs):
        super().__init__(cursor_type="row", zebra_stripes=True, **kwargs)

    def on_mount(self) -> None:
        if not self.columns:
            self.add_columns(*self.COLUMNS)

    @property
    def cursor_record_id(self) -> Optional[str]:
        """Id of the record under the cursor, if any."""
        if not self.row_count:
            return None
        try:
            return self.coordinate_to_cell_key(self.cursor_coordinate).row_key.value
        except CellDoesNotExist:
            return None

    def populate(self, records: List[RequestRecord], selected_id: Optional[str] = None) -> None:
        """
        Replace the table rows with the given records.

        The cursor stays on the selected record, or on the record it was on
        before when nothing is selected.

        Args:
            records: Records in display order
            selected_id: Id of the selected record, to keep the cursor on it
        """
        if not self.columns:
            self.add_columns(*self.COLUMNS)

        target_id = selected_id if selected_id is not None else self.cursor_record_id
        self.clear()
        cursor_row = None
        for index, record in enumerate(records):
            self.add_row(
                FormattingUtils.format_method(record.method),
                FormattingUtils.format_url(record.url),
                FormattingUtils.format_status(record.status),
                FormattingUtils.format_duration(record.duration_text),
                FormattingUtils.format_time(record.timestamp),
                key=record.id,
            )
            if record.id == target_id:
                cursor_row = index
        if cursor_row is not None:
            self.move_cursor(row=cursor_row)
