"""
Request store module for NetMonitor.

This module correlates partial network events by id into request records
and exposes the sorted, filtered view and the single selection used by
the dashboard.
"""

import logging
from collections import Counter
from typing import Any, Callable, Dict, List, Optional

from .models import (
    EventDecodeError,
    NetworkEvent,
    RequestBodyEvent,
    RequestEvent,
    RequestRecord,
    ResponseBodyEvent,
    ResponseEvent,
    event_from_json,
)


def _apply_request(record: RequestRecord, event: RequestEvent) -> None:
    record.method = event.method
    record.url = event.url


def _apply_response(record: RequestRecord, event: ResponseEvent) -> None:
    record.status = event.status
    record.duration_text = event.duration_text


def _apply_request_body(record: RequestRecord, event: RequestBodyEvent) -> None:
    record.request_body = event.body


def _apply_response_body(record: RequestRecord, event: ResponseBodyEvent) -> None:
    record.response_body = event.body


# Each event variant owns exactly one field group of the record
FIELD_GROUP_UPDATERS: Dict[type, Callable[[RequestRecord, Any], None]] = {
    RequestEvent: _apply_request,
    ResponseEvent: _apply_response,
    RequestBodyEvent: _apply_request_body,
    ResponseBodyEvent: _apply_response_body,
}


class RequestStore:
    """
    Owner of the id -> RequestRecord mapping.

    Records are created on the first event seen for an id and then only
    ever mutated in place, so references handed out (including the
    selection) always reflect the current state.

    Ids are not globally unique: when the app restarts its counter, events
    for a new call merge into the record left by the old call with the same
    id. The store makes no attempt to tell them apart.
    """

    def __init__(self, config=None, max_records: Optional[int] = None):
        """
        Initialize the request store.

        Args:
            config: Application configuration (optional)
            max_records: Evict the oldest records beyond this many; None
                keeps every record for the lifetime of the session
        """
        self.config = config
        self.logger = logging.getLogger(__name__)

        if max_records is None and config is not None:
            max_records = config.store.max_records
        self.max_records = max_records

        self._records: Dict[str, RequestRecord] = {}
        self._view: List[RequestRecord] = []
        self._selected: Optional[RequestRecord] = None

        self._change_callbacks: List[Callable[[RequestRecord, NetworkEvent], None]] = []

    def register_change_callback(self, callback: Callable[[RequestRecord, NetworkEvent], None]):
        """
        Register a callback to be called after every upsert.

        Args:
            callback: Function called with the updated record and the event
        """
        self._change_callbacks.append(callback)

    def _notify_change(self, record: RequestRecord, event: NetworkEvent):
        for callback in self._change_callbacks:
            try:
                callback(record, event)
            except Exception as e:
                self.logger.error(f"Error in store change callback: {str(e)}")

    def upsert(self, event: NetworkEvent) -> RequestRecord:
        """
        Merge an event into the record for its id.

        Args:
            event: Partial network event

        Returns:
            The created or updated record
        """
        updater = FIELD_GROUP_UPDATERS.get(type(event))
        if updater is None:
            raise TypeError(f"Unsupported event type: {type(event).__name__}")

        record = self._records.get(event.id)
        if record is None:
            record = RequestRecord(id=event.id, timestamp=event.timestamp)
            self._records[event.id] = record
            self.logger.debug(f"New request record {event.id}")

        updater(record, event)

        if self.max_records is not None and len(self._records) > self.max_records:
            self._evict(len(self._records) - self.max_records, keep=record)

        self._rebuild_view()
        self._notify_change(record, event)
        return record

    def apply_message(self, message: str) -> Optional[RequestRecord]:
        """
        Decode a transport message and merge it.

        Args:
            message: JSON-encoded event

        Returns:
            The updated record, or None if the message was malformed
        """
        try:
            event = event_from_json(message)
        except EventDecodeError as e:
            self.logger.warning(f"Ignoring malformed message: {e}")
            return None
        return self.upsert(event)

    def _evict(self, count: int, keep: RequestRecord):
        candidates = [r for r in self._records.values() if r is not keep]
        oldest = sorted(candidates, key=lambda r: r.timestamp)[:count]
        for record in oldest:
            del self._records[record.id]
            if record is self._selected:
                self._selected = None
        self.logger.info(f"Evicted {len(oldest)} request record(s), capacity {self.max_records}")

    def _rebuild_view(self):
        visible = [record for record in self._records.values() if record.url]
        visible.sort(key=lambda r: r.timestamp, reverse=True)
        self._view = visible

    @property
    def records(self) -> List[RequestRecord]:
        """Records with a known URL, most recent first."""
        return list(self._view)

    def get(self, record_id: str) -> Optional[RequestRecord]:
        return self._records.get(record_id)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: str) -> bool:
        return record_id in self._records

    @property
    def selected(self) -> Optional[RequestRecord]:
        return self._selected

    def select(self, record_id: str) -> Optional[RequestRecord]:
        """
        Select a record for detail display.

        Args:
            record_id: Id of the record to select

        Returns:
            The selected record, or None if the id is unknown (the
            selection is cleared in that case)
        """
        self._selected = self._records.get(record_id)
        return self._selected

    def clear_selection(self):
        self._selected = None

    def get_statistics(self) -> Dict[str, Any]:
        """
        Summarise the accumulated records.

        Returns:
            Dictionary with record counts
        """
        pending = sum(1 for record in self._view if record.is_pending)
        return {
            'total_records': len(self._records),
            'visible': len(self._view),
            'pending': pending,
            'completed': len(self._view) - pending,
            'methods': dict(Counter(record.method for record in self._view)),
        }
