"""
Tests for the core module in NetMonitor.

This file contains unit tests for line framing, stream processing, the
request store and the event bus.
"""

import asyncio
import json
from datetime import timedelta
from unittest.mock import Mock

import pytest

from netmonitor.core.event_bus import EventBus
from netmonitor.core.line_buffer import LineBuffer
from netmonitor.core.models import (
    EventDecodeError,
    RequestBodyEvent,
    RequestEvent,
    ResponseBodyEvent,
    ResponseEvent,
    event_from_dict,
    event_from_json,
)
from netmonitor.core.request_store import RequestStore

from conftest import BASE_TIME


def at(seconds):
    return BASE_TIME + timedelta(seconds=seconds)


class TestLineBuffer:
    """Tests for the LineBuffer class."""

    def test_complete_lines(self):
        buffer = LineBuffer()
        assert buffer.feed("a\nb\n") == ["a", "b"]
        assert buffer.pending == ""

    def test_fragment_is_carried_over(self):
        buffer = LineBuffer()
        assert buffer.feed("NETWORK_REQ") == []
        assert buffer.pending == "NETWORK_REQ"
        assert buffer.feed("UEST 7 GET https://x\n") == ["NETWORK_REQUEST 7 GET https://x"]
        assert buffer.pending == ""

    def test_crlf_terminators(self):
        buffer = LineBuffer()
        assert buffer.feed("a\r") == []
        assert buffer.feed("\nb\r\n") == ["a", "b"]

    def test_bytes_with_split_multibyte_character(self):
        buffer = LineBuffer()
        data = "café\n".encode("utf-8")
        assert buffer.feed(data[:4]) == []
        assert buffer.feed(data[4:]) == ["café"]

    def test_flush_returns_unterminated_tail(self):
        buffer = LineBuffer()
        buffer.feed("first\nlast")
        assert buffer.flush() == "last"
        assert buffer.flush() is None

    def test_empty_lines_are_kept(self):
        assert LineBuffer().feed("\n\nx\n") == ["", "", "x"]


class TestStreamingLogProcessor:
    """Tests for the StreamingLogProcessor class."""

    def test_line_split_across_chunks(self, log_processor):
        first = log_processor.feed("I ReactNativeJS: 'NETWORK_REQ")
        second = log_processor.feed("UEST 7 GET https://x'\n")

        assert first == []
        assert len(second) == 1
        event = second[0]
        assert isinstance(event, RequestEvent)
        assert (event.id, event.method, event.url) == ("7", "GET", "https://x")

    def test_events_in_stream_order(self, log_processor, logcat_lines):
        data = ("\n".join(logcat_lines) + "\n").encode("utf-8")
        events = []
        for start in range(0, len(data), 37):
            events.extend(log_processor.feed(data[start:start + 37]))

        assert [event.type for event in events] == [
            'request', 'request_body', 'response', 'response_body'
        ]

    def test_finish_processes_unterminated_line(self, log_processor):
        assert log_processor.feed("I ReactNativeJS: NETWORK_RESPONSE 7 200 9ms") == []
        events = log_processor.finish()
        assert len(events) == 1
        assert isinstance(events[0], ResponseEvent)
        assert log_processor.finish() == []

    def test_statistics(self, log_processor, logcat_lines):
        for line in logcat_lines:
            log_processor.process_line(line)
        log_processor.process_line("I ReactNativeJS: NETWORK_RESPONSE 1 200 12")

        stats = log_processor.get_statistics()
        assert stats['lines'] == 7
        assert stats['channel_lines'] == 6
        assert stats['events'] == 4
        assert stats['discarded'] == 2

    def test_stream_callbacks(self, log_processor):
        callback = Mock()
        log_processor.register_stream_callback(callback)
        log_processor.process_line("I ReactNativeJS: NETWORK_REQUEST 1 GET https://x")
        assert callback.call_count == 1
        assert isinstance(callback.call_args[0][0], RequestEvent)

        log_processor.unregister_stream_callback(callback)
        log_processor.unregister_stream_callback(callback)
        log_processor.process_line("I ReactNativeJS: NETWORK_REQUEST 2 GET https://x")
        assert callback.call_count == 1

    def test_failing_callback_does_not_stop_processing(self, log_processor):
        log_processor.register_stream_callback(Mock(side_effect=RuntimeError("boom")))
        event = log_processor.process_line("I ReactNativeJS: NETWORK_REQUEST 1 GET https://x")
        assert event is not None


class TestEventSerialization:
    """Tests for the event wire format."""

    def test_request_wire_fields(self):
        event = RequestEvent(id="7", method="GET", url="https://a.b/c", raw="r", timestamp=at(0))
        data = event.to_dict()
        assert data == {
            'timestamp': '2024-01-01T12:00:00+00:00',
            'raw': 'r',
            'type': 'request',
            'id': '7',
            'method': 'GET',
            'url': 'https://a.b/c',
        }

    def test_response_uses_duration_key(self):
        event = ResponseEvent(id="7", status="200", duration_text="123ms", timestamp=at(0))
        data = json.loads(event.to_json())
        assert data['type'] == 'response'
        assert data['duration'] == '123ms'

    def test_decode_body_event(self):
        event = event_from_dict({
            'timestamp': '2024-01-01T12:00:00+00:00',
            'raw': 'NETWORK_RESPONSE_BODY 7 {}',
            'type': 'response_body',
            'id': '7',
            'body': '{}',
        })
        assert isinstance(event, ResponseBodyEvent)
        assert event.timestamp == at(0)

    def test_timestamp_without_offset_is_utc(self):
        event = event_from_json(
            '{"timestamp": "2024-01-01T12:00:05", "type": "request_body", "id": "1", "body": "{}"}'
        )
        assert event.timestamp == at(5)
        assert event.timestamp.tzinfo is not None

    def test_zulu_timestamp(self):
        event = event_from_json(
            '{"timestamp": "2024-01-01T12:00:00.000Z", "type": "request_body", "id": "1", "body": "{}"}'
        )
        assert event.timestamp == at(0)

    @pytest.mark.parametrize("message", [
        'not json',
        '[]',
        '{"type": "teapot", "id": "1", "timestamp": "2024-01-01T12:00:00+00:00"}',
        '{"type": "request", "id": "1", "timestamp": "2024-01-01T12:00:00+00:00", "method": "GET"}',
        '{"type": "request_body", "id": "1", "timestamp": "yesterday", "body": "{}"}',
    ])
    def test_malformed_messages(self, message):
        with pytest.raises(EventDecodeError):
            event_from_json(message)


class TestRequestStore:
    """Tests for the RequestStore class."""

    def test_all_field_groups_merge_into_one_record(self, request_store):
        request_store.upsert(RequestEvent(id="7", method="POST", url="https://a.b/c", timestamp=at(0)))
        request_store.upsert(ResponseEvent(id="7", status="201", duration_text="80ms", timestamp=at(1)))
        request_store.upsert(RequestBodyEvent(id="7", body='{"a":1}', timestamp=at(2)))
        request_store.upsert(ResponseBodyEvent(id="7", body='{"ok":true}', timestamp=at(3)))

        assert len(request_store) == 1
        record = request_store.get("7")
        assert record.method == "POST"
        assert record.url == "https://a.b/c"
        assert record.status == "201"
        assert record.duration_text == "80ms"
        assert record.request_body == '{"a":1}'
        assert record.response_body == '{"ok":true}'
        assert record.timestamp == at(0)

    def test_new_record_defaults(self, request_store):
        record = request_store.upsert(RequestBodyEvent(id="3", body="x", timestamp=at(5)))
        assert record.status == "Pending"
        assert record.method == ""
        assert record.url == ""
        assert record.duration_text == ""
        assert record.response_body == ""
        assert record.timestamp == at(5)

    def test_last_response_wins_and_request_fields_untouched(self, request_store):
        request_store.upsert(ResponseEvent(id="7", status="500", duration_text="10ms", timestamp=at(0)))
        request_store.upsert(RequestEvent(id="7", method="GET", url="https://x/y", timestamp=at(1)))
        request_store.upsert(ResponseEvent(id="7", status="200", duration_text="20ms", timestamp=at(2)))

        record = request_store.get("7")
        assert record.status == "200"
        assert record.duration_text == "20ms"
        assert record.method == "GET"
        assert record.url == "https://x/y"

    def test_record_hidden_until_request_arrives(self, request_store):
        request_store.upsert(ResponseEvent(id="9", status="200", duration_text="5ms", timestamp=at(0)))
        assert "9" in request_store
        assert request_store.records == []

        request_store.upsert(RequestEvent(id="9", method="GET", url="https://x", timestamp=at(1)))
        assert [record.id for record in request_store.records] == ["9"]

    def test_view_sorted_most_recent_first(self, request_store):
        request_store.upsert(RequestEvent(id="1", method="GET", url="https://x/1", timestamp=at(0)))
        request_store.upsert(RequestEvent(id="3", method="GET", url="https://x/3", timestamp=at(20)))
        request_store.upsert(RequestEvent(id="2", method="GET", url="https://x/2", timestamp=at(10)))

        assert [record.id for record in request_store.records] == ["3", "2", "1"]

    def test_ids_not_sorted_numerically(self, request_store):
        request_store.upsert(RequestEvent(id="10", method="GET", url="https://x/10", timestamp=at(0)))
        request_store.upsert(RequestEvent(id="9", method="GET", url="https://x/9", timestamp=at(1)))
        assert [record.id for record in request_store.records] == ["9", "10"]

    def test_selection_follows_live_record(self, request_store):
        request_store.upsert(RequestEvent(id="7", method="GET", url="https://x", timestamp=at(0)))
        selected = request_store.select("7")
        assert selected is request_store.get("7")

        request_store.upsert(ResponseEvent(id="7", status="404", duration_text="3ms", timestamp=at(1)))
        assert request_store.selected is selected
        assert request_store.selected.status == "404"

        request_store.clear_selection()
        assert request_store.selected is None

    def test_select_unknown_id_clears_selection(self, request_store):
        request_store.upsert(RequestEvent(id="7", method="GET", url="https://x", timestamp=at(0)))
        request_store.select("7")
        assert request_store.select("nope") is None
        assert request_store.selected is None

    def test_records_view_is_a_copy_of_the_list(self, request_store):
        request_store.upsert(RequestEvent(id="1", method="GET", url="https://x", timestamp=at(0)))
        view = request_store.records
        view.clear()
        assert len(request_store.records) == 1
        assert request_store.records[0] is request_store.get("1")

    def test_change_callback(self, request_store):
        callback = Mock()
        request_store.register_change_callback(callback)
        event = RequestEvent(id="1", method="GET", url="https://x", timestamp=at(0))
        record = request_store.upsert(event)
        callback.assert_called_once_with(record, event)

    def test_apply_message(self, request_store):
        message = RequestEvent(id="4", method="DELETE", url="https://x/4", timestamp=at(0)).to_json()
        record = request_store.apply_message(message)
        assert record.method == "DELETE"
        assert request_store.apply_message("garbage") is None
        assert len(request_store) == 1

    def test_mixed_timestamp_styles_sort_together(self, request_store):
        request_store.apply_message(
            RequestEvent(id="1", method="GET", url="https://x/1", timestamp=at(0)).to_json()
        )
        request_store.apply_message(
            '{"timestamp": "2024-01-01T12:00:05", "raw": "", "type": "request",'
            ' "id": "2", "method": "GET", "url": "https://x/2"}'
        )
        assert [record.id for record in request_store.records] == ["2", "1"]

    def test_unsupported_event_type(self, request_store):
        with pytest.raises(TypeError):
            request_store.upsert(object())

    def test_capacity_evicts_oldest(self, sample_config):
        store = RequestStore(sample_config, max_records=2)
        store.upsert(RequestEvent(id="1", method="GET", url="https://x/1", timestamp=at(0)))
        store.upsert(RequestEvent(id="2", method="GET", url="https://x/2", timestamp=at(1)))
        store.select("1")
        store.upsert(RequestEvent(id="3", method="GET", url="https://x/3", timestamp=at(2)))

        assert "1" not in store
        assert [record.id for record in store.records] == ["3", "2"]
        assert store.selected is None

    def test_unbounded_by_default(self, request_store):
        for i in range(50):
            request_store.upsert(RequestEvent(id=str(i), method="GET", url="https://x", timestamp=at(i)))
        assert len(request_store) == 50

    def test_statistics(self, request_store):
        request_store.upsert(RequestEvent(id="1", method="GET", url="https://x/1", timestamp=at(0)))
        request_store.upsert(RequestEvent(id="2", method="POST", url="https://x/2", timestamp=at(1)))
        request_store.upsert(ResponseEvent(id="1", status="200", duration_text="1ms", timestamp=at(2)))
        request_store.upsert(ResponseEvent(id="3", status="200", duration_text="1ms", timestamp=at(3)))

        stats = request_store.get_statistics()
        assert stats['total_records'] == 3
        assert stats['visible'] == 2
        assert stats['pending'] == 1
        assert stats['completed'] == 1
        assert stats['methods'] == {'GET': 1, 'POST': 1}


class FakeConsumer:
    def __init__(self, closed=False, fail=False):
        self.closed = closed
        self.fail = fail
        self.messages = []

    async def send_str(self, data):
        if self.fail:
            raise ConnectionResetError("gone")
        self.messages.append(data)


class TestEventBus:
    """Tests for the EventBus class."""

    def test_publish_to_ready_consumers_only(self):
        bus = EventBus()
        ready = FakeConsumer()
        not_ready = FakeConsumer(closed=True)
        bus.subscribe(ready)
        bus.subscribe(not_ready)

        event = RequestEvent(id="1", method="GET", url="https://x", timestamp=at(0))
        delivered = asyncio.run(bus.publish(event))

        assert delivered == 1
        assert [json.loads(m)['id'] for m in ready.messages] == ["1"]
        assert not_ready.messages == []
        # A consumer that was not ready stays subscribed but does not get a replay
        assert len(bus) == 2

    def test_per_consumer_order(self):
        bus = EventBus()
        consumer = FakeConsumer()
        bus.subscribe(consumer)

        async def publish_all():
            for i in range(5):
                await bus.publish(RequestEvent(id=str(i), method="GET", url="https://x", timestamp=at(i)))

        asyncio.run(publish_all())
        assert [json.loads(m)['id'] for m in consumer.messages] == ["0", "1", "2", "3", "4"]

    def test_unsubscribe_is_idempotent(self):
        bus = EventBus()
        consumer = FakeConsumer()
        bus.subscribe(consumer)
        bus.unsubscribe(consumer)
        bus.unsubscribe(consumer)
        bus.unsubscribe(FakeConsumer())
        assert len(bus) == 0

    def test_failed_consumer_is_dropped(self):
        bus = EventBus()
        healthy = FakeConsumer()
        broken = FakeConsumer(fail=True)
        bus.subscribe(healthy)
        bus.subscribe(broken)

        event = RequestEvent(id="1", method="GET", url="https://x", timestamp=at(0))
        delivered = asyncio.run(bus.publish(event))

        assert delivered == 1
        assert bus.consumers == [healthy]

    def test_publish_without_consumers(self):
        bus = EventBus()
        event = RequestEvent(id="1", method="GET", url="https://x", timestamp=at(0))
        assert asyncio.run(bus.publish(event)) == 0

    def test_stalled_consumer_does_not_block_others(self):
        bus = EventBus(send_timeout=0.05)
        healthy = FakeConsumer()
        stalled = StalledConsumer()
        bus.subscribe(healthy)
        bus.subscribe(stalled)

        async def publish_all():
            for i in range(3):
                await bus.publish(RequestEvent(id=str(i), method="GET", url="https://x", timestamp=at(i)))

        asyncio.run(asyncio.wait_for(publish_all(), 1.0))
        assert [json.loads(m)['id'] for m in healthy.messages] == ["0", "1", "2"]
        assert bus.consumers == [healthy]
        assert stalled.attempts == 1


class StalledConsumer:
    """Consumer whose sends never complete."""

    closed = False

    def __init__(self):
        self.attempts = 0

    async def send_str(self, data):
        self.attempts += 1
        await asyncio.Event().wait()
