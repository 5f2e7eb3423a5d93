"""
Core data models for NetMonitor.

Network events decoded from the log stream and the request records
accumulated from them.
"""
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, Optional, Type


class NetMonitorError(Exception):
    """Base exception for NetMonitor errors."""
    pass


class EventDecodeError(NetMonitorError, ValueError):
    """Raised when a transport message cannot be decoded into an event."""
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class NetworkEvent:
    """
    Base class for a partial network event.

    Every event carries the correlation id shared by all events of one
    network call, the time it was classified and the payload it came from.
    """
    id: str
    timestamp: datetime = field(default_factory=_utcnow)
    raw: str = ""

    type: ClassVar[str] = ""

    def variant_fields(self) -> Dict[str, Any]:
        """Wire fields specific to the event variant."""
        return {}

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'timestamp': self.timestamp.isoformat(),
            'raw': self.raw,
            'type': self.type,
            'id': self.id,
        }
        data.update(self.variant_fields())
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


@dataclass
class RequestEvent(NetworkEvent):
    """An outgoing request line: method and URL."""
    method: str = ""
    url: str = ""

    type: ClassVar[str] = "request"

    def variant_fields(self) -> Dict[str, Any]:
        return {'method': self.method, 'url': self.url}


@dataclass
class ResponseEvent(NetworkEvent):
    """A response line: status code and elapsed time, both kept as text."""
    status: str = ""
    duration_text: str = ""

    type: ClassVar[str] = "response"

    def variant_fields(self) -> Dict[str, Any]:
        return {'status': self.status, 'duration': self.duration_text}


@dataclass
class RequestBodyEvent(NetworkEvent):
    body: str = ""

    type: ClassVar[str] = "request_body"

    def variant_fields(self) -> Dict[str, Any]:
        return {'body': self.body}


@dataclass
class ResponseBodyEvent(NetworkEvent):
    body: str = ""

    type: ClassVar[str] = "response_body"

    def variant_fields(self) -> Dict[str, Any]:
        return {'body': self.body}


EVENT_TYPES: Dict[str, Type[NetworkEvent]] = {
    cls.type: cls
    for cls in (RequestEvent, ResponseEvent, RequestBodyEvent, ResponseBodyEvent)
}

# Wire field name -> dataclass field name, per variant
_WIRE_FIELDS: Dict[str, Dict[str, str]] = {
    'request': {'method': 'method', 'url': 'url'},
    'response': {'status': 'status', 'duration': 'duration_text'},
    'request_body': {'body': 'body'},
    'response_body': {'body': 'body'},
}


def _parse_timestamp(value: str) -> datetime:
    # fromisoformat only accepts a trailing Z from Python 3.11
    if isinstance(value, str) and value.endswith("Z"):
        value = value[:-1] + "+00:00"
    timestamp = datetime.fromisoformat(value)
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp


def event_from_dict(data: Dict[str, Any]) -> NetworkEvent:
    """
    Build a typed event from its decoded wire representation.

    Args:
        data: Dictionary as produced by ``NetworkEvent.to_dict``

    Returns:
        The matching NetworkEvent subclass instance

    Raises:
        EventDecodeError: If the type is unknown or a field is missing
    """
    if not isinstance(data, dict):
        raise EventDecodeError(f"Expected an object, got {type(data).__name__}")

    event_type = data.get('type')
    event_class = EVENT_TYPES.get(event_type)
    if event_class is None:
        raise EventDecodeError(f"Unknown event type: {event_type!r}")

    try:
        kwargs = {
            'id': str(data['id']),
            'raw': data.get('raw', ''),
            'timestamp': _parse_timestamp(data['timestamp']),
        }
        for wire_name, field_name in _WIRE_FIELDS[event_type].items():
            kwargs[field_name] = str(data[wire_name])
    except KeyError as e:
        raise EventDecodeError(f"Missing field {e} in {event_type} event") from e
    except (TypeError, ValueError) as e:
        raise EventDecodeError(f"Invalid timestamp in {event_type} event: {e}") from e

    return event_class(**kwargs)


def event_from_json(text: str) -> NetworkEvent:
    """Decode one JSON transport message into an event."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise EventDecodeError(f"Invalid JSON message: {e}") from e
    return event_from_dict(data)


@dataclass
class RequestRecord:
    """
    Accumulated view of one network call, built from its partial events.

    Status stays "Pending" until a response arrives; the textual fields
    stay empty until their owning event arrives.
    """
    id: str
    timestamp: Optional[datetime] = None
    method: str = ""
    url: str = ""
    status: str = "Pending"
    duration_text: str = ""
    request_body: str = ""
    response_body: str = ""

    @property
    def is_pending(self) -> bool:
        return self.status == "Pending"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
            'method': self.method,
            'url': self.url,
            'status': self.status,
            'duration': self.duration_text,
            'request_body': self.request_body,
            'response_body': self.response_body,
        }
