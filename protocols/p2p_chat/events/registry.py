"""
Event kind registry with typed data structures for each backend event.
"""

from enum import Enum
from typing import Any, List, Type, TypedDict, get_origin, get_args

from core.errors import MalformedEvent
from core.types import Envelope


class EventKind(str, Enum):
    """Closed set of events the backend pushes, by wire name."""
    MY_ADDRESS = "my-address"
    MY_INFO = "my-info"
    PEER_DISCOVERED = "peer-discovered"
    PEER_CONNECTED = "peer-connected"
    PEER_DISCONNECTED = "peer-disconnected"
    PEER_EXPIRED = "peer-expired"
    PEERS_LIST = "peers-list"
    P2P_MESSAGE = "p2p-message"
    CONNECTION_ERROR = "connection-error"
    CONNECTION_STATUS = "connection-status"
    PEER_SUBSCRIBED = "peer-subscribed"


# Event-specific data types using TypedDict for strict typing

class MyInfoData(TypedDict):
    """Local node identity"""
    peer_id: str
    addresses: List[str]


class PeerData(TypedDict):
    """Peer discovered or connected"""
    peer_id: str
    address: str


class PeerGoneData(TypedDict):
    """Peer disconnected or expired (wire payload is the bare peer id)"""
    peer_id: str


class PeersListData(TypedDict):
    """Connected peer ids (wire payload is the bare list)"""
    peer_ids: List[str]


class PeerSubscribedData(TypedDict):
    """A remote peer joined a topic"""
    peer_id: str
    topic: str


# 'from' is a keyword, so this one needs the functional form
P2PMessageData = TypedDict('P2PMessageData', {
    'from': str,
    'content': str,
    'timestamp': str,
    'topic': str,
    'uuid': str,
})


class StatusTextData(TypedDict):
    """Connection error or status line (wire payload is the bare string)"""
    text: str


# Registry mapping event kinds to families and data classes
EVENT_FAMILY: dict[EventKind, str] = {
    EventKind.MY_ADDRESS: "identity",
    EventKind.MY_INFO: "identity",
    EventKind.PEER_DISCOVERED: "peer",
    EventKind.PEER_CONNECTED: "peer",
    EventKind.PEER_DISCONNECTED: "peer",
    EventKind.PEER_EXPIRED: "peer",
    EventKind.PEERS_LIST: "peer",
    EventKind.PEER_SUBSCRIBED: "peer",
    EventKind.P2P_MESSAGE: "message",
    EventKind.CONNECTION_ERROR: "status",
    EventKind.CONNECTION_STATUS: "status",
}

EVENT_TYPE_REGISTRY: dict[EventKind, Type[Any]] = {
    EventKind.MY_ADDRESS: MyInfoData,
    EventKind.MY_INFO: MyInfoData,
    EventKind.PEER_DISCOVERED: PeerData,
    EventKind.PEER_CONNECTED: PeerData,
    EventKind.PEER_DISCONNECTED: PeerGoneData,
    EventKind.PEER_EXPIRED: PeerGoneData,
    EventKind.PEERS_LIST: PeersListData,
    EventKind.PEER_SUBSCRIBED: PeerSubscribedData,
    EventKind.P2P_MESSAGE: P2PMessageData,
    EventKind.CONNECTION_ERROR: StatusTextData,
    EventKind.CONNECTION_STATUS: StatusTextData,
}

# Kinds whose wire payload is a bare value rather than an object
_BARE_PAYLOAD_FIELD: dict[EventKind, str] = {
    EventKind.PEER_DISCONNECTED: "peer_id",
    EventKind.PEER_EXPIRED: "peer_id",
    EventKind.PEERS_LIST: "peer_ids",
    EventKind.CONNECTION_ERROR: "text",
    EventKind.CONNECTION_STATUS: "text",
}


def event_names() -> List[str]:
    return [kind.value for kind in EventKind]


def _matches(value: Any, expected: Any) -> bool:
    origin = get_origin(expected)
    if origin is list:
        (item_type,) = get_args(expected)
        return isinstance(value, list) and all(_matches(v, item_type) for v in value)
    if expected is str:
        return isinstance(value, str)
    # Only str and list members are type-checked
    return True


def validate_event_data(event_type: str, event_data: dict) -> bool:
    """
    Validate that event data matches the expected structure.

    Args:
        event_type: Wire name of the event
        event_data: The decoded event data

    Returns:
        True if valid, False otherwise
    """
    try:
        kind = EventKind(event_type)
    except ValueError:
        return False

    expected_type = EVENT_TYPE_REGISTRY[kind]
    for field_name in expected_type.__required_keys__:
        if field_name not in event_data:
            return False
        if not _matches(event_data[field_name], expected_type.__annotations__[field_name]):
            return False

    return True


def decode_event(event_name: str, payload: Any) -> Envelope:
    """
    Wrap a raw backend payload in an envelope.

    Bare-value payloads are normalized to objects so every family sees a
    dict. Structural checks beyond the payload's shape are left to the
    family validator.

    Raises:
        MalformedEvent: For unknown event names or payloads of the wrong shape
    """
    try:
        kind = EventKind(event_name)
    except ValueError:
        raise MalformedEvent(event_name, "unknown event name") from None

    bare_field = _BARE_PAYLOAD_FIELD.get(kind)
    if bare_field is not None and not isinstance(payload, dict):
        event_data = {bare_field: payload}
    elif isinstance(payload, dict):
        event_data = dict(payload)
    else:
        raise MalformedEvent(event_name, f"expected an object, got {type(payload).__name__}")

    return {
        'event_name': event_name,
        'payload': payload,
        'event_type': kind.value,
        'event_family': EVENT_FAMILY[kind],
        'event_data': event_data,
    }
