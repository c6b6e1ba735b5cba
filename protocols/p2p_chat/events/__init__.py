"""
Event types module for the p2p chat protocol.
"""

from .registry import (
    EventKind,
    EVENT_FAMILY,
    EVENT_TYPE_REGISTRY,
    decode_event,
    event_names,
    validate_event_data,
    # Event data types
    MyInfoData,
    PeerData,
    PeerGoneData,
    PeersListData,
    PeerSubscribedData,
    P2PMessageData,
    StatusTextData,
)

__all__ = [
    "EventKind",
    "EVENT_FAMILY",
    "EVENT_TYPE_REGISTRY",
    "decode_event",
    "event_names",
    "validate_event_data",
    "MyInfoData",
    "PeerData",
    "PeerGoneData",
    "PeersListData",
    "PeerSubscribedData",
    "P2PMessageData",
    "StatusTextData",
]
