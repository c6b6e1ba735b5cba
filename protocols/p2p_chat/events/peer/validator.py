"""
Validator for peer lifecycle events.
"""
from typing import Any
from core.core_types import validator
from protocols.p2p_chat.events import EventKind, validate_event_data


@validator
def validate(envelope: dict[str, Any]) -> bool:
    """
    Validate a peer event.

    Checks:
    - Has the fields its kind requires
    - Peer ids are not empty
    """
    event_data = envelope.get('event_data')
    if not isinstance(event_data, dict):
        print(f"[peer validator] Missing event_data")
        return False

    event_type = envelope.get('event_type', '')
    if not validate_event_data(event_type, event_data):
        print(f"[peer validator] Event data validation failed for {event_type}")
        return False

    if event_type == EventKind.PEERS_LIST.value:
        if any(not peer_id for peer_id in event_data['peer_ids']):
            print(f"[peer validator] Empty peer id in peers-list")
            return False
        return True

    if not event_data['peer_id']:
        print(f"[peer validator] Empty peer_id")
        return False

    return True
