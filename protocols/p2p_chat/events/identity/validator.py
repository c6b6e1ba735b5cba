"""
Validator for identity events (my-address, my-info).
"""
from typing import Any
from core.core_types import validator
from protocols.p2p_chat.events import validate_event_data


@validator
def validate(envelope: dict[str, Any]) -> bool:
    """
    Validate a local identity snapshot.

    Checks:
    - Has peer_id and an addresses list of strings
    - peer_id is not empty
    """
    event_data = envelope.get('event_data')
    if not isinstance(event_data, dict):
        print(f"[identity validator] Missing event_data")
        return False

    if not validate_event_data(envelope.get('event_type', ''), event_data):
        print(f"[identity validator] Event data validation failed")
        return False

    if not event_data['peer_id'].strip():
        print(f"[identity validator] Empty peer_id")
        return False

    return True
